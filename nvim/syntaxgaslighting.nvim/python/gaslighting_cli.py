#!/usr/bin/env python3
import argparse
import json
import logging
import os
import sys
import threading
from typing import Dict, Hashable, List, Mapping, Optional, Sequence

from gaslighting.config import DEFAULT_CONFIG, Config, GaslightingError, load_user_config, resolve
from gaslighting.engine import GaslightingEngine, InvalidCommandInput
from gaslighting.log import configure_logging
from gaslighting.scheduler import TimerFactory
from gaslighting.session import Placement, run

logger = logging.getLogger("gaslighting.cli")

DEBUG_ENV_VAR = "SYNTAX_GASLIGHTING_DEBUG_LOG"
LOG_FILE_ENV_VAR = "SYNTAX_GASLIGHTING_LOG_FILE"
DEFAULT_BUFFER = 0

_WRITE_LOCK = threading.Lock()


def _write_json(payload: dict) -> None:
    # Debounced refreshes write from timer threads; keep each line whole.
    with _WRITE_LOCK:
        sys.stdout.write(json.dumps(payload, ensure_ascii=True) + "\n")
        sys.stdout.flush()


def _read_stdin_json() -> dict:
    raw = sys.stdin.read()
    if not raw.strip():
        return {}
    return json.loads(raw)


def _placement_to_wire(placement: Placement) -> dict:
    # Neovim extmarks are 0-based rows with byte columns.
    return {
        "lnum": placement.line - 1,
        "col": placement.column,
        "message": placement.message,
        "hl_group": placement.style,
    }


def _clean_lines(raw: object) -> List[str]:
    if not isinstance(raw, list):
        return []
    # Keep numbering stable: anything that is not text counts as a blank line.
    return [item if isinstance(item, str) else "" for item in raw]


def _clean_context(raw: object) -> Optional[str]:
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return None


class _BufferSnapshot:
    def __init__(self) -> None:
        self.lines: List[str] = []
        self.context: Optional[str] = None


class BufferHost:
    """Host event source backed by the latest snapshot the editor pushed for one buffer."""

    def __init__(self, buffer: Hashable, snapshot: _BufferSnapshot) -> None:
        self._buffer = buffer
        self._snapshot = snapshot

    def current_document(self) -> Hashable:
        return self._buffer

    def current_lines(self, document: Hashable) -> Sequence[str]:
        return list(self._snapshot.lines)

    def context_id(self, document: Hashable) -> Optional[str]:
        return self._snapshot.context

    def notify(self, message: str, level: str = "info") -> None:
        _write_json({"event": "notify", "buffer": self._buffer, "message": message, "level": level})


class StdioRenderer:
    """Renderer that forwards draw/clear requests to the editor as JSON-lines events."""

    def __init__(self) -> None:
        self._styles: Dict[str, str] = {}

    def ensure_style(self, name: str, fallback: str) -> None:
        if self._styles.get(name) == fallback:
            return
        self._styles[name] = fallback
        _write_json({"event": "style", "name": name, "link": fallback})

    def clear_all(self, document: Hashable) -> None:
        _write_json({"event": "clear", "buffer": document})

    def draw(self, document: Hashable, placements: Sequence[Placement]) -> None:
        _write_json(
            {
                "event": "placements",
                "buffer": document,
                "placements": [_placement_to_wire(p) for p in placements],
            }
        )


class PersistentSession:
    """State for one editor connection: shared config, one engine per buffer."""

    def __init__(self, base: Config = DEFAULT_CONFIG, timer_factory: Optional[TimerFactory] = None) -> None:
        self._base = base
        self._config = base
        self._timer_factory = timer_factory
        self._renderer = StdioRenderer()
        self._snapshots: Dict[Hashable, _BufferSnapshot] = {}
        self._engines: Dict[Hashable, GaslightingEngine] = {}

    @property
    def config(self) -> Config:
        return self._config

    def _engine_for(self, buffer: Hashable) -> GaslightingEngine:
        engine = self._engines.get(buffer)
        if engine is None:
            snapshot = self._snapshots.setdefault(buffer, _BufferSnapshot())
            engine = GaslightingEngine(
                BufferHost(buffer, snapshot),
                self._renderer,
                config=self._config,
                timer_factory=self._timer_factory,
            )
            self._engines[buffer] = engine
        return engine

    def _update_snapshot(self, buffer: Hashable, req: Mapping[str, object]) -> _BufferSnapshot:
        snapshot = self._snapshots.setdefault(buffer, _BufferSnapshot())
        if "lines" in req:
            snapshot.lines = _clean_lines(req.get("lines"))
        if "context" in req:
            snapshot.context = _clean_context(req.get("context"))
        return snapshot

    def _configure(self, overrides: Mapping[str, object]) -> Config:
        # Layer on the startup base so the --config file survives reconfiguration.
        config = resolve(self._base, overrides)
        self._config = config
        for engine in self._engines.values():
            engine.apply_config(config)
        return config

    def handle(self, req: Mapping[str, object]) -> dict:
        method = str(req.get("method") or "run").strip().lower()
        buffer = req.get("buffer", DEFAULT_BUFFER)
        resp: dict = {}
        if "id" in req:
            resp["id"] = req.get("id")
        try:
            if isinstance(buffer, bool) or not isinstance(buffer, (int, str)):
                raise InvalidCommandInput("buffer must be a number or string")
            resp.update(self._dispatch(method, buffer, req))
        except GaslightingError as exc:
            logger.warning("%s request failed: %s", method, exc)
            resp["error"] = str(exc)
        return resp

    def _dispatch(self, method: str, buffer: Hashable, req: Mapping[str, object]) -> dict:
        if method == "configure":
            overrides = req.get("config") or {}
            if not isinstance(overrides, dict):
                raise GaslightingError("config must be an object")
            config = self._configure(overrides)
            return {"config": config.to_dict()}

        if method == "run":
            snapshot = self._update_snapshot(buffer, req)
            engine = self._engines.get(buffer)
            enabled = engine.enabled if engine is not None else self._config.enabled
            placements = run(snapshot.lines, snapshot.context, self._config, enabled=enabled)
            return {
                "buffer": buffer,
                "enabled": enabled,
                "placements": [_placement_to_wire(p) for p in placements],
            }

        if method == "changed":
            self._update_snapshot(buffer, req)
            self._engine_for(buffer).notify_changed()
            return {"buffer": buffer, "scheduled": True}

        if method == "toggle":
            self._update_snapshot(buffer, req)
            enabled = self._engine_for(buffer).toggle()
            return {"buffer": buffer, "enabled": enabled}

        if method == "set_chance":
            engine = self._engine_for(buffer)
            value = engine.set_selection_chance(req.get("value"))
            if value is None:
                return {"buffer": buffer, "ok": False}
            self._config = engine.config
            for other_buffer, other in self._engines.items():
                if other_buffer != buffer:
                    other.apply_config(self._config)
            return {"buffer": buffer, "ok": True, "selection_chance": value}

        if method == "list_messages":
            engine = self._engines.get(buffer)
            messages = engine.list_messages() if engine is not None else self._config.messages
            return {"messages": list(messages)}

        raise InvalidCommandInput("unknown method: {}".format(method))

    def close(self) -> None:
        for engine in self._engines.values():
            engine.close()


def run_persistent(base: Config = DEFAULT_CONFIG, timer_factory: Optional[TimerFactory] = None) -> int:
    session = PersistentSession(base=base, timer_factory=timer_factory)
    try:
        for raw in sys.stdin:
            raw = raw.strip()
            if not raw:
                continue
            try:
                req = json.loads(raw)
            except ValueError as exc:
                _write_json({"error": "invalid_json: {}".format(exc)})
                continue
            if not isinstance(req, dict):
                _write_json({"error": "request must be an object"})
                continue
            if req.get("shutdown") or req.get("method") == "shutdown":
                break
            _write_json(session.handle(req))
    finally:
        session.close()
    return 0


def run_once(base: Config = DEFAULT_CONFIG) -> int:
    payload: dict = {"placements": []}
    try:
        req = _read_stdin_json()
    except ValueError as exc:
        payload["error"] = "invalid_json: {}".format(exc)
        _write_json(payload)
        return 0
    if not isinstance(req, dict):
        payload["error"] = "request must be an object"
        _write_json(payload)
        return 0
    lines = _clean_lines(req.get("lines"))
    context = _clean_context(req.get("context"))
    enabled = req.get("enabled", True) is not False
    overrides = req.get("config") or {}
    try:
        if not isinstance(overrides, dict):
            raise GaslightingError("config must be an object")
        config = resolve(base, overrides)
    except GaslightingError as exc:
        payload["error"] = str(exc)
        _write_json(payload)
        return 0
    placements = run(lines, context, config, enabled=enabled)
    payload["placements"] = [_placement_to_wire(p) for p in placements]
    payload["eval"] = {
        "line_count": len(lines),
        "placement_count": len(placements),
        "enabled": enabled,
        "selection_chance": config.selection_chance,
    }
    _write_json(payload)
    return 0


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "yes", "on"}


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Deterministic syntax gaslighting annotations over stdio JSON.")
    parser.add_argument("--persistent", action="store_true", help="serve newline-delimited JSON requests until EOF")
    parser.add_argument("--config", default="", help="JSON or YAML file with config overrides")
    parser.add_argument("--debug-log", action="store_true", help="log at DEBUG level")
    parser.add_argument("--log-file", default="", help="write logs to this file instead of stderr")
    args = parser.parse_args(argv)

    configure_logging(
        debug=args.debug_log or _env_flag(DEBUG_ENV_VAR),
        log_file=args.log_file or os.environ.get(LOG_FILE_ENV_VAR, ""),
    )

    try:
        base = resolve(DEFAULT_CONFIG, load_user_config(args.config))
    except GaslightingError as exc:
        logger.error("falling back to default config: %s", exc)
        base = DEFAULT_CONFIG

    if args.persistent:
        return run_persistent(base=base)
    return run_once(base=base)


if __name__ == "__main__":
    raise SystemExit(main())
