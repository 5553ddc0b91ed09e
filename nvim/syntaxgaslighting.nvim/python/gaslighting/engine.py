import logging
import threading
from typing import Hashable, List, Mapping, Optional, Protocol, Sequence, Tuple

from .config import DEFAULT_CONFIG, MAX_SELECTION_CHANCE, MIN_SELECTION_CHANCE, Config, GaslightingError, resolve
from .scheduler import DebounceScheduler, TimerFactory
from .session import Placement, run

logger = logging.getLogger(__name__)

ENABLED_MESSAGE = "Syntax Gaslighting enabled! Prepare to question everything..."
DISABLED_MESSAGE = "Syntax Gaslighting disabled. You can code in peace now."
INVALID_CHANCE_MESSAGE = "Invalid input. Please enter a number between 1 and 100."
CHANCE_SET_MESSAGE = "Gaslighting chance set to {}%"


class InvalidCommandInput(GaslightingError):
    """A user command received input it cannot apply; nothing was changed."""


class HostEventSource(Protocol):
    def current_document(self) -> Hashable: ...

    def current_lines(self, document: Hashable) -> Sequence[str]: ...

    def context_id(self, document: Hashable) -> Optional[str]: ...

    def notify(self, message: str, level: str = "info") -> None: ...


class Renderer(Protocol):
    def ensure_style(self, name: str, fallback: str) -> None: ...

    def clear_all(self, document: Hashable) -> None: ...

    def draw(self, document: Hashable, placements: Sequence[Placement]) -> None: ...


def parse_selection_chance(raw: object) -> int:
    if isinstance(raw, bool):
        raise InvalidCommandInput(INVALID_CHANCE_MESSAGE)
    if isinstance(raw, float):
        if not raw.is_integer():
            raise InvalidCommandInput(INVALID_CHANCE_MESSAGE)
        raw = int(raw)
    if isinstance(raw, int):
        value = raw
    else:
        try:
            value = int(str(raw or "").strip())
        except ValueError:
            raise InvalidCommandInput(INVALID_CHANCE_MESSAGE) from None
    if not (MIN_SELECTION_CHANCE <= value <= MAX_SELECTION_CHANCE):
        raise InvalidCommandInput(INVALID_CHANCE_MESSAGE)
    return value


class GaslightingEngine:
    """One engine per document context: live config, toggle and debounce timer.

    Entry points may be called from the host thread and from the scheduler's
    timer thread; the toggle and config are read and replaced under one lock.
    """

    def __init__(
        self,
        host: HostEventSource,
        renderer: Renderer,
        config: Optional[Config] = None,
        timer_factory: Optional[TimerFactory] = None,
    ) -> None:
        self._host = host
        self._renderer = renderer
        self._lock = threading.RLock()
        self._config = config or DEFAULT_CONFIG
        self._enabled = self._config.enabled
        self._scheduler = DebounceScheduler(self._config.debounce_interval, self.refresh, timer_factory=timer_factory)
        self._renderer.ensure_style(self._config.highlight, self._config.highlight_link)

    @property
    def config(self) -> Config:
        with self._lock:
            return self._config

    @property
    def enabled(self) -> bool:
        with self._lock:
            return self._enabled

    @property
    def scheduler(self) -> DebounceScheduler:
        return self._scheduler

    def configure(self, overrides: Optional[Mapping[str, object]] = None) -> Config:
        """Replace the live config with ``overrides`` resolved against the defaults.

        Raises InvalidConfig and leaves the live config untouched on failure.
        """
        return self.apply_config(resolve(DEFAULT_CONFIG, overrides))

    def apply_config(self, config: Config) -> Config:
        """Swap in an already resolved config.

        A change of ``enabled`` against the previous config is applied like a
        toggle: annotations are cleared or redrawn right away.
        """
        self._scheduler.interval_ms = config.debounce_interval
        self._renderer.ensure_style(config.highlight, config.highlight_link)
        with self._lock:
            previous = self._config
            self._config = config
            if config.enabled != previous.enabled and config.enabled != self._enabled:
                self._set_enabled_locked(config.enabled)
        logger.info("config replaced (chance=%d%%, messages=%d)", config.selection_chance, len(config.messages))
        return config

    def notify_changed(self) -> None:
        self._scheduler.trigger()

    def refresh(self) -> List[Placement]:
        # Compute and draw under the lock so a concurrent disable either runs
        # before (and we only clear) or after (and clears what we drew).
        with self._lock:
            document = self._host.current_document()
            if not self._enabled:
                self._renderer.clear_all(document)
                return []
            lines = self._host.current_lines(document)
            context_id = self._host.context_id(document)
            placements = run(lines, context_id, self._config, enabled=True)
            self._renderer.clear_all(document)
            if placements:
                self._renderer.draw(document, placements)
            return placements

    def toggle(self) -> bool:
        with self._lock:
            return self._set_enabled_locked(not self._enabled)

    def _set_enabled_locked(self, enabled: bool) -> bool:
        self._enabled = enabled
        if enabled:
            self._host.notify(ENABLED_MESSAGE)
            self.refresh()
        else:
            self._scheduler.cancel()
            self._renderer.clear_all(self._host.current_document())
            self._host.notify(DISABLED_MESSAGE)
        logger.debug("enabled=%s", enabled)
        return enabled

    def set_selection_chance(self, raw: object) -> Optional[int]:
        try:
            value = parse_selection_chance(raw)
        except InvalidCommandInput as exc:
            logger.debug("rejected selection chance %r", raw)
            self._host.notify(str(exc), level="error")
            return None
        with self._lock:
            self._config = resolve(self._config, {"selection_chance": value})
        self._host.notify(CHANCE_SET_MESSAGE.format(value))
        self._scheduler.trigger()
        return value

    def list_messages(self) -> Tuple[str, ...]:
        with self._lock:
            return self._config.messages

    def close(self) -> None:
        self._scheduler.cancel()
