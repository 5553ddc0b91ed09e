"""Config store: defaults, sparse user overrides, and user config files.

Overrides are plain mappings (decoded JSON/YAML or a Lua table sent over the
wire). Every field present replaces the default wholesale, except ``messages``,
which is appended to the defaults when ``merge_messages`` is true.

Example YAML:

    syntax_gaslighting:
      selection_chance: 10
      min_line_length: 12
      ignored_contexts: [markdown, text]
      merge_messages: true
      messages:
        - "Have you considered a career in management?"
"""

import dataclasses
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

CONFIG_ROOT_KEY = "syntax_gaslighting"
CONFIG_ENV_VAR = "SYNTAX_GASLIGHTING_CONFIG"
CONFIG_FALLBACK_FILENAMES = ["config.json", "config.yaml", "config.yml"]

MIN_SELECTION_CHANCE = 1
MAX_SELECTION_CHANCE = 100

DEFAULT_SELECTION_CHANCE = 5
DEFAULT_MIN_LINE_LENGTH = 10
DEFAULT_DEBOUNCE_INTERVAL_MS = 500
DEFAULT_HIGHLIGHT = "GaslightingUnderline"
DEFAULT_HIGHLIGHT_LINK = "Comment"

HASH_POLYNOMIAL = "polynomial"
HASH_SHA256 = "sha256"
HASH_FUNCTIONS = (HASH_POLYNOMIAL, HASH_SHA256)

DEFAULT_MESSAGES: Tuple[str, ...] = (
    "Are you sure this will pass the code quality checks? 🤔",
    "Is this line really covered by unit tests? 🧐",
    "I wouldn't commit that line without double checking... 💭",
    "Your tech lead might have questions about this one 🤔",
    "That's an... interesting way to solve this 🤯",
    "Did you really mean to write it this way? 🤔",
    "Maybe add a comment explaining why this isn't as bad as it looks? 📝",
    "Bold choice! Very... creative 💡",
    "Please. Tell me Copilot wrote this one... 🤖",
    "Totally not a memory leak... 🚽",
    "I'd be embarrassed to push this to git if I were you. 😳",
)


class GaslightingError(Exception):
    """Base class for errors reported to callers instead of crashing the host."""


class InvalidConfig(GaslightingError):
    """Resolved configuration is unusable; the previous config stays in effect."""


@dataclass(frozen=True)
class Config:
    selection_chance: int = DEFAULT_SELECTION_CHANCE
    min_line_length: int = DEFAULT_MIN_LINE_LENGTH
    messages: Tuple[str, ...] = DEFAULT_MESSAGES
    ignored_contexts: FrozenSet[str] = field(default_factory=frozenset)
    debounce_interval: int = DEFAULT_DEBOUNCE_INTERVAL_MS
    merge_user_messages: bool = False
    highlight: str = DEFAULT_HIGHLIGHT
    highlight_link: str = DEFAULT_HIGHLIGHT_LINK
    enabled: bool = True
    hash_function: str = HASH_POLYNOMIAL

    def to_dict(self) -> Dict[str, object]:
        out = dataclasses.asdict(self)
        out["messages"] = list(self.messages)
        out["ignored_contexts"] = sorted(self.ignored_contexts)
        return out


DEFAULT_CONFIG = Config()

_FIELD_NAMES = frozenset(f.name for f in dataclasses.fields(Config))
MERGE_OVERRIDE_KEY = "merge_messages"


def _require_int(key: str, value: object, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfig("{} must be an integer, got {!r}".format(key, value))
    if value < minimum:
        raise InvalidConfig("{} must be >= {}, got {}".format(key, minimum, value))
    return value


def _require_bool(key: str, value: object) -> bool:
    if not isinstance(value, bool):
        raise InvalidConfig("{} must be a boolean, got {!r}".format(key, value))
    return value


def _require_name(key: str, value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidConfig("{} must be a non-empty string, got {!r}".format(key, value))
    return value.strip()


def _require_strings(key: str, value: object) -> List[str]:
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple, set, frozenset)):
        raise InvalidConfig("{} must be a list of strings, got {!r}".format(key, value))
    items = list(value)
    for item in items:
        if not isinstance(item, str):
            raise InvalidConfig("{} must contain only strings, got {!r}".format(key, item))
    return items


def _coerce_field(key: str, value: object) -> object:
    if key in ("selection_chance", "min_line_length"):
        return _require_int(key, value, 0)
    if key == "debounce_interval":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidConfig("debounce_interval must be a number of milliseconds, got {!r}".format(value))
        if value < 0:
            raise InvalidConfig("debounce_interval must be >= 0, got {}".format(value))
        return int(value)
    if key == "messages":
        return tuple(_require_strings(key, value))
    if key == "ignored_contexts":
        return frozenset(_require_strings(key, value))
    if key in ("merge_user_messages", "enabled"):
        return _require_bool(key, value)
    if key in ("highlight", "highlight_link"):
        return _require_name(key, value)
    if key == "hash_function":
        name = _require_name(key, value).lower()
        if name not in HASH_FUNCTIONS:
            raise InvalidConfig("hash_function must be one of {}, got {!r}".format(", ".join(HASH_FUNCTIONS), value))
        return name
    raise InvalidConfig("unknown config field {!r}".format(key))


def validate(config: Config) -> Config:
    if not (MIN_SELECTION_CHANCE <= config.selection_chance <= MAX_SELECTION_CHANCE):
        raise InvalidConfig(
            "selection_chance must be between {} and {}, got {}".format(
                MIN_SELECTION_CHANCE, MAX_SELECTION_CHANCE, config.selection_chance
            )
        )
    if not config.messages:
        raise InvalidConfig("message pool must not be empty")
    return config


def resolve(defaults: Config, overrides: Optional[Mapping[str, object]] = None) -> Config:
    """Merge sparse ``overrides`` onto ``defaults`` and validate the result.

    Raises InvalidConfig without side effects; callers keep their previous config.
    """
    data = dict(overrides or {})
    nested = data.get(CONFIG_ROOT_KEY)
    if isinstance(nested, Mapping):
        data = dict(nested)

    changes: Dict[str, object] = {}
    for key, value in data.items():
        if key == MERGE_OVERRIDE_KEY:
            continue
        if key not in _FIELD_NAMES:
            logger.warning("ignoring unknown config key %r", key)
            continue
        changes[key] = _coerce_field(key, value)

    if MERGE_OVERRIDE_KEY in data:
        changes["merge_user_messages"] = _require_bool(MERGE_OVERRIDE_KEY, data[MERGE_OVERRIDE_KEY])
    merge = bool(changes.get("merge_user_messages", defaults.merge_user_messages))

    user_messages = changes.get("messages")
    if merge and user_messages:
        changes["messages"] = tuple(defaults.messages) + tuple(user_messages)

    config = validate(dataclasses.replace(defaults, **changes))
    logger.debug(
        "resolved config: chance=%d min_len=%d messages=%d ignored=%d",
        config.selection_chance, config.min_line_length, len(config.messages), len(config.ignored_contexts),
    )
    return config


def _resolve_path(path: str, env_var: str, fallback_filenames: List[str]) -> str:
    path = os.path.expanduser(str(path or "").strip())
    if path and os.path.exists(path):
        return path
    env_path = os.path.expanduser(os.environ.get(env_var, "").strip())
    if env_path and os.path.exists(env_path):
        return env_path
    home = os.path.expanduser("~")
    for name in fallback_filenames:
        candidate = os.path.join(home, ".syntax-gaslighting", name)
        if os.path.exists(candidate):
            return candidate
    return path


def load_user_config(path: str = "") -> Dict[str, object]:
    """Read sparse overrides from a JSON or YAML file.

    A missing file yields no overrides. Unreadable or malformed files raise
    InvalidConfig.
    """
    resolved = _resolve_path(path, CONFIG_ENV_VAR, CONFIG_FALLBACK_FILENAMES)
    if not resolved or not os.path.exists(resolved):
        return {}
    try:
        with open(resolved, "r", encoding="utf-8") as fh:
            if resolved.endswith((".yaml", ".yml")):
                import yaml

                try:
                    raw = yaml.safe_load(fh)
                except yaml.YAMLError as exc:
                    raise InvalidConfig("malformed YAML in {}: {}".format(resolved, exc)) from exc
            else:
                raw = json.load(fh)
    except (OSError, ValueError) as exc:
        raise InvalidConfig("cannot read config {}: {}".format(resolved, exc)) from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise InvalidConfig("config file {} must contain a mapping".format(resolved))
    logger.debug("loaded user config from %s", resolved)
    return raw
