"""Deterministic per-line annotation engine for the syntax-gaslighting plugin."""

from .config import DEFAULT_CONFIG, DEFAULT_MESSAGES, Config, GaslightingError, InvalidConfig, load_user_config, resolve
from .engine import GaslightingEngine, InvalidCommandInput
from .line_filter import is_eligible
from .scheduler import DebounceScheduler
from .selector import line_hash, select
from .session import LineRecord, Placement, analyze_lines, run

__all__ = [
    "Config", "DEFAULT_CONFIG", "DEFAULT_MESSAGES", "resolve", "load_user_config",
    "GaslightingError", "InvalidConfig", "InvalidCommandInput",
    "GaslightingEngine",
    "DebounceScheduler",
    "is_eligible",
    "line_hash", "select",
    "LineRecord", "Placement", "analyze_lines", "run",
]
__version__ = "0.1.0"
