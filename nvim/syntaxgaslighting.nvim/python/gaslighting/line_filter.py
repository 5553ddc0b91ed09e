from typing import Dict, Optional, Tuple

from .config import Config

# Prefix heuristics only. Block comment bodies without one of these prefixes
# are not detected.
COMMON_COMMENT_PREFIXES: Tuple[str, ...] = ("//", "#", "/*", "*", "<!--")

CONTEXT_COMMENT_PREFIXES: Dict[str, Tuple[str, ...]] = {
    "lua": ("--",),
    "sql": ("--",),
    "haskell": ("--", "{-"),
    "elm": ("--", "{-"),
    "ada": ("--",),
    "vim": ('"',),
    "lisp": (";",),
    "clojure": (";",),
    "scheme": (";",),
    "asm": (";",),
    "ini": (";",),
    "tex": ("%",),
    "erlang": ("%",),
    "matlab": ("%",),
    "fortran": ("!",),
    "python": ('"""', "'''"),
}


def comment_prefixes(context_id: Optional[str]) -> Tuple[str, ...]:
    extra = CONTEXT_COMMENT_PREFIXES.get((context_id or "").lower(), ())
    return COMMON_COMMENT_PREFIXES + extra


def looks_like_comment(trimmed: str, context_id: Optional[str] = None) -> bool:
    return trimmed.startswith(comment_prefixes(context_id))


def is_eligible(raw_line: str, context_id: Optional[str], config: Config) -> bool:
    """Decide whether a line may receive an annotation at all.

    The session toggle is not consulted here; callers skip the filter entirely
    while annotations are disabled.
    """
    if context_id is not None and context_id in config.ignored_contexts:
        return False
    trimmed = raw_line.strip()
    if len(trimmed) < config.min_line_length:
        return False
    return not looks_like_comment(trimmed, context_id)
