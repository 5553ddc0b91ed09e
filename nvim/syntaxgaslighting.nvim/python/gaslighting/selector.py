import hashlib
from typing import Optional, Tuple

from .config import HASH_SHA256, Config

HASH_MODULUS = 0xFFFFFFFF
SELECTION_MULTIPLIER = 31
MESSAGE_MULTIPLIER = 37


def _polynomial_hash(data: bytes) -> Tuple[int, int]:
    hash1, hash2 = 0, 0
    for byte in data:
        hash1 = (hash1 * SELECTION_MULTIPLIER + byte) % HASH_MODULUS
        hash2 = (hash2 * MESSAGE_MULTIPLIER + byte) % HASH_MODULUS
    return hash1, hash2


def _sha256_hash(data: bytes) -> Tuple[int, int]:
    digest = hashlib.sha256(data).digest()
    return int.from_bytes(digest[:4], "big"), int.from_bytes(digest[4:8], "big")


def line_hash(trimmed_line: str, hash_function: str = "polynomial") -> Tuple[int, int]:
    """Return the (selection, message-index) halves of the line's 64-bit hash.

    Hashing runs over UTF-8 bytes so the result is identical on every platform
    and matches the byte-oriented Lua side of the plugin.
    """
    data = trimmed_line.encode("utf-8")
    if hash_function == HASH_SHA256:
        return _sha256_hash(data)
    return _polynomial_hash(data)


def is_selected(selection_half: int, selection_chance: int) -> bool:
    return (selection_half % 100) < selection_chance


def select(trimmed_line: str, config: Config) -> Optional[str]:
    """Pick the message for a line, or None when the line is not selected.

    Pure function of the line text, ``selection_chance``, ``messages`` and
    ``hash_function``: the same line always gets the same verdict.
    """
    selection_half, message_half = line_hash(trimmed_line, config.hash_function)
    if not is_selected(selection_half, config.selection_chance):
        return None
    if not config.messages:
        return None
    return config.messages[message_half % len(config.messages)]
