import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Tuple

from .config import Config
from .line_filter import is_eligible
from .selector import line_hash, select

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Placement:
    line: int
    column: int
    message: str
    style: str


@dataclass
class LineRecord:
    line_no: int
    raw_text: str
    trimmed_text: str
    eligible: bool
    hash: Optional[Tuple[int, int]] = None
    message: Optional[str] = None
    duplicate: bool = False


def _char_to_byte_index(text: str, char_idx: int) -> int:
    if char_idx <= 0:
        return 0
    if char_idx >= len(text):
        return len(text.encode("utf-8"))
    return len(text[:char_idx].encode("utf-8"))


def first_non_whitespace_column(line: str) -> Optional[int]:
    """Byte offset of the first non-whitespace character, or None for blank lines."""
    for idx, ch in enumerate(line):
        if not ch.isspace():
            return _char_to_byte_index(line, idx)
    return None


def analyze_lines(lines: Sequence[str], context_id: Optional[str], config: Config) -> List[LineRecord]:
    """Run filter, dedup and selector over every line, keeping the intermediate state.

    Line numbers are 1-based. Only the first occurrence of a trimmed text is
    considered; later copies are marked ``duplicate``.
    """
    records: List[LineRecord] = []
    seen: Set[Tuple[int, int, str]] = set()
    for idx, raw in enumerate(lines):
        trimmed = raw.strip()
        record = LineRecord(
            line_no=idx + 1,
            raw_text=raw,
            trimmed_text=trimmed,
            eligible=bool(trimmed) and is_eligible(raw, context_id, config),
        )
        records.append(record)
        if not record.eligible:
            continue
        record.hash = line_hash(trimmed, config.hash_function)
        key = (record.hash[0], record.hash[1], trimmed)
        if key in seen:
            record.duplicate = True
            continue
        seen.add(key)
        record.message = select(trimmed, config)
    return records


def run(lines: Sequence[str], context_id: Optional[str], config: Config, enabled: bool = True) -> List[Placement]:
    """Compute every placement for a text snapshot.

    Always a full recomputation. An empty result while disabled tells the
    caller to clear whatever is currently drawn.
    """
    if not enabled:
        return []
    placements: List[Placement] = []
    for record in analyze_lines(lines, context_id, config):
        if record.message is None:
            continue
        column = first_non_whitespace_column(record.raw_text)
        if column is None:
            continue
        placements.append(Placement(line=record.line_no, column=column, message=record.message, style=config.highlight))
    logger.debug("run: context=%s lines=%d placements=%d", context_id, len(lines), len(placements))
    return placements
