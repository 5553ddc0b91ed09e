"""Test doubles for the host, renderer and timer seams."""
from typing import Callable, List, Optional, Tuple


class FakeTimer:
    def __init__(self, interval: float, fn: Callable[[], None]) -> None:
        self.interval = interval
        self.fn = fn
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        # Runs even when cancelled: models a timer thread that already woke up.
        self.fn()


class FakeTimerFactory:
    def __init__(self) -> None:
        self.timers: List[FakeTimer] = []

    def __call__(self, interval: float, fn: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(interval, fn)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> FakeTimer:
        return self.timers[-1]


class FakeHost:
    def __init__(self, lines: Optional[List[str]] = None, context: Optional[str] = None) -> None:
        self.document = "buf-1"
        self.lines = list(lines or [])
        self.context = context
        self.messages: List[Tuple[str, str]] = []

    def current_document(self):
        return self.document

    def current_lines(self, document):
        return list(self.lines)

    def context_id(self, document):
        return self.context

    def notify(self, message: str, level: str = "info") -> None:
        self.messages.append((message, level))


class FakeRenderer:
    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self.styles: List[Tuple[str, str]] = []

    def ensure_style(self, name: str, fallback: str) -> None:
        self.styles.append((name, fallback))

    def clear_all(self, document) -> None:
        self.calls.append(("clear", document))

    def draw(self, document, placements) -> None:
        self.calls.append(("draw", document, list(placements)))

    @property
    def drawn(self) -> list:
        draws = [c for c in self.calls if c[0] == "draw"]
        return draws[-1][2] if draws else []
