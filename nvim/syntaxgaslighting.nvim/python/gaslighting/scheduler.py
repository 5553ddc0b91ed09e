import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TimerFactory = Callable[[float, Callable[[], None]], threading.Timer]


def _default_timer_factory(interval_s: float, fn: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(interval_s, fn)
    timer.daemon = True
    return timer


class DebounceScheduler:
    """Coalesce bursts of triggers into one callback after a quiet period.

    Each trigger bumps a generation counter under the lock. A timer whose
    generation is stale by the time it fires does nothing, so a cancelled or
    superseded timer can never run the callback even if its thread already woke up.
    """

    def __init__(
        self,
        interval_ms: int,
        callback: Callable[[], None],
        timer_factory: Optional[TimerFactory] = None,
    ) -> None:
        self._interval_ms = max(0, int(interval_ms))
        self._callback = callback
        self._timer_factory = timer_factory or _default_timer_factory

        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0

    @property
    def interval_ms(self) -> int:
        with self._lock:
            return self._interval_ms

    @interval_ms.setter
    def interval_ms(self, value: int) -> None:
        with self._lock:
            self._interval_ms = max(0, int(value))

    @property
    def armed(self) -> bool:
        with self._lock:
            return self._timer is not None

    def trigger(self) -> None:
        with self._lock:
            self._cancel_locked()
            self._generation += 1
            generation = self._generation
            timer = self._timer_factory(self._interval_ms / 1000.0, lambda: self._fire(generation))
            self._timer = timer
            timer.start()

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()
            self._generation += 1

    def _cancel_locked(self) -> None:
        timer = self._timer
        self._timer = None
        if timer is not None:
            timer.cancel()

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._timer is None:
                return
            self._timer = None
        try:
            self._callback()
        except Exception:
            logger.exception("debounced callback failed")
