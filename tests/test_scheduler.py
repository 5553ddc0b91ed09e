import threading
import time
import unittest

from fakes import FakeTimerFactory
from gaslighting.scheduler import DebounceScheduler


class DebounceSchedulerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.calls = []
        self.timers = FakeTimerFactory()
        self.scheduler = DebounceScheduler(500, lambda: self.calls.append(1), timer_factory=self.timers)

    def test_starts_idle(self) -> None:
        self.assertFalse(self.scheduler.armed)
        self.assertEqual(self.timers.timers, [])

    def test_trigger_arms_with_interval_in_seconds(self) -> None:
        self.scheduler.trigger()
        self.assertTrue(self.scheduler.armed)
        self.assertTrue(self.timers.last.started)
        self.assertAlmostEqual(self.timers.last.interval, 0.5)

    def test_expiry_fires_once_then_idle(self) -> None:
        self.scheduler.trigger()
        self.timers.last.fire()
        self.assertEqual(self.calls, [1])
        self.assertFalse(self.scheduler.armed)
        self.timers.last.fire()
        self.assertEqual(self.calls, [1])

    def test_retrigger_cancels_previous_timer(self) -> None:
        self.scheduler.trigger()
        first = self.timers.last
        self.scheduler.trigger()
        second = self.timers.last
        self.assertTrue(first.cancelled)
        self.assertFalse(second.cancelled)
        self.assertEqual(len(self.timers.timers), 2)

    def test_superseded_timer_never_fires_callback(self) -> None:
        self.scheduler.trigger()
        stale = self.timers.last
        self.scheduler.trigger()
        stale.fire()
        self.assertEqual(self.calls, [])
        self.assertTrue(self.scheduler.armed)
        self.timers.last.fire()
        self.assertEqual(self.calls, [1])

    def test_cancel_prevents_firing(self) -> None:
        self.scheduler.trigger()
        timer = self.timers.last
        self.scheduler.cancel()
        self.assertTrue(timer.cancelled)
        self.assertFalse(self.scheduler.armed)
        timer.fire()
        self.assertEqual(self.calls, [])

    def test_cancel_when_idle_is_harmless(self) -> None:
        self.scheduler.cancel()
        self.assertFalse(self.scheduler.armed)

    def test_interval_change_applies_to_next_trigger(self) -> None:
        self.scheduler.interval_ms = 20
        self.scheduler.trigger()
        self.assertAlmostEqual(self.timers.last.interval, 0.02)

    def test_negative_interval_clamped(self) -> None:
        scheduler = DebounceScheduler(-5, lambda: None, timer_factory=self.timers)
        self.assertEqual(scheduler.interval_ms, 0)

    def test_callback_errors_are_logged_not_raised(self) -> None:
        def boom() -> None:
            raise RuntimeError("render failed")

        scheduler = DebounceScheduler(10, boom, timer_factory=self.timers)
        scheduler.trigger()
        with self.assertLogs("gaslighting.scheduler", level="ERROR"):
            self.timers.last.fire()
        self.assertFalse(scheduler.armed)


class DebounceSchedulerThreadTests(unittest.TestCase):
    def test_burst_coalesces_into_one_call_after_quiet_period(self) -> None:
        interval_s = 0.05
        fired = threading.Event()
        fired_at = []

        def callback() -> None:
            fired_at.append(time.monotonic())
            fired.set()

        scheduler = DebounceScheduler(int(interval_s * 1000), callback)
        self.addCleanup(scheduler.cancel)
        for _ in range(10):
            scheduler.trigger()
            time.sleep(0.005)
        last_trigger = time.monotonic()

        self.assertTrue(fired.wait(2.0))
        time.sleep(interval_s * 3)
        self.assertEqual(len(fired_at), 1)
        self.assertGreaterEqual(fired_at[0] - last_trigger, interval_s - 0.01)

    def test_cancelled_real_timer_does_not_fire(self) -> None:
        calls = []
        scheduler = DebounceScheduler(30, lambda: calls.append(1))
        scheduler.trigger()
        scheduler.cancel()
        time.sleep(0.1)
        self.assertEqual(calls, [])


if __name__ == "__main__":
    unittest.main()
