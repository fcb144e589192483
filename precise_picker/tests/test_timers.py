"""Tests for the serial one-shot timer queue."""
import logging

import pytest

from precise_picker.timers import DeferredScheduler, ManualClock


def _make_scheduler():
    clock = ManualClock()
    return DeferredScheduler(clock=clock), clock


class TestManualClock:
    def test_starts_at_given_time(self):
        assert ManualClock(5.0)() == 5.0

    def test_set_and_advance(self):
        clock = ManualClock()
        clock.set(2.0)
        assert clock.advance(0.5) == 2.5
        assert clock() == 2.5


class TestDeferredScheduler:
    def test_fires_at_deadline_not_before(self):
        sched, _ = _make_scheduler()
        fired = []
        sched.call_at(0.5, lambda: fired.append("a"))
        assert sched.advance(0.499) == 0
        assert fired == []
        assert sched.advance(0.5) == 1
        assert fired == ["a"]

    def test_call_later_uses_scheduler_time(self):
        sched, clock = _make_scheduler()
        clock.set(10.0)
        handle = sched.call_later(0.3, lambda: None)
        assert handle.deadline == pytest.approx(10.3)

        sched.advance(20.0)
        handle = sched.call_later(0.3, lambda: None)
        assert handle.deadline == pytest.approx(20.3)

    def test_cancelled_timer_never_fires(self):
        sched, _ = _make_scheduler()
        fired = []
        handle = sched.call_at(0.5, lambda: fired.append("a"))
        handle.cancel()
        assert not handle.active
        assert sched.advance(10.0) == 0
        assert fired == []

    def test_fires_in_deadline_then_arming_order(self):
        sched, _ = _make_scheduler()
        fired = []
        sched.call_at(0.3, lambda: fired.append("late"))
        sched.call_at(0.1, lambda: fired.append("first"))
        sched.call_at(0.1, lambda: fired.append("second"))
        sched.advance(1.0)
        assert fired == ["first", "second", "late"]

    def test_handle_state(self):
        sched, _ = _make_scheduler()
        handle = sched.call_at(0.1, lambda: None, name="probe")
        assert handle.active
        assert "armed" in repr(handle)
        sched.advance(0.2)
        assert handle.fired
        assert not handle.active
        # cancelling after firing is harmless
        handle.cancel()
        assert handle.fired

    def test_callback_may_arm_a_due_timer(self):
        sched, _ = _make_scheduler()
        fired = []

        def first():
            fired.append("first")
            sched.call_at(0.2, lambda: fired.append("chained"))

        sched.call_at(0.1, first)
        assert sched.advance(0.5) == 2
        assert fired == ["first", "chained"]

    def test_raising_callback_does_not_stop_others(self, caplog):
        sched, _ = _make_scheduler()
        fired = []

        def boom():
            raise RuntimeError("broken timer")

        sched.call_at(0.1, boom, name="boom")
        sched.call_at(0.2, lambda: fired.append("ok"))
        with caplog.at_level(logging.ERROR):
            sched.advance(1.0)
        assert fired == ["ok"]
        assert "'boom' callback raised" in caplog.text

    def test_time_never_moves_backwards(self):
        sched, _ = _make_scheduler()
        fired = []
        sched.advance(1.0)
        sched.call_at(1.2, lambda: fired.append("a"))
        sched.advance(0.5)
        assert sched.now == 1.0
        sched.advance(1.2)
        assert fired == ["a"]

    def test_next_deadline_skips_cancelled(self):
        sched, _ = _make_scheduler()
        assert sched.next_deadline() is None
        early = sched.call_at(0.1, lambda: None)
        sched.call_at(0.4, lambda: None)
        early.cancel()
        assert sched.next_deadline() == 0.4
        assert sched.pending() == 1

    def test_advance_without_instant_reads_clock(self):
        sched, clock = _make_scheduler()
        fired = []
        sched.call_at(2.0, lambda: fired.append("a"))
        clock.set(2.5)
        sched.advance()
        assert fired == ["a"]
        assert sched.now == 2.5
