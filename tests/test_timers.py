"""
Unit tests for the cooperative timer queue and debouncer.
"""

import logging

import pytest

from zonetiler.timers import Debouncer, TimerQueue


@pytest.fixture
def queue():
    return TimerQueue(clock=lambda: 100.0)


@pytest.mark.unit
class TestTimerQueue:
    """Test scheduling and running callbacks."""

    def test_runs_in_deadline_order(self, queue):
        calls = []
        queue.call_later(0.3, calls.append, "late")
        queue.call_later(0.1, calls.append, "early")
        queue.call_later(0.1, calls.append, "early-2")

        ran = queue.advance(0.5)

        assert ran == 3
        assert calls == ["early", "early-2", "late"]

    def test_not_due_yet(self, queue):
        calls = []
        queue.call_later(0.5, calls.append, 1)

        queue.advance(0.4)
        assert calls == []

        queue.advance(0.1)
        assert calls == [1]

    def test_callbacks_see_their_deadline(self, queue):
        seen = []
        queue.call_later(0.2, lambda: seen.append(queue.now()))

        queue.advance(1.0)

        assert seen == [pytest.approx(100.2)]
        assert queue.now() == pytest.approx(101.0)

    def test_cancel(self, queue):
        calls = []
        handle = queue.call_later(0.1, calls.append, 1)

        handle.cancel()
        handle.cancel()
        queue.advance(1)

        assert calls == []
        assert not handle.pending
        assert len(queue) == 0

    def test_nested_scheduling(self, queue):
        calls = []

        def first():
            calls.append("first")
            queue.call_later(0.1, calls.append, "second")

        queue.call_later(0.1, first)
        queue.advance(0.2)

        assert calls == ["first", "second"]

    def test_failing_callback_is_logged(self, queue, caplog):
        calls = []

        def boom():
            raise RuntimeError("boom")

        queue.call_later(0.1, boom)
        queue.call_later(0.2, calls.append, "after")

        with caplog.at_level(logging.ERROR, logger="zonetiler.timers"):
            queue.advance(1)

        assert calls == ["after"]
        assert "failed" in caplog.text

    def test_wait_time(self, queue):
        assert queue.wait_time() is None

        queue.call_later(0.25, lambda: None)

        assert queue.wait_time() == pytest.approx(0.25)

    def test_run_due_with_real_clock(self):
        now = [0.0]
        queue = TimerQueue(clock=lambda: now[0])
        calls = []
        queue.call_later(1.0, calls.append, 1)

        assert queue.run_due() == 0
        now[0] = 1.5
        assert queue.run_due() == 1
        assert calls == [1]

    def test_cancel_all(self, queue):
        handle = queue.call_later(0.1, lambda: None)

        queue.cancel_all()

        assert handle.cancelled
        assert queue.advance(1) == 0


@pytest.mark.unit
class TestDebouncer:
    """Test collapsing bursts into one call."""

    def test_fires_once_with_last_arguments(self, queue):
        debouncer = Debouncer(queue)
        calls = []

        for value in (1, 2, 3):
            debouncer.schedule("w1", 0.5, calls.append, value)
            queue.advance(0.2)

        assert calls == []
        queue.advance(0.5)

        assert calls == [3]
        assert not debouncer.is_pending("w1")

    def test_keys_are_independent(self, queue):
        debouncer = Debouncer(queue)
        calls = []

        debouncer.schedule("a", 0.5, calls.append, "a")
        debouncer.schedule("b", 0.5, calls.append, "b")
        queue.advance(1)

        assert sorted(calls) == ["a", "b"]

    def test_cancel(self, queue):
        debouncer = Debouncer(queue)
        calls = []
        debouncer.schedule("a", 0.5, calls.append, "a")

        assert debouncer.cancel("a")
        assert not debouncer.cancel("a")
        queue.advance(1)

        assert calls == []
