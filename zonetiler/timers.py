"""
Cooperative Timers

A single-threaded timer queue. Delayed work (settle delays, debounce timers,
post-placement verification) is scheduled here and runs as ordinary
synchronous callbacks when the host calls run_due(). Nothing blocks.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, Hashable, List, Optional
import heapq
import itertools
import logging
import time

log = logging.getLogger(__name__)


class TimerHandle:
    """A scheduled callback. Cancelling is idempotent."""

    __slots__ = ("deadline", "callback", "args", "cancelled", "fired")

    def __init__(self, deadline: float, callback: Callable, args: tuple):
        self.deadline = deadline
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self):
        self.cancelled = True


class TimerQueue:
    """Deadline-ordered callbacks driven by the host's event loop.

    The host calls run_due() from its loop (wait_time() tells it how long it
    may sleep). Tests use advance() to move a virtual clock forward instead
    of sleeping.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._offset = 0.0
        self._heap: List[tuple] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._clock() + self._offset

    def call_later(self, delay: float, callback: Callable, *args: Any) -> TimerHandle:
        """Schedule callback(*args) to run after delay seconds."""
        handle = TimerHandle(self.now() + max(0.0, delay), callback, args)
        # Counter keeps same-deadline callbacks in scheduling order
        heapq.heappush(self._heap, (handle.deadline, next(self._counter), handle))
        return handle

    def wait_time(self) -> Optional[float]:
        """Seconds until the next pending callback, or None when idle."""
        self._drop_cancelled()
        if not self._heap:
            return None
        return max(0.0, self._heap[0][0] - self.now())

    def run_due(self, now: Optional[float] = None) -> int:
        """Run every callback whose deadline has passed. Returns how many ran.

        Callbacks scheduled by a running callback also run in this pass when
        they are already due.
        """
        ran = 0
        while self._heap:
            deadline, _, handle = self._heap[0]
            if handle.cancelled:
                heapq.heappop(self._heap)
                continue
            if deadline > (self.now() if now is None else now):
                break
            heapq.heappop(self._heap)
            handle.fired = True
            ran += 1
            try:
                handle.callback(*handle.args)
            except Exception:
                log.exception("Timer callback %r failed", handle.callback)
        return ran

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running callbacks in deadline order."""
        target = self.now() + seconds
        ran = 0
        while True:
            self._drop_cancelled()
            if not self._heap or self._heap[0][0] > target:
                break
            # Step to each deadline so callbacks see the time they were due
            deadline = self._heap[0][0]
            self._offset += max(0.0, deadline - self.now())
            ran += self.run_due(max(deadline, self.now()))
        self._offset += max(0.0, target - self.now())
        return ran

    def cancel_all(self):
        for _, _, handle in self._heap:
            handle.cancel()
        self._heap.clear()

    def __len__(self):
        return sum(1 for _, _, handle in self._heap if not handle.cancelled)

    def _drop_cancelled(self):
        while self._heap and self._heap[0][2].cancelled:
            heapq.heappop(self._heap)


class Debouncer:
    """Collapses bursts of calls per key into one delayed call.

    Scheduling a key cancels that key's pending call, so at most one call per
    key is pending and it runs with the arguments of the last schedule.
    """

    def __init__(self, timers: TimerQueue):
        self.timers = timers
        self._pending: Dict[Hashable, TimerHandle] = {}

    def schedule(self, key: Hashable, delay: float, callback: Callable, *args: Any) -> TimerHandle:
        self.cancel(key)
        handle = self.timers.call_later(delay, self._fire, key, callback, args)
        self._pending[key] = handle
        return handle

    def cancel(self, key: Hashable) -> bool:
        handle = self._pending.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def is_pending(self, key: Hashable) -> bool:
        return key in self._pending

    def _fire(self, key: Hashable, callback: Callable, args: tuple):
        self._pending.pop(key, None)
        callback(*args)
