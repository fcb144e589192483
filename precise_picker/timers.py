"""Serial one-shot timers for the picker.

All picker input is processed on one logical queue, so timers are not threads:
:class:`DeferredScheduler` keeps armed callbacks on a heap and fires the ones
that are due whenever it is advanced to a new instant. The controller advances
it to each event's timestamp before handling the event, which guarantees that
a timer whose deadline precedes an event fires first.

Example::

    clock = ManualClock()
    sched = DeferredScheduler(clock=clock)
    handle = sched.call_later(0.5, lambda: print("fired"))
    sched.advance(0.4)   # nothing
    handle.cancel()
    sched.advance(1.0)   # still nothing, the handle was cancelled
"""
from __future__ import annotations

import heapq
import itertools
import logging
import time
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ManualClock:
    """Clock whose time only moves when told to. Used by tests and the simulator."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)

    def __call__(self) -> float:
        return self._now

    def set(self, now: float) -> None:
        self._now = float(now)

    def advance(self, seconds: float) -> float:
        self._now += float(seconds)
        return self._now


class TimerHandle:
    """Handle for one armed callback. Cancelling it is explicit and final."""

    def __init__(self, deadline: float, callback: Callable[[], None], name: str = "timer") -> None:
        self.deadline = deadline
        self.name = name
        self._callback: Optional[Callable[[], None]] = callback
        self.cancelled = False
        self.fired = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        if self.active:
            logger.debug("Timer %r cancelled (deadline %.3f)", self.name, self.deadline)
        self.cancelled = True
        self._callback = None

    def __repr__(self) -> str:
        state = "fired" if self.fired else "cancelled" if self.cancelled else "armed"
        return f"TimerHandle({self.name!r}, deadline={self.deadline:.3f}, {state})"


class DeferredScheduler:
    """Heap of one-shot timers fired in deadline order.

    Parameters
    ----------
    clock:
        Zero-argument callable returning the current time in seconds.
        Defaults to :func:`time.monotonic`. Only consulted when
        :meth:`advance` or :meth:`call_later` is called without an explicit
        instant.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._heap: List[Tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()
        self._now: Optional[float] = None

    @property
    def now(self) -> float:
        """Last instant the scheduler was advanced to; the clock until the first advance."""
        if self._now is None:
            return self._clock()
        return self._now

    def call_at(self, deadline: float, callback: Callable[[], None], name: str = "timer") -> TimerHandle:
        handle = TimerHandle(float(deadline), callback, name)
        # sequence number keeps equal deadlines in arming order
        heapq.heappush(self._heap, (handle.deadline, next(self._seq), handle))
        logger.debug("Timer %r armed for %.3f", name, handle.deadline)
        return handle

    def call_later(self, delay: float, callback: Callable[[], None], name: str = "timer",
                   now: Optional[float] = None) -> TimerHandle:
        start = self.now if now is None else now
        return self.call_at(start + max(0.0, float(delay)), callback, name)

    def advance(self, now: Optional[float] = None) -> int:
        """Fire every timer due at or before *now*; return how many fired.

        Time never moves backwards: an instant earlier than the last one seen
        is treated as the last one.
        """
        if now is None:
            now = self._clock()
        if self._now is not None and now < self._now:
            logger.debug("Ignoring backwards time step %.3f -> %.3f", self._now, now)
            now = self._now
        self._now = now

        fired = 0
        while self._heap and self._heap[0][0] <= now:
            _, _, handle = heapq.heappop(self._heap)
            if handle.cancelled:
                continue
            callback = handle._callback
            handle._callback = None
            handle.fired = True
            fired += 1
            try:
                callback()
            except Exception:
                logger.exception("Timer %r callback raised an exception", handle.name)
        return fired

    def next_deadline(self) -> Optional[float]:
        """Deadline of the earliest armed timer, or ``None``."""
        while self._heap and self._heap[0][2].cancelled:
            heapq.heappop(self._heap)
        return self._heap[0][0] if self._heap else None

    def pending(self) -> int:
        return sum(1 for _, _, h in self._heap if h.active)
