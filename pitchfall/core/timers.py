"""Deferred callbacks run on the engine's own thread.

Nothing here uses threads: callbacks become due when the owner advances the
queue with a timestamp, either from an incoming sample or from a frame tick.
"""

import heapq
import itertools
import time
from typing import Callable, List, Optional, Tuple


class TimerHandle:
    """Cancellation handle for a callback scheduled on a TimerQueue."""

    __slots__ = ("deadline", "_callback", "_cancelled")

    def __init__(self, deadline: float, callback: Callable[[], None]):
        self.deadline = deadline
        self._callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True
        self._callback = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _run(self) -> None:
        callback, self._callback = self._callback, None
        if callback is not None:
            callback()


class TimerQueue:
    """Ordered set of one-shot callbacks keyed by deadline."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._heap: List[Tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()

    def call_later(
        self, delay: float, callback: Callable[[], None], now: Optional[float] = None
    ) -> TimerHandle:
        """Schedule ``callback`` to run ``delay`` seconds after ``now``.

        Args:
            delay: Seconds to wait
            callback: Zero-argument function to run when due
            now: Reference time, or None to read the queue's clock

        Returns:
            A handle whose ``cancel()`` guarantees the callback never runs
        """
        start = self._clock() if now is None else now
        handle = TimerHandle(start + delay, callback)
        heapq.heappush(self._heap, (handle.deadline, next(self._counter), handle))
        return handle

    def run_due(self, now: Optional[float] = None) -> int:
        """Run every pending callback whose deadline is at or before ``now``.

        Returns:
            Number of callbacks that ran
        """
        current = self._clock() if now is None else now
        ran = 0
        while self._heap and self._heap[0][0] <= current:
            _, _, handle = heapq.heappop(self._heap)
            if handle.cancelled:
                continue
            handle._run()
            ran += 1
        return ran

    def cancel_all(self) -> None:
        for _, _, handle in self._heap:
            handle.cancel()
        self._heap.clear()

    def __len__(self) -> int:
        return sum(1 for _, _, handle in self._heap if not handle.cancelled)
