"""
Scheduling Module.

Playback ticks, reconnect attempts and the settings debounce all go through a
Scheduler instead of touching the event loop directly. AsyncioScheduler is the
production implementation; ManualScheduler runs callbacks against a virtual
clock so tests can step time deterministically.
"""

import asyncio
import heapq
import itertools
from typing import Callable, List, Optional, Tuple


class ScheduledTask:
    """Cancellation token for a callback registered with a scheduler."""

    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False
        self._handle = None

    def cancel(self) -> None:
        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class Scheduler:
    """Interface shared by the schedulers."""

    def time(self) -> float:
        raise NotImplementedError

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        raise NotImplementedError


class AsyncioScheduler(Scheduler):
    """Schedules callbacks on an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def time(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask(self.time() + delay, callback)

        def _run():
            task._handle = None
            if not task.cancelled:
                callback()

        task._handle = self.loop.call_later(max(0.0, delay), _run)
        return task


class ManualScheduler(Scheduler):
    """
    Virtual-time scheduler.

    Nothing runs until advance() is called; callbacks then fire in due-time
    order (FIFO for equal times), including callbacks scheduled by callbacks
    that fall inside the advanced window.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: List[Tuple[float, int, ScheduledTask]] = []
        self._counter = itertools.count()

    def time(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask(self._now + max(0.0, delay), callback)
        heapq.heappush(self._queue, (task.when, next(self._counter), task))
        return task

    @property
    def pending(self) -> int:
        return sum(1 for _, _, task in self._queue if not task.cancelled)

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward and run everything that comes due.

        Returns:
            Number of callbacks that ran
        """
        target = self._now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            when, _, task = heapq.heappop(self._queue)
            self._now = when
            if task.cancelled:
                continue
            task.cancelled = True
            task.callback()
            ran += 1
        self._now = target
        return ran
