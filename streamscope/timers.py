"""
StreamScope Timers - Deferred Callbacks
=======================================

Timers are pluggable:

- `EventLoopTimers` arms `loop.call_later` on the running asyncio loop, or
  keeps a monotonic deadline that `poll()` checks when no loop is running
- `ManualTimers` keeps a virtual clock that tests advance explicitly
"""

import asyncio
import heapq
import itertools
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Tuple


class TimerHandle:
    """A cancellable reference to one armed timer."""

    def __init__(self, cancel: Optional[Callable[[], None]] = None) -> None:
        self._cancel = cancel
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        if self.cancelled or self.fired:
            return
        self.cancelled = True
        if self._cancel is not None:
            self._cancel()


class Timers(ABC):
    """Something that can run a callback after a delay in seconds."""

    @abstractmethod
    def call_later(
        self, delay: float, callback: Callable[..., None], *args: Any
    ) -> TimerHandle:
        pass

    def poll(self) -> None:
        """Run timers that are due but that nothing else will fire."""


class EventLoopTimers(Timers):
    """
    Timers backed by an asyncio event loop.

    Without an explicit loop, the loop running at scheduling time is used. If
    no loop is running, the timer is kept with a deadline on `clock` and fires
    from `poll()` once the deadline has passed; the graph tracker polls on
    every query and mutation.
    """

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._loop = loop
        self._clock = clock
        self._deferred: List[Tuple[float, int, TimerHandle, Callable[..., None], tuple]] = []
        self._sequence = itertools.count()
        self._polling = False

    def call_later(
        self, delay: float, callback: Callable[..., None], *args: Any
    ) -> TimerHandle:
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None

        handle = TimerHandle()
        if loop is None or loop.is_closed():
            logging.debug(f"No running event loop; timer due in {delay}s fires on poll")
            heapq.heappush(
                self._deferred,
                (self._clock() + delay, next(self._sequence), handle, callback, args),
            )
            return handle

        def fire() -> None:
            handle.fired = True
            callback(*args)

        loop_handle = loop.call_later(delay, fire)
        handle._cancel = loop_handle.cancel
        return handle

    @property
    def deferred(self) -> int:
        """Number of loop-less timers still waiting for their deadline."""
        return sum(1 for entry in self._deferred if not entry[2].cancelled)

    def poll(self) -> None:
        # Callbacks may query the tracker, which polls again.
        if self._polling or not self._deferred:
            return
        self._polling = True
        try:
            now = self._clock()
            while self._deferred and self._deferred[0][0] <= now:
                _, _, handle, callback, args = heapq.heappop(self._deferred)
                if handle.cancelled:
                    continue
                handle.fired = True
                callback(*args)
        finally:
            self._polling = False


class ManualTimers(Timers):
    """
    Virtual-time timers for deterministic tests.

    Example:
        ```python
        timers = ManualTimers()
        timers.call_later(0.5, print, "fired")
        timers.advance(0.4)  # nothing
        timers.advance(0.1)  # prints "fired"
        ```
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: List[Tuple[float, int, TimerHandle, Callable[..., None], tuple]] = []
        self._sequence = itertools.count()

    def call_later(
        self, delay: float, callback: Callable[..., None], *args: Any
    ) -> TimerHandle:
        handle = TimerHandle()
        heapq.heappush(
            self._queue,
            (self.now + delay, next(self._sequence), handle, callback, args),
        )
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for entry in self._queue if not entry[2].cancelled)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in due-time order."""
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback, args = heapq.heappop(self._queue)
            self.now = due
            if handle.cancelled:
                continue
            handle.fired = True
            callback(*args)
        self.now = target
