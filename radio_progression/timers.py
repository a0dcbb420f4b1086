"""
Cooperative timers for the progression engine.

All callbacks run on one logical thread: either an asyncio event loop
(AsyncioScheduler) or a virtual clock advanced explicitly (ManualScheduler).
A callback that raises is logged and dropped so timers keep running.
"""
import asyncio
import heapq
import itertools
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

Callback = Callable[[], None]

def _run_callback(callback: Callback) -> None:
    try:
        callback()
    except Exception:
        logger.exception(f"Timer callback {getattr(callback, '__name__', callback)!r} failed")

class TimerHandle:
    """Cancellation token for one scheduled callback"""

    def __init__(self, cancel_fn: Optional[Callback] = None):
        self._cancel_fn = cancel_fn
        self.cancelled = False

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        if self._cancel_fn is not None:
            self._cancel_fn()

class Scheduler(Protocol):
    def now(self) -> datetime: ...

    def call_later(self, delay: float, callback: Callback) -> TimerHandle: ...

class RepeatingTimer:
    """Fires a callback every `interval` seconds until cancelled; owns one pending handle at a time"""

    def __init__(self, scheduler: Scheduler, interval: float, callback: Callback):
        self.scheduler = scheduler
        self.interval = interval
        self.callback = callback
        self._handle: Optional[TimerHandle] = None
        self.cancelled = False
        self._arm()

    def _arm(self) -> None:
        self._handle = self.scheduler.call_later(self.interval, self._fire)

    def _fire(self) -> None:
        if self.cancelled:
            return
        _run_callback(self.callback)
        if not self.cancelled:
            self._arm()

    def cancel(self) -> None:
        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

class ManualScheduler:
    """
    Virtual clock. Nothing fires until advance() is called, which makes
    timing deterministic for tests and offline replays.
    """

    def __init__(self, start: Optional[datetime] = None):
        self._start = start or datetime.now()
        self._elapsed = 0.0
        self._queue: List[Tuple[float, int, TimerHandle, Callback]] = []
        self._sequence = itertools.count()

    def now(self) -> datetime:
        return self._start + timedelta(seconds=self._elapsed)

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        handle = TimerHandle()
        due = self._elapsed + max(0.0, delay)
        heapq.heappush(self._queue, (due, next(self._sequence), handle, callback))
        return handle

    def pending(self) -> int:
        """Number of scheduled callbacks not yet fired or cancelled"""
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing every callback that falls due on the way"""
        target = self._elapsed + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._elapsed = max(self._elapsed, due)
            handle.cancelled = True  # fired handles are no longer pending
            _run_callback(callback)
        self._elapsed = target

class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop and the local wall clock"""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop or asyncio.get_running_loop()

    def now(self) -> datetime:
        return datetime.now()

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        timer = self.loop.call_later(max(0.0, delay), _run_callback, callback)
        return TimerHandle(timer.cancel)
