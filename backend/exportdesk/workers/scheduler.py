"""Cancellable delayed-callback scheduling for background transitions.

The submission simulator and the authority mirror dispatcher never sleep on
the caller's stack; they schedule callbacks through a Scheduler and keep the
returned handle so a pending callback can be cancelled.

Implementations:
- AsyncioScheduler: production scheduler bound to the application event loop
- VirtualScheduler: deterministic virtual clock for tests and demos

Cancellation contract: after handle.cancel() returns, the callback either
never runs or, if it was already queued, runs as a no-op.

AsyncioScheduler runs callbacks on one worker thread, never on the event
loop: callbacks take the store lock, which request handlers hold on
threadpool threads. A single worker keeps callbacks in firing order.
"""

import asyncio
import heapq
import itertools
import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ScheduledHandle(ABC):
    """Handle for a scheduled callback."""

    @abstractmethod
    def cancel(self) -> None:
        pass

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        pass


class Scheduler(ABC):
    """Abstract delayed-callback scheduler (delays in milliseconds)."""

    @abstractmethod
    def call_later(self, delay_ms: int, callback: Callable[..., Any], *args: Any) -> ScheduledHandle:
        """Run callback(*args) after delay_ms milliseconds.

        Args:
            delay_ms: Delay in milliseconds (0 = as soon as possible)
            callback: Callable to run
            *args: Positional arguments for callback

        Returns:
            ScheduledHandle that cancels the callback
        """
        pass

    @abstractmethod
    def clock(self) -> datetime:
        """Current time as seen by this scheduler (UTC)."""
        pass

    def close(self) -> None:
        """Release scheduler resources; pending callbacks no longer run."""


def _run_guarded(callback: Callable[..., Any], args: Tuple[Any, ...]) -> None:
    try:
        callback(*args)
    except Exception:
        logger.exception(f"Scheduled callback {getattr(callback, '__name__', callback)!r} failed")


class _LoopHandle(ScheduledHandle):
    def __init__(self, loop: asyncio.AbstractEventLoop):
        self._loop = loop
        self._lock = threading.Lock()
        self._cancelled = False
        self._timer: Optional[asyncio.TimerHandle] = None

    def attach(self, timer: asyncio.TimerHandle) -> None:
        with self._lock:
            if self._cancelled:
                timer.cancel()
            else:
                self._timer = timer

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            timer = self._timer
        if timer is not None:
            self._loop.call_soon_threadsafe(timer.cancel)

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class AsyncioScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop.

    Safe to call from any thread (sync FastAPI handlers run in a threadpool):
    timers are armed on the loop through call_soon_threadsafe.

    Usage:
        @asynccontextmanager
        async def lifespan(app):
            scheduler = AsyncioScheduler(asyncio.get_running_loop())
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="exportdesk-scheduler")
        self._closed = False

    def call_later(self, delay_ms: int, callback: Callable[..., Any], *args: Any) -> ScheduledHandle:
        handle = _LoopHandle(self._loop)

        def run() -> None:
            if handle.cancelled:
                return
            _run_guarded(callback, args)

        def fire() -> None:
            if not handle.cancelled and not self._closed:
                self._executor.submit(run)

        def arm() -> None:
            if handle.cancelled:
                return
            handle.attach(self._loop.call_later(max(delay_ms, 0) / 1000.0, fire))

        self._loop.call_soon_threadsafe(arm)
        return handle

    def clock(self) -> datetime:
        return datetime.now(timezone.utc)

    def close(self) -> None:
        self._closed = True
        self._executor.shutdown(wait=False, cancel_futures=True)


class _VirtualHandle(ScheduledHandle):
    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class VirtualScheduler(Scheduler):
    """Deterministic scheduler driven by an explicit virtual clock.

    Time only moves when advance() is called. Callbacks due at or before the
    new time run in (due time, scheduling order) order, including callbacks
    scheduled by other callbacks during the same advance. Exceptions raised
    by callbacks propagate out of advance().

    Usage:
        scheduler = VirtualScheduler()
        scheduler.call_later(2000, on_review)
        scheduler.advance(1999)  # nothing runs
        scheduler.advance(1)     # on_review runs
    """

    def __init__(self, start: Optional[datetime] = None):
        self._start = start or datetime(2025, 9, 15, 8, 0, tzinfo=timezone.utc)
        self._now_ms = 0
        self._seq = itertools.count()
        self._queue: List[Tuple[int, int, _VirtualHandle, Callable[..., Any], Tuple[Any, ...]]] = []
        self._lock = threading.RLock()

    @property
    def now_ms(self) -> int:
        return self._now_ms

    def clock(self) -> datetime:
        return self._start + timedelta(milliseconds=self._now_ms)

    def call_later(self, delay_ms: int, callback: Callable[..., Any], *args: Any) -> ScheduledHandle:
        handle = _VirtualHandle()
        with self._lock:
            due = self._now_ms + max(int(delay_ms), 0)
            heapq.heappush(self._queue, (due, next(self._seq), handle, callback, args))
        return handle

    def pending_count(self) -> int:
        with self._lock:
            return sum(1 for _, _, handle, _, _ in self._queue if not handle.cancelled)

    def advance(self, ms: int) -> int:
        """Move the virtual clock forward and run due callbacks.

        Args:
            ms: Milliseconds to advance (0 runs callbacks already due)

        Returns:
            Number of callbacks executed
        """
        if ms < 0:
            raise ValueError("Cannot move virtual time backwards")
        target = self._now_ms + ms
        executed = 0
        while True:
            with self._lock:
                if not self._queue or self._queue[0][0] > target:
                    break
                due, _, handle, callback, args = heapq.heappop(self._queue)
                self._now_ms = max(self._now_ms, due)
            if handle.cancelled:
                continue
            callback(*args)
            executed += 1
        self._now_ms = target
        return executed

    def run_pending(self) -> int:
        """Run callbacks that are already due without moving time."""
        return self.advance(0)
