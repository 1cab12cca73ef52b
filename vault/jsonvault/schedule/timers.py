"""
Timer abstraction for the backup schedule.

The scheduler never touches an event loop or the wall clock directly; it
asks a TimerService for cancellable one-shot timers and for the current
local time. Production uses the asyncio event loop; tests use
ManualTimerService and advance time explicitly.

Invariants:
    - Callbacks run one at a time, to completion, on the timer's thread
    - A cancelled handle never fires
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from abc import abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class TimerHandle(Protocol):
    """A scheduled callback that can be cancelled."""

    @abstractmethod
    def cancel(self) -> None: ...


@runtime_checkable
class TimerService(Protocol):
    """Source of one-shot timers and local time."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once after delay seconds."""
        ...

    @abstractmethod
    def now(self) -> datetime:
        """Current local time (timezone-aware)."""
        ...


class AsyncioTimerService:
    """Timers on an asyncio event loop.

    Example:
        >>> timers = AsyncioTimerService(asyncio.get_running_loop())
        >>> handle = timers.call_later(3, lambda: print("fired"))
        >>> handle.cancel()
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Initialize with an event loop (defaults to the running loop)."""
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)

    def now(self) -> datetime:
        return datetime.now().astimezone()


@dataclass
class ManualTimerHandle:
    """Handle returned by ManualTimerService."""

    due: datetime
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass(order=True)
class _Entry:
    due: datetime
    seq: int
    handle: ManualTimerHandle = field(compare=False)


class ManualTimerService:
    """Deterministic TimerService for tests: time only moves on advance().

    Example:
        >>> timers = ManualTimerService(datetime(2026, 10, 19, 22, 0).astimezone())
        >>> timers.call_later(60, lambda: print("fired"))
        >>> timers.advance(60)
        fired
    """

    def __init__(self, start: datetime) -> None:
        """Initialize at a fixed local time.

        Args:
            start: Initial time (timezone-aware)
        """
        self._now = start
        self._queue: list[_Entry] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimerHandle:
        handle = ManualTimerHandle(due=self._now + timedelta(seconds=delay), callback=callback)
        heapq.heappush(self._queue, _Entry(handle.due, next(self._seq), handle))
        return handle

    def now(self) -> datetime:
        return self._now

    # Testing helpers

    def advance(self, seconds: float) -> int:
        """Move time forward, firing every due timer in order.

        Timers armed by callbacks fire too if they fall inside the window.

        Returns:
            Number of callbacks fired
        """
        target = self._now + timedelta(seconds=seconds)
        fired = 0
        while self._queue and self._queue[0].due <= target:
            entry = heapq.heappop(self._queue)
            if entry.handle.cancelled:
                continue
            self._now = entry.due
            entry.handle.callback()
            fired += 1
        self._now = target
        return fired

    def pending(self) -> list[float]:
        """Seconds until each live timer fires, soonest first."""
        return sorted(
            (e.due - self._now).total_seconds() for e in self._queue if not e.handle.cancelled
        )
