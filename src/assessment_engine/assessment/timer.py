from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from functools import partial
from typing import Callable, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default wall clock used by sessions when none is injected."""
    return datetime.now(timezone.utc)


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(ABC):
    """Abstract one-shot timer facility the countdown is built on."""

    @abstractmethod
    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay_seconds``; return a cancellable handle."""


class _ManualHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """
    Simulated clock plus timer queue for deterministic runs.

    Nothing fires until :meth:`advance` moves simulated time forward; due
    callbacks then run in deadline order with :meth:`now` set to each
    callback's deadline. The instance doubles as the session clock, so
    timestamps recorded by a session line up with the simulated timers.

    Examples
    --------
    >>> scheduler = ManualScheduler(datetime(2024, 1, 1, tzinfo=timezone.utc))
    >>> fired = []
    >>> _ = scheduler.call_later(1, lambda: fired.append(scheduler.now()))
    >>> scheduler.advance(2)
    >>> fired
    [datetime.datetime(2024, 1, 1, 0, 0, 1, tzinfo=datetime.timezone.utc)]
    """

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or utc_now()
        self._queue: List[Tuple[datetime, int, _ManualHandle, Callable[[], None]]] = []
        self._counter = itertools.count()

    def now(self) -> datetime:
        return self._now

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle()
        deadline = self._now + timedelta(seconds=delay_seconds)
        heapq.heappush(self._queue, (deadline, next(self._counter), handle, callback))
        return handle

    def advance(self, seconds: float) -> None:
        """Move simulated time forward, firing every callback that falls due."""
        target = self._now + timedelta(seconds=seconds)
        while self._queue and self._queue[0][0] <= target:
            deadline, _, handle, callback = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = deadline
            callback()
        self._now = target

    @property
    def pending(self) -> int:
        """Number of live (not cancelled) timers still queued."""
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)


class AsyncioScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop's ``call_later``."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay_seconds, callback)


class CountdownScheduler:
    """
    Per-attempt countdown that ticks once per unit and fires ``on_expired`` once.

    Each tick re-arms a single one-shot timer on the underlying scheduler.
    Ticks carry the generation they were armed in; cancelling or restarting
    bumps the generation, so a stale callback that a scheduler still delivers
    is dropped rather than counted.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        total_seconds: int,
        on_expired: Callable[[], None],
        on_tick: Optional[Callable[[int], None]] = None,
        tick_seconds: int = 1,
    ):
        if total_seconds <= 0:
            raise ValueError("countdown requires a positive duration")
        if tick_seconds <= 0:
            raise ValueError("tick_seconds must be positive")
        self.scheduler = scheduler
        self.total_seconds = total_seconds
        self.tick_seconds = tick_seconds
        self.on_expired = on_expired
        self.on_tick = on_tick
        self.remaining_seconds = total_seconds
        self.expired = False
        self._generation = 0
        self._handle: Optional[TimerHandle] = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        """Start (or restart) from the full duration."""
        self.cancel()
        self.remaining_seconds = self.total_seconds
        self.expired = False
        self._arm()

    def cancel(self) -> None:
        """Stop the countdown; no tick is delivered afterwards."""
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _arm(self) -> None:
        self._handle = self.scheduler.call_later(
            self.tick_seconds, partial(self._tick, self._generation)
        )

    def _tick(self, generation: int) -> None:
        if generation != self._generation or self.expired:
            return
        self._handle = None
        self.remaining_seconds = max(0, self.remaining_seconds - self.tick_seconds)
        if self.on_tick is not None:
            self.on_tick(self.remaining_seconds)
        if generation != self._generation:
            # on_tick cancelled us
            return
        if self.remaining_seconds == 0:
            self.expired = True
            logger.debug("Countdown expired after %s seconds", self.total_seconds)
            self.on_expired()
            return
        self._arm()
