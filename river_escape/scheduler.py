"""Deferred callbacks on a single cooperative loop.

The session never sleeps or spawns threads; anything that happens "later"
(post-move judgement, scripted solver steps) goes through a Scheduler and
must keep the returned handle so it can be cancelled on stop/reset.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Structural interface: asyncio loops and the manual clock both fit."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


# ── Manual clock ─────────────────────────────────────────────────────

class ManualHandle:
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Fake clock for tests and the text REPL.

    Nothing runs until ``advance`` or ``run_all`` is called. Callbacks that
    schedule further callbacks are honoured within the same ``advance`` as
    long as they fall due before the new time.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, ManualHandle]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(self.now + delay, callback)
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing everything that falls due. Returns the number fired."""
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            when, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = when
            handle.callback()
            fired += 1
        self.now = target
        return fired

    def run_all(self, limit: int = 1000) -> int:
        """Fire pending callbacks in order until the queue drains."""
        fired = 0
        while self._queue and fired < limit:
            when, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = max(self.now, when)
            handle.callback()
            fired += 1
        return fired


# ── asyncio ──────────────────────────────────────────────────────────

class AsyncioScheduler:
    """Schedules on a running asyncio loop (``loop.call_later``)."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)
