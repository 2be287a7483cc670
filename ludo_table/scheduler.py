"""Delayed callbacks for the turn controller.

The controller never sleeps; every delay (dice animation, machine thinking,
auto-skip) is a callback handed to a scheduler. ``VirtualScheduler`` runs on
virtual time for tests and headless simulations, ``AsyncioScheduler`` binds
to an asyncio event loop.
"""

from __future__ import annotations

import asyncio
import heapq
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Protocol

Callback = Callable[[], None]


class Scheduler(Protocol):
    def schedule(self, delay_ms: float, callback: Callback) -> Any:
        ...

    def cancel(self, handle: Any) -> None:
        ...


@dataclass(order=True, slots=True)
class TimerHandle:
    due_ms: float
    seq: int
    callback: Callback = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


@dataclass(slots=True)
class VirtualScheduler:
    """Single-threaded scheduler whose clock only moves when told to."""

    now_ms: float = 0.0
    _queue: List[TimerHandle] = field(default_factory=list, repr=False)
    _seq: int = field(default=0, repr=False)

    def schedule(self, delay_ms: float, callback: Callback) -> TimerHandle:
        if delay_ms < 0:
            raise ValueError("delay_ms must be non-negative")
        handle = TimerHandle(self.now_ms + delay_ms, self._seq, callback)
        self._seq += 1
        heapq.heappush(self._queue, handle)
        return handle

    def cancel(self, handle: TimerHandle) -> None:
        handle.cancelled = True

    @property
    def pending(self) -> int:
        return sum(1 for h in self._queue if not h.cancelled)

    def next_due(self) -> Optional[float]:
        self._drop_cancelled()
        return self._queue[0].due_ms if self._queue else None

    def _drop_cancelled(self) -> None:
        while self._queue and self._queue[0].cancelled:
            heapq.heappop(self._queue)

    def run_next(self) -> bool:
        """Jump to the earliest pending callback and run it."""
        self._drop_cancelled()
        if not self._queue:
            return False
        handle = heapq.heappop(self._queue)
        self.now_ms = max(self.now_ms, handle.due_ms)
        handle.callback()
        return True

    def advance(self, delta_ms: float) -> int:
        """Move the clock forward, running every callback that falls due.

        Callbacks scheduled while advancing run too if they fall in the window.
        Returns the number of callbacks run.
        """
        target = self.now_ms + delta_ms
        ran = 0
        while True:
            due = self.next_due()
            if due is None or due > target:
                break
            self.run_next()
            ran += 1
        self.now_ms = target
        return ran

    def run_until_idle(
        self, max_callbacks: int = 100_000, until: Callable[[], bool] | None = None
    ) -> int:
        """Run callbacks in due order until none remain or ``until()`` holds."""
        ran = 0
        while ran < max_callbacks:
            if until is not None and until():
                break
            if not self.run_next():
                break
            ran += 1
        return ran


@dataclass(slots=True)
class AsyncioScheduler:
    loop: asyncio.AbstractEventLoop | None = None

    def _loop(self) -> asyncio.AbstractEventLoop:
        if self.loop is None:
            self.loop = asyncio.get_running_loop()
        return self.loop

    def schedule(self, delay_ms: float, callback: Callback) -> asyncio.TimerHandle:
        return self._loop().call_later(delay_ms / 1000.0, callback)

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()
