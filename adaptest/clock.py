"""
Cooperative timers for test sessions.

Sessions never block or spawn threads. Timers are callbacks queued on a
CooperativeScheduler and fired by ``run_pending()`` whenever the owner gets
control (between prompts in the CLI, or explicitly in tests). Time comes
from an injected clock so tests can move it forward deterministically.
"""

from __future__ import annotations

import heapq
import itertools
import time
from dataclasses import dataclass, field
from typing import Callable

Clock = Callable[[], float]


class ManualClock:
    """A clock that only moves when told to. Seconds, starting at ``start``."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError("clock cannot move backwards")
        self.now += seconds
        return self.now


@dataclass
class TimerHandle:
    """A scheduled callback. ``cancel()`` is safe to call more than once."""

    due: float
    callback: Callable[[], None]
    interval: float | None = None
    label: str = ""
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def repeating(self) -> bool:
        return self.interval is not None


class CooperativeScheduler:
    """
    Single-threaded timer queue.

    Callbacks run in due-time order (ties in scheduling order). Repeating
    timers are re-queued relative to their previous due time so ticks stay
    monotonic even when ``run_pending`` is called late.
    """

    def __init__(self, clock: Clock | None = None):
        self.clock = clock or time.monotonic
        self._queue: list[tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self.clock()

    def call_later(self, delay: float, callback: Callable[[], None], label: str = "") -> TimerHandle:
        handle = TimerHandle(due=self.now() + max(0.0, delay), callback=callback, label=label)
        self._push(handle)
        return handle

    def call_every(self, interval: float, callback: Callable[[], None], label: str = "") -> TimerHandle:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        handle = TimerHandle(
            due=self.now() + interval,
            callback=callback,
            interval=interval,
            label=label,
        )
        self._push(handle)
        return handle

    def run_pending(self) -> int:
        """Fire every timer that is due. Returns the number of callbacks run."""
        fired = 0
        now = self.now()
        while self._queue and self._queue[0][0] <= now:
            _, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            handle.callback()
            fired += 1
            if handle.repeating and not handle.cancelled:
                handle.due += handle.interval
                self._push(handle)
        return fired

    def pending(self) -> list[TimerHandle]:
        """Live (not cancelled) timers in due order."""
        return [h for _, _, h in sorted(self._queue) if not h.cancelled]

    def _push(self, handle: TimerHandle) -> None:
        heapq.heappush(self._queue, (handle.due, next(self._counter), handle))
