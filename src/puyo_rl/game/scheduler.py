from __future__ import annotations

import heapq
import itertools
from typing import Callable, List, Tuple


class TimerHandle:
    def __init__(self, due_ms: int, callback: Callable[[], None]) -> None:
        self.due_ms = due_ms
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "pending"
        return f"TimerHandle(due_ms={self.due_ms}, {state})"


class Scheduler:
    """Deterministic virtual clock for one-shot timers.

    Nothing happens on its own: the host calls ``advance`` with elapsed
    milliseconds and every timer that falls due runs in due-time order, ties
    broken by scheduling order. Callbacks may schedule further timers; those
    run in the same ``advance`` if they are already due.
    """

    def __init__(self) -> None:
        self.now_ms = 0
        self._queue: List[Tuple[int, int, TimerHandle]] = []
        self._seq = itertools.count()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        if delay_ms < 0:
            raise ValueError(f"delay must be non-negative, got {delay_ms}")
        handle = TimerHandle(self.now_ms + int(delay_ms), callback)
        heapq.heappush(self._queue, (handle.due_ms, next(self._seq), handle))
        return handle

    def advance(self, elapsed_ms: int) -> int:
        """Move the clock forward and run due timers. Returns how many ran."""
        if elapsed_ms < 0:
            raise ValueError(f"cannot move the clock backwards ({elapsed_ms} ms)")
        target = self.now_ms + int(elapsed_ms)
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now_ms = due
            handle.cancelled = True
            handle.callback()
            fired += 1
        self.now_ms = target
        return fired

    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def next_due(self):
        live = [due for due, _, h in self._queue if not h.cancelled]
        return min(live) if live else None

    def clear(self) -> None:
        for _, _, handle in self._queue:
            handle.cancel()
        self._queue.clear()
