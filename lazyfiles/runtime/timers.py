"""Single-threaded timer queue driven by the host render/input loop.

Background work is a series of short callbacks scheduled against a
monotonic clock. The host calls ``run_due`` between renders; nothing runs on
another thread.
"""

from __future__ import annotations

import heapq
import itertools
import time
from collections.abc import Callable
from dataclasses import dataclass, field


@dataclass(order=True)
class _Timer:
    deadline: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


class TimerHandle:
    """Cancellation handle returned by ``TimerQueue.call_later``."""

    __slots__ = ("_timer",)

    def __init__(self, timer: _Timer) -> None:
        self._timer = timer

    @property
    def deadline(self) -> float:
        return self._timer.deadline

    @property
    def cancelled(self) -> bool:
        return self._timer.cancelled

    def cancel(self) -> None:
        self._timer.cancelled = True


class TimerQueue:
    """Min-heap of pending callbacks keyed by deadline then insertion order."""

    def __init__(self, monotonic: Callable[[], float] = time.monotonic) -> None:
        self.monotonic = monotonic
        self._heap: list[_Timer] = []
        self._seq = itertools.count()

    def __len__(self) -> int:
        return sum(1 for timer in self._heap if not timer.cancelled)

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        timer = _Timer(
            deadline=self.monotonic() + max(0.0, delay_seconds),
            seq=next(self._seq),
            callback=callback,
        )
        heapq.heappush(self._heap, timer)
        return TimerHandle(timer)

    def next_deadline(self) -> float | None:
        """Return the earliest live deadline, dropping cancelled heads."""
        while self._heap and self._heap[0].cancelled:
            heapq.heappop(self._heap)
        return self._heap[0].deadline if self._heap else None

    def run_due(self, now: float | None = None) -> int:
        """Run every timer due at ``now`` and return how many ran.

        Timers scheduled by a running callback wait for the next call, so a
        callback that reschedules itself with zero delay cannot starve the
        host loop.
        """
        current = self.monotonic() if now is None else now
        due: list[_Timer] = []
        while self._heap and self._heap[0].deadline <= current:
            timer = heapq.heappop(self._heap)
            if not timer.cancelled:
                due.append(timer)
        ran = 0
        for timer in due:
            if timer.cancelled:
                continue
            timer.cancelled = True
            timer.callback()
            ran += 1
        return ran

    def run_until(
        self,
        keep_running: Callable[[], bool],
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Sleep to each deadline and run timers while ``keep_running()``.

        Used for non-interactive draining; tests pass a fake ``sleep`` that
        advances their fake clock.
        """
        while keep_running():
            deadline = self.next_deadline()
            if deadline is None:
                return
            delay = deadline - self.monotonic()
            if delay > 0:
                sleep(delay)
            self.run_due()

    def clear(self) -> None:
        for timer in self._heap:
            timer.cancelled = True
        self._heap.clear()


__all__ = ["TimerHandle", "TimerQueue"]
