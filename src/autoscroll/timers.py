"""Single-queue timer service for delayed and periodic engine callbacks."""

from __future__ import annotations

import heapq
import itertools
import time
from dataclasses import dataclass
from typing import Callable


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


def _discard(_message: str) -> None:
    return


@dataclass(eq=False)
class TimerHandle:
    deadline: float
    callback: Callable[[], None]
    interval: float | None = None
    cancelled: bool = False
    fired: bool = False
    seq: int = 0

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not self.cancelled and not self.fired


class TimerService:
    """Runs scheduled callbacks in deadline order when ``run_due`` is pumped.

    Nothing runs on its own: the owner calls ``run_due`` from its event loop, so
    every callback executes on the same thread as the rest of the engine.
    """

    def __init__(
        self,
        clock: Callable[[], float] | None = None,
        *,
        log: Callable[[str], None] | None = None,
    ) -> None:
        self._clock = clock or monotonic_ms
        self._log = log or _discard
        self._heap: list[tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return float(self._clock())

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(deadline=self.now() + max(0.0, float(delay_ms)), callback=callback)
        self._push(handle)
        return handle

    def call_every(self, interval_ms: float, callback: Callable[[], None]) -> TimerHandle:
        interval = max(1.0, float(interval_ms))
        handle = TimerHandle(deadline=self.now() + interval, callback=callback, interval=interval)
        self._push(handle)
        return handle

    def cancel(self, handle: TimerHandle | None) -> None:
        if handle is not None:
            handle.cancel()

    def next_deadline(self) -> float | None:
        self._drop_cancelled()
        if not self._heap:
            return None
        return self._heap[0][0]

    def pending(self) -> int:
        return sum(1 for _, _, handle in self._heap if not handle.cancelled)

    def run_due(self) -> int:
        now = self.now()
        ran = 0
        while self._heap and self._heap[0][0] <= now:
            _, _, handle = heapq.heappop(self._heap)
            if handle.cancelled:
                continue
            if handle.interval is not None:
                # Re-arm first so the callback is free to cancel its own timer.
                handle.deadline = max(handle.deadline + handle.interval, now + 1.0)
                self._push(handle)
            else:
                handle.fired = True
            ran += 1
            try:
                handle.callback()
            except Exception as exc:
                self._log(f"timer callback failed: {exc.__class__.__name__}: {exc}")
        return ran

    def _push(self, handle: TimerHandle) -> None:
        handle.seq = next(self._seq)
        heapq.heappush(self._heap, (handle.deadline, handle.seq, handle))

    def _drop_cancelled(self) -> None:
        while self._heap and self._heap[0][2].cancelled:
            heapq.heappop(self._heap)
