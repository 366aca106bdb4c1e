"""Single-threaded event pump driving timers and queued page events."""

from __future__ import annotations

from typing import Callable

from autoscroll.timers import TimerService


MIN_SLEEP_MS = 10


def pump_events(
    *,
    timers: TimerService,
    drain_events: Callable[[], int],
    sleep_fn: Callable[[float], None],
    tick_ms: int,
    deadline_ms: float | None = None,
    on_tick: Callable[[], None] | None = None,
    should_stop: Callable[[], bool] | None = None,
) -> int:
    """Run until ``deadline_ms`` (timer clock) passes, ``should_stop`` returns True
    or a KeyboardInterrupt arrives.

    ``sleep_fn`` takes milliseconds. With Playwright it is ``page.wait_for_timeout``,
    which is also what lets binding calls from the page reach the queue.
    Returns the number of loop iterations.
    """
    tick_ms = max(MIN_SLEEP_MS, int(tick_ms))
    iterations = 0
    while True:
        iterations += 1
        drain_events()
        timers.run_due()
        if on_tick is not None:
            on_tick()
        if should_stop is not None and should_stop():
            return iterations
        now = timers.now()
        if deadline_ms is not None and now >= deadline_ms:
            return iterations
        wait = float(tick_ms)
        next_deadline = timers.next_deadline()
        if next_deadline is not None:
            wait = max(float(MIN_SLEEP_MS), min(wait, next_deadline - now))
        if deadline_ms is not None:
            wait = max(float(MIN_SLEEP_MS), min(wait, deadline_ms - now))
        try:
            sleep_fn(wait)
        except KeyboardInterrupt:
            return iterations
