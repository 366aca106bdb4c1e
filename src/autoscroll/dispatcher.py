"""Cooldown-gated trigger for the advance-to-next action."""

from __future__ import annotations

from typing import Callable

from autoscroll.state import StateStore
from autoscroll.timers import TimerHandle, TimerService


def _discard(_message: str) -> None:
    return


class ActionDispatcher:
    """Performs ``advance`` at most once per cooldown window.

    ``processing`` is cleared by a timer after the cooldown, not when ``advance``
    returns; the page transition it starts finishes at an unknown later time.
    """

    def __init__(
        self,
        store: StateStore,
        timers: TimerService,
        advance: Callable[[], None],
        *,
        cooldown_ms: int,
        log: Callable[[str], None] | None = None,
    ) -> None:
        self._store = store
        self._timers = timers
        self._advance = advance
        self._cooldown_ms = cooldown_ms
        self._log = log or _discard
        self._clear_timer: TimerHandle | None = None
        self._clear_generation = 0
        self.performed = 0

    def request_advance(self, reason: str = "") -> bool:
        now = self._timers.now()
        last = self._store.last_action_ts
        if self._store.processing:
            return False
        if last is not None and now - last < self._cooldown_ms:
            return False

        self._store.begin_processing(now)
        try:
            self._advance()
        except Exception as exc:
            self._cancel_clear()
            self._store.end_processing()
            self._log(f"error advancing to next: {exc}")
            return False

        self.performed += 1
        self._log(f"advanced to next{f' ({reason})' if reason else ''}")
        self._cancel_clear()
        generation = self._clear_generation
        self._clear_timer = self._timers.call_later(
            self._cooldown_ms,
            lambda: self._clear_processing(generation),
        )
        return True

    def reset(self) -> None:
        self._cancel_clear()
        self._store.end_processing()

    def _cancel_clear(self) -> None:
        self._timers.cancel(self._clear_timer)
        self._clear_timer = None
        self._clear_generation += 1

    def _clear_processing(self, generation: int) -> None:
        if generation != self._clear_generation:
            return
        self._clear_timer = None
        self._store.end_processing()
