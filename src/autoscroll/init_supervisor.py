"""Bounded-retry initialization gated on a readiness predicate."""

from __future__ import annotations

from enum import Enum
from typing import Callable

from autoscroll.config import EngineConfig
from autoscroll.state import StateStore
from autoscroll.timers import TimerService


class InitState(str, Enum):
    IDLE = "idle"
    WAITING = "waiting"
    RETRYING = "retrying"
    READY = "ready"
    FAILED = "failed"


def _discard(_message: str) -> None:
    return


def _noop() -> None:
    return


class InitializationSupervisor:
    """Waits for the page content after a navigation, retrying a bounded number of times.

    Each ``begin`` mints a new generation token. Poll and retry callbacks capture the
    token they were scheduled with and do nothing once a newer ``begin`` or a
    ``cancel`` has moved the generation on.
    """

    def __init__(
        self,
        store: StateStore,
        timers: TimerService,
        config: EngineConfig,
        *,
        readiness: Callable[[], bool],
        on_ready: Callable[[], None] | None = None,
        on_failed: Callable[[], None] | None = None,
        log: Callable[[str], None] | None = None,
    ) -> None:
        self._store = store
        self._timers = timers
        self._config = config
        self._readiness = readiness
        self._on_ready = on_ready or _noop
        self._on_failed = on_failed or _noop
        self._log = log or _discard
        self._state = InitState.IDLE
        self._generation = 0
        self._wait_started_at = 0.0
        self.poll_cycles = 0

    @property
    def state(self) -> InitState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self) -> int:
        self._store.reset_initialization()
        self._generation += 1
        self.poll_cycles = 0
        token = self._generation
        self._log(f"initialization started (generation {token})")
        self._enter_waiting(token)
        return token

    def cancel(self) -> None:
        self._generation += 1
        self._state = InitState.IDLE
        self._store.reset_initialization()

    def _enter_waiting(self, token: int) -> None:
        self._state = InitState.WAITING
        self._wait_started_at = self._timers.now()
        self.poll_cycles += 1
        self._log(
            f"initialization attempt {self._store.retry_count + 1}/{self._config.max_retries}"
        )
        self._poll(token)

    def _poll(self, token: int) -> None:
        if token != self._generation or self._state is not InitState.WAITING:
            return
        try:
            ready = bool(self._readiness())
        except Exception as exc:
            self._log(f"readiness check failed: {exc}")
            ready = False
        if ready:
            self._store.mark_initialized(True)
            self._state = InitState.READY
            self._log("initialized successfully")
            self._on_ready()
            return
        if self._timers.now() - self._wait_started_at > self._config.readiness_timeout_ms:
            self._timed_out(token)
            return
        self._timers.call_later(self._config.readiness_poll_ms, lambda: self._poll(token))

    def _timed_out(self, token: int) -> None:
        self._store.set_retry_count(self._store.retry_count + 1)
        self._state = InitState.RETRYING
        if self._store.retry_count >= self._config.max_retries:
            self._state = InitState.FAILED
            self._log("failed to initialize after maximum retries")
            self._on_failed()
            return
        self._log(f"initialization timed out, retrying in {self._config.retry_delay_ms}ms")
        self._timers.call_later(self._config.retry_delay_ms, lambda: self._resume(token))

    def _resume(self, token: int) -> None:
        if token != self._generation or self._state is not InitState.RETRYING:
            return
        self._enter_waiting(token)
