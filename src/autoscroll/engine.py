"""Navigation and playback coordination engine plus its control surface."""

from __future__ import annotations

from typing import Any, Callable, Sequence

from autoscroll.change_detector import ChangeDetector
from autoscroll.config import EngineConfig
from autoscroll.dispatcher import ActionDispatcher
from autoscroll.init_supervisor import InitializationSupervisor, InitState
from autoscroll.media_watcher import MediaWatcher
from autoscroll.models import EngineStatus, LocationSnapshot
from autoscroll.signals import SignalSource
from autoscroll.state import StateStore
from autoscroll.timers import TimerHandle, TimerService
from autoscroll.web_common import is_monitored_location


def _discard(_message: str) -> None:
    return


def _safe_bool(fn: Callable[[], Any]) -> bool:
    try:
        return bool(fn())
    except Exception:
        return False


class AutoScrollEngine:
    """Wires detector, supervisor, watcher and dispatcher around one state store.

    ``dom`` is the page adapter: ``read_location()``, ``media_candidates()``,
    ``media_count()``, ``content_container_present()``, ``add_media_listener()``,
    ``remove_media_listener()`` and ``advance()``.
    """

    def __init__(
        self,
        dom: Any,
        *,
        timers: TimerService,
        config: EngineConfig | None = None,
        sources: Sequence[SignalSource] = (),
        in_scope: Callable[[LocationSnapshot], bool] = is_monitored_location,
        log: Callable[[str], None] | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.timers = timers
        self.store = StateStore()
        self._dom = dom
        self._sources = list(sources)
        self._in_scope = in_scope
        self._log = log or _discard
        self._startup_timer: TimerHandle | None = None

        self.dispatcher = ActionDispatcher(
            self.store,
            timers,
            dom.advance,
            cooldown_ms=self.config.cooldown_ms,
            log=self._log,
        )
        self.watcher = MediaWatcher(
            self.store,
            timers,
            self.config,
            dom,
            request_advance=self.dispatcher.request_advance,
            in_scope=self.on_monitored_page,
            log=self._log,
        )
        self.supervisor = InitializationSupervisor(
            self.store,
            timers,
            self.config,
            readiness=self.watcher.is_content_ready,
            on_ready=self.watcher.start,
            on_failed=self._on_init_failed,
            log=self._log,
        )
        self.detector = ChangeDetector(
            timers,
            dom.read_location,
            debounce_ms=self.config.debounce_ms,
            log=self._log,
        )
        self.detector.on_change(self._on_location_change)

    # Lifecycle.

    def start(self) -> list[str]:
        self._log("auto scroll starting")
        registered = self.detector.start(self._sources)
        if self.on_monitored_page():
            self._startup_timer = self.timers.call_later(
                self.config.navigation_delay_ms,
                self._initial_start,
            )
        return registered

    def stop(self) -> None:
        self.timers.cancel(self._startup_timer)
        self._startup_timer = None
        self.detector.stop()
        self._teardown()
        self._log("auto scroll stopped")

    # Control surface.

    def toggle(self, *, source: str = "manual") -> bool:
        enabled = self.store.set_enabled(not self.store.enabled)
        self._log(f"auto scroll {'enabled' if enabled else 'disabled'} ({source})")
        return enabled

    def status(self) -> EngineStatus:
        return EngineStatus(
            enabled=self.store.enabled,
            initialized=self.store.initialized,
            has_active_media=self.store.active_media is not None,
            on_monitored_page=self.on_monitored_page(),
            content_loaded=_safe_bool(self.watcher.is_content_ready),
            retry_count=self.store.retry_count,
            init_state=self.supervisor.state.value,
        )

    def force_start(self) -> None:
        self.timers.cancel(self._startup_timer)
        self._startup_timer = None
        self.supervisor.cancel()
        self.watcher.stop()
        self.supervisor.begin()
        self._log("force started")

    def reset(self) -> None:
        self._teardown()
        self._log("state reset")

    # Internals.

    def on_monitored_page(self) -> bool:
        try:
            location = self._dom.read_location()
        except Exception:
            return False
        return bool(self._in_scope(location))

    def _initial_start(self) -> None:
        self._startup_timer = None
        if self.supervisor.state is not InitState.IDLE:
            return
        if not self.on_monitored_page():
            return
        self.supervisor.begin()

    def _on_location_change(self, _old: LocationSnapshot, new: LocationSnapshot) -> None:
        self.timers.cancel(self._startup_timer)
        self._startup_timer = None
        if self._in_scope(new):
            self._log("navigated to monitored page, reinitializing")
            self.watcher.stop()
            self.dispatcher.reset()
            self.supervisor.begin()
            return
        self._log("left monitored page, cleaning up")
        self._teardown()

    def _teardown(self) -> None:
        self.supervisor.cancel()
        self.watcher.stop()
        self.dispatcher.reset()

    def _on_init_failed(self) -> None:
        self._log("monitoring inactive until the next navigation or force start")
