"""Tracks the one active media element and detects the end of its playback."""

from __future__ import annotations

import math
from typing import Any, Callable, Iterable

from autoscroll.config import EngineConfig
from autoscroll.constants import HAVE_CURRENT_DATA, HAVE_FUTURE_DATA
from autoscroll.models import MediaInfo
from autoscroll.state import ActiveMedia, ListenerSet, StateStore
from autoscroll.timers import TimerHandle, TimerService


def _discard(_message: str) -> None:
    return


def select_active_media(candidates: Iterable[MediaInfo]) -> MediaInfo | None:
    for media in candidates:
        if media.visible and not media.paused and media.ready_state >= HAVE_CURRENT_DATA:
            return media
    return None


def is_near_end(media: MediaInfo, config: EngineConfig) -> bool:
    duration = media.duration
    if not math.isfinite(duration) or duration <= 0:
        return False
    if duration < config.min_duration_seconds:
        return False
    if media.ready_state < HAVE_FUTURE_DATA:
        return False
    return media.remaining <= config.end_threshold_seconds


class MediaWatcher:
    """Periodically selects the active media and owns its listener set.

    ``dom`` is the page's DOM capability: ``media_candidates()``, ``media_count()``,
    ``content_container_present()`` and the listener methods used by ``ListenerSet``.
    """

    def __init__(
        self,
        store: StateStore,
        timers: TimerService,
        config: EngineConfig,
        dom: Any,
        *,
        request_advance: Callable[[str], Any],
        in_scope: Callable[[], bool],
        log: Callable[[str], None] | None = None,
    ) -> None:
        self._store = store
        self._timers = timers
        self._config = config
        self._dom = dom
        self._request_advance = request_advance
        self._in_scope = in_scope
        self._log = log or _discard
        self._monitor_timer: TimerHandle | None = None
        self._progress_timer: TimerHandle | None = None
        self._progress_generation = 0
        self._last_progress: dict[str, Any] = {}

    @property
    def running(self) -> bool:
        return self._monitor_timer is not None and self._monitor_timer.active

    def is_content_ready(self) -> bool:
        if not self._dom.content_container_present():
            return False
        return self._dom.media_count() > 0

    def start(self) -> None:
        self._timers.cancel(self._monitor_timer)
        self._monitor_timer = self._timers.call_every(self._config.monitoring_interval_ms, self.tick)
        self._log("media monitoring started")

    def stop(self) -> None:
        self._timers.cancel(self._monitor_timer)
        self._monitor_timer = None
        self._cancel_progress()
        detached = self._store.clear_active_media()
        if detached:
            self._log(f"released active media ({detached} listeners detached)")

    def tick(self) -> None:
        if not self._store.initialized or self._store.processing:
            return
        if not self._in_scope():
            return
        selected = select_active_media(self._dom.media_candidates())
        if selected is None or selected.handle == self._store.active_handle:
            return
        self._handoff(selected)

    def _handoff(self, media: MediaInfo) -> None:
        self._cancel_progress()
        listeners = ListenerSet(self._dom)
        self._store.replace_active_media(ActiveMedia(handle=media.handle, listeners=listeners))
        handle = media.handle
        listeners.attach(handle, "ended", lambda payload: self._on_ended(handle, payload))
        listeners.attach(handle, "timeupdate", lambda payload: self._on_progress(handle, payload))
        listeners.attach(handle, "canplay", lambda payload: self._log("media ready for playback"))
        if math.isfinite(media.duration):
            self._log(f"watching new media (duration: {media.duration:.2f}s)")
        else:
            self._log("watching new media (duration unknown)")

    def _should_advance(self, handle: str) -> bool:
        return (
            self._store.enabled
            and not self._store.processing
            and handle == self._store.active_handle
        )

    def _on_ended(self, handle: str, _payload: dict[str, Any]) -> None:
        if self._should_advance(handle):
            self._log("media ended, advancing to next")
            self._request_advance("ended")

    def _on_progress(self, handle: str, payload: dict[str, Any]) -> None:
        self._last_progress = dict(payload or {})
        self._timers.cancel(self._progress_timer)
        self._progress_generation += 1
        generation = self._progress_generation
        self._progress_timer = self._timers.call_later(
            self._config.progress_debounce_ms,
            lambda: self._check_progress(handle, generation),
        )

    def _check_progress(self, handle: str, generation: int) -> None:
        if generation != self._progress_generation:
            return
        self._progress_timer = None
        try:
            media = MediaInfo.from_dict({**self._last_progress, "handle": handle})
        except ValueError:
            return
        if is_near_end(media, self._config) and self._should_advance(handle):
            self._log("media near end, advancing to next")
            self._request_advance("near-end")

    def _cancel_progress(self) -> None:
        self._timers.cancel(self._progress_timer)
        self._progress_timer = None
        self._progress_generation += 1
        self._last_progress = {}
