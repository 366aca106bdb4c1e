"""Navigation signal sources consumed by the change detector.

Every source exposes ``register(on_fire)`` / ``unregister()``. ``on_fire`` takes the
source name and only means "something may have changed"; deciding whether the
location really moved is the detector's job.
"""

from __future__ import annotations

import json
from typing import Any, Callable

from autoscroll.constants import (
    BINDING_NAME,
    PLATFORM_EVENT_TARGETS,
    PLATFORM_FIRE_EVENTS,
    PLATFORM_LOG_EVENTS,
)
from autoscroll.models import LocationSnapshot
from autoscroll.timers import TimerHandle, TimerService


FireFn = Callable[[str], None]


def _discard(_message: str) -> None:
    return


def _render(script: str, **values: object) -> str:
    script = script.replace("__BINDING__", BINDING_NAME)
    for key, value in values.items():
        script = script.replace(f"__{key.upper()}__", str(value))
    return script


_HISTORY_SCRIPT = """
(() => {
  const flags = (window.__autoscrollSignals = window.__autoscrollSignals || {});
  flags.history = true;
  if (window.__autoscrollHistoryHooked) return;
  window.__autoscrollHistoryHooked = true;
  const emit = (kind) => {
    if (!flags.history || typeof window.__BINDING__ !== 'function') return;
    window.__BINDING__('signal:history', { kind });
  };
  for (const name of ['pushState', 'replaceState']) {
    const original = history[name];
    history[name] = function (...args) {
      const result = original.apply(this, args);
      emit(name);
      return result;
    };
  }
  window.addEventListener('popstate', () => emit('popstate'));
})()
"""

_MUTATION_SCRIPT = """
(() => {
  const flags = (window.__autoscrollSignals = window.__autoscrollSignals || {});
  flags.mutation = true;
  if (window.__autoscrollMutationObserver) return;
  const start = () => {
    if (!document.body) {
      document.addEventListener('DOMContentLoaded', start, { once: true });
      return;
    }
    let timer = null;
    const observer = new MutationObserver(() => {
      if (!flags.mutation) return;
      clearTimeout(timer);
      timer = setTimeout(() => {
        if (typeof window.__BINDING__ === 'function') window.__BINDING__('signal:mutation', {});
      }, __THROTTLE_MS__);
    });
    observer.observe(document.body, {
      childList: true,
      subtree: true,
      attributes: true,
      attributeFilter: ['class', 'id'],
    });
    window.__autoscrollMutationObserver = observer;
  };
  start();
})()
"""

_PLATFORM_SCRIPT = """
(() => {
  const flags = (window.__autoscrollSignals = window.__autoscrollSignals || {});
  flags.platform = true;
  if (window.__autoscrollPlatformHooked) return;
  window.__autoscrollPlatformHooked = true;
  const targets = __EVENT_TARGETS__;
  for (const [name, where] of targets) {
    const forward = () => {
      if (!flags.platform || typeof window.__BINDING__ !== 'function') return;
      window.__BINDING__('signal:platform', { event: name });
    };
    (where === "window" ? window : document).addEventListener(name, forward);
  }
})()
"""

_DISABLE_SCRIPT = """
(() => {
  const flags = (window.__autoscrollSignals = window.__autoscrollSignals || {});
  flags.__FLAG__ = false;
  if ('__FLAG__' === 'mutation' && window.__autoscrollMutationObserver) {
    window.__autoscrollMutationObserver.disconnect();
    window.__autoscrollMutationObserver = null;
  }
})()
"""


class SignalSource:
    name = "signal"

    def register(self, on_fire: FireFn) -> None:
        raise NotImplementedError

    def unregister(self) -> None:
        raise NotImplementedError


class _PageScriptSignal(SignalSource):
    """A source whose raw events come from a script injected into the page.

    ``bridge`` provides ``subscribe(channel, callback)``, ``unsubscribe(channel)``
    and ``run_script(script)``.
    """

    channel = ""

    def __init__(self, bridge: Any, *, log: Callable[[str], None] | None = None) -> None:
        self._bridge = bridge
        self._log = log or _discard
        self._on_fire: FireFn | None = None

    def script(self) -> str:
        raise NotImplementedError

    def register(self, on_fire: FireFn) -> None:
        self._on_fire = on_fire
        self._bridge.subscribe(self.channel, self._handle)
        try:
            self._bridge.run_script(self.script())
        except Exception:
            self._bridge.unsubscribe(self.channel)
            self._on_fire = None
            raise

    def unregister(self) -> None:
        self._on_fire = None
        self._bridge.unsubscribe(self.channel)
        self._bridge.run_script(_DISABLE_SCRIPT.replace("__FLAG__", self.name), persist=False)

    def _handle(self, _payload: dict[str, Any]) -> None:
        if self._on_fire is not None:
            self._on_fire(self.name)


class HistorySignal(_PageScriptSignal):
    name = "history"
    channel = "signal:history"

    def script(self) -> str:
        return _render(_HISTORY_SCRIPT)


class MutationSignal(_PageScriptSignal):
    name = "mutation"
    channel = "signal:mutation"

    def __init__(
        self,
        bridge: Any,
        *,
        throttle_ms: int,
        log: Callable[[str], None] | None = None,
    ) -> None:
        super().__init__(bridge, log=log)
        self._throttle_ms = max(0, int(throttle_ms))

    def script(self) -> str:
        return _render(_MUTATION_SCRIPT, throttle_ms=self._throttle_ms)


class PlatformEventSignal(_PageScriptSignal):
    name = "platform"
    channel = "signal:platform"

    def script(self) -> str:
        pairs = [[name, PLATFORM_EVENT_TARGETS.get(name, "document")] for name in PLATFORM_FIRE_EVENTS]
        pairs += [[name, PLATFORM_EVENT_TARGETS.get(name, "document")] for name in PLATFORM_LOG_EVENTS]
        return _render(_PLATFORM_SCRIPT, event_targets=json.dumps(pairs))

    def _handle(self, payload: dict[str, Any]) -> None:
        event = str((payload or {}).get("event", "") or "")
        if event in PLATFORM_LOG_EVENTS:
            self._log(f"platform navigation started ({event})")
            return
        super()._handle(payload)


class UrlPollSignal(SignalSource):
    """Fallback that reads the location on a fixed interval."""

    name = "poll"

    def __init__(
        self,
        timers: TimerService,
        read_location: Callable[[], LocationSnapshot],
        *,
        interval_ms: int,
    ) -> None:
        self._timers = timers
        self._read_location = read_location
        self._interval_ms = interval_ms
        self._timer: TimerHandle | None = None
        self._last_seen: LocationSnapshot | None = None
        self._on_fire: FireFn | None = None

    def register(self, on_fire: FireFn) -> None:
        self.unregister()
        self._last_seen = self._read_location()
        self._on_fire = on_fire
        self._timer = self._timers.call_every(self._interval_ms, self._check)

    def unregister(self) -> None:
        self._timers.cancel(self._timer)
        self._timer = None
        self._on_fire = None

    def _check(self) -> None:
        current = self._read_location()
        if current == self._last_seen:
            return
        self._last_seen = current
        if self._on_fire is not None:
            self._on_fire(self.name)


def default_signal_sources(
    bridge: Any,
    timers: TimerService,
    *,
    debounce_ms: int,
    poll_interval_ms: int,
    log: Callable[[str], None] | None = None,
) -> list[SignalSource]:
    return [
        HistorySignal(bridge, log=log),
        MutationSignal(bridge, throttle_ms=debounce_ms, log=log),
        UrlPollSignal(timers, bridge.read_location, interval_ms=poll_interval_ms),
        PlatformEventSignal(bridge, log=log),
    ]
