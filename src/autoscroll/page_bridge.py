"""Playwright adapter: DOM queries, media listeners, page signals and the advance key."""

from __future__ import annotations

import itertools
import json
from collections import deque
from typing import Any, Callable

from autoscroll.constants import (
    ADVANCE_KEY,
    BINDING_NAME,
    CONTENT_CONTAINER_SELECTOR,
    MEDIA_CHANNEL_PREFIX,
    MEDIA_HANDLE_ATTR,
    MEDIA_SELECTOR,
)
from autoscroll.models import LocationSnapshot, MediaInfo
from autoscroll.web_common import location_from_url


def _discard(_message: str) -> None:
    return


_BOOTSTRAP_SCRIPT = """
(() => {
  if (window.__autoscroll) return;
  const ATTR = __ATTR__;
  const MEDIA = __MEDIA__;
  const CONTAINER = __CONTAINER__;
  const BINDING = __BINDING__;
  let counter = 0;
  const listeners = new Map();
  const finite = (value) => (Number.isFinite(value) ? value : null);
  const tag = (el) => {
    let id = el.getAttribute(ATTR);
    if (!id) {
      counter += 1;
      id = `m${Date.now().toString(36)}-${counter}`;
      el.setAttribute(ATTR, id);
    }
    return id;
  };
  const find = (handle) => document.querySelector(`[${ATTR}="${CSS.escape(handle)}"]`);
  const describe = (el) => ({
    handle: tag(el),
    visible: el.offsetParent !== null && el.clientHeight > 0 && el.clientWidth > 0,
    paused: !!el.paused,
    readyState: el.readyState,
    duration: finite(el.duration),
    currentTime: finite(el.currentTime),
  });
  window.__autoscroll = {
    location: () => ({ url: location.href, path: location.pathname }),
    media: () => Array.from(document.querySelectorAll(MEDIA)).map(describe),
    mediaCount: () => document.querySelectorAll(MEDIA).length,
    container: () => !!document.querySelector(CONTAINER),
    listen: (handle, event, id) => {
      const el = find(handle);
      if (!el) return false;
      const fn = () => {
        if (typeof window[BINDING] !== 'function') return;
        window[BINDING]('__MEDIA_PREFIX__' + id, {
          event,
          duration: finite(el.duration),
          currentTime: finite(el.currentTime),
          readyState: el.readyState,
        });
      };
      el.addEventListener(event, fn);
      listeners.set(id, { el, event, fn });
      return true;
    },
    unlisten: (id) => {
      const entry = listeners.get(id);
      if (!entry) return false;
      entry.el.removeEventListener(entry.event, entry.fn);
      listeners.delete(id);
      return true;
    },
  };
})()
"""

_HOTKEY_SCRIPT = """
(() => {
  if (window.__autoscrollHotkey) return;
  window.__autoscrollHotkey = true;
  document.addEventListener('keydown', (e) => {
    if (e.ctrlKey && e.shiftKey && (e.key === 'A' || e.key === 'a')) {
      e.preventDefault();
      if (typeof window.__BINDING__ === 'function') window.__BINDING__('hotkey', { action: 'toggle' });
    }
  });
})()
"""

_CALL_SCRIPT = """
([name, args]) => window.__autoscroll
  ? { ok: true, value: window.__autoscroll[name](...args) }
  : { ok: false, value: null }
"""


def bootstrap_script() -> str:
    return (
        _BOOTSTRAP_SCRIPT.replace("__ATTR__", json.dumps(MEDIA_HANDLE_ATTR))
        .replace("__MEDIA__", json.dumps(MEDIA_SELECTOR))
        .replace("__CONTAINER__", json.dumps(CONTENT_CONTAINER_SELECTOR))
        .replace("__BINDING__", json.dumps(BINDING_NAME))
        .replace("__MEDIA_PREFIX__", MEDIA_CHANNEL_PREFIX)
    )


def hotkey_script() -> str:
    return _HOTKEY_SCRIPT.replace("__BINDING__", BINDING_NAME)


class PlaywrightPageBridge:
    """Adapts a Playwright sync ``Page`` to the engine's collaborator interfaces.

    Page-side events arrive through a single exposed binding and are queued;
    ``drain`` delivers them from the engine loop so every callback runs on the
    same queue as the timers.
    """

    def __init__(self, page: Any, *, log: Callable[[str], None] | None = None) -> None:
        self._page = page
        self._log = log or _discard
        self._queue: deque[tuple[str, dict[str, Any]]] = deque()
        self._channels: dict[str, Callable[[dict[str, Any]], None]] = {}
        self._media_listeners: dict[str, Callable[[dict[str, Any]], None]] = {}
        self._listener_ids = itertools.count(1)
        self._installed = False

    def install(self) -> None:
        if self._installed:
            return
        self._page.expose_binding(BINDING_NAME, self._on_binding)
        self.run_script(bootstrap_script())
        self._installed = True

    def install_hotkey(self, callback: Callable[[dict[str, Any]], None]) -> None:
        self.subscribe("hotkey", callback)
        self.run_script(hotkey_script())

    # Event plumbing.

    def _on_binding(self, _source: Any, channel: str, payload: Any = None) -> None:
        self._queue.append((str(channel or ""), payload if isinstance(payload, dict) else {}))

    def drain(self) -> int:
        delivered = 0
        while self._queue:
            channel, payload = self._queue.popleft()
            if channel.startswith(MEDIA_CHANNEL_PREFIX):
                callback = self._media_listeners.get(channel[len(MEDIA_CHANNEL_PREFIX):])
            else:
                callback = self._channels.get(channel)
            if callback is None:
                continue
            delivered += 1
            try:
                callback(payload)
            except Exception as exc:
                self._log(f"page event handler failed ({channel}): {exc}")
        return delivered

    def subscribe(self, channel: str, callback: Callable[[dict[str, Any]], None]) -> None:
        self._channels[channel] = callback

    def unsubscribe(self, channel: str) -> None:
        self._channels.pop(channel, None)

    def run_script(self, script: str, *, persist: bool = True) -> None:
        if persist:
            self._page.add_init_script(script=script)
        self._page.evaluate(script)

    # DOM query capability.

    def _call(self, name: str, *args: Any) -> Any:
        result = self._page.evaluate(_CALL_SCRIPT, [name, list(args)])
        if not (isinstance(result, dict) and result.get("ok")):
            self._page.evaluate(bootstrap_script())
            result = self._page.evaluate(_CALL_SCRIPT, [name, list(args)])
        if not isinstance(result, dict):
            return None
        return result.get("value")

    def read_location(self) -> LocationSnapshot:
        try:
            payload = self._call("location")
        except Exception:
            # Mid-navigation the execution context can vanish; the page URL is still known.
            return location_from_url(str(getattr(self._page, "url", "") or ""))
        if not isinstance(payload, dict):
            return location_from_url(str(getattr(self._page, "url", "") or ""))
        return LocationSnapshot.from_dict(payload)

    def media_candidates(self) -> list[MediaInfo]:
        payload = self._call("media")
        candidates: list[MediaInfo] = []
        for item in payload or []:
            if not isinstance(item, dict):
                continue
            try:
                candidates.append(MediaInfo.from_dict(item))
            except ValueError:
                continue
        return candidates

    def media_count(self) -> int:
        return int(self._call("mediaCount") or 0)

    def content_container_present(self) -> bool:
        return bool(self._call("container"))

    # Listener capability.

    def add_media_listener(self, handle: str, event: str, callback: Callable[[dict[str, Any]], None]) -> str:
        token = f"l{next(self._listener_ids)}"
        self._media_listeners[token] = callback
        if not self._call("listen", handle, event, token):
            self._log(f"media {handle} not found while attaching '{event}' listener")
        return token

    def remove_media_listener(self, token: str) -> None:
        self._media_listeners.pop(token, None)
        try:
            self._call("unlisten", token)
        except Exception as exc:
            self._log(f"page-side listener {token} not removed: {exc}")

    # Action capability.

    def advance(self) -> None:
        self._page.keyboard.press(ADVANCE_KEY)
