"""Session state, active-media ownership and the listener set it carries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable


@dataclass
class Session:
    enabled: bool = True
    initialized: bool = False
    retry_count: int = 0
    last_action_ts: float | None = None
    processing: bool = False


@dataclass(frozen=True)
class ListenerEntry:
    handle: str
    event: str
    token: Any


class ListenerSet:
    """Listeners attached to media handles through the DOM capability.

    ``dom`` must provide ``add_media_listener(handle, event, callback) -> token``
    and ``remove_media_listener(token)``.
    """

    def __init__(self, dom: Any) -> None:
        self._dom = dom
        self._entries: list[ListenerEntry] = []

    def attach(self, handle: str, event: str, callback: Callable[[dict[str, Any]], None]) -> None:
        token = self._dom.add_media_listener(handle, event, callback)
        self._entries.append(ListenerEntry(handle=handle, event=event, token=token))

    def detach_all(self) -> int:
        entries, self._entries = self._entries, []
        for entry in entries:
            self._dom.remove_media_listener(entry.token)
        return len(entries)

    def events(self) -> list[str]:
        return [entry.event for entry in self._entries]

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class ActiveMedia:
    handle: str
    listeners: ListenerSet


@dataclass
class StateStore:
    session: Session = field(default_factory=Session)
    active_media: ActiveMedia | None = None

    # Readers.

    @property
    def enabled(self) -> bool:
        return self.session.enabled

    @property
    def initialized(self) -> bool:
        return self.session.initialized

    @property
    def processing(self) -> bool:
        return self.session.processing

    @property
    def retry_count(self) -> int:
        return self.session.retry_count

    @property
    def last_action_ts(self) -> float | None:
        return self.session.last_action_ts

    @property
    def active_handle(self) -> str | None:
        return self.active_media.handle if self.active_media is not None else None

    # Writers, one group per owning component.

    def set_enabled(self, enabled: bool) -> bool:
        self.session.enabled = bool(enabled)
        return self.session.enabled

    def mark_initialized(self, initialized: bool) -> None:
        self.session.initialized = bool(initialized)

    def set_retry_count(self, count: int) -> None:
        self.session.retry_count = max(0, int(count))

    def begin_processing(self, now_ts: float) -> None:
        self.session.processing = True
        self.session.last_action_ts = now_ts

    def end_processing(self) -> None:
        self.session.processing = False

    def replace_active_media(self, media: ActiveMedia) -> int:
        detached = self.clear_active_media()
        self.active_media = media
        return detached

    def clear_active_media(self) -> int:
        previous, self.active_media = self.active_media, None
        if previous is None:
            return 0
        return previous.listeners.detach_all()

    def reset_initialization(self) -> None:
        self.session.initialized = False
        self.session.retry_count = 0
