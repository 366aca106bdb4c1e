"""Data models exchanged between the engine and the page adapter."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class LocationSnapshot:
    url: str
    path: str

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "LocationSnapshot":
        return cls(url=_as_str(payload.get("url")), path=_as_str(payload.get("path")))


@dataclass(frozen=True)
class MediaInfo:
    handle: str
    visible: bool = False
    paused: bool = True
    ready_state: int = 0
    duration: float = math.nan
    current_time: float = 0.0

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "MediaInfo":
        handle = payload.get("handle")
        if not isinstance(handle, str) or not handle:
            raise ValueError("'handle' must be a non-empty string")
        return cls(
            handle=handle,
            visible=bool(payload.get("visible", False)),
            paused=bool(payload.get("paused", True)),
            ready_state=_as_int(payload.get("readyState", payload.get("ready_state"))),
            duration=_as_float(payload.get("duration"), default=math.nan),
            current_time=_as_float(payload.get("currentTime", payload.get("current_time")), default=0.0),
        )

    @property
    def remaining(self) -> float:
        return self.duration - self.current_time


@dataclass(frozen=True)
class EngineStatus:
    enabled: bool
    initialized: bool
    has_active_media: bool
    on_monitored_page: bool
    content_loaded: bool
    retry_count: int
    init_state: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _as_str(value: object) -> str:
    return str(value or "")


def _as_int(value: object) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _as_float(value: object, *, default: float) -> float:
    # Page payloads carry null for NaN/Infinity durations.
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default
