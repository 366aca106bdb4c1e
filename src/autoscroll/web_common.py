"""Shared helpers for the page adapter and CLI."""

from __future__ import annotations

import importlib.util
from urllib.parse import urlparse

from autoscroll.constants import MONITORED_PATH_MARKER
from autoscroll.models import LocationSnapshot


def normalize_url(raw: str) -> str:
    return raw.strip().rstrip(".,;:!?)]}\"'")


def is_valid_url(text: str) -> bool:
    try:
        parsed = urlparse(text)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_monitored_location(location: LocationSnapshot | None) -> bool:
    if location is None:
        return False
    return MONITORED_PATH_MARKER in location.path or MONITORED_PATH_MARKER in location.url


def location_from_url(url: str) -> LocationSnapshot:
    try:
        path = urlparse(url).path
    except ValueError:
        path = ""
    return LocationSnapshot(url=url, path=path)


def playwright_available() -> bool:
    if importlib.util.find_spec("playwright") is None:
        return False
    return importlib.util.find_spec("playwright.sync_api") is not None


def safe_page_title(page: object) -> str:
    title_attr = getattr(page, "title", None)
    if not callable(title_attr):
        return ""
    try:
        value = title_attr()
    except Exception:
        return ""
    return str(value or "")
