"""Browser launch/attach helpers for an auto-scroll run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


DEFAULT_START_URL = "https://www.youtube.com/shorts"


@dataclass
class BrowserPageSetup:
    browser: Any
    context: Any
    page: Any
    attached: bool


def launch_browser(playwright_obj: Any, *, headless: bool = False) -> Any:
    kwargs: dict[str, Any] = {"headless": headless}
    if not headless:
        kwargs["args"] = [
            "--window-size=480,860",
            "--autoplay-policy=no-user-gesture-required",
        ]
    try:
        return playwright_obj.chromium.launch(channel="chrome", **kwargs)
    except Exception:
        return playwright_obj.chromium.launch(**kwargs)


def setup_browser_page(
    *,
    playwright_obj: Any,
    cdp_url: str = "",
    headless: bool = False,
) -> BrowserPageSetup:
    attached = bool(cdp_url)
    if attached:
        browser = playwright_obj.chromium.connect_over_cdp(cdp_url)
        context = browser.contexts[0] if browser.contexts else browser.new_context()
        page = context.pages[0] if context.pages else context.new_page()
    else:
        browser = launch_browser(playwright_obj, headless=headless)
        context = browser.new_context()
        page = context.new_page()
    return BrowserPageSetup(browser=browser, context=context, page=page, attached=attached)


def close_browser_page(setup: BrowserPageSetup) -> None:
    # Attached browsers belong to the user; only drop our connection.
    if setup.attached:
        return
    try:
        setup.browser.close()
    except Exception:
        return
