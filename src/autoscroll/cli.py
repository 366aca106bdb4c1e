"""CLI entrypoint for shorts-autoscroll."""

from __future__ import annotations

import argparse
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from autoscroll.browser import DEFAULT_START_URL, close_browser_page, setup_browser_page
from autoscroll.config import EngineConfig, load_engine_config
from autoscroll.constants import LOG_PREFIX
from autoscroll.engine import AutoScrollEngine
from autoscroll.page_bridge import PlaywrightPageBridge
from autoscroll.runner import pump_events
from autoscroll.signals import default_signal_sources
from autoscroll.storage import (
    RunContext,
    append_log,
    create_run_context,
    status_payload,
    tail_lines,
    write_status,
)
from autoscroll.timers import TimerService
from autoscroll.web_common import is_valid_url, normalize_url, playwright_available, safe_page_title


PUMP_TICK_MS = 250
STATUS_INTERVAL_MS = 1000


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    if args.command == "run":
        run_command(
            url=args.url,
            cdp_url=args.cdp_url,
            headless=args.headless,
            duration_seconds=args.duration_seconds,
            start_disabled=args.disabled,
        )
        return
    if args.command == "status":
        print(json.dumps(status_payload(), indent=2, ensure_ascii=False))
        return
    if args.command == "logs":
        logs_command(args.tail)
        return
    if args.command == "config":
        print(json.dumps(load_engine_config().to_dict(), indent=2, ensure_ascii=False))
        return

    parser.print_help()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="autoscroll",
        description="Advance to the next short automatically when the current one ends.",
    )
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Open (or attach to) a browser and keep auto-scrolling")
    run_parser.add_argument("--url", type=str, default="", help=f"Start URL (default {DEFAULT_START_URL}).")
    run_parser.add_argument(
        "--cdp-url",
        type=str,
        default="",
        help="Attach to a running Chromium over CDP, e.g. http://127.0.0.1:9222",
    )
    run_parser.add_argument("--headless", action="store_true", help="Launch the browser headless.")
    run_parser.add_argument(
        "--duration-seconds",
        type=float,
        default=0.0,
        help="Stop after this many seconds (0 runs until interrupted).",
    )
    run_parser.add_argument(
        "--disabled",
        action="store_true",
        help="Start with auto scroll disabled; toggle with Ctrl+Shift+A in the page.",
    )

    subparsers.add_parser("status", help="Show latest run status")

    logs_parser = subparsers.add_parser("logs", help="Tail the engine log of the latest run")
    logs_parser.add_argument("--tail", type=int, default=200)

    subparsers.add_parser("config", help="Print the effective engine configuration")
    return parser


def make_run_logger(ctx: RunContext, *, echo: bool = True) -> Callable[[str], None]:
    def log(message: str) -> None:
        stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
        append_log(ctx.engine_log, f"{stamp} {message}")
        if echo:
            print(f"{LOG_PREFIX} {message}", flush=True)

    return log


class StatusWriter:
    """Persists the engine status snapshot when it changes, at most once per interval."""

    def __init__(
        self,
        ctx: RunContext,
        engine: AutoScrollEngine,
        *,
        url_fn: Callable[[], str],
        interval_ms: int = STATUS_INTERVAL_MS,
    ) -> None:
        self._ctx = ctx
        self._engine = engine
        self._url_fn = url_fn
        self._interval_ms = interval_ms
        self._last_written_at: float | None = None
        self._last_snapshot: dict[str, Any] | None = None

    def __call__(self) -> None:
        now = self._engine.timers.now()
        if self._last_written_at is not None and now - self._last_written_at < self._interval_ms:
            return
        self._last_written_at = now
        snapshot = self._engine.status().to_dict()
        if snapshot == self._last_snapshot:
            return
        self._last_snapshot = snapshot
        self.write("running", snapshot)

    def write(self, state: str, snapshot: dict[str, Any] | None = None) -> None:
        write_status(
            run_id=self._ctx.run_id,
            run_dir=self._ctx.run_dir,
            state=state,
            url=self._url_fn(),
            engine=snapshot if snapshot is not None else self._last_snapshot,
        )


def build_engine(
    bridge: PlaywrightPageBridge,
    *,
    timers: TimerService,
    config: EngineConfig,
    log: Callable[[str], None],
) -> AutoScrollEngine:
    sources = default_signal_sources(
        bridge,
        timers,
        debounce_ms=config.debounce_ms,
        poll_interval_ms=config.poll_interval_ms,
        log=log,
    )
    return AutoScrollEngine(bridge, timers=timers, config=config, sources=sources, log=log)


def run_command(
    *,
    url: str = "",
    cdp_url: str = "",
    headless: bool = False,
    duration_seconds: float = 0.0,
    start_disabled: bool = False,
) -> None:
    if not playwright_available():
        raise SystemExit(
            "Playwright Python package is not installed. "
            "Install it (pip install playwright && playwright install chromium) to run autoscroll."
        )
    target_url = normalize_url(url) if url else ""
    if target_url and not is_valid_url(target_url):
        raise SystemExit(f"Invalid --url: {url}")
    if cdp_url and not is_valid_url(cdp_url):
        raise SystemExit(f"Invalid --cdp-url: {cdp_url}")
    if duration_seconds < 0:
        raise SystemExit("--duration-seconds must be >= 0")
    if not target_url and not cdp_url:
        target_url = DEFAULT_START_URL

    from playwright.sync_api import sync_playwright

    config = load_engine_config()
    ctx = create_run_context()
    log = make_run_logger(ctx)
    log(f"run_id={ctx.run_id}")
    log(f"config={json.dumps(config.to_dict(), sort_keys=True)}")

    with sync_playwright() as p:
        setup = setup_browser_page(playwright_obj=p, cdp_url=cdp_url, headless=headless)
        page = setup.page
        bridge = PlaywrightPageBridge(page, log=log)
        bridge.install()
        if target_url:
            page.goto(target_url, wait_until="domcontentloaded")
            title = safe_page_title(page)
            log(f"opened {target_url}{f' ({title})' if title else ''}")

        timers = TimerService(log=log)
        engine = build_engine(bridge, timers=timers, config=config, log=log)
        if start_disabled:
            engine.toggle(source="cli")
        bridge.install_hotkey(lambda _payload: engine.toggle(source="hotkey"))
        status_writer = StatusWriter(ctx, engine, url_fn=lambda: str(page.url or ""))

        engine.start()
        deadline_ms = timers.now() + duration_seconds * 1000 if duration_seconds else None
        try:
            pump_events(
                timers=timers,
                drain_events=bridge.drain,
                sleep_fn=page.wait_for_timeout,
                tick_ms=PUMP_TICK_MS,
                deadline_ms=deadline_ms,
                on_tick=status_writer,
                should_stop=page.is_closed,
            )
        except Exception as exc:
            if not page.is_closed():
                raise
            log(f"page closed: {exc}")
        finally:
            if not page.is_closed():
                engine.stop()
            status_writer.write("stopped")
            log("run finished")
            close_browser_page(setup)


def logs_command(tail_count: int) -> None:
    payload = status_payload()
    if payload.get("status") == "no-runs":
        raise SystemExit("No runs available yet.")
    run_dir = Path(payload["run_dir"])
    print("\n".join(tail_lines(run_dir / "autoscroll.log", tail_count)))


if __name__ == "__main__":
    main()
