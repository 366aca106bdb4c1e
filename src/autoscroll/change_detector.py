"""Fuses redundant navigation signals into one debounced location-change event."""

from __future__ import annotations

from typing import Callable, Iterable

from autoscroll.models import LocationSnapshot
from autoscroll.signals import SignalSource
from autoscroll.timers import TimerHandle, TimerService


ChangeCallback = Callable[[LocationSnapshot, LocationSnapshot], None]


def _discard(_message: str) -> None:
    return


class ChangeDetector:
    """Collapses bursts of raw signals and reports real location changes once.

    Every raw signal re-arms a single debounce timer; only the last one inside the
    window runs ``evaluate``. ``evaluate`` compares the live location with the stored
    snapshot by value, so repeated notifications for the same location are dropped.
    """

    def __init__(
        self,
        timers: TimerService,
        read_location: Callable[[], LocationSnapshot],
        *,
        debounce_ms: int,
        log: Callable[[str], None] | None = None,
    ) -> None:
        self._timers = timers
        self._read_location = read_location
        self._debounce_ms = debounce_ms
        self._log = log or _discard
        self._callbacks: list[ChangeCallback] = []
        self._sources: list[SignalSource] = []
        self._debounce_timer: TimerHandle | None = None
        self._debounce_generation = 0
        self._snapshot: LocationSnapshot | None = None
        self._last_source = ""

    @property
    def snapshot(self) -> LocationSnapshot | None:
        return self._snapshot

    def on_change(self, callback: ChangeCallback) -> None:
        self._callbacks.append(callback)

    def start(self, sources: Iterable[SignalSource]) -> list[str]:
        self._snapshot = self._read_location()
        registered: list[str] = []
        for source in sources:
            try:
                source.register(self.notify)
            except Exception as exc:
                self._log(f"signal source '{source.name}' failed to register: {exc}")
                continue
            self._sources.append(source)
            registered.append(source.name)
        self._log(f"navigation detection active: {', '.join(registered) or 'none'}")
        return registered

    def stop(self) -> None:
        self._timers.cancel(self._debounce_timer)
        self._debounce_timer = None
        self._debounce_generation += 1
        sources, self._sources = self._sources, []
        for source in sources:
            try:
                source.unregister()
            except Exception as exc:
                self._log(f"signal source '{source.name}' failed to unregister: {exc}")

    def notify(self, source_name: str = "") -> None:
        self._last_source = source_name
        self._timers.cancel(self._debounce_timer)
        self._debounce_generation += 1
        generation = self._debounce_generation
        self._debounce_timer = self._timers.call_later(
            self._debounce_ms,
            lambda: self._debounced_evaluate(generation),
        )

    def _debounced_evaluate(self, generation: int) -> None:
        if generation != self._debounce_generation:
            return
        self._debounce_timer = None
        self.evaluate()

    def evaluate(self) -> bool:
        current = self._read_location()
        previous = self._snapshot
        if current == previous:
            return False
        self._snapshot = current
        old = previous if previous is not None else LocationSnapshot(url="", path="")
        via = f" (via {self._last_source})" if self._last_source else ""
        self._log(f"navigation detected: {old.path or '-'} -> {current.path or '-'}{via}")
        for callback in list(self._callbacks):
            callback(old, current)
        return True
