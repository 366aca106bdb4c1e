import unittest

from autoscroll.change_detector import ChangeDetector
from autoscroll.signals import SignalSource, UrlPollSignal
from fakes import FakeDom, advance, make_timers


class _ManualSource(SignalSource):
    def __init__(self, name: str) -> None:
        self.name = name
        self.on_fire = None
        self.unregistered = False

    def register(self, on_fire) -> None:
        self.on_fire = on_fire

    def unregister(self) -> None:
        self.unregistered = True
        self.on_fire = None

    def fire(self) -> None:
        if self.on_fire is not None:
            self.on_fire(self.name)


class _BrokenSource(SignalSource):
    name = "broken"

    def register(self, on_fire) -> None:
        raise RuntimeError("history API unavailable")

    def unregister(self) -> None:
        raise AssertionError("never registered")


class ChangeDetectorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.timers, self.clock, _ = make_timers()
        self.dom = FakeDom()
        self.messages: list[str] = []
        self.detector = ChangeDetector(
            self.timers,
            self.dom.read_location,
            debounce_ms=300,
            log=self.messages.append,
        )
        self.changes: list[tuple[str, str]] = []
        self.detector.on_change(lambda old, new: self.changes.append((old.path, new.path)))

    def test_burst_of_signals_for_one_navigation_yields_one_callback(self) -> None:
        history, mutation, poll = _ManualSource("history"), _ManualSource("mutation"), _ManualSource("poll")
        self.detector.start([history, mutation, poll])

        self.dom.navigate("https://www.youtube.com/shorts/next1")
        poll.fire()
        advance(self.timers, self.clock, 100)
        mutation.fire()
        advance(self.timers, self.clock, 100)
        history.fire()
        advance(self.timers, self.clock, 299)
        self.assertEqual(self.changes, [])

        advance(self.timers, self.clock, 1)
        self.assertEqual(self.changes, [("/shorts/abc123", "/shorts/next1")])
        assert self.detector.snapshot is not None
        self.assertEqual(self.detector.snapshot.path, "/shorts/next1")

    def test_signal_without_location_change_is_suppressed(self) -> None:
        source = _ManualSource("mutation")
        self.detector.start([source])
        for _ in range(5):
            source.fire()
            advance(self.timers, self.clock, 400)
        self.assertEqual(self.changes, [])

    def test_late_duplicate_signal_for_same_location_is_idempotent(self) -> None:
        source = _ManualSource("mutation")
        self.detector.start([source])
        self.dom.navigate("https://www.youtube.com/shorts/next1")
        source.fire()
        advance(self.timers, self.clock, 300)
        source.fire()
        advance(self.timers, self.clock, 1000)
        self.assertEqual(len(self.changes), 1)

    def test_failing_source_does_not_block_the_others(self) -> None:
        good = _ManualSource("platform")
        registered = self.detector.start([_BrokenSource(), good])
        self.assertEqual(registered, ["platform"])
        self.assertTrue(any("broken" in msg for msg in self.messages))

        self.dom.navigate("https://www.youtube.com/feed/subscriptions")
        good.fire()
        advance(self.timers, self.clock, 300)
        self.assertEqual(self.changes, [("/shorts/abc123", "/feed/subscriptions")])

    def test_poll_source_alone_detects_navigation(self) -> None:
        poll = UrlPollSignal(self.timers, self.dom.read_location, interval_ms=1000)
        self.detector.start([poll])
        self.dom.navigate("https://www.youtube.com/shorts/next2")
        advance(self.timers, self.clock, 1000)
        self.assertEqual(self.changes, [])
        advance(self.timers, self.clock, 300)
        self.assertEqual(self.changes, [("/shorts/abc123", "/shorts/next2")])
        advance(self.timers, self.clock, 5000)
        self.assertEqual(len(self.changes), 1)

    def test_stop_unregisters_sources_and_drops_pending_evaluation(self) -> None:
        source = _ManualSource("history")
        self.detector.start([source])
        self.dom.navigate("https://www.youtube.com/shorts/next3")
        source.fire()
        self.detector.stop()
        advance(self.timers, self.clock, 1000)
        self.assertTrue(source.unregistered)
        self.assertEqual(self.changes, [])


if __name__ == "__main__":
    unittest.main()
