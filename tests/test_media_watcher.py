import math
import unittest

from autoscroll.config import EngineConfig
from autoscroll.media_watcher import MediaWatcher, is_near_end, select_active_media
from autoscroll.models import MediaInfo
from autoscroll.state import StateStore
from fakes import FakeDom, advance, make_timers, playing


class NearEndTests(unittest.TestCase):
    def setUp(self) -> None:
        self.config = EngineConfig()

    def test_ten_second_clip_near_its_end_triggers(self) -> None:
        media = MediaInfo(handle="m1", ready_state=4, duration=10.0, current_time=9.6)
        self.assertTrue(is_near_end(media, self.config))

    def test_clip_shorter_than_min_duration_never_triggers(self) -> None:
        media = MediaInfo(handle="m1", ready_state=4, duration=0.8, current_time=0.7)
        self.assertFalse(is_near_end(media, self.config))

    def test_unresolved_or_infinite_duration_never_triggers(self) -> None:
        for duration in (math.nan, math.inf, 0.0, -1.0):
            media = MediaInfo(handle="m1", ready_state=4, duration=duration, current_time=0.0)
            self.assertFalse(is_near_end(media, self.config), duration)

    def test_far_from_end_does_not_trigger(self) -> None:
        media = MediaInfo(handle="m1", ready_state=4, duration=10.0, current_time=9.0)
        self.assertFalse(is_near_end(media, self.config))

    def test_media_without_future_data_does_not_trigger(self) -> None:
        media = MediaInfo(handle="m1", ready_state=2, duration=10.0, current_time=9.6)
        self.assertFalse(is_near_end(media, self.config))
        media = MediaInfo(handle="m1", ready_state=3, duration=10.0, current_time=9.6)
        self.assertTrue(is_near_end(media, self.config))


class SelectActiveMediaTests(unittest.TestCase):
    def test_first_visible_playing_loaded_candidate_wins(self) -> None:
        hidden = MediaInfo(handle="hidden", visible=False, paused=False, ready_state=4, duration=10.0)
        paused = MediaInfo(handle="paused", visible=True, paused=True, ready_state=4, duration=10.0)
        loading = MediaInfo(handle="loading", visible=True, paused=False, ready_state=1, duration=10.0)
        selected = select_active_media([hidden, paused, loading, playing("a"), playing("b")])
        assert selected is not None
        self.assertEqual(selected.handle, "a")

    def test_no_candidate_selected(self) -> None:
        self.assertIsNone(select_active_media([]))


class MediaWatcherTests(unittest.TestCase):
    def setUp(self) -> None:
        self.timers, self.clock, _ = make_timers()
        self.store = StateStore()
        self.store.mark_initialized(True)
        self.dom = FakeDom()
        self.requests: list[str] = []
        self.watcher = MediaWatcher(
            self.store,
            self.timers,
            EngineConfig(),
            self.dom,
            request_advance=self.requests.append,
            in_scope=lambda: True,
        )

    def test_tick_hands_off_to_new_media_and_attaches_listeners(self) -> None:
        self.dom.media = [playing("a")]
        self.watcher.tick()
        self.assertEqual(self.store.active_handle, "a")
        assert self.store.active_media is not None
        self.assertEqual(sorted(self.store.active_media.listeners.events()), ["canplay", "ended", "timeupdate"])
        self.assertEqual(self.dom.handles_with_listeners(), {"a"})

    def test_handoff_detaches_old_listeners_before_attaching_new(self) -> None:
        self.dom.media = [playing("a")]
        self.watcher.tick()
        self.dom.media = [playing("b")]
        self.dom.listener_log.clear()
        self.watcher.tick()

        actions = [entry[0] for entry in self.dom.listener_log]
        self.assertEqual(actions, ["remove"] * 3 + ["add"] * 3)
        self.assertTrue(all(handle == "a" for op, handle, _ in self.dom.listener_log if op == "remove"))
        self.assertEqual(self.dom.handles_with_listeners(), {"b"})
        self.assertEqual(len(self.dom.listeners), 3)

    def test_same_media_is_not_registered_twice(self) -> None:
        self.dom.media = [playing("a")]
        self.watcher.tick()
        self.watcher.tick()
        self.assertEqual(len(self.dom.listeners), 3)

    def test_tick_is_skipped_while_uninitialized_or_processing(self) -> None:
        self.dom.media = [playing("a")]
        self.store.mark_initialized(False)
        self.watcher.tick()
        self.assertIsNone(self.store.active_handle)

        self.store.mark_initialized(True)
        self.store.begin_processing(0.0)
        self.watcher.tick()
        self.assertIsNone(self.store.active_handle)

    def test_ended_requests_advance_only_when_enabled(self) -> None:
        self.dom.media = [playing("a")]
        self.watcher.tick()
        self.store.set_enabled(False)
        self.dom.fire("a", "ended")
        self.assertEqual(self.requests, [])
        self.store.set_enabled(True)
        self.dom.fire("a", "ended")
        self.assertEqual(self.requests, ["ended"])

    def test_progress_events_are_debounced_before_end_check(self) -> None:
        self.dom.media = [playing("a")]
        self.watcher.tick()
        for current in (9.3, 9.45, 9.6):
            self.dom.fire("a", "timeupdate", {"duration": 10.0, "currentTime": current, "readyState": 4})
            advance(self.timers, self.clock, 100)
        self.assertEqual(self.requests, [])
        advance(self.timers, self.clock, 150)
        self.assertEqual(self.requests, ["near-end"])

    def test_stalled_progress_does_not_advance(self) -> None:
        self.dom.media = [playing("a")]
        self.watcher.tick()
        self.dom.fire("a", "timeupdate", {"duration": 10.0, "currentTime": 9.6, "readyState": 2})
        advance(self.timers, self.clock, 300)
        self.assertEqual(self.requests, [])

    def test_short_clip_progress_does_not_advance(self) -> None:
        self.dom.media = [playing("a", duration=0.8, current_time=0.1)]
        self.watcher.tick()
        self.dom.fire("a", "timeupdate", {"duration": 0.8, "currentTime": 0.7, "readyState": 4})
        advance(self.timers, self.clock, 300)
        self.assertEqual(self.requests, [])

    def test_stale_progress_from_replaced_media_is_ignored(self) -> None:
        self.dom.media = [playing("a")]
        self.watcher.tick()
        callback = next(cb for handle, event, cb in self.dom.listeners.values() if event == "timeupdate")
        self.dom.media = [playing("b")]
        self.watcher.tick()
        callback({"duration": 10.0, "currentTime": 9.8, "readyState": 4})
        advance(self.timers, self.clock, 300)
        self.assertEqual(self.requests, [])

    def test_stop_cancels_monitoring_and_releases_media(self) -> None:
        self.dom.media = [playing("a")]
        self.watcher.start()
        advance(self.timers, self.clock, 1000)
        self.assertEqual(self.store.active_handle, "a")
        self.watcher.stop()
        self.assertFalse(self.watcher.running)
        self.assertIsNone(self.store.active_media)
        self.assertEqual(self.dom.listeners, {})
        self.dom.media = [playing("b")]
        advance(self.timers, self.clock, 5000)
        self.assertIsNone(self.store.active_handle)

    def test_readiness_needs_container_and_media(self) -> None:
        self.assertFalse(self.watcher.is_content_ready())
        self.dom.media = [playing("a")]
        self.assertTrue(self.watcher.is_content_ready())
        self.dom.container = False
        self.assertFalse(self.watcher.is_content_ready())


if __name__ == "__main__":
    unittest.main()
