import unittest

from autoscroll.models import LocationSnapshot, MediaInfo
from autoscroll.web_common import (
    is_monitored_location,
    is_valid_url,
    location_from_url,
    normalize_url,
    safe_page_title,
)


class MonitoredLocationTests(unittest.TestCase):
    def test_shorts_paths_are_monitored(self) -> None:
        self.assertTrue(is_monitored_location(location_from_url("https://www.youtube.com/shorts/abc123")))
        self.assertTrue(is_monitored_location(LocationSnapshot(url="", path="/shorts/xyz")))

    def test_other_pages_are_not_monitored(self) -> None:
        self.assertFalse(is_monitored_location(location_from_url("https://www.youtube.com/watch?v=abc")))
        self.assertFalse(is_monitored_location(location_from_url("https://www.youtube.com/feed/subscriptions")))
        self.assertFalse(is_monitored_location(None))

    def test_location_equality_is_by_value(self) -> None:
        self.assertEqual(
            location_from_url("https://www.youtube.com/shorts/a"),
            LocationSnapshot(url="https://www.youtube.com/shorts/a", path="/shorts/a"),
        )


class UrlHelperTests(unittest.TestCase):
    def test_normalize_strips_trailing_punctuation(self) -> None:
        self.assertEqual(normalize_url(" https://www.youtube.com/shorts/a). "), "https://www.youtube.com/shorts/a")

    def test_only_http_urls_are_valid(self) -> None:
        self.assertTrue(is_valid_url("http://127.0.0.1:9222"))
        self.assertFalse(is_valid_url("youtube.com/shorts"))
        self.assertFalse(is_valid_url("file:///tmp/x.html"))

    def test_safe_page_title_swallows_errors(self) -> None:
        class _Page:
            def title(self) -> str:
                raise RuntimeError("closed")

        self.assertEqual(safe_page_title(_Page()), "")
        self.assertEqual(safe_page_title(object()), "")


class MediaInfoTests(unittest.TestCase):
    def test_from_page_payload(self) -> None:
        media = MediaInfo.from_dict(
            {"handle": "m1", "visible": True, "paused": False, "readyState": 3, "duration": 12.5, "currentTime": 12.25}
        )
        self.assertEqual(media.ready_state, 3)
        self.assertAlmostEqual(media.remaining, 0.25)

    def test_null_duration_is_unknown(self) -> None:
        media = MediaInfo.from_dict({"handle": "m1", "duration": None, "currentTime": None})
        self.assertNotEqual(media.duration, media.duration)
        self.assertEqual(media.current_time, 0.0)

    def test_missing_handle_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            MediaInfo.from_dict({"duration": 3.0})


if __name__ == "__main__":
    unittest.main()
