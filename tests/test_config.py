import unittest

from autoscroll.config import EngineConfig, load_engine_config


class LoadEngineConfigTests(unittest.TestCase):
    def test_empty_environment_yields_defaults(self) -> None:
        self.assertEqual(load_engine_config({}), EngineConfig())

    def test_defaults_match_documented_timings(self) -> None:
        config = EngineConfig()
        self.assertEqual(config.monitoring_interval_ms, 1000)
        self.assertEqual(config.end_threshold_seconds, 0.5)
        self.assertEqual(config.min_duration_seconds, 1.0)
        self.assertEqual(config.cooldown_ms, 2000)
        self.assertEqual(config.readiness_timeout_ms, 10000)
        self.assertEqual(config.readiness_poll_ms, 500)
        self.assertEqual(config.max_retries, 5)
        self.assertEqual(config.retry_delay_ms, 1000)
        self.assertEqual(config.debounce_ms, 300)
        self.assertEqual(config.navigation_delay_ms, 1500)

    def test_overrides_are_read_and_clamped(self) -> None:
        config = load_engine_config(
            {
                "AUTOSCROLL_COOLDOWN_MS": "3500",
                "AUTOSCROLL_MAX_RETRIES": "500",
                "AUTOSCROLL_READINESS_POLL_MS": "1",
                "AUTOSCROLL_END_THRESHOLD_SECONDS": "0.75",
                "AUTOSCROLL_MIN_DURATION_SECONDS": "-4",
            }
        )
        self.assertEqual(config.cooldown_ms, 3500)
        self.assertEqual(config.max_retries, 50)
        self.assertEqual(config.readiness_poll_ms, 50)
        self.assertEqual(config.end_threshold_seconds, 0.75)
        self.assertEqual(config.min_duration_seconds, 0.0)

    def test_malformed_values_fall_back_to_defaults(self) -> None:
        config = load_engine_config({"AUTOSCROLL_DEBOUNCE_MS": "soon", "AUTOSCROLL_RETRY_DELAY_MS": "  "})
        self.assertEqual(config.debounce_ms, 300)
        self.assertEqual(config.retry_delay_ms, 1000)

    def test_to_dict_lists_every_field(self) -> None:
        payload = EngineConfig().to_dict()
        self.assertEqual(payload["poll_interval_ms"], 1000)
        self.assertEqual(payload["progress_debounce_ms"], 250)
        self.assertEqual(len(payload), 12)


if __name__ == "__main__":
    unittest.main()
