"""Engine timing configuration loaded from AUTOSCROLL_* environment variables."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from typing import Any, Mapping

from autoscroll import constants


@dataclass(frozen=True)
class EngineConfig:
    monitoring_interval_ms: int = constants.MONITORING_INTERVAL_MS
    end_threshold_seconds: float = constants.END_THRESHOLD_SECONDS
    min_duration_seconds: float = constants.MIN_DURATION_SECONDS
    cooldown_ms: int = constants.COOLDOWN_MS
    readiness_timeout_ms: int = constants.READINESS_TIMEOUT_MS
    readiness_poll_ms: int = constants.READINESS_POLL_MS
    max_retries: int = constants.MAX_RETRIES
    retry_delay_ms: int = constants.RETRY_DELAY_MS
    debounce_ms: int = constants.DEBOUNCE_MS
    navigation_delay_ms: int = constants.NAVIGATION_DELAY_MS
    progress_debounce_ms: int = constants.PROGRESS_DEBOUNCE_MS
    poll_interval_ms: int = constants.POLL_INTERVAL_MS

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = str(env.get(name, "") or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_ms(env: Mapping[str, str], name: str, default: int, *, low: int, high: int) -> int:
    value = int(_env_float(env, name, float(default)))
    return max(low, min(high, value))


def load_engine_config(env: Mapping[str, str] | None = None) -> EngineConfig:
    env = os.environ if env is None else env
    end_threshold = _env_float(env, "AUTOSCROLL_END_THRESHOLD_SECONDS", constants.END_THRESHOLD_SECONDS)
    min_duration = _env_float(env, "AUTOSCROLL_MIN_DURATION_SECONDS", constants.MIN_DURATION_SECONDS)
    return EngineConfig(
        monitoring_interval_ms=_env_ms(
            env, "AUTOSCROLL_MONITORING_INTERVAL_MS", constants.MONITORING_INTERVAL_MS, low=100, high=60000
        ),
        end_threshold_seconds=max(0.0, min(10.0, end_threshold)),
        min_duration_seconds=max(0.0, min(600.0, min_duration)),
        cooldown_ms=_env_ms(env, "AUTOSCROLL_COOLDOWN_MS", constants.COOLDOWN_MS, low=0, high=60000),
        readiness_timeout_ms=_env_ms(
            env, "AUTOSCROLL_READINESS_TIMEOUT_MS", constants.READINESS_TIMEOUT_MS, low=500, high=120000
        ),
        readiness_poll_ms=_env_ms(
            env, "AUTOSCROLL_READINESS_POLL_MS", constants.READINESS_POLL_MS, low=50, high=10000
        ),
        max_retries=_env_ms(env, "AUTOSCROLL_MAX_RETRIES", constants.MAX_RETRIES, low=1, high=50),
        retry_delay_ms=_env_ms(env, "AUTOSCROLL_RETRY_DELAY_MS", constants.RETRY_DELAY_MS, low=0, high=60000),
        debounce_ms=_env_ms(env, "AUTOSCROLL_DEBOUNCE_MS", constants.DEBOUNCE_MS, low=0, high=5000),
        navigation_delay_ms=_env_ms(
            env, "AUTOSCROLL_NAVIGATION_DELAY_MS", constants.NAVIGATION_DELAY_MS, low=0, high=60000
        ),
        progress_debounce_ms=_env_ms(
            env, "AUTOSCROLL_PROGRESS_DEBOUNCE_MS", constants.PROGRESS_DEBOUNCE_MS, low=0, high=5000
        ),
        poll_interval_ms=_env_ms(
            env, "AUTOSCROLL_POLL_INTERVAL_MS", constants.POLL_INTERVAL_MS, low=100, high=60000
        ),
    )
