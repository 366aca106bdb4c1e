"""Shared constants for the auto-scroll engine and its page adapter."""

# Engine timing defaults (milliseconds unless the name says seconds).
MONITORING_INTERVAL_MS = 1000
END_THRESHOLD_SECONDS = 0.5
MIN_DURATION_SECONDS = 1.0
COOLDOWN_MS = 2000
READINESS_TIMEOUT_MS = 10000
READINESS_POLL_MS = 500
MAX_RETRIES = 5
RETRY_DELAY_MS = 1000
DEBOUNCE_MS = 300
NAVIGATION_DELAY_MS = 1500
PROGRESS_DEBOUNCE_MS = 250
POLL_INTERVAL_MS = 1000

# HTMLMediaElement.readyState values.
HAVE_CURRENT_DATA = 2
HAVE_FUTURE_DATA = 3

MONITORED_PATH_MARKER = "/shorts/"

CONTENT_CONTAINER_SELECTOR = "ytd-shorts, ytd-reel-video-renderer, #shorts-container, [is-shorts]"
MEDIA_SELECTOR = "video"
MEDIA_HANDLE_ATTR = "data-autoscroll-id"

BINDING_NAME = "__autoscrollEmit"
MEDIA_CHANNEL_PREFIX = "media:"

ADVANCE_KEY = "ArrowDown"

PLATFORM_FIRE_EVENTS = ("yt-navigate-finish", "yt-page-data-updated")
PLATFORM_LOG_EVENTS = ("yt-navigate-start",)

PLATFORM_EVENT_TARGETS = {
    "yt-navigate-start": "document",
    "yt-navigate-finish": "document",
    "yt-page-data-updated": "window",
}

LOG_PREFIX = "[autoscroll]"
