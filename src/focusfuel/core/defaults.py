"""Centralised default constants for focusfuel.

Every project-wide magic number / string lives here.
Import these instead of hard-coding values in function signatures or CLI options.
"""

from __future__ import annotations

from typing import Final

# ── Session tracking ──
MIN_DWELL_SECONDS: Final[float] = 5.0
IDLE_CUTOFF_SECONDS: Final[float] = 300.0
DEFAULT_SWEEP_INTERVAL_SECONDS: Final[int] = 60

# ── Pattern thresholds (medium sensitivity) ──
RAPID_SWITCH_MIN_SWITCHES: Final[int] = 10
RAPID_SWITCH_MAX_SECONDS: Final[float] = 300.0
EXCESSIVE_SCROLL_MIN_EVENTS: Final[int] = 50
EXCESSIVE_SCROLL_MAX_SECONDS: Final[float] = 600.0
SHORT_ATTENTION_MAX_SECONDS: Final[float] = 60.0
SHORT_ATTENTION_MIN_SWITCHES: Final[int] = 5
PASSIVE_MIN_MOUSE_MOVEMENTS: Final[int] = 100
PASSIVE_MAX_CLICKS: Final[int] = 5
LATE_NIGHT_START_HOUR: Final[int] = 22
LATE_NIGHT_END_HOUR: Final[int] = 6

# ── Sensitivity scaling ──
SENSITIVITY_FACTORS: Final[dict[str, float]] = {
    "high": 0.8,
    "medium": 1.0,
    "low": 1.2,
}
DEFAULT_SENSITIVITY: Final[str] = "medium"

# ── Classification confidences ──
BLACKLIST_CONFIDENCE: Final[float] = 95.0
WHITELIST_CONFIDENCE: Final[float] = 90.0
PATTERN_SHORT_CIRCUIT_CONFIDENCE: Final[float] = 80.0
UNDETERMINED_CONFIDENCE: Final[float] = 50.0
UNDETERMINED_REASON: Final[str] = "undetermined"
DEFAULT_SUGGESTION: Final[str] = "Consider taking a break to refocus"

# ── AI stage ──
DEFAULT_AI_MODEL: Final[str] = "gpt-4o-mini"
DEFAULT_AI_TIMEOUT_SECONDS: Final[float] = 10.0
DEFAULT_AI_MAX_TOKENS: Final[int] = 300
DEFAULT_AI_TEMPERATURE: Final[float] = 0.2
DEFAULT_AI_API_KEY_ENV: Final[str] = "OPENAI_API_KEY"

# ── Notifications ──
NOTIFY_CONFIDENCE_THRESHOLD: Final[float] = 70.0
DEFAULT_NOTIFY_COOLDOWN_SECONDS: Final[float] = 300.0
NOTIFICATION_TITLE: Final[str] = "FocusFuel - Distraction Detected"
NOTIFICATION_FALLBACK_MESSAGE: Final[str] = "Consider taking a break to refocus."
NOTIFICATION_ACTIONS: Final[tuple[str, str]] = ("Take Break", "Continue")

# ── Paths ──
DEFAULT_CONFIG_PATH: Final[str] = "config/focusfuel.yaml"
DEFAULT_EVENTS_PATH: Final[str] = "data/events/distraction_events.jsonl"
DEFAULT_OUT_DIR: Final[str] = "artifacts"

# ── Server ──
DEFAULT_HOST: Final[str] = "127.0.0.1"
DEFAULT_PORT: Final[int] = 8741

# ── Default domain lists ──
DEFAULT_BLACKLIST: Final[tuple[str, ...]] = (
    "facebook.com",
    "twitter.com",
    "instagram.com",
    "tiktok.com",
    "youtube.com",
    "reddit.com",
    "netflix.com",
    "hulu.com",
    "amazon.com",
    "ebay.com",
)
DEFAULT_WHITELIST: Final[tuple[str, ...]] = (
    "github.com",
    "stackoverflow.com",
    "docs.google.com",
    "notion.so",
    "figma.com",
    "slack.com",
    "zoom.us",
    "teams.microsoft.com",
    "calendar.google.com",
    "drive.google.com",
)
