"""Core data contracts: tab sessions, activity snapshots, and classification output."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator


class Severity(StrEnum):
    low = "low"
    medium = "medium"
    high = "high"


class Sensitivity(StrEnum):
    """How readily heuristics classify activity as distracting.

    ``high`` lowers every pattern threshold, ``low`` raises them.
    See :func:`focusfuel.infer.patterns.scaled_thresholds`.
    """

    low = "low"
    medium = "medium"
    high = "high"


class ClassificationSource(StrEnum):
    """Which pipeline stage produced a :class:`ClassificationResult`."""

    list = "list"
    pattern = "pattern"
    ai = "ai"


class ActivityKind(StrEnum):
    """Page-level interaction kinds reported by content scripts."""

    scroll = "scroll"
    mousemove = "mousemove"
    click = "click"
    keydown = "keydown"


class EventType(StrEnum):
    distraction = "distraction"
    productive = "productive"


class DomainCategory(StrEnum):
    social = "social"
    entertainment = "entertainment"
    news = "news"
    shopping = "shopping"
    other = "other"


def clamp_confidence(value: float) -> float:
    """Clamp *value* into the closed range ``[0, 100]``."""
    return max(0.0, min(100.0, float(value)))


class ActivityCounters(BaseModel):
    """Per-tab interaction counters.

    Counters only ever grow between session creation and flush; the
    registry never decrements or resets them in place (a new navigation
    replaces the whole :class:`TabSession`).
    """

    tab_switches: int = Field(default=0, ge=0)
    scroll_events: int = Field(default=0, ge=0)
    mouse_movements: int = Field(default=0, ge=0)
    clicks: int = Field(default=0, ge=0)
    keyboard_events: int = Field(default=0, ge=0)


class TabSession(BaseModel):
    """Mutable tracking state for one open browser tab.

    Owned exclusively by :class:`~focusfuel.tracking.registry.TabActivityRegistry`.
    ``session_id`` changes on every navigation so results computed for a
    previous page can be told apart from results for the current one.
    """

    tab_id: int
    session_id: str
    url: str
    domain: str = Field(description="Normalized domain (lower-case, no 'www.').")
    title: str = ""
    start_time: datetime
    last_active_time: datetime
    counters: ActivityCounters = Field(default_factory=ActivityCounters)


class ActivitySnapshot(BaseModel, frozen=True):
    """Immutable summary of a tab's counters at one evaluation instant.

    ``hour_of_day`` is captured as data; pattern evaluation never
    reads the system clock.
    """

    tab_id: int | None = Field(default=None, description="Originating tab, if any.")
    session_id: str | None = Field(default=None, description="Originating session, if any.")
    url: str
    title: str = ""
    time_spent_seconds: int = Field(ge=0, description="Whole seconds since the session started.")
    tab_switches: int = Field(default=0, ge=0)
    scroll_events: int = Field(default=0, ge=0)
    mouse_movements: int = Field(default=0, ge=0)
    clicks: int = Field(default=0, ge=0)
    keyboard_events: int = Field(default=0, ge=0)
    hour_of_day: int = Field(ge=0, le=23)
    captured_at: datetime | None = None


class DistractionPattern(BaseModel, frozen=True):
    """A named heuristic that fired for a snapshot."""

    pattern_id: str
    confidence: float = Field(ge=0.0, le=100.0)
    severity: Severity
    description: str


class ClassificationResult(BaseModel, frozen=True):
    """Verdict for one snapshot.  ``confidence`` is clamped to ``[0, 100]``."""

    is_distracting: bool
    confidence: float = Field(ge=0.0, le=100.0)
    reason: str
    suggestion: str | None = None
    matched_pattern: DistractionPattern | None = None
    source: ClassificationSource

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp(cls, v: float) -> float:
        return clamp_confidence(v)


class DistractionEvent(BaseModel, frozen=True):
    """Output record pushed to the persistence / analytics sink."""

    id: str
    timestamp: datetime
    url: str
    duration_seconds: int = Field(ge=0)
    type: EventType
    confidence: float = Field(ge=0.0, le=100.0)
    category: DomainCategory = DomainCategory.other
    blocked: bool = False
    source: ClassificationSource | None = None
    reason: str | None = None
    tab_id: int | None = None
