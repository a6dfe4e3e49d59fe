"""Rule-based behavioural pattern matcher (no ML, no I/O).

Evaluates an :class:`~focusfuel.core.types.ActivitySnapshot` against a
fixed set of named heuristics:

1. rapid_tab_switching -- many switches in a short dwell
2. excessive_scrolling -- heavy scrolling in a short dwell
3. short_attention_span -- very short dwell with several switches
4. passive_browsing -- lots of mouse movement with almost no clicks
5. late_night_browsing -- activity between 22:00 and 06:59

Every rule that fires is returned, ranked by confidence, so callers can
report secondary signals; only the top-ranked pattern drives
classification decisions.

Count and duration thresholds are scaled by sensitivity.  A
lower-bound threshold (``count > t``) becomes ``t * factor`` and an
upper-bound threshold (``seconds < t``, ``clicks < t``) becomes
``t / factor``, where the factor is 0.8 for ``high``, 1.0 for
``medium`` and 1.2 for ``low``.  Higher sensitivity therefore makes
every rule easier to trigger.  The late-night hour window is not scaled.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from focusfuel.core.defaults import (
    DEFAULT_SUGGESTION,
    EXCESSIVE_SCROLL_MAX_SECONDS,
    EXCESSIVE_SCROLL_MIN_EVENTS,
    LATE_NIGHT_END_HOUR,
    LATE_NIGHT_START_HOUR,
    PASSIVE_MAX_CLICKS,
    PASSIVE_MIN_MOUSE_MOVEMENTS,
    RAPID_SWITCH_MAX_SECONDS,
    RAPID_SWITCH_MIN_SWITCHES,
    SENSITIVITY_FACTORS,
    SHORT_ATTENTION_MAX_SECONDS,
    SHORT_ATTENTION_MIN_SWITCHES,
)
from focusfuel.core.types import (
    ActivitySnapshot,
    DistractionPattern,
    Sensitivity,
    Severity,
)

_SUGGESTIONS: Final[dict[str, str]] = {
    "rapid_tab_switching": "Try focusing on one task at a time",
    "excessive_scrolling": "Consider setting a time limit for browsing",
    "short_attention_span": "Take a short break to reset your focus",
    "passive_browsing": "Engage more actively with your work",
    "late_night_browsing": "Consider getting some rest",
}


@dataclass(frozen=True)
class PatternThresholds:
    """Effective thresholds after sensitivity scaling."""

    rapid_switch_min_switches: float
    rapid_switch_max_seconds: float
    excessive_scroll_min_events: float
    excessive_scroll_max_seconds: float
    short_attention_max_seconds: float
    short_attention_min_switches: float
    passive_min_mouse_movements: float
    passive_max_clicks: float


def sensitivity_factor(sensitivity: Sensitivity | str) -> float:
    """Return the scaling factor for *sensitivity*.

    Raises:
        ValueError: If *sensitivity* is not ``low``, ``medium`` or ``high``.
    """
    try:
        return SENSITIVITY_FACTORS[Sensitivity(sensitivity)]
    except ValueError:
        raise ValueError(
            f"Unknown sensitivity {sensitivity!r}; "
            f"must be one of {[s.value for s in Sensitivity]}"
        ) from None


def scaled_thresholds(sensitivity: Sensitivity | str = Sensitivity.medium) -> PatternThresholds:
    """Compute the thresholds in effect at *sensitivity*."""
    factor = sensitivity_factor(sensitivity)
    return PatternThresholds(
        rapid_switch_min_switches=RAPID_SWITCH_MIN_SWITCHES * factor,
        rapid_switch_max_seconds=RAPID_SWITCH_MAX_SECONDS / factor,
        excessive_scroll_min_events=EXCESSIVE_SCROLL_MIN_EVENTS * factor,
        excessive_scroll_max_seconds=EXCESSIVE_SCROLL_MAX_SECONDS / factor,
        short_attention_max_seconds=SHORT_ATTENTION_MAX_SECONDS / factor,
        short_attention_min_switches=SHORT_ATTENTION_MIN_SWITCHES * factor,
        passive_min_mouse_movements=PASSIVE_MIN_MOUSE_MOVEMENTS * factor,
        passive_max_clicks=PASSIVE_MAX_CLICKS / factor,
    )


def is_late_night(hour_of_day: int) -> bool:
    return hour_of_day >= LATE_NIGHT_START_HOUR or hour_of_day <= LATE_NIGHT_END_HOUR


def suggestion_for(pattern: DistractionPattern) -> str:
    """Human-readable nudge for *pattern*."""
    return _SUGGESTIONS.get(pattern.pattern_id, DEFAULT_SUGGESTION)


def evaluate_snapshot(
    snapshot: ActivitySnapshot,
    thresholds: PatternThresholds,
) -> list[DistractionPattern]:
    """Apply every rule to *snapshot* and return the ones that fired.

    The result is sorted by confidence, highest first.  Ties keep rule
    order (the sort is stable), so output is fully deterministic.

    Args:
        snapshot: Activity counters for one evaluation instant.
        thresholds: Effective thresholds from :func:`scaled_thresholds`.

    Returns:
        Matched patterns, possibly empty.
    """
    t = thresholds
    spent = snapshot.time_spent_seconds
    patterns: list[DistractionPattern] = []

    if snapshot.tab_switches > t.rapid_switch_min_switches and spent < t.rapid_switch_max_seconds:
        patterns.append(DistractionPattern(
            pattern_id="rapid_tab_switching",
            confidence=85,
            severity=Severity.high,
            description="Excessive tab switching indicates distraction",
        ))

    if snapshot.scroll_events > t.excessive_scroll_min_events and spent < t.excessive_scroll_max_seconds:
        patterns.append(DistractionPattern(
            pattern_id="excessive_scrolling",
            confidence=75,
            severity=Severity.medium,
            description="High scroll activity suggests mindless browsing",
        ))

    if spent < t.short_attention_max_seconds and snapshot.tab_switches > t.short_attention_min_switches:
        patterns.append(DistractionPattern(
            pattern_id="short_attention_span",
            confidence=80,
            severity=Severity.medium,
            description="Very short time spent with many switches",
        ))

    if snapshot.mouse_movements > t.passive_min_mouse_movements and snapshot.clicks < t.passive_max_clicks:
        patterns.append(DistractionPattern(
            pattern_id="passive_browsing",
            confidence=70,
            severity=Severity.medium,
            description="High mouse movement with few clicks suggests passive browsing",
        ))

    if is_late_night(snapshot.hour_of_day):
        patterns.append(DistractionPattern(
            pattern_id="late_night_browsing",
            confidence=60,
            severity=Severity.low,
            description="Browsing during late hours",
        ))

    return sorted(patterns, key=lambda p: p.confidence, reverse=True)


class PatternMatcher:
    """Stateless evaluator bound to a sensitivity level.

    Changing :attr:`sensitivity` recomputes the thresholds; evaluation
    itself has no side effects and never reads the clock.
    """

    def __init__(self, sensitivity: Sensitivity | str = Sensitivity.medium) -> None:
        self._sensitivity = Sensitivity(sensitivity)
        self._thresholds = scaled_thresholds(self._sensitivity)

    @property
    def sensitivity(self) -> Sensitivity:
        return self._sensitivity

    @sensitivity.setter
    def sensitivity(self, value: Sensitivity | str) -> None:
        self._thresholds = scaled_thresholds(value)
        self._sensitivity = Sensitivity(value)

    @property
    def thresholds(self) -> PatternThresholds:
        return self._thresholds

    def evaluate(self, snapshot: ActivitySnapshot) -> list[DistractionPattern]:
        return evaluate_snapshot(snapshot, self._thresholds)
