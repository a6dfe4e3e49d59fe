"""Daily distraction summary from stored :class:`DistractionEvent` records.

Events are loaded into a DataFrame, restricted to one calendar day, and
aggregated into a :class:`DailyDistractionReport`.
"""

from __future__ import annotations

from datetime import date as date_type
from typing import Sequence

import pandas as pd
from pydantic import BaseModel, Field

from focusfuel.core.types import DistractionEvent, EventType
from focusfuel.features.domain import normalize_domain

TOP_DOMAINS_LIMIT = 5


class DailyDistractionReport(BaseModel, frozen=True):
    """Aggregated view of one day of classification events.

    Minutes are derived from each event's ``duration_seconds``, i.e. the
    dwell time of the tab at the moment it was classified.
    """

    date: str = Field(description="Calendar date (YYYY-MM-DD) this report covers.")
    total_events: int = Field(ge=0)
    distraction_count: int = Field(ge=0)
    productive_count: int = Field(ge=0)
    distracted_minutes: float = Field(ge=0)
    productive_minutes: float = Field(ge=0)
    category_breakdown: dict[str, float] = Field(
        description="Category -> distracted minutes."
    )
    top_distracting_domains: dict[str, float] = Field(
        description=f"Up to {TOP_DOMAINS_LIMIT} domains -> distracted minutes, largest first."
    )
    mean_confidence: float = Field(ge=0, le=100)
    source_breakdown: dict[str, int] = Field(
        description="Pipeline stage -> number of events it decided."
    )


def events_to_frame(events: Sequence[DistractionEvent]) -> pd.DataFrame:
    rows = [
        {
            "timestamp": e.timestamp,
            "day": e.timestamp.date().isoformat(),
            "domain": normalize_domain(e.url),
            "minutes": e.duration_seconds / 60.0,
            "type": str(e.type),
            "category": str(e.category),
            "confidence": e.confidence,
            "source": str(e.source) if e.source is not None else "unknown",
        }
        for e in events
    ]
    return pd.DataFrame(rows)


def build_daily_report(
    events: Sequence[DistractionEvent],
    date: date_type | str | None = None,
) -> DailyDistractionReport:
    """Aggregate *events* for one day into a :class:`DailyDistractionReport`.

    Args:
        events: Stored events, in any order and possibly spanning days.
        date: Day to summarise.  Defaults to the day of the earliest event.

    Raises:
        ValueError: If there are no events for the selected day.
    """
    if not events:
        raise ValueError("Cannot build a daily report from zero events")

    df = events_to_frame(events)
    if date is None:
        day = df.sort_values("timestamp")["day"].iloc[0]
    else:
        day = date if isinstance(date, str) else date.isoformat()
    df = df[df["day"] == day]
    if df.empty:
        raise ValueError(f"No events recorded on {day}")

    distracted = df[df["type"] == EventType.distraction.value]
    productive = df[df["type"] == EventType.productive.value]

    category_breakdown = (
        distracted.groupby("category")["minutes"].sum().round(2).to_dict()
    )
    top_domains = (
        distracted.groupby("domain")["minutes"]
        .sum()
        .sort_values(ascending=False, kind="stable")
        .head(TOP_DOMAINS_LIMIT)
        .round(2)
    )
    source_breakdown = df.groupby("source").size().to_dict()

    return DailyDistractionReport(
        date=day,
        total_events=len(df),
        distraction_count=len(distracted),
        productive_count=len(productive),
        distracted_minutes=round(float(distracted["minutes"].sum()), 2),
        productive_minutes=round(float(productive["minutes"].sum()), 2),
        category_breakdown={str(k): float(v) for k, v in category_breakdown.items()},
        top_distracting_domains={str(k): float(v) for k, v in top_domains.items()},
        mean_confidence=round(float(df["confidence"].mean()), 2),
        source_breakdown={str(k): int(v) for k, v in source_breakdown.items()},
    )
