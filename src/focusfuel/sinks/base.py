"""Sink contract for classification output and the ``DistractionEvent`` builder."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Protocol, Sequence, runtime_checkable

from focusfuel.core.types import (
    ActivitySnapshot,
    ClassificationResult,
    DistractionEvent,
    EventType,
)
from focusfuel.features.domain import categorize_domain

logger = logging.getLogger(__name__)


@runtime_checkable
class ResultSink(Protocol):
    """Consumer of delivered classifications (store, notifier, ...)."""

    def deliver(self, event: DistractionEvent, result: ClassificationResult) -> None: ...


def build_distraction_event(
    snapshot: ActivitySnapshot,
    result: ClassificationResult,
    *,
    timestamp: datetime,
) -> DistractionEvent:
    """Build the persisted record for one classification."""
    return DistractionEvent(
        id=f"distraction_{uuid.uuid4().hex}",
        timestamp=timestamp,
        url=snapshot.url,
        duration_seconds=snapshot.time_spent_seconds,
        type=EventType.distraction if result.is_distracting else EventType.productive,
        confidence=result.confidence,
        category=categorize_domain(snapshot.url),
        blocked=False,
        source=result.source,
        reason=result.reason,
        tab_id=snapshot.tab_id,
    )


def deliver_to_sinks(
    sinks: Sequence[ResultSink],
    event: DistractionEvent,
    result: ClassificationResult,
) -> int:
    """Hand *event* to every sink; a failing sink never blocks the others.

    Returns:
        Number of sinks that accepted the event.
    """
    delivered = 0
    for sink in sinks:
        try:
            sink.deliver(event, result)
        except Exception:
            logger.warning("Sink %s failed to accept event %s", type(sink).__name__, event.id, exc_info=True)
            continue
        delivered += 1
    return delivered
