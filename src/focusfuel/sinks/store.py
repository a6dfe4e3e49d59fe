"""Append-only JSONL persistence for :class:`~focusfuel.core.types.DistractionEvent` records."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from focusfuel.core.types import ClassificationResult, DistractionEvent

logger = logging.getLogger(__name__)


class JsonlEventStore:
    """One JSON object per line, appended as events arrive.

    Implements :class:`~focusfuel.sinks.base.ResultSink`.  Unreadable
    lines are skipped with a warning on read so a single torn write
    cannot hide the rest of the log.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def append(self, event: DistractionEvent) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "a", encoding="utf-8") as f:
            f.write(event.model_dump_json() + "\n")

    def deliver(self, event: DistractionEvent, result: ClassificationResult) -> None:
        self.append(event)

    def read_all(self) -> list[DistractionEvent]:
        if not self._path.exists():
            return []
        events: list[DistractionEvent] = []
        with open(self._path, encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    events.append(DistractionEvent.model_validate_json(line))
                except ValidationError:
                    logger.warning("Skipping malformed event at %s:%d", self._path, lineno)
        return events

    def read_between(self, start: datetime, end: datetime) -> list[DistractionEvent]:
        """Events with ``start <= timestamp < end``."""
        return [e for e in self.read_all() if start <= e.timestamp < end]
