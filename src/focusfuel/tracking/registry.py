"""Per-tab session registry: event ingestion, dwell gating, and periodic sweeps.

One :class:`TabActivityRegistry` is created per background process.  It
owns every :class:`~focusfuel.core.types.TabSession` and the id of the
current tab; nothing else mutates them.

Per-tab lifecycle::

    Inactive --navigation--> Active --events / switches--> Active --close--> Flushed

There is no paused state: background tabs stay Active until closed.

All mutating handlers are synchronous and run to completion, so within
one asyncio loop they never interleave.  Classifications run as tasks;
while one waits on the AI stage the registry keeps ingesting events,
including a close of the same tab.  When a classification finishes the
registry checks that the originating session (same tab, same
``session_id``) is still open before handing the result to the sinks,
and silently drops it otherwise.  The close-time flush skips the AI
stage and is delivered synchronously inside the close handler, so no
result for a closed tab ever reaches the sinks afterwards.
"""

from __future__ import annotations

import asyncio
import logging
import math
import uuid
from datetime import datetime, timedelta
from typing import Callable, Sequence

from pydantic import BaseModel

from focusfuel.core.defaults import IDLE_CUTOFF_SECONDS, MIN_DWELL_SECONDS
from focusfuel.core.types import (
    ActivityCounters,
    ActivityKind,
    ActivitySnapshot,
    ClassificationResult,
    TabSession,
)
from focusfuel.features.domain import normalize_domain
from focusfuel.infer.pipeline import ClassificationPipeline
from focusfuel.sinks.base import ResultSink, build_distraction_event, deliver_to_sinks

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

_COUNTER_FOR_KIND: dict[ActivityKind, str] = {
    ActivityKind.scroll: "scroll_events",
    ActivityKind.mousemove: "mouse_movements",
    ActivityKind.click: "clicks",
    ActivityKind.keydown: "keyboard_events",
}


class TabStats(BaseModel, frozen=True):
    """Read-only view of a tab's counters, for stats requests."""

    tab_id: int
    domain: str
    time_spent_seconds: int
    counters: ActivityCounters
    is_current: bool


class TabActivityRegistry:
    """Owns per-tab tracking state and feeds snapshots to the pipeline.

    Args:
        pipeline: Classifier used for sweeps, close-time flushes and
            on-demand requests.
        sinks: Receivers of delivered classifications.
        clock: Returns "now" as a naive local datetime.  Local time is
            used so ``hour_of_day`` matches the user's day.
        min_dwell_seconds: Sessions younger than this never yield a
            snapshot.
        idle_cutoff_seconds: Sessions idle this long are skipped by
            :meth:`periodic_sweep`.
    """

    def __init__(
        self,
        pipeline: ClassificationPipeline,
        *,
        sinks: Sequence[ResultSink] = (),
        clock: Clock = datetime.now,
        min_dwell_seconds: float = MIN_DWELL_SECONDS,
        idle_cutoff_seconds: float = IDLE_CUTOFF_SECONDS,
    ) -> None:
        self._pipeline = pipeline
        self._sinks: list[ResultSink] = list(sinks)
        self._clock = clock
        self._min_dwell = timedelta(seconds=min_dwell_seconds)
        self._idle_cutoff = timedelta(seconds=idle_cutoff_seconds)
        self._sessions: dict[int, TabSession] = {}
        self._current_tab_id: int | None = None
        self._tasks: set[asyncio.Task[ClassificationResult | None]] = set()

    # -- introspection ---------------------------------------------------------

    @property
    def pipeline(self) -> ClassificationPipeline:
        return self._pipeline

    @property
    def current_tab_id(self) -> int | None:
        return self._current_tab_id

    @property
    def pending(self) -> int:
        """Number of classifications still in flight."""
        return len(self._tasks)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, tab_id: object) -> bool:
        return tab_id in self._sessions

    def session(self, tab_id: int) -> TabSession | None:
        return self._sessions.get(tab_id)

    def sessions(self) -> list[TabSession]:
        return list(self._sessions.values())

    def add_sink(self, sink: ResultSink) -> None:
        self._sinks.append(sink)

    # -- inbound events --------------------------------------------------------

    def on_navigation_complete(self, tab_id: int, url: str, title: str = "") -> TabSession:
        """Start a fresh session for *tab_id*; replaces any existing one."""
        now = self._clock()
        session = TabSession(
            tab_id=tab_id,
            session_id=uuid.uuid4().hex,
            url=url,
            domain=normalize_domain(url),
            title=title,
            start_time=now,
            last_active_time=now,
        )
        self._sessions[tab_id] = session
        self._current_tab_id = tab_id
        logger.debug("Tab %d navigated (domain=%s)", tab_id, session.domain)
        return session

    def on_tab_activated(self, tab_id: int) -> None:
        """Make *tab_id* current and count a switch away from the previous tab."""
        previous = self._current_tab_id
        if previous == tab_id:
            return
        self._current_tab_id = tab_id
        if previous is None:
            return
        prev_session = self._sessions.get(previous)
        if prev_session is not None:
            prev_session.counters.tab_switches += 1
            prev_session.last_active_time = self._clock()

    def on_event(self, tab_id: int, kind: ActivityKind | str) -> bool:
        """Count one interaction.  Returns ``False`` if the tab is unknown."""
        session = self._sessions.get(tab_id)
        if session is None:
            return False
        field = _COUNTER_FOR_KIND[ActivityKind(kind)]
        setattr(session.counters, field, getattr(session.counters, field) + 1)
        session.last_active_time = self._clock()
        return True

    def on_tab_closed(self, tab_id: int) -> ClassificationResult | None:
        """Flush and remove *tab_id*.

        The final snapshot is classified by the list and pattern stages
        only and delivered before this returns, so nothing for the tab
        can reach the sinks after it is gone.  Any AI classification
        still in flight for the tab is discarded when it completes.

        Returns:
            The final classification, or ``None`` if the tab was unknown
            or its dwell was too short.
        """
        if self._current_tab_id == tab_id:
            self._current_tab_id = None
        final = self.snapshot(tab_id)
        session = self._sessions.pop(tab_id, None)
        if session is None:
            return None
        logger.debug("Tab %d closed", tab_id)
        if final is None:
            return None
        result = self._pipeline.classify_now(final)
        self._deliver(final, result)
        return result

    # -- snapshots -------------------------------------------------------------

    def snapshot(self, tab_id: int) -> ActivitySnapshot | None:
        """Freeze *tab_id*'s counters, or ``None`` if dwell < minimum."""
        session = self._sessions.get(tab_id)
        if session is None:
            return None
        now = self._clock()
        dwell = now - session.start_time
        if dwell < self._min_dwell:
            return None
        c = session.counters
        return ActivitySnapshot(
            tab_id=session.tab_id,
            session_id=session.session_id,
            url=session.url,
            title=session.title,
            time_spent_seconds=math.floor(dwell.total_seconds()),
            tab_switches=c.tab_switches,
            scroll_events=c.scroll_events,
            mouse_movements=c.mouse_movements,
            clicks=c.clicks,
            keyboard_events=c.keyboard_events,
            hour_of_day=now.hour,
            captured_at=now,
        )

    def stats(self, tab_id: int) -> TabStats | None:
        session = self._sessions.get(tab_id)
        if session is None:
            return None
        elapsed = self._clock() - session.start_time
        return TabStats(
            tab_id=tab_id,
            domain=session.domain,
            time_spent_seconds=max(0, math.floor(elapsed.total_seconds())),
            counters=session.counters.model_copy(),
            is_current=self._current_tab_id == tab_id,
        )

    def is_live(self, snapshot: ActivitySnapshot) -> bool:
        """True if the session *snapshot* came from is still open."""
        if snapshot.tab_id is None:
            return False
        session = self._sessions.get(snapshot.tab_id)
        return session is not None and session.session_id == snapshot.session_id

    # -- classification --------------------------------------------------------

    def periodic_sweep(self) -> list[asyncio.Task[ClassificationResult | None]]:
        """Submit a snapshot of every recently active tab.

        Tabs idle for longer than the cutoff are skipped but kept.
        Does not wait for the classifications it schedules.
        """
        now = self._clock()
        scheduled: list[asyncio.Task[ClassificationResult | None]] = []
        for tab_id, session in list(self._sessions.items()):
            if now - session.last_active_time >= self._idle_cutoff:
                continue
            snap = self.snapshot(tab_id)
            if snap is None:
                continue
            scheduled.append(self.submit(snap))
        if scheduled:
            logger.debug("Sweep scheduled %d classification(s)", len(scheduled))
        return scheduled

    def submit(self, snapshot: ActivitySnapshot) -> asyncio.Task[ClassificationResult | None]:
        """Classify *snapshot* in the background and deliver the result."""
        task = asyncio.get_running_loop().create_task(self._classify_and_deliver(snapshot))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _classify_and_deliver(self, snapshot: ActivitySnapshot) -> ClassificationResult | None:
        result = await self._pipeline.classify(snapshot)
        if not self.is_live(snapshot):
            logger.debug("Discarding stale result for closed tab %s", snapshot.tab_id)
            return None
        self._deliver(snapshot, result)
        return result

    def _deliver(self, snapshot: ActivitySnapshot, result: ClassificationResult) -> None:
        event = build_distraction_event(snapshot, result, timestamp=self._clock())
        logger.info(
            "Tab %s classified as %s (confidence=%.0f, source=%s)",
            snapshot.tab_id, event.type, result.confidence, result.source,
        )
        deliver_to_sinks(self._sinks, event, result)

    async def classify_tab(self, tab_id: int) -> ClassificationResult | None:
        """On-demand classification; nothing is sent to the sinks."""
        snap = self.snapshot(tab_id)
        if snap is None:
            return None
        return await self._pipeline.classify(snap)

    async def drain(self) -> None:
        """Wait for every in-flight classification to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
