"""Process wiring: build the registry/pipeline/sinks from config and tick the sweep.

Typical flow::

    runtime = build_runtime(load_config(path))
    runtime.ticker.start()          # inside a running event loop
    ...
    await runtime.shutdown()
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable

from focusfuel.core.config import FocusConfig
from focusfuel.core.defaults import DEFAULT_SWEEP_INTERVAL_SECONDS
from focusfuel.features.domain import DomainLists
from focusfuel.infer.ai import AIClassifier, create_ai_classifier
from focusfuel.infer.patterns import PatternMatcher
from focusfuel.infer.pipeline import ClassificationPipeline
from focusfuel.sinks.notify import NotificationDispatcher, Presenter, plyer_presenter
from focusfuel.sinks.store import JsonlEventStore
from focusfuel.tracking.registry import TabActivityRegistry

logger = logging.getLogger(__name__)


class SweepTicker:
    """Calls :meth:`TabActivityRegistry.periodic_sweep` on a fixed interval.

    The sweep only schedules classifications, so a slow AI call never
    delays the next tick.
    """

    def __init__(
        self,
        registry: TabActivityRegistry,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self._registry = registry
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self._registry.periodic_sweep()
            except Exception:
                logger.warning("Periodic sweep failed, will retry next tick", exc_info=True)
            self.ticks += 1

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Sweep ticker started (every %ss)", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None


@dataclass
class Runtime:
    config: FocusConfig
    lists: DomainLists
    pipeline: ClassificationPipeline
    registry: TabActivityRegistry
    store: JsonlEventStore
    notifier: NotificationDispatcher
    ticker: SweepTicker

    async def shutdown(self) -> None:
        """Stop ticking and let in-flight classifications land."""
        await self.ticker.stop()
        await self.registry.drain()


def build_runtime(
    config: FocusConfig,
    *,
    events_path: Path | None = None,
    ai: AIClassifier | None = None,
    use_ai: bool = True,
    presenter: Presenter = plyer_presenter,
    clock: Callable[[], datetime] = datetime.now,
) -> Runtime:
    """Instantiate one registry and its collaborators from *config*.

    Args:
        config: Validated detector configuration.
        events_path: Overrides ``config.events_path``.
        ai: Explicit AI stage; when ``None`` one is built from
            ``config.ai`` (and may itself be ``None``).
        use_ai: ``False`` forces heuristics-only classification.
        presenter: Notification presenter (tests pass a recorder).
        clock: Shared clock for the registry and notifier.
    """
    lists = config.domain_lists()
    if use_ai and ai is None:
        ai = create_ai_classifier(config.ai)
    pipeline = ClassificationPipeline(
        lists,
        matcher=PatternMatcher(config.sensitivity),
        ai=ai if use_ai else None,
        ai_timeout_seconds=config.ai.timeout_seconds,
    )
    store = JsonlEventStore(events_path or Path(config.events_path))
    notifier = NotificationDispatcher(config.notifications, presenter=presenter, clock=clock)
    registry = TabActivityRegistry(pipeline, sinks=[store, notifier], clock=clock)
    ticker = SweepTicker(registry, config.sweep_interval_seconds)
    return Runtime(
        config=config,
        lists=lists,
        pipeline=pipeline,
        registry=registry,
        store=store,
        notifier=notifier,
        ticker=ticker,
    )
