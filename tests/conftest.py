"""Shared fixtures for the focusfuel test suite."""

from __future__ import annotations

import asyncio
import datetime as dt
from typing import Any, Callable

import pytest

from focusfuel.core.types import ActivitySnapshot
from focusfuel.infer.ai import AIVerdict


class MutableClock:
    """Callable clock the tests advance by hand."""

    def __init__(self, start: dt.datetime) -> None:
        self.now = start

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, seconds: float) -> dt.datetime:
        self.now += dt.timedelta(seconds=seconds)
        return self.now


class StaticAI:
    """AI stage stub that always answers with the same verdict."""

    def __init__(self, verdict: AIVerdict) -> None:
        self.verdict = verdict
        self.calls: list[ActivitySnapshot] = []

    async def classify(self, snapshot: ActivitySnapshot) -> AIVerdict:
        self.calls.append(snapshot)
        return self.verdict


class FailingAI:
    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc or RuntimeError("service unavailable")
        self.calls = 0

    async def classify(self, snapshot: ActivitySnapshot) -> AIVerdict:
        self.calls += 1
        raise self.exc


class SlowAI:
    """Never answers within any reasonable timeout."""

    async def classify(self, snapshot: ActivitySnapshot) -> AIVerdict:
        await asyncio.sleep(30)
        raise AssertionError("should have been cancelled")


class GatedAI:
    """Holds every call until :meth:`release` is called."""

    def __init__(self, verdict: AIVerdict) -> None:
        self.verdict = verdict
        self.started = 0
        self._gate: asyncio.Event | None = None

    def _event(self) -> asyncio.Event:
        if self._gate is None:
            self._gate = asyncio.Event()
        return self._gate

    async def classify(self, snapshot: ActivitySnapshot) -> AIVerdict:
        self.started += 1
        await self._event().wait()
        return self.verdict

    def release(self) -> None:
        self._event().set()


@pytest.fixture()
def start_time() -> dt.datetime:
    return dt.datetime(2025, 6, 15, 14, 0, 0)


@pytest.fixture()
def clock(start_time: dt.datetime) -> MutableClock:
    return MutableClock(start_time)


@pytest.fixture()
def make_snapshot() -> Callable[..., ActivitySnapshot]:
    """Factory for snapshots on a neutral, unlisted site at 2 pm."""

    def _make(**overrides: Any) -> ActivitySnapshot:
        data: dict[str, Any] = {
            "url": "https://example.org/article",
            "title": "An article",
            "time_spent_seconds": 120,
            "hour_of_day": 14,
        }
        data.update(overrides)
        return ActivitySnapshot(**data)

    return _make


@pytest.fixture()
def distracting_verdict() -> AIVerdict:
    return AIVerdict(
        is_distracting=True,
        confidence=72,
        reason="Looks like casual browsing",
        suggestion="Close the tab and return to your task",
    )
