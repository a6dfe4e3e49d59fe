"""Tests for the three-stage classification pipeline.

Covers: list short-circuit, strong-pattern short-circuit, AI merge,
fallbacks on AI failure/timeout, and the undetermined default.
"""

from __future__ import annotations

import asyncio

import pytest

from focusfuel.core.types import ClassificationSource, Sensitivity
from focusfuel.features.domain import DomainLists
from focusfuel.infer.ai import AIVerdict
from focusfuel.infer.pipeline import ClassificationPipeline, merge_ai_verdict

from conftest import FailingAI, SlowAI, StaticAI


def _pipeline(ai=None, **kwargs) -> ClassificationPipeline:
    lists = DomainLists(blacklist=["youtube.com"], whitelist=["github.com"])
    return ClassificationPipeline(lists, ai=ai, **kwargs)


class TestListStage:
    def test_blacklisted_site(self, make_snapshot, distracting_verdict) -> None:
        ai = StaticAI(distracting_verdict)
        result = asyncio.run(_pipeline(ai).classify(make_snapshot(url="https://www.youtube.com/watch?v=1")))
        assert result.is_distracting is True
        assert result.confidence == 95
        assert result.source == ClassificationSource.list
        assert result.reason == "Site is in distraction blacklist"
        assert ai.calls == []

    def test_whitelisted_site(self, make_snapshot) -> None:
        result = asyncio.run(_pipeline().classify(make_snapshot(url="https://github.com/org/repo")))
        assert result.is_distracting is False
        assert result.confidence == 90
        assert result.source == ClassificationSource.list

    def test_list_beats_patterns(self, make_snapshot) -> None:
        snap = make_snapshot(url="https://github.com/", tab_switches=20, time_spent_seconds=30)
        result = asyncio.run(_pipeline().classify(snap))
        assert result.source == ClassificationSource.list
        assert result.is_distracting is False

    def test_subdomain_not_covered_by_list(self, make_snapshot) -> None:
        result = asyncio.run(_pipeline().classify(make_snapshot(url="https://m.youtube.com/")))
        assert result.source != ClassificationSource.list

    def test_list_edits_apply_to_next_call(self, make_snapshot) -> None:
        pipeline = _pipeline()
        snap = make_snapshot(url="https://example.org/")
        assert asyncio.run(pipeline.classify(snap)).source == ClassificationSource.pattern

        pipeline.lists.add_to_blacklist("example.org")
        assert asyncio.run(pipeline.classify(snap)).source == ClassificationSource.list


class TestPatternStage:
    def test_strong_pattern_short_circuits(self, make_snapshot, distracting_verdict) -> None:
        ai = StaticAI(distracting_verdict)
        snap = make_snapshot(tab_switches=11, time_spent_seconds=100)
        result = asyncio.run(_pipeline(ai).classify(snap))
        assert result.source == ClassificationSource.pattern
        assert result.confidence == 85
        assert result.is_distracting is True
        assert result.matched_pattern is not None
        assert result.matched_pattern.pattern_id == "rapid_tab_switching"
        assert result.suggestion
        assert ai.calls == []

    def test_confidence_of_exactly_80_does_not_short_circuit(self, make_snapshot, distracting_verdict) -> None:
        ai = StaticAI(distracting_verdict)
        snap = make_snapshot(tab_switches=6, time_spent_seconds=30)
        result = asyncio.run(_pipeline(ai).classify(snap))
        assert len(ai.calls) == 1
        assert result.source == ClassificationSource.ai

    def test_weak_pattern_without_ai_is_returned(self, make_snapshot) -> None:
        snap = make_snapshot(mouse_movements=150, clicks=1)
        result = asyncio.run(_pipeline().classify(snap))
        assert result.source == ClassificationSource.pattern
        assert result.confidence == 70
        assert result.is_distracting is True

    def test_low_severity_pattern_is_not_distracting(self, make_snapshot) -> None:
        result = asyncio.run(_pipeline().classify(make_snapshot(hour_of_day=23)))
        assert result.matched_pattern is not None
        assert result.matched_pattern.pattern_id == "late_night_browsing"
        assert result.is_distracting is False
        assert result.confidence == 60

    def test_undetermined_when_nothing_fires(self, make_snapshot) -> None:
        result = asyncio.run(_pipeline().classify(make_snapshot()))
        assert result.is_distracting is False
        assert result.confidence == 50
        assert result.reason == "undetermined"
        assert result.source == ClassificationSource.pattern
        assert result.matched_pattern is None

    def test_sensitivity_passes_through_to_matcher(self, make_snapshot) -> None:
        pipeline = _pipeline()
        snap = make_snapshot(tab_switches=9, time_spent_seconds=350)
        assert asyncio.run(pipeline.classify(snap)).reason == "undetermined"

        pipeline.sensitivity = "high"
        assert pipeline.matcher.sensitivity == Sensitivity.high
        assert asyncio.run(pipeline.classify(snap)).matched_pattern is not None


class TestAIStage:
    def test_ai_verdict_merged_with_pattern(self, make_snapshot, distracting_verdict) -> None:
        ai = StaticAI(distracting_verdict)
        snap = make_snapshot(mouse_movements=150, clicks=1)
        result = asyncio.run(_pipeline(ai).classify(snap))

        assert len(ai.calls) == 1
        assert result.source == ClassificationSource.ai
        assert result.is_distracting is True
        assert result.confidence == 72
        assert result.reason == "Looks like casual browsing"
        assert result.matched_pattern is not None
        assert result.matched_pattern.pattern_id == "passive_browsing"
        assert result.suggestion is not None
        assert result.suggestion.startswith("Close the tab and return to your task.")
        assert result.suggestion.endswith("Engage more actively with your work.")

    def test_ai_verdict_without_pattern(self, make_snapshot) -> None:
        verdict = AIVerdict(is_distracting=False, confidence=88, reason="Documentation page")
        result = asyncio.run(_pipeline(StaticAI(verdict)).classify(make_snapshot()))
        assert result.source == ClassificationSource.ai
        assert result.matched_pattern is None
        assert result.suggestion is None
        assert result.confidence == 88

    def test_ai_failure_falls_back_to_pattern(self, make_snapshot, caplog) -> None:
        ai = FailingAI()
        snap = make_snapshot(mouse_movements=150, clicks=1)
        result = asyncio.run(_pipeline(ai).classify(snap))
        assert ai.calls == 1
        assert result.source == ClassificationSource.pattern
        assert result.confidence == 70
        assert "AI classification failed" in caplog.text

    def test_ai_failure_without_pattern_is_undetermined(self, make_snapshot) -> None:
        result = asyncio.run(_pipeline(FailingAI(ValueError("bad json"))).classify(make_snapshot()))
        assert result.reason == "undetermined"
        assert result.confidence == 50

    def test_ai_timeout_falls_back(self, make_snapshot) -> None:
        pipeline = _pipeline(SlowAI(), ai_timeout_seconds=0.05)
        result = asyncio.run(pipeline.classify(make_snapshot()))
        assert result.reason == "undetermined"

    def test_non_verdict_reply_falls_back(self, make_snapshot) -> None:
        class WrongTypeAI:
            async def classify(self, snapshot):
                return {"is_distracting": True}

        result = asyncio.run(_pipeline(WrongTypeAI()).classify(make_snapshot()))
        assert result.reason == "undetermined"

    def test_ai_enabled_flag(self, distracting_verdict) -> None:
        assert _pipeline().ai_enabled is False
        assert _pipeline(StaticAI(distracting_verdict)).ai_enabled is True

    def test_non_positive_timeout_rejected(self) -> None:
        with pytest.raises(ValueError, match="positive"):
            _pipeline(ai_timeout_seconds=0)


class TestClassifyNow:
    def test_weak_pattern_returned_without_ai(self, make_snapshot, distracting_verdict) -> None:
        ai = StaticAI(distracting_verdict)
        result = _pipeline(ai).classify_now(make_snapshot(mouse_movements=150, clicks=1))
        assert result.source == ClassificationSource.pattern
        assert result.confidence == 70
        assert ai.calls == []

    def test_list_hit_and_undetermined(self, make_snapshot) -> None:
        pipeline = _pipeline()
        assert pipeline.classify_now(make_snapshot(url="https://youtube.com/")).confidence == 95
        assert pipeline.classify_now(make_snapshot()).reason == "undetermined"


class TestMergeVerdict:
    def test_duplicate_suggestion_not_repeated(self, make_snapshot) -> None:
        from focusfuel.infer.patterns import PatternMatcher, suggestion_for

        pattern = PatternMatcher().evaluate(make_snapshot(mouse_movements=150, clicks=1))[0]
        verdict = AIVerdict(
            is_distracting=True, confidence=60, reason="r", suggestion=suggestion_for(pattern),
        )
        merged = merge_ai_verdict(verdict, pattern)
        assert merged.suggestion == f"{suggestion_for(pattern).rstrip('.')}."
