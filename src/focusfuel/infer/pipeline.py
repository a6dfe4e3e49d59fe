"""Three-stage distraction classifier: domain lists -> patterns -> AI fallback.

Pipeline for one :class:`~focusfuel.core.types.ActivitySnapshot`:

1. **List stage** (sync) -- a blacklisted domain is distracting (95),
   a whitelisted one is productive (90).  Either hit ends classification.
2. **Pattern stage** (sync) -- if the top-ranked pattern's confidence
   exceeds 80 it is returned straight away.  Otherwise it is kept as the
   fallback candidate.
3. **AI stage** (async, bounded) -- the configured
   :class:`~focusfuel.infer.ai.AIClassifier` is called under a timeout.
   Any failure (network, timeout, malformed reply) is logged and the
   stage-2 fallback is returned instead.

:meth:`ClassificationPipeline.classify` never raises.  Heuristic
classification is always available; the AI verdict is a best-effort
enhancement on top of it.
"""

from __future__ import annotations

import asyncio
import logging

from focusfuel.core.defaults import (
    BLACKLIST_CONFIDENCE,
    DEFAULT_AI_TIMEOUT_SECONDS,
    PATTERN_SHORT_CIRCUIT_CONFIDENCE,
    UNDETERMINED_CONFIDENCE,
    UNDETERMINED_REASON,
    WHITELIST_CONFIDENCE,
)
from focusfuel.core.types import (
    ActivitySnapshot,
    ClassificationResult,
    ClassificationSource,
    DistractionPattern,
    Sensitivity,
    Severity,
)
from focusfuel.features.domain import DomainLists, normalize_domain
from focusfuel.infer.ai import AIClassifier, AIVerdict
from focusfuel.infer.patterns import PatternMatcher, suggestion_for

logger = logging.getLogger(__name__)


def list_stage(snapshot: ActivitySnapshot, lists: DomainLists) -> ClassificationResult | None:
    """Stage 1: exact-match domain lookup."""
    domain = normalize_domain(snapshot.url)
    hit = lists.lookup(domain)
    if hit == "blacklist":
        return ClassificationResult(
            is_distracting=True,
            confidence=BLACKLIST_CONFIDENCE,
            reason="Site is in distraction blacklist",
            suggestion="Consider using this site during breaks instead",
            source=ClassificationSource.list,
        )
    if hit == "whitelist":
        return ClassificationResult(
            is_distracting=False,
            confidence=WHITELIST_CONFIDENCE,
            reason="Site is in productivity whitelist",
            source=ClassificationSource.list,
        )
    return None


def pattern_result(pattern: DistractionPattern) -> ClassificationResult:
    """Turn a matched pattern into a stage-2 result."""
    return ClassificationResult(
        is_distracting=pattern.severity != Severity.low,
        confidence=pattern.confidence,
        reason=pattern.description,
        suggestion=suggestion_for(pattern),
        matched_pattern=pattern,
        source=ClassificationSource.pattern,
    )


def undetermined_result() -> ClassificationResult:
    return ClassificationResult(
        is_distracting=False,
        confidence=UNDETERMINED_CONFIDENCE,
        reason=UNDETERMINED_REASON,
        source=ClassificationSource.pattern,
    )


def merge_ai_verdict(
    verdict: AIVerdict,
    pattern: DistractionPattern | None,
) -> ClassificationResult:
    """Combine an AI verdict with the retained stage-2 pattern.

    The AI decides ``is_distracting``/``confidence``/``reason``; the
    pattern (if any) is attached as ``matched_pattern`` and its
    suggestion is appended to the AI's.
    """
    suggestions = [s for s in (verdict.suggestion,) if s]
    if pattern is not None:
        extra = suggestion_for(pattern)
        if extra not in suggestions:
            suggestions.append(extra)
    return ClassificationResult(
        is_distracting=verdict.is_distracting,
        confidence=verdict.confidence,
        reason=verdict.reason,
        suggestion=" ".join(f"{s.rstrip('.')}." for s in suggestions) or None,
        matched_pattern=pattern,
        source=ClassificationSource.ai,
    )


class ClassificationPipeline:
    """Layered classifier with a never-raise contract.

    Args:
        lists: Domain lists consulted on every call.  The instance is
            shared with the settings layer, so list edits take effect
            on the next classification.
        matcher: Pattern matcher; its sensitivity is exposed via
            :attr:`sensitivity`.
        ai: Optional AI stage.  ``None`` skips stage 3 entirely.
        ai_timeout_seconds: Upper bound on a single AI call.
    """

    def __init__(
        self,
        lists: DomainLists,
        *,
        matcher: PatternMatcher | None = None,
        ai: AIClassifier | None = None,
        ai_timeout_seconds: float = DEFAULT_AI_TIMEOUT_SECONDS,
    ) -> None:
        if ai_timeout_seconds <= 0:
            raise ValueError(f"ai_timeout_seconds must be positive, got {ai_timeout_seconds}")
        self.lists = lists
        self.matcher = matcher or PatternMatcher()
        self._ai = ai
        self._ai_timeout = ai_timeout_seconds

    @property
    def sensitivity(self) -> Sensitivity:
        return self.matcher.sensitivity

    @sensitivity.setter
    def sensitivity(self, value: Sensitivity | str) -> None:
        self.matcher.sensitivity = value

    @property
    def ai_enabled(self) -> bool:
        return self._ai is not None

    def classify_heuristic(
        self, snapshot: ActivitySnapshot,
    ) -> tuple[ClassificationResult | None, DistractionPattern | None]:
        """Run stages 1 and 2 only.

        Returns:
            ``(decisive_result, fallback_pattern)``.  ``decisive_result``
            is set when a list hit or a pattern above the short-circuit
            threshold settles the classification; otherwise it is
            ``None`` and ``fallback_pattern`` holds the top-ranked
            pattern, if any fired.
        """
        listed = list_stage(snapshot, self.lists)
        if listed is not None:
            return listed, None

        patterns = self.matcher.evaluate(snapshot)
        top = patterns[0] if patterns else None
        if top is not None and top.confidence > PATTERN_SHORT_CIRCUIT_CONFIDENCE:
            return pattern_result(top), top
        return None, top

    def classify_now(self, snapshot: ActivitySnapshot) -> ClassificationResult:
        """Classify *snapshot* with stages 1 and 2 only, without awaiting.

        Used where a result is needed before control returns to the
        event loop, such as the final flush of a closing tab.
        """
        decisive, top = self.classify_heuristic(snapshot)
        if decisive is not None:
            return decisive
        return pattern_result(top) if top is not None else undetermined_result()

    async def classify(self, snapshot: ActivitySnapshot) -> ClassificationResult:
        """Classify *snapshot*.  Always returns a result; never raises."""
        decisive, top = self.classify_heuristic(snapshot)
        if decisive is not None:
            return decisive

        fallback = pattern_result(top) if top is not None else undetermined_result()
        if self._ai is None:
            return fallback

        try:
            verdict = await asyncio.wait_for(
                self._ai.classify(snapshot), timeout=self._ai_timeout,
            )
        except TimeoutError:
            logger.warning(
                "AI classification timed out after %.1fs; using heuristic fallback",
                self._ai_timeout,
            )
            return fallback
        except Exception:
            logger.warning("AI classification failed; using heuristic fallback", exc_info=True)
            return fallback

        if not isinstance(verdict, AIVerdict):
            logger.warning(
                "AI classifier returned %s instead of AIVerdict; using heuristic fallback",
                type(verdict).__name__,
            )
            return fallback
        return merge_ai_verdict(verdict, top)
