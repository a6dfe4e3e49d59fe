"""AI classification stage: OpenAI-compatible chat client with a JSON contract.

The model is asked for a single JSON object::

    {"is_distracting": true, "confidence": 72, "reason": "...", "suggestion": "..."}

which is validated by :class:`AIVerdict`.  Anything else (empty reply,
non-JSON text, missing keys, wrong types) raises :class:`AIResponseError`.
This layer is allowed to raise; :class:`~focusfuel.infer.pipeline.ClassificationPipeline`
is the boundary that absorbs every failure.
"""

from __future__ import annotations

import logging
from typing import Final, Protocol, runtime_checkable

import openai
from pydantic import BaseModel, Field, ValidationError, field_validator

from focusfuel.core.config import AISettings
from focusfuel.core.types import ActivitySnapshot, clamp_confidence

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT: Final[str] = """
You are a productivity assistant that analyzes browsing patterns to identify
potential distractions and provide helpful suggestions.

Return ONLY a JSON object with these exact keys:
- is_distracting: true or false
- confidence: number from 0 to 100
- reason: brief explanation (max 80 chars)
- suggestion: short improvement tip, or null when not distracting
""".strip()

_LOCAL_API_KEY: Final[str] = "not-needed"


class AIResponseError(RuntimeError):
    """The AI service replied, but not with a usable verdict."""


class AIVerdict(BaseModel, frozen=True):
    """Schema the AI stage must return."""

    is_distracting: bool
    confidence: float
    reason: str = Field(min_length=1)
    suggestion: str | None = None

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp(cls, v: float) -> float:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError(f"confidence must be a number, got {v!r}")
        return clamp_confidence(v)


@runtime_checkable
class AIClassifier(Protocol):
    """Anything that can turn a snapshot into an :class:`AIVerdict`."""

    async def classify(self, snapshot: ActivitySnapshot) -> AIVerdict: ...


def build_prompt(snapshot: ActivitySnapshot) -> str:
    """Describe *snapshot* for the model.  Only the domain-bearing URL and title are sent."""
    return f"""
Analyze this browsing activity and determine if it's likely to be distracting.

URL: {snapshot.url[:200]}
Title: {snapshot.title[:120]}
Time spent: {snapshot.time_spent_seconds} seconds
Tab switches: {snapshot.tab_switches}
Scroll events: {snapshot.scroll_events}
Mouse movements: {snapshot.mouse_movements}
Clicks: {snapshot.clicks}
Keyboard events: {snapshot.keyboard_events}
Hour of day: {snapshot.hour_of_day}

Consider:
- Is this likely a productivity tool or entertainment site?
- Are the browsing patterns consistent with focused work?
- Is the time of day appropriate for this type of activity?
- Are there signs of rapid switching or excessive scrolling?
""".strip()


def parse_verdict(content: str | None) -> AIVerdict:
    """Validate a raw model reply against :class:`AIVerdict`.

    Raises:
        AIResponseError: If *content* is empty, not JSON, or fails validation.
    """
    if not content or not content.strip():
        raise AIResponseError("AI returned an empty response")
    try:
        return AIVerdict.model_validate_json(content.strip())
    except ValidationError as exc:
        raise AIResponseError(f"AI response failed validation: {exc.error_count()} error(s)") from exc


class OpenAIClassifier:
    """:class:`AIClassifier` backed by the ``openai`` async client.

    Works with api.openai.com or any OpenAI-compatible server
    (``base_url``).  Retries are disabled; the pipeline's timeout is the
    only retry/cancellation policy.
    """

    def __init__(
        self,
        settings: AISettings,
        *,
        client: openai.AsyncOpenAI | None = None,
    ) -> None:
        self._settings = settings
        self._client = client or openai.AsyncOpenAI(
            api_key=settings.api_key() or _LOCAL_API_KEY,
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
            max_retries=0,
        )

    @property
    def model(self) -> str:
        return self._settings.model

    async def classify(self, snapshot: ActivitySnapshot) -> AIVerdict:
        response = await self._client.chat.completions.create(
            model=self._settings.model,
            messages=[
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(snapshot)},
            ],
            max_tokens=self._settings.max_tokens,
            temperature=self._settings.temperature,
            response_format={"type": "json_object"},
        )
        if not response.choices:
            raise AIResponseError("AI returned no choices")
        return parse_verdict(response.choices[0].message.content)


def create_ai_classifier(settings: AISettings) -> OpenAIClassifier | None:
    """Build the AI stage from *settings*, or ``None`` when it cannot run.

    The stage is skipped when disabled, or when neither an API key nor a
    custom ``base_url`` (local servers need no key) is configured.
    """
    if not settings.enabled:
        logger.info("AI stage disabled by configuration")
        return None
    if settings.api_key() is None and settings.base_url is None:
        logger.info("AI stage disabled: %s is not set", settings.api_key_env)
        return None
    logger.info("AI stage enabled (model=%s)", settings.model)
    return OpenAIClassifier(settings)
