"""Detector configuration: sensitivity, domain lists, AI and notification settings.

The settings subsystem owns these values; focusfuel only reads them.
They are stored as YAML so they can be hand-edited::

    sensitivity: medium
    blacklist: [facebook.com, youtube.com]
    whitelist: [github.com]
    ai:
      enabled: true
      model: gpt-4o-mini
      timeout_seconds: 10
    notifications:
      cooldown_seconds: 300

Typical flow::

    config = load_config(Path("config/focusfuel.yaml"))
    lists = config.domain_lists()

Credentials are never stored in the file: :class:`AISettings` only names
the environment variable that holds the API key.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from focusfuel.core.defaults import (
    DEFAULT_AI_API_KEY_ENV,
    DEFAULT_AI_MAX_TOKENS,
    DEFAULT_AI_MODEL,
    DEFAULT_AI_TEMPERATURE,
    DEFAULT_AI_TIMEOUT_SECONDS,
    DEFAULT_BLACKLIST,
    DEFAULT_EVENTS_PATH,
    DEFAULT_NOTIFY_COOLDOWN_SECONDS,
    DEFAULT_SENSITIVITY,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
    DEFAULT_WHITELIST,
    NOTIFY_CONFIDENCE_THRESHOLD,
)
from focusfuel.core.types import Sensitivity
from focusfuel.features.domain import DomainLists, normalize_domain

logger = logging.getLogger(__name__)


class AISettings(BaseModel, frozen=True):
    """Connection settings for the optional AI classification stage."""

    enabled: bool = Field(default=True, description="Run the AI stage when no earlier stage is decisive.")
    model: str = Field(default=DEFAULT_AI_MODEL, min_length=1)
    base_url: str | None = Field(default=None, description="OpenAI-compatible endpoint; None for the default.")
    api_key_env: str = Field(default=DEFAULT_AI_API_KEY_ENV, description="Environment variable holding the API key.")
    timeout_seconds: float = Field(default=DEFAULT_AI_TIMEOUT_SECONDS, gt=0.0)
    max_tokens: int = Field(default=DEFAULT_AI_MAX_TOKENS, gt=0)
    temperature: float = Field(default=DEFAULT_AI_TEMPERATURE, ge=0.0, le=2.0)

    def api_key(self) -> str | None:
        """Read the API key from the configured environment variable."""
        return os.environ.get(self.api_key_env) or None


class NotificationSettings(BaseModel, frozen=True):
    enabled: bool = True
    confidence_threshold: float = Field(default=NOTIFY_CONFIDENCE_THRESHOLD, ge=0.0, le=100.0)
    cooldown_seconds: float = Field(
        default=DEFAULT_NOTIFY_COOLDOWN_SECONDS,
        ge=0.0,
        description="Minimum gap between notifications for the same tab; 0 disables the limit.",
    )


class FocusConfig(BaseModel, frozen=True):
    """Top-level detector configuration."""

    sensitivity: Sensitivity = Sensitivity(DEFAULT_SENSITIVITY)
    blacklist: list[str] = Field(default_factory=lambda: list(DEFAULT_BLACKLIST))
    whitelist: list[str] = Field(default_factory=lambda: list(DEFAULT_WHITELIST))
    ai: AISettings = Field(default_factory=AISettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    sweep_interval_seconds: int = Field(default=DEFAULT_SWEEP_INTERVAL_SECONDS, gt=0)
    events_path: str = Field(default=DEFAULT_EVENTS_PATH)

    @field_validator("blacklist", "whitelist")
    @classmethod
    def _normalize_domains(cls, v: list[str]) -> list[str]:
        seen: dict[str, None] = {}
        for entry in v:
            domain = normalize_domain(entry)
            if domain:
                seen.setdefault(domain, None)
        return list(seen)

    def domain_lists(self) -> DomainLists:
        """Build a fresh mutable :class:`DomainLists` from this config."""
        return DomainLists(blacklist=self.blacklist, whitelist=self.whitelist)


def default_config() -> FocusConfig:
    """Configuration with the built-in default lists and medium sensitivity."""
    return FocusConfig()


def load_config(path: Path) -> FocusConfig:
    """Load and validate a detector config from a YAML file.

    An empty file yields :func:`default_config`.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError / ValidationError: If the YAML is malformed or invalid.
    """
    raw = yaml.safe_load(path.read_text())
    if raw is None:
        return default_config()
    if not isinstance(raw, dict):
        raise ValueError(f"Config at {path} must be a mapping, got {type(raw).__name__}")
    config = FocusConfig.model_validate(raw)
    logger.info(
        "Loaded config from %s (sensitivity=%s, %d blacklisted, %d whitelisted)",
        path, config.sensitivity, len(config.blacklist), len(config.whitelist),
    )
    return config


def save_config(config: FocusConfig, path: Path) -> Path:
    """Serialize *config* to YAML and return *path*."""
    data = config.model_dump(mode="json")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(data, default_flow_style=False, sort_keys=False))
    return path
