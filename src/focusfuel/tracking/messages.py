"""Inbound message variants and their exhaustive dispatch onto the registry.

Content scripts and tab listeners send JSON objects tagged by ``type``::

    {"type": "navigation_complete", "tab_id": 3, "url": "https://...", "title": "..."}
    {"type": "activity", "tab_id": 3, "kind": "scroll"}

:func:`parse_message` validates them into one of the frozen models below
and :func:`dispatch` routes each variant to the matching
:class:`~focusfuel.tracking.registry.TabActivityRegistry` operation.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union, assert_never

from pydantic import BaseModel, Field, TypeAdapter

from focusfuel.core.types import ActivityKind, ClassificationResult
from focusfuel.tracking.registry import TabActivityRegistry, TabStats


class NavigationComplete(BaseModel, frozen=True):
    type: Literal["navigation_complete"] = "navigation_complete"
    tab_id: int
    url: str = Field(min_length=1)
    title: str = ""


class TabActivated(BaseModel, frozen=True):
    type: Literal["tab_activated"] = "tab_activated"
    tab_id: int


class ActivityEvent(BaseModel, frozen=True):
    type: Literal["activity"] = "activity"
    tab_id: int
    kind: ActivityKind


class TabRemoved(BaseModel, frozen=True):
    type: Literal["tab_removed"] = "tab_removed"
    tab_id: int


class ClassificationRequest(BaseModel, frozen=True):
    type: Literal["classify"] = "classify"
    tab_id: int


class TabStatsRequest(BaseModel, frozen=True):
    type: Literal["tab_stats"] = "tab_stats"
    tab_id: int


InboundMessage = Annotated[
    Union[
        NavigationComplete,
        TabActivated,
        ActivityEvent,
        TabRemoved,
        ClassificationRequest,
        TabStatsRequest,
    ],
    Field(discriminator="type"),
]

_MESSAGE_ADAPTER: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)


class MessageReply(BaseModel, frozen=True):
    """Acknowledgement for a dispatched message.

    ``accepted`` is ``False`` when the message referred to an unknown tab
    or (for classification requests) the tab has not dwelt long enough.
    """

    accepted: bool
    classification: ClassificationResult | None = None
    stats: TabStats | None = None


def parse_message(raw: dict[str, Any] | str | bytes) -> InboundMessage:
    """Validate *raw* (a dict or JSON text) into an :data:`InboundMessage`.

    Raises:
        pydantic.ValidationError: On an unknown ``type`` or bad fields.
    """
    if isinstance(raw, (str, bytes)):
        return _MESSAGE_ADAPTER.validate_json(raw)
    return _MESSAGE_ADAPTER.validate_python(raw)


async def dispatch(registry: TabActivityRegistry, message: InboundMessage) -> MessageReply:
    """Apply *message* to *registry*."""
    if isinstance(message, NavigationComplete):
        registry.on_navigation_complete(message.tab_id, message.url, message.title)
        return MessageReply(accepted=True)
    if isinstance(message, TabActivated):
        registry.on_tab_activated(message.tab_id)
        return MessageReply(accepted=True)
    if isinstance(message, ActivityEvent):
        return MessageReply(accepted=registry.on_event(message.tab_id, message.kind))
    if isinstance(message, TabRemoved):
        known = message.tab_id in registry
        registry.on_tab_closed(message.tab_id)
        return MessageReply(accepted=known)
    if isinstance(message, ClassificationRequest):
        result = await registry.classify_tab(message.tab_id)
        return MessageReply(accepted=result is not None, classification=result)
    if isinstance(message, TabStatsRequest):
        stats = registry.stats(message.tab_id)
        return MessageReply(accepted=stats is not None, stats=stats)
    assert_never(message)
