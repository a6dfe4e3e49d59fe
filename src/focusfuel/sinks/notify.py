"""Desktop notifications for confident distraction verdicts.

A notification fires when ``is_distracting`` and ``confidence`` is above
the configured threshold (70 by default).  Each carries a title, a
suggestion, and exactly two response actions: "Take Break" and
"Continue".

Repeat notifications for the same tab are suppressed for
``cooldown_seconds`` (default 300); set it to 0 to notify on every
qualifying verdict.
"""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timedelta
from typing import Callable

from pydantic import BaseModel, Field

from focusfuel.core.config import NotificationSettings
from focusfuel.core.defaults import (
    NOTIFICATION_ACTIONS,
    NOTIFICATION_FALLBACK_MESSAGE,
    NOTIFICATION_TITLE,
)
from focusfuel.core.types import ClassificationResult, DistractionEvent

logger = logging.getLogger(__name__)


class Notification(BaseModel, frozen=True):
    title: str
    message: str
    actions: tuple[str, str] = Field(default=NOTIFICATION_ACTIONS)
    event_id: str
    tab_id: int | None = None


Presenter = Callable[[Notification], None]


def plyer_presenter(notification: Notification) -> None:
    """Show *notification* through the OS notification centre.

    plyer has no portable action buttons, so the two actions are
    rendered into the message body.
    """
    from plyer import notification as plyer_notification

    plyer_notification.notify(
        title=notification.title,
        message=f"{notification.message}\n[{' | '.join(notification.actions)}]",
        app_name="focusfuel",
        timeout=10,
    )


def should_notify(result: ClassificationResult, threshold: float) -> bool:
    return result.is_distracting and result.confidence > threshold


class NotificationDispatcher:
    """:class:`~focusfuel.sinks.base.ResultSink` that raises desktop notifications.

    Args:
        settings: Threshold, cooldown and on/off switch.
        presenter: Callable that actually shows a notification.
            Defaults to :func:`plyer_presenter`.
        clock: Used for cooldown bookkeeping.
    """

    def __init__(
        self,
        settings: NotificationSettings | None = None,
        *,
        presenter: Presenter = plyer_presenter,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._settings = settings or NotificationSettings()
        self._presenter = presenter
        self._clock = clock
        self._cooldown = timedelta(seconds=self._settings.cooldown_seconds)
        self._last_sent: dict[int | None, datetime] = {}
        self.sent: deque[Notification] = deque(maxlen=100)

    def build(self, event: DistractionEvent, result: ClassificationResult) -> Notification:
        return Notification(
            title=NOTIFICATION_TITLE,
            message=result.suggestion or NOTIFICATION_FALLBACK_MESSAGE,
            event_id=event.id,
            tab_id=event.tab_id,
        )

    @property
    def cooling_tabs(self) -> int:
        """Number of tabs currently tracked for cooldown."""
        return len(self._last_sent)

    def _cooling_down(self, tab_id: int | None, now: datetime) -> bool:
        if self._cooldown <= timedelta(0):
            return False
        last = self._last_sent.get(tab_id)
        return last is not None and now - last < self._cooldown

    def _prune(self, now: datetime) -> None:
        """Forget tabs whose cooldown has already run out."""
        expired = [tab for tab, sent_at in self._last_sent.items() if now - sent_at >= self._cooldown]
        for tab in expired:
            del self._last_sent[tab]

    def deliver(self, event: DistractionEvent, result: ClassificationResult) -> None:
        if not self._settings.enabled:
            return
        if not should_notify(result, self._settings.confidence_threshold):
            return
        now = self._clock()
        if self._cooling_down(event.tab_id, now):
            logger.debug("Notification for tab %s suppressed by cooldown", event.tab_id)
            return
        notification = self.build(event, result)
        try:
            self._presenter(notification)
        except Exception:
            logger.warning("Could not send notification", exc_info=True)
            return
        self._prune(now)
        if self._cooldown > timedelta(0):
            self._last_sent[event.tab_id] = now
        self.sent.append(notification)
