"""Notification Sink: fire-and-forget success/error messages for a user.

Core logic never waits on delivery.  ``CeleryNotificationSink`` hands the
message to a worker (after commit when called inside a transaction);
``LogNotificationSink`` only writes a structured log line and is what
tests and the management commands use.
"""

from __future__ import annotations

from typing import Protocol

import structlog
from django.conf import settings
from django.db import models, transaction

logger = structlog.get_logger(__name__)


class Severity(models.TextChoices):
    INFO = "info", "Info"
    SUCCESS = "success", "Success"
    WARNING = "warning", "Warning"
    ERROR = "error", "Error"


class NotificationSink(Protocol):
    def notify(self, message: str, severity: Severity, recipient_id: str = "") -> None: ...


class LogNotificationSink:
    def notify(self, message: str, severity: Severity, recipient_id: str = "") -> None:
        logger.info(
            "notification.emitted",
            message=message,
            severity=str(severity),
            recipient_id=recipient_id,
        )


class CeleryNotificationSink:
    def notify(self, message: str, severity: Severity, recipient_id: str = "") -> None:
        from modules.notifications.tasks import deliver_notification

        transaction.on_commit(
            lambda: deliver_notification.delay(message, str(severity), recipient_id)
        )


_SINKS = {
    "celery": CeleryNotificationSink,
    "log": LogNotificationSink,
}


def get_notification_sink() -> NotificationSink:
    """Instantiate the sink named by ``settings.NOTIFICATION_SINK``."""
    return _SINKS[getattr(settings, "NOTIFICATION_SINK", "celery")]()
