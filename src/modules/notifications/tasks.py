"""Notification delivery tasks."""

import structlog
from celery import shared_task

logger = structlog.get_logger(__name__)


@shared_task(name="notifications.deliver", ignore_result=True)
def deliver_notification(message: str, severity: str, recipient_id: str = "") -> dict:
    """Deliver a user-facing notification.

    Delivery is a structured log record consumed by the storefront's
    notification relay; the task boundary keeps it off the request path.
    """
    logger.info(
        "notification.delivered",
        message=message,
        severity=severity,
        recipient_id=recipient_id,
    )
    return {"status": "delivered", "severity": severity}
