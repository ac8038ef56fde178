"""Celery tasks for out-of-band notification delivery."""
import logging

from app.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="notifications.send_alert_email", max_retries=3)
def send_alert_email(
    self,
    to: str,
    title: str,
    message: str,
    priority: str,
    action_url: str | None = None,
) -> dict:
    """Deliver one deadline alert email; retried with backoff on transport errors."""
    from app.services.email import send_deadline_alert_email

    try:
        send_deadline_alert_email(to, title, message, priority, action_url)
    except Exception as exc:
        logger.warning("send_alert_email: delivery to %s failed (attempt %d): %s", to, self.request.retries + 1, exc)
        raise self.retry(exc=exc, countdown=30 * (2 ** self.request.retries))
    return {"status": "sent", "to": to}
