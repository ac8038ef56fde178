"""Notification service: persist, fan out in real time, and email.

Implements the ``NotificationSender`` interface used by the alert dispatcher.
A notification of the same type for the same booking within
NOTIFICATION_DEDUP_HOURS is suppressed; the call still returns normally so
the caller treats the alert as delivered and latches it. Only rows whose
realtime fan-out succeeded are committed, so suppression never hides an
alert nobody received.
"""
import json
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.redis import user_channel
from app.models.notification import Notification
from app.models.user import User
from app.services.alert_dispatcher import DeadlineAlert

logger = logging.getLogger(__name__)


def _realtime_payload(notification: Notification) -> dict:
    created_at = notification.created_at.isoformat() if notification.created_at else None
    return {
        "id": str(notification.id),
        "type": notification.type,
        "priority": notification.priority,
        "title": notification.title,
        "message": notification.message,
        "bookingId": str(notification.booking_id) if notification.booking_id else None,
        "actionUrl": notification.action_url,
        "actionLabel": notification.action_label,
        "createdAt": created_at,
    }


class NotificationService:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], redis_client, email_task=None):
        self._session_factory = session_factory
        self._redis = redis_client
        self._email_task = email_task

    async def send(self, alert: DeadlineAlert) -> Notification | None:
        """Deliver one alert. Returns the stored Notification, or None if suppressed."""
        since = datetime.now(timezone.utc) - timedelta(hours=settings.NOTIFICATION_DEDUP_HOURS)

        async with self._session_factory() as db:
            existing = await db.execute(
                select(Notification.id).where(
                    Notification.type == alert.type,
                    Notification.booking_id == alert.booking_id,
                    Notification.created_at > since,
                ).limit(1)
            )
            if existing.scalars().first() is not None:
                logger.info(
                    "notification suppressed: %s for booking %s already sent in last %dh",
                    alert.type, alert.booking_id, settings.NOTIFICATION_DEDUP_HOURS,
                )
                return None

            notification = Notification(
                type=alert.type,
                priority=alert.priority,
                title=alert.title,
                message=alert.message,
                booking_id=alert.booking_id,
                action_url=alert.action_url,
                action_label=alert.action_label,
            )
            db.add(notification)

            users_result = await db.execute(
                select(User).where(
                    User.role.in_(settings.notification_recipient_roles_list),
                    User.is_active.is_(True),
                    User.deleted_at.is_(None),
                )
            )
            recipients = list(users_result.scalars().all())

            # Fan-out before commit: a failed publish must leave no row for the dedup lookup.
            await db.flush()
            await db.refresh(notification)
            await self._publish(notification, recipients)
            await db.commit()

        self._enqueue_emails(alert, recipients)

        logger.info("Notification sent: %s (%d recipients)", alert.title, len(recipients))
        return notification

    async def _publish(self, notification: Notification, recipients: list[User]) -> None:
        payload = _realtime_payload(notification)
        message = json.dumps({"event": "notification", "data": payload})
        for user in recipients:
            await self._redis.publish(user_channel(user.id), message)

        summary = {k: payload[k] for k in ("id", "type", "priority", "title", "message", "createdAt")}
        await self._redis.publish(
            settings.NOTIFICATION_BROADCAST_CHANNEL,
            json.dumps({"event": "notification:new", "data": summary}),
        )

    def _enqueue_emails(self, alert: DeadlineAlert, recipients: list[User]) -> None:
        if self._email_task is None:
            return
        for user in recipients:
            if not user.email:
                continue
            try:
                self._email_task.delay(user.email, alert.title, alert.message, alert.priority, alert.action_url)
            except Exception as exc:
                # Non-fatal — the notification is stored and pushed already
                logger.warning("Could not enqueue alert email for %s: %s", user.email, exc)
