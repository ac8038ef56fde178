"""Email notification service — console mock for MVP (MAIL_ENABLED=False).

When MAIL_ENABLED is False, email content is printed to logs instead of
being sent via SMTP. Set MAIL_ENABLED=True to wire a real transport.
"""
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)

PRIORITY_COLORS = {
    "CRITICAL": "#dc2626",
    "HIGH": "#ea580c",
    "MEDIUM": "#ca8a04",
    "LOW": "#2563eb",
}


def render_alert_html(title: str, message: str, priority: str, action_url: str | None) -> str:
    color = PRIORITY_COLORS.get(priority, "#4f46e5")
    link = f"{settings.FRONTEND_URL}{action_url}" if action_url else settings.FRONTEND_URL
    return (
        f'<div style="font-family: Arial, sans-serif; max-width: 600px;">'
        f'<div style="background: {color}; color: white; padding: 16px;">'
        f"<strong>{priority}</strong> — {title}</div>"
        f'<div style="padding: 16px;"><p>{message}</p>'
        f'<p><a href="{link}">Open in Logistics Operations</a></p></div></div>'
    )


# ─── Deadline alert email ───

def send_deadline_alert_email(
    to: str,
    title: str,
    message: str,
    priority: str,
    action_url: str | None = None,
) -> None:
    """Send (or mock-log) a deadline alert email to one logistics user.

    Args:
        to: Recipient email address.
        title: Alert title, used as the subject line.
        message: Alert body text.
        priority: LOW / MEDIUM / HIGH / CRITICAL; drives the header colour.
        action_url: App-relative deep link, e.g. /bookings/<id>.
    """
    subject = f"[{priority}] {title}"
    sender = f"{settings.MAIL_FROM_NAME} <{settings.MAIL_FROM}>"

    if not settings.MAIL_ENABLED:
        logger.info(
            "\n"
            "=== DEADLINE ALERT EMAIL ===\n"
            "From: %s\n"
            "To: %s\n"
            "Subject: %s\n"
            "%s\n"
            "Link: %s\n"
            "============================",
            sender,
            to,
            subject,
            message,
            action_url or "-",
        )
        return

    # Real SMTP path (not implemented in MVP)
    html = render_alert_html(title, message, priority, action_url)
    logger.warning(
        "MAIL_ENABLED=True but SMTP transport is not configured. "
        "Falling back to console log for %s.",
        to,
    )
    logger.info(
        "ALERT EMAIL (unsent): from=%s to=%s subject=%s bytes=%d", sender, to, subject, len(html)
    )
