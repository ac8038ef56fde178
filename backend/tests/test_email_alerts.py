"""Tests for deadline alert email rendering and the Celery delivery task."""
import logging
from unittest.mock import patch

from app.core.config import settings
from app.services.email import render_alert_html, send_deadline_alert_email


def test_console_mock_logs_alert_when_mail_disabled(caplog):
    with caplog.at_level(logging.INFO, logger="app.services.email"):
        send_deadline_alert_email(
            "ops@example.com",
            "🚨 OVERDUE: BK-2026-005",
            "Booking is 3.0 hours past Cut-off SI.",
            "CRITICAL",
            "/bookings/abc",
        )

    assert "DEADLINE ALERT EMAIL" in caplog.text
    assert "ops@example.com" in caplog.text
    assert "[CRITICAL] 🚨 OVERDUE: BK-2026-005" in caplog.text
    assert f"From: {settings.MAIL_FROM_NAME} <{settings.MAIL_FROM}>" in caplog.text


def test_render_alert_html_uses_priority_colour_and_deep_link():
    html = render_alert_html("🔴 6 HOURS LEFT: BK-1", "5.0 hours until Cut-off CY.", "CRITICAL", "/bookings/42")

    assert "#dc2626" in html
    assert "/bookings/42" in html
    assert "5.0 hours until Cut-off CY." in html


@patch("app.services.email.send_deadline_alert_email")
def test_send_alert_email_task_delivers(mock_send):
    from app.workers.notification_tasks import send_alert_email

    result = send_alert_email("ops@example.com", "title", "message", "HIGH", "/bookings/1")

    assert result == {"status": "sent", "to": "ops@example.com"}
    mock_send.assert_called_once_with("ops@example.com", "title", "message", "HIGH", "/bookings/1")
