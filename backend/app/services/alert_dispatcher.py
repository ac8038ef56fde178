"""Turn an escalation tier into a notification and hand it to the sender."""
import logging
import uuid
from dataclasses import asdict, dataclass
from typing import Any, Protocol

from app.services.deadline_store import BookingContext, PendingDeadline
from app.services.threshold import Classification, EscalationTier

logger = logging.getLogger(__name__)

ACTION_LABEL = "View Booking"

TIER_MARKERS: dict[EscalationTier, str] = {
    EscalationTier.OVERDUE: "🚨",
    EscalationTier.H6: "🔴",
    EscalationTier.H12: "🟠",
    EscalationTier.H24: "🟡",
    EscalationTier.H48: "🔵",
}

TIER_LABELS: dict[EscalationTier, str] = {
    EscalationTier.OVERDUE: "OVERDUE",
    EscalationTier.H6: "6 HOURS LEFT",
    EscalationTier.H12: "12 HOURS LEFT",
    EscalationTier.H24: "24 HOURS LEFT",
    EscalationTier.H48: "48 HOURS LEFT",
}


class DispatchError(Exception):
    """Raised when the notification collaborator rejects or fails an alert."""


@dataclass(frozen=True)
class DeadlineAlert:
    type: str
    priority: str
    title: str
    message: str
    booking_id: uuid.UUID
    action_url: str
    action_label: str = ACTION_LABEL

    def to_payload(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["booking_id"] = str(self.booking_id)
        return payload


class NotificationSender(Protocol):
    async def send(self, alert: DeadlineAlert) -> Any:
        ...


# ─── Text composition ───

def alert_title(tier: EscalationTier, booking: BookingContext) -> str:
    return f"{TIER_MARKERS[tier]} {TIER_LABELS[tier]}: {booking.booking_number}"


def alert_message(
    tier: EscalationTier,
    booking: BookingContext,
    hours_until: float,
    deadline_type: str,
) -> str:
    if tier is EscalationTier.OVERDUE:
        return (
            f"Booking is {abs(hours_until):.1f} hours past Cut-off {deadline_type}. "
            "Sales has not confirmed. Cancel or escalate the booking now!"
        )
    return (
        f"{hours_until:.1f} hours until Cut-off {deadline_type}. "
        f"Route: {booking.route or 'N/A'}. Vessel: {booking.vessel_flight or 'N/A'}. "
        "Sales needs to confirm soon."
    )


def build_alert(classification: Classification, record: PendingDeadline) -> DeadlineAlert:
    """Compose the alert for a record whose tier is not NONE."""
    tier = classification.tier
    if tier is EscalationTier.NONE:
        raise ValueError("cannot build an alert for tier NONE")

    return DeadlineAlert(
        type=tier.alert_type,
        priority=tier.priority,
        title=alert_title(tier, record.booking),
        message=alert_message(
            tier,
            record.booking,
            classification.hours_until,
            classification.deadline_type,
        ),
        booking_id=record.booking_id,
        action_url=f"/bookings/{record.booking_id}",
    )


class AlertDispatcher:
    """Stateless adapter between the escalation engine and the notification sender."""

    def __init__(self, sender: NotificationSender):
        self._sender = sender

    async def dispatch(self, alert: DeadlineAlert) -> None:
        try:
            await self._sender.send(alert)
        except DispatchError:
            raise
        except Exception as exc:
            raise DispatchError(f"{alert.type} for booking {alert.booking_id}: {exc}") from exc
        logger.debug("dispatched %s for booking %s", alert.type, alert.booking_id)
