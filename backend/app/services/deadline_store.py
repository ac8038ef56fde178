"""Read/write access to booking deadline records for the escalation engine.

The engine talks to the ``DeadlineStore`` protocol only. ``SqlDeadlineStore``
is the production implementation on top of the async SQLAlchemy session
factory; tests use an in-memory store with the same two methods.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.booking import Booking, BookingDeadline
from app.services.threshold import CutOffs, EscalationTier, Latches

logger = logging.getLogger(__name__)

MONITORING_PENDING = "PENDING"
BOOKING_CANCELLED = "CANCELLED"


class DeadlineStoreError(Exception):
    """Raised when the deadline store cannot be read or written."""


@dataclass(frozen=True)
class BookingContext:
    booking_number: str
    route: str | None = None
    vessel_flight: str | None = None
    shipment_type: str | None = None


@dataclass(frozen=True)
class PendingDeadline:
    """One monitored deadline record, joined with its booking's display context."""

    deadline_id: uuid.UUID
    booking_id: uuid.UUID
    cut_offs: CutOffs
    latches: Latches = field(default_factory=Latches)
    booking: BookingContext = field(default_factory=lambda: BookingContext(booking_number=""))


class DeadlineStore(Protocol):
    async def fetch_pending_deadlines(self) -> list[PendingDeadline]:
        ...

    async def set_latch(self, deadline_id: uuid.UUID, tier: EscalationTier, timestamp: datetime) -> bool:
        ...


def to_pending_deadline(deadline: BookingDeadline, booking: Booking) -> PendingDeadline:
    return PendingDeadline(
        deadline_id=deadline.id,
        booking_id=deadline.booking_id,
        cut_offs=CutOffs(si=deadline.cut_off_si, vgm=deadline.cut_off_vgm, cy=deadline.cut_off_cy),
        latches=Latches(
            alerted_48h=bool(deadline.alert_sent_48h),
            alerted_24h=bool(deadline.alert_sent_24h),
            alerted_12h=bool(deadline.alert_sent_12h),
            alerted_6h=bool(deadline.alert_sent_6h),
            alerted_overdue=bool(deadline.alert_sent_overdue),
        ),
        booking=BookingContext(
            booking_number=booking.booking_number,
            route=booking.route,
            vessel_flight=booking.vessel_flight,
            shipment_type=booking.type,
        ),
    )


class SqlDeadlineStore:
    """DeadlineStore backed by PostgreSQL. Each call uses its own session."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def fetch_pending_deadlines(self) -> list[PendingDeadline]:
        """Load every deadline still under monitoring.

        Filters: monitoring status PENDING, sales not confirmed, and the
        booking itself not cancelled.
        """
        stmt = (
            select(BookingDeadline, Booking)
            .join(Booking, BookingDeadline.booking_id == Booking.id)
            .where(
                BookingDeadline.status == MONITORING_PENDING,
                BookingDeadline.sales_confirmed.is_(False),
                Booking.status != BOOKING_CANCELLED,
            )
        )
        try:
            async with self._session_factory() as db:
                rows = (await db.execute(stmt)).all()
        except SQLAlchemyError as exc:
            raise DeadlineStoreError(f"failed to fetch pending deadlines: {exc}") from exc

        return [to_pending_deadline(deadline, booking) for deadline, booking in rows]

    async def set_latch(self, deadline_id: uuid.UUID, tier: EscalationTier, timestamp: datetime) -> bool:
        """Set one alert latch to True and bump updated_at.

        Returns False if no row matched (record deleted between fetch and write).
        """
        column = tier.latch_field
        if column is None:
            raise ValueError(f"tier {tier.value} has no alert latch")

        stmt = (
            update(BookingDeadline)
            .where(BookingDeadline.id == deadline_id)
            .values({column: True, "updated_at": timestamp})
        )
        try:
            async with self._session_factory() as db:
                result = await db.execute(stmt)
                await db.commit()
        except SQLAlchemyError as exc:
            raise DeadlineStoreError(f"failed to set {column} on deadline {deadline_id}: {exc}") from exc

        if result.rowcount == 0:
            logger.warning("set_latch: deadline %s not found, %s not recorded", deadline_id, column)
            return False
        return True
