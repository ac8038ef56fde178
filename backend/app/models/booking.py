import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin, UUIDMixin


class Booking(Base, UUIDMixin, TimestampMixin):
    """Freight booking. Owned by booking management; read-only to the escalation engine."""

    __tablename__ = "bookings"

    booking_number: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    route: Mapped[str | None] = mapped_column(String(255), nullable=True)  # e.g. "HCM → LAX"
    vessel_flight: Mapped[str | None] = mapped_column(String(100), nullable=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="FCL")  # FCL, LCL, AIR
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default="PENDING"
    )  # PENDING, CONFIRMED, CANCELLED, COMPLETED

    deadline: Mapped["BookingDeadline | None"] = relationship(
        "BookingDeadline", back_populates="booking", uselist=False
    )


class BookingDeadline(Base, UUIDMixin, TimestampMixin):
    """Cut-off deadlines and per-tier alert latches for one monitored booking.

    The cut-off timestamps are immutable inputs. The alert_sent_* columns are
    one-way latches: only the escalation engine writes them, and only to True.
    """

    __tablename__ = "booking_deadlines"

    booking_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("bookings.id"), nullable=False, unique=True, index=True
    )
    cut_off_si: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cut_off_vgm: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cut_off_cy: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING", index=True)  # PENDING, RESOLVED
    sales_confirmed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )

    alert_sent_48h: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    alert_sent_24h: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    alert_sent_12h: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    alert_sent_6h: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    alert_sent_overdue: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    booking: Mapped["Booking"] = relationship("Booking", back_populates="deadline")
