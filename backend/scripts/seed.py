"""Seed script — creates logistics users, bookings, and deadline records.

Deadlines are placed relative to "now" so each escalation tier has at least
one booking in its window on the first sweep after seeding.

Idempotent: checks for existing records before inserting.
Run: python backend/scripts/seed.py
"""
import asyncio
import sys
import os
from datetime import datetime, timezone, timedelta

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.models.booking import Booking, BookingDeadline
from app.models.user import User

NOW = datetime.now(timezone.utc)


# ─── Upsert helpers ───────────────────────────────────────────────────────────

async def _upsert_user(db: AsyncSession, email: str, name: str, role: str) -> User:
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalars().first()
    if user:
        print(f"  [skip] User {email}")
        return user
    user = User(email=email, name=name, role=role, is_active=True)
    db.add(user)
    await db.flush()
    print(f"  [new]  User {email} ({role})")
    return user


async def _upsert_booking(
    db: AsyncSession,
    booking_number: str,
    route: str,
    vessel_flight: str,
    type: str = "FCL",
    status: str = "PENDING",
    si_hours: float | None = None,
    vgm_hours: float | None = None,
    cy_hours: float | None = None,
    sales_confirmed: bool = False,
) -> Booking:
    """Create a booking plus its deadline record; cut-offs are hours from now."""
    result = await db.execute(select(Booking).where(Booking.booking_number == booking_number))
    booking = result.scalars().first()
    if booking:
        print(f"  [skip] Booking {booking_number}")
        return booking

    def _at(hours: float | None) -> datetime | None:
        return NOW + timedelta(hours=hours) if hours is not None else None

    booking = Booking(
        booking_number=booking_number, route=route, vessel_flight=vessel_flight,
        type=type, status=status,
    )
    db.add(booking)
    await db.flush()

    db.add(BookingDeadline(
        booking_id=booking.id,
        cut_off_si=_at(si_hours),
        cut_off_vgm=_at(vgm_hours),
        cut_off_cy=_at(cy_hours),
        status="PENDING",
        sales_confirmed=sales_confirmed,
    ))
    await db.flush()
    print(f"  [new]  Booking {booking_number} (earliest cut-off in {min(h for h in (si_hours, vgm_hours, cy_hours) if h is not None):+.1f}h)")
    return booking


# ─── Main ─────────────────────────────────────────────────────────────────────

async def seed():
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

    async with SessionLocal() as db:
        print("\n── Users ──")
        await _upsert_user(db, "admin@example.com",       "Admin User",          "ADMIN")
        await _upsert_user(db, "ops.manager@example.com", "Logistics Manager",   "LOGISTICS_MANAGER")
        await _upsert_user(db, "ops.coord@example.com",   "Logistics Coordinator", "LOGISTICS_COORDINATOR")
        await _upsert_user(db, "sales@example.com",       "Sales Rep",           "SALES")
        await db.commit()

        print("\n── Bookings ──")
        # One booking per tier window, earliest cut-off varies between SI, VGM, CY
        await _upsert_booking(db, "BK-2026-001", "HCM → LAX", "EVER GIVEN 042E",
                              si_hours=60, vgm_hours=40, cy_hours=72)       # 48h
        await _upsert_booking(db, "BK-2026-002", "HPH → RTM", "MSC AURORA 118W",
                              si_hours=20, vgm_hours=30, cy_hours=36)       # 24h
        await _upsert_booking(db, "BK-2026-003", "SGN → NRT", "VN300",
                              type="AIR", si_hours=14, vgm_hours=10, cy_hours=11)  # 12h
        await _upsert_booking(db, "BK-2026-004", "HCM → SIN", "ONE HARMONY 007S",
                              si_hours=9, vgm_hours=8, cy_hours=5)          # 6h
        await _upsert_booking(db, "BK-2026-005", "DAD → BUS", "HMM ALGECIRAS 021E",
                              si_hours=-3, vgm_hours=2, cy_hours=6)         # overdue
        # Outside every window, or excluded from monitoring
        await _upsert_booking(db, "BK-2026-006", "HCM → HAM", "CMA CGM TAGE 204W",
                              si_hours=120, vgm_hours=110, cy_hours=130)
        await _upsert_booking(db, "BK-2026-007", "HPH → LGB", "COSCO PRIDE 066E",
                              si_hours=4, vgm_hours=5, cy_hours=6, sales_confirmed=True)
        await _upsert_booking(db, "BK-2026-008", "SGN → SYD", "QF26",
                              type="AIR", status="CANCELLED", si_hours=-10, vgm_hours=-8, cy_hours=-6)
        await db.commit()

    await engine.dispose()
    print("\n✓ Seed complete.")
    print("  Users: admin · ops.manager · ops.coord · sales (@example.com)")
    print("  Bookings: BK-2026-001 through BK-2026-005 fall in the 48h/24h/12h/6h/overdue tiers")
    print("  BK-2026-006 is outside every window; BK-2026-007 is sales-confirmed; BK-2026-008 is cancelled")


if __name__ == "__main__":
    asyncio.run(seed())
