"""Threshold classifier for booking cut-off deadlines.

Pure functions only: no clock, no I/O. Callers pass ``now`` explicitly so a
sweep classifies every record against the same instant.
"""
import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

# ─── Tier configuration ───

class EscalationTier(str, enum.Enum):
    OVERDUE = "OVERDUE"
    H6 = "H6"
    H12 = "H12"
    H24 = "H24"
    H48 = "H48"
    NONE = "NONE"

    @property
    def priority(self) -> str | None:
        return TIER_PRIORITY.get(self)

    @property
    def latch_field(self) -> str | None:
        """Column on BookingDeadline that records this tier was alerted."""
        return TIER_LATCH_FIELD.get(self)

    @property
    def alert_type(self) -> str | None:
        """Notification type string, e.g. ``DEADLINE_6H``."""
        return TIER_ALERT_TYPE.get(self)


TIER_PRIORITY: dict[EscalationTier, str] = {
    EscalationTier.OVERDUE: "CRITICAL",
    EscalationTier.H6: "CRITICAL",
    EscalationTier.H12: "HIGH",
    EscalationTier.H24: "MEDIUM",
    EscalationTier.H48: "LOW",
}

TIER_LATCH_FIELD: dict[EscalationTier, str] = {
    EscalationTier.OVERDUE: "alert_sent_overdue",
    EscalationTier.H6: "alert_sent_6h",
    EscalationTier.H12: "alert_sent_12h",
    EscalationTier.H24: "alert_sent_24h",
    EscalationTier.H48: "alert_sent_48h",
}

TIER_ALERT_TYPE: dict[EscalationTier, str] = {
    EscalationTier.OVERDUE: "DEADLINE_OVERDUE",
    EscalationTier.H6: "DEADLINE_6H",
    EscalationTier.H12: "DEADLINE_12H",
    EscalationTier.H24: "DEADLINE_24H",
    EscalationTier.H48: "DEADLINE_48H",
}

# Upper bound (inclusive, hours) of each pre-deadline window, tightest first.
TIER_WINDOWS: tuple[tuple[EscalationTier, float, float], ...] = (
    (EscalationTier.H6, 0.0, 6.0),
    (EscalationTier.H12, 6.0, 12.0),
    (EscalationTier.H24, 12.0, 24.0),
    (EscalationTier.H48, 24.0, 48.0),
)


@dataclass(frozen=True)
class CutOffs:
    si: datetime | None = None
    vgm: datetime | None = None
    cy: datetime | None = None


@dataclass(frozen=True)
class Latches:
    alerted_48h: bool = False
    alerted_24h: bool = False
    alerted_12h: bool = False
    alerted_6h: bool = False
    alerted_overdue: bool = False

    def is_set(self, tier: EscalationTier) -> bool:
        return {
            EscalationTier.OVERDUE: self.alerted_overdue,
            EscalationTier.H6: self.alerted_6h,
            EscalationTier.H12: self.alerted_12h,
            EscalationTier.H24: self.alerted_24h,
            EscalationTier.H48: self.alerted_48h,
        }.get(tier, False)


@dataclass(frozen=True)
class Classification:
    tier: EscalationTier
    hours_until: float | None = None
    deadline_type: str | None = None  # SI, VGM, CY
    deadline_at: datetime | None = None


def _aware(value: datetime) -> datetime:
    # Make tz-aware if naive
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def earliest_cut_off(deadlines: CutOffs) -> tuple[str, datetime] | None:
    """Return (type, timestamp) of the soonest cut-off, ignoring missing ones."""
    candidates = [
        (label, _aware(value))
        for label, value in (("SI", deadlines.si), ("VGM", deadlines.vgm), ("CY", deadlines.cy))
        if value is not None
    ]
    if not candidates:
        return None
    # min() keeps the first of equal timestamps, so SI wins ties, then VGM.
    return min(candidates, key=lambda c: c[1])


def hours_until(deadline_at: datetime, now: datetime) -> float:
    """Signed hours from ``now`` to ``deadline_at``; negative once passed."""
    return (_aware(deadline_at) - _aware(now)) / timedelta(hours=1)


def tier_for_hours(hours: float) -> EscalationTier:
    """Map signed hours-until-deadline to the raw time window, ignoring latches.

    ``hours == 0`` falls in no window and yields NONE.
    """
    if hours < 0:
        return EscalationTier.OVERDUE
    for tier, lower, upper in TIER_WINDOWS:
        if lower < hours <= upper:
            return tier
    return EscalationTier.NONE


def classify(now: datetime, deadlines: CutOffs, latches: Latches) -> Classification:
    """Pick the escalation tier for one booking deadline record.

    Escalates against the single earliest cut-off. Returns tier NONE when no
    window matches or when the matching tier's latch is already set; the
    hours and deadline type are still reported for logging.
    """
    earliest = earliest_cut_off(deadlines)
    if earliest is None:
        return Classification(tier=EscalationTier.NONE)

    deadline_type, deadline_at = earliest
    hours = hours_until(deadline_at, now)
    tier = tier_for_hours(hours)

    if tier is not EscalationTier.NONE and latches.is_set(tier):
        tier = EscalationTier.NONE

    return Classification(
        tier=tier,
        hours_until=hours,
        deadline_type=deadline_type,
        deadline_at=deadline_at,
    )
