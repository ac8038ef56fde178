"""Deadline escalation engine: one sweep over every monitored booking deadline.

For each pending record the engine classifies the earliest cut-off, fires at
most one alert per tier, and sets that tier's latch only after the alert was
dispatched. Failures are isolated per record and reported as tagged outcomes
in the ``SweepResult``; ``run_sweep`` itself never raises.

Delivery is at-least-once: if the dispatch succeeds but the latch write fails,
the next sweep fires the same tier again.
"""
import asyncio
import enum
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from app.services.alert_dispatcher import AlertDispatcher, build_alert
from app.services.deadline_store import DeadlineStore, PendingDeadline
from app.services.threshold import EscalationTier, classify

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OutcomeStatus(str, enum.Enum):
    FIRED = "fired"
    DISPATCH_FAILED = "dispatch_failed"
    WRITE_FAILED = "write_failed"


@dataclass(frozen=True)
class RecordOutcome:
    deadline_id: uuid.UUID
    booking_id: uuid.UUID
    booking_number: str
    tier: EscalationTier
    status: OutcomeStatus
    error: str | None = None


@dataclass
class SweepResult:
    started_at: datetime
    finished_at: datetime | None = None
    scanned: int = 0
    aborted: bool = False
    error: str | None = None
    outcomes: list[RecordOutcome] = field(default_factory=list)

    @property
    def fired(self) -> int:
        return sum(1 for o in self.outcomes if o.status is OutcomeStatus.FIRED)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.status is not OutcomeStatus.FIRED)

    def summary(self) -> dict:
        return {"scanned": self.scanned, "fired": self.fired, "failed": self.failed}


class EscalationEngine:
    def __init__(
        self,
        store: DeadlineStore,
        dispatcher: AlertDispatcher,
        clock: Callable[[], datetime] = utc_now,
        store_timeout: float | None = None,
        dispatch_timeout: float | None = None,
    ):
        self._store = store
        self._dispatcher = dispatcher
        self._clock = clock
        self._store_timeout = store_timeout
        self._dispatch_timeout = dispatch_timeout

    async def run_sweep(self) -> SweepResult:
        """Run one sweep to completion and return its result."""
        result = SweepResult(started_at=self._clock())
        logger.info("deadline sweep: starting")

        try:
            records = await asyncio.wait_for(
                self._store.fetch_pending_deadlines(), timeout=self._store_timeout
            )
        except asyncio.TimeoutError:
            return self._abort(result, f"fetch timed out after {self._store_timeout}s")
        except Exception as exc:
            logger.exception("deadline sweep: fetch failed: %s", exc)
            return self._abort(result, str(exc))

        result.scanned = len(records)
        if not records:
            logger.info("deadline sweep: no pending bookings found")
        else:
            logger.info("deadline sweep: found %d pending bookings", len(records))

        for record in records:
            outcome = await self._process_record(record)
            if outcome is not None:
                result.outcomes.append(outcome)

        result.finished_at = self._clock()
        logger.info(
            "deadline sweep: complete — scanned=%d, fired=%d, failed=%d",
            result.scanned, result.fired, result.failed,
        )
        return result

    def _abort(self, result: SweepResult, error: str) -> SweepResult:
        result.aborted = True
        result.error = error
        result.finished_at = self._clock()
        logger.error("deadline sweep: aborted — %s", error)
        return result

    async def _process_record(self, record: PendingDeadline) -> RecordOutcome | None:
        now = self._clock()
        classification = classify(now, record.cut_offs, record.latches)
        tier = classification.tier
        if tier is EscalationTier.NONE:
            return None

        def outcome(status: OutcomeStatus, error: str | None = None) -> RecordOutcome:
            return RecordOutcome(
                deadline_id=record.deadline_id,
                booking_id=record.booking_id,
                booking_number=record.booking.booking_number,
                tier=tier,
                status=status,
                error=error,
            )

        try:
            alert = build_alert(classification, record)
            await asyncio.wait_for(self._dispatcher.dispatch(alert), timeout=self._dispatch_timeout)
        except asyncio.TimeoutError:
            error = f"dispatch timed out after {self._dispatch_timeout}s"
            logger.error("deadline sweep: %s %s — %s", record.booking.booking_number, tier.value, error)
            return outcome(OutcomeStatus.DISPATCH_FAILED, error)
        except Exception as exc:
            logger.error(
                "deadline sweep: dispatch failed for %s %s — %s",
                record.booking.booking_number, tier.value, exc,
            )
            return outcome(OutcomeStatus.DISPATCH_FAILED, str(exc))

        # Latch write must follow a successful dispatch, never precede it.
        try:
            written = await asyncio.wait_for(
                self._store.set_latch(record.deadline_id, tier, now), timeout=self._store_timeout
            )
        except asyncio.TimeoutError:
            written, error = False, f"latch write timed out after {self._store_timeout}s"
        except Exception as exc:
            written, error = False, str(exc)
        else:
            error = None if written else "deadline record not found"

        if not written:
            logger.error(
                "deadline sweep: alert sent but latch not recorded for %s %s — %s (may re-fire next sweep)",
                record.booking.booking_number, tier.value, error,
            )
            return outcome(OutcomeStatus.WRITE_FAILED, error)

        logger.warning(
            "deadline sweep: %s alert fired for %s (%.1fh until cut-off %s)",
            tier.value, record.booking.booking_number,
            classification.hours_until, classification.deadline_type,
        )
        return outcome(OutcomeStatus.FIRED)
