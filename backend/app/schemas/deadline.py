"""Pydantic schemas for deadline sweep results and scheduler status."""
import uuid
from datetime import datetime

from pydantic import BaseModel


class RecordOutcomeOut(BaseModel):
    deadline_id: uuid.UUID
    booking_id: uuid.UUID
    booking_number: str
    tier: str
    status: str  # fired, dispatch_failed, write_failed
    error: str | None = None


class SweepResultOut(BaseModel):
    scanned: int
    fired: int
    failed: int
    aborted: bool
    error: str | None = None
    started_at: datetime
    finished_at: datetime | None = None
    outcomes: list[RecordOutcomeOut] = []

    @classmethod
    def from_result(cls, result) -> "SweepResultOut":
        return cls(
            scanned=result.scanned,
            fired=result.fired,
            failed=result.failed,
            aborted=result.aborted,
            error=result.error,
            started_at=result.started_at,
            finished_at=result.finished_at,
            outcomes=[
                RecordOutcomeOut(
                    deadline_id=o.deadline_id,
                    booking_id=o.booking_id,
                    booking_number=o.booking_number,
                    tier=o.tier.value,
                    status=o.status.value,
                    error=o.error,
                )
                for o in result.outcomes
            ],
        )


class SchedulerStatusOut(BaseModel):
    running: bool
    sweep_in_progress: bool
    interval_seconds: int
    last_result: SweepResultOut | None = None
