"""Deadline escalation endpoints — manual sweep trigger and scheduler status."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.core.deps import get_deadline_scheduler, require_role
from app.core.limiter import limiter
from app.models.user import User
from app.schemas.deadline import SchedulerStatusOut, SweepResultOut
from app.services.scheduler import DeadlineScheduler, SweepInProgressError

logger = logging.getLogger(__name__)

router = APIRouter()


# ─── POST /deadlines/sweep ───

@router.post(
    "/sweep",
    response_model=SweepResultOut,
    summary="Run a deadline sweep now (ADMIN, LOGISTICS_MANAGER)",
)
@limiter.limit("6/minute")
async def trigger_sweep(
    request: Request,
    scheduler: Annotated[DeadlineScheduler, Depends(get_deadline_scheduler)],
    current_user: Annotated[User, Depends(require_role("ADMIN", "LOGISTICS_MANAGER"))],
):
    """Run one sweep synchronously and return its counts.

    Returns 409 if a periodic or manual sweep is already running.
    Already-latched tiers are never re-fired, so repeated calls are safe.
    """
    try:
        result = await scheduler.run_now()
    except SweepInProgressError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))

    logger.info(
        "Manual deadline sweep by %s: scanned=%d fired=%d failed=%d",
        current_user.email, result.scanned, result.fired, result.failed,
    )
    return SweepResultOut.from_result(result)


# ─── GET /deadlines/scheduler ───

@router.get(
    "/scheduler",
    response_model=SchedulerStatusOut,
    summary="Deadline scheduler status and last sweep result",
)
async def get_scheduler_status(
    scheduler: Annotated[DeadlineScheduler, Depends(get_deadline_scheduler)],
    current_user: Annotated[
        User, Depends(require_role("ADMIN", "LOGISTICS_MANAGER", "LOGISTICS_COORDINATOR"))
    ],
):
    last = scheduler.last_result
    return SchedulerStatusOut(
        running=scheduler.running,
        sweep_in_progress=scheduler.sweep_in_progress,
        interval_seconds=scheduler.interval_seconds,
        last_result=SweepResultOut.from_result(last) if last is not None else None,
    )
