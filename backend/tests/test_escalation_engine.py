"""Tests for the deadline escalation engine.

Runs full sweeps against an in-memory deadline store and a recording
notification sender, so latch state and dispatch calls can be asserted
directly without a database.
"""
import asyncio
import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from app.services.alert_dispatcher import AlertDispatcher
from app.services.deadline_store import BookingContext, DeadlineStoreError, PendingDeadline
from app.services.escalation import EscalationEngine, OutcomeStatus
from app.services.threshold import CutOffs, EscalationTier, Latches

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

LATCH_ATTR = {
    EscalationTier.OVERDUE: "alerted_overdue",
    EscalationTier.H6: "alerted_6h",
    EscalationTier.H12: "alerted_12h",
    EscalationTier.H24: "alerted_24h",
    EscalationTier.H48: "alerted_48h",
}


# ─── Helpers ──────────────────────────────────────────────────────────────────

class InMemoryDeadlineStore:
    """DeadlineStore fake that applies latch writes to its own records."""

    def __init__(self, records: list[PendingDeadline]):
        self.records = {r.deadline_id: r for r in records}
        self.sales_confirmed: set[uuid.UUID] = set()
        self.latch_writes: list[tuple[uuid.UUID, EscalationTier, datetime]] = []
        self.fail_fetch = False
        self.fail_writes: set[uuid.UUID] = set()
        self.fetch_delay = 0.0

    async def fetch_pending_deadlines(self) -> list[PendingDeadline]:
        if self.fetch_delay:
            await asyncio.sleep(self.fetch_delay)
        if self.fail_fetch:
            raise DeadlineStoreError("connection refused")
        return [r for r in self.records.values() if r.deadline_id not in self.sales_confirmed]

    async def set_latch(self, deadline_id, tier, timestamp) -> bool:
        if deadline_id in self.fail_writes:
            raise DeadlineStoreError("deadlock detected")
        record = self.records[deadline_id]
        self.records[deadline_id] = replace(
            record, latches=replace(record.latches, **{LATCH_ATTR[tier]: True})
        )
        self.latch_writes.append((deadline_id, tier, timestamp))
        return True


class RecordingSender:
    def __init__(self):
        self.sent = []
        self.fail_for: set[uuid.UUID] = set()
        self.delay = 0.0

    async def send(self, alert):
        if self.delay:
            await asyncio.sleep(self.delay)
        if alert.booking_id in self.fail_for:
            raise RuntimeError("notification service unavailable")
        self.sent.append(alert)
        return {"id": str(uuid.uuid4())}


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def _make_record(
    booking_number: str = "BK-001",
    si: float | None = 100,
    vgm: float | None = 100,
    cy: float | None = 100,
    latches: Latches | None = None,
) -> PendingDeadline:
    """Build a PendingDeadline with cut-offs expressed as hours from NOW."""
    def at(hours):
        return NOW + timedelta(hours=hours) if hours is not None else None

    return PendingDeadline(
        deadline_id=uuid.uuid4(),
        booking_id=uuid.uuid4(),
        cut_offs=CutOffs(si=at(si), vgm=at(vgm), cy=at(cy)),
        latches=latches or Latches(),
        booking=BookingContext(
            booking_number=booking_number,
            route="HCM → LAX",
            vessel_flight="EVER GIVEN 042E",
            shipment_type="FCL",
        ),
    )


def _make_engine(store, sender, clock=None, **kwargs) -> EscalationEngine:
    return EscalationEngine(
        store=store,
        dispatcher=AlertDispatcher(sender),
        clock=clock or Clock(NOW),
        **kwargs,
    )


# ─── Scenarios ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_six_hour_alert_fires_once():
    """CY cut-off at +5h, others later → one CRITICAL H6 alert, latch set, rerun fires nothing."""
    record = _make_record(si=30, vgm=20, cy=5)
    store = InMemoryDeadlineStore([record])
    sender = RecordingSender()
    engine = _make_engine(store, sender)

    result = await engine.run_sweep()

    assert result.summary() == {"scanned": 1, "fired": 1, "failed": 0}
    assert len(sender.sent) == 1
    alert = sender.sent[0]
    assert alert.type == "DEADLINE_6H"
    assert alert.priority == "CRITICAL"
    assert "Cut-off CY" in alert.message
    assert store.records[record.deadline_id].latches.alerted_6h is True
    assert store.latch_writes == [(record.deadline_id, EscalationTier.H6, NOW)]

    second = await engine.run_sweep()

    assert second.summary() == {"scanned": 1, "fired": 0, "failed": 0}
    assert len(sender.sent) == 1


@pytest.mark.asyncio
async def test_overdue_alert_states_elapsed_hours():
    """Earliest cut-off 3h ago → CRITICAL OVERDUE alert mentioning ~3.0 hours."""
    record = _make_record(si=-3, vgm=2, cy=10)
    store = InMemoryDeadlineStore([record])
    sender = RecordingSender()

    result = await _make_engine(store, sender).run_sweep()

    assert result.fired == 1
    alert = sender.sent[0]
    assert alert.type == "DEADLINE_OVERDUE"
    assert alert.priority == "CRITICAL"
    assert "3.0 hours past" in alert.message
    assert store.records[record.deadline_id].latches.alerted_overdue is True


@pytest.mark.asyncio
async def test_deadline_exactly_now_fires_nothing():
    """hoursUntil == 0 → no tier → no alert and no latch write."""
    record = _make_record(si=0, vgm=5, cy=5)
    store = InMemoryDeadlineStore([record])
    sender = RecordingSender()

    result = await _make_engine(store, sender).run_sweep()

    assert result.summary() == {"scanned": 1, "fired": 0, "failed": 0}
    assert sender.sent == []
    assert store.latch_writes == []


@pytest.mark.asyncio
async def test_dispatch_failure_is_isolated():
    """Record A dispatch errors, record B succeeds → fired=1, failed=1, A's latches unchanged."""
    rec_a = _make_record("BK-A", cy=5)
    rec_b = _make_record("BK-B", cy=20)
    store = InMemoryDeadlineStore([rec_a, rec_b])
    sender = RecordingSender()
    sender.fail_for.add(rec_a.booking_id)

    result = await _make_engine(store, sender).run_sweep()

    assert result.summary() == {"scanned": 2, "fired": 1, "failed": 1}
    assert store.records[rec_a.deadline_id].latches == Latches()
    assert store.records[rec_b.deadline_id].latches.alerted_24h is True

    by_booking = {o.booking_number: o for o in result.outcomes}
    assert by_booking["BK-A"].status is OutcomeStatus.DISPATCH_FAILED
    assert "unavailable" in by_booking["BK-A"].error
    assert by_booking["BK-B"].status is OutcomeStatus.FIRED


@pytest.mark.asyncio
async def test_failed_dispatch_is_retried_next_sweep():
    record = _make_record(cy=5)
    store = InMemoryDeadlineStore([record])
    sender = RecordingSender()
    sender.fail_for.add(record.booking_id)
    engine = _make_engine(store, sender)

    first = await engine.run_sweep()
    sender.fail_for.clear()
    second = await engine.run_sweep()

    assert first.failed == 1
    assert second.fired == 1
    assert store.records[record.deadline_id].latches.alerted_6h is True


@pytest.mark.asyncio
async def test_sales_confirmed_record_excluded_from_next_sweep():
    """salesConfirmed flips between sweeps → record is not scanned even though a tier matches."""
    record = _make_record(cy=30)
    store = InMemoryDeadlineStore([record])
    sender = RecordingSender()
    clock = Clock(NOW)
    engine = _make_engine(store, sender, clock=clock)

    first = await engine.run_sweep()
    assert first.fired == 1  # 48h tier

    store.sales_confirmed.add(record.deadline_id)
    clock.advance(hours=10)  # now inside the 24h window
    second = await engine.run_sweep()

    assert second.summary() == {"scanned": 0, "fired": 0, "failed": 0}
    assert len(sender.sent) == 1


# ─── Properties ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_second_sweep_without_clock_advance_fires_nothing():
    records = [
        _make_record("BK-1", si=-1),
        _make_record("BK-2", vgm=4),
        _make_record("BK-3", cy=9),
        _make_record("BK-4", si=18),
        _make_record("BK-5", vgm=47),
        _make_record("BK-6", cy=200),
    ]
    store = InMemoryDeadlineStore(records)
    sender = RecordingSender()
    engine = _make_engine(store, sender)

    first = await engine.run_sweep()
    second = await engine.run_sweep()

    assert first.summary() == {"scanned": 6, "fired": 5, "failed": 0}
    assert {a.type for a in sender.sent} == {
        "DEADLINE_OVERDUE", "DEADLINE_6H", "DEADLINE_12H", "DEADLINE_24H", "DEADLINE_48H",
    }
    assert second.summary() == {"scanned": 6, "fired": 0, "failed": 0}


@pytest.mark.asyncio
async def test_latches_accumulate_and_never_revert():
    """Walk one record from +47h to overdue; each tier fires once and earlier latches stay set."""
    record = _make_record(si=47, vgm=60, cy=60)
    store = InMemoryDeadlineStore([record])
    sender = RecordingSender()
    clock = Clock(NOW)
    engine = _make_engine(store, sender, clock=clock)

    seen: list[Latches] = []
    for advance_hours in (0, 24, 11, 7, 6, 1):
        clock.advance(hours=advance_hours)
        await engine.run_sweep()
        await engine.run_sweep()
        seen.append(store.records[record.deadline_id].latches)

    assert [a.type for a in sender.sent] == [
        "DEADLINE_48H", "DEADLINE_24H", "DEADLINE_12H", "DEADLINE_6H", "DEADLINE_OVERDUE",
    ]
    fields = ("alerted_48h", "alerted_24h", "alerted_12h", "alerted_6h", "alerted_overdue")
    for earlier, later in zip(seen, seen[1:]):
        for name in fields:
            if getattr(earlier, name):
                assert getattr(later, name) is True
    assert all(getattr(seen[-1], name) for name in fields)


@pytest.mark.asyncio
async def test_latch_written_only_after_successful_dispatch():
    record = _make_record(cy=5)
    store = InMemoryDeadlineStore([record])
    sender = RecordingSender()
    order: list[str] = []

    original_send, original_set_latch = sender.send, store.set_latch

    async def send(alert):
        order.append("dispatch")
        return await original_send(alert)

    async def set_latch(*args):
        order.append("latch")
        return await original_set_latch(*args)

    sender.send, store.set_latch = send, set_latch

    await _make_engine(store, sender).run_sweep()

    assert order == ["dispatch", "latch"]


# ─── Failure handling ─────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_fetch_failure_aborts_sweep_without_raising():
    store = InMemoryDeadlineStore([_make_record(cy=5)])
    store.fail_fetch = True
    sender = RecordingSender()

    result = await _make_engine(store, sender).run_sweep()

    assert result.aborted is True
    assert "connection refused" in result.error
    assert result.summary() == {"scanned": 0, "fired": 0, "failed": 0}
    assert sender.sent == []


@pytest.mark.asyncio
async def test_fetch_timeout_aborts_sweep():
    store = InMemoryDeadlineStore([_make_record(cy=5)])
    store.fetch_delay = 0.5
    sender = RecordingSender()

    result = await _make_engine(store, sender, store_timeout=0.01).run_sweep()

    assert result.aborted is True
    assert "timed out" in result.error
    assert sender.sent == []


@pytest.mark.asyncio
async def test_dispatch_timeout_counts_as_dispatch_failure():
    record = _make_record(cy=5)
    store = InMemoryDeadlineStore([record])
    sender = RecordingSender()
    sender.delay = 0.5

    result = await _make_engine(store, sender, dispatch_timeout=0.01).run_sweep()

    assert result.failed == 1
    assert result.outcomes[0].status is OutcomeStatus.DISPATCH_FAILED
    assert "timed out" in result.outcomes[0].error
    assert store.records[record.deadline_id].latches == Latches()


@pytest.mark.asyncio
async def test_latch_write_failure_reported_and_refires():
    """Dispatch succeeds but the latch write fails → WRITE_FAILED; next sweep alerts again."""
    record = _make_record(cy=5)
    store = InMemoryDeadlineStore([record])
    store.fail_writes.add(record.deadline_id)
    sender = RecordingSender()
    engine = _make_engine(store, sender)

    first = await engine.run_sweep()

    assert first.summary() == {"scanned": 1, "fired": 0, "failed": 1}
    assert first.outcomes[0].status is OutcomeStatus.WRITE_FAILED
    assert len(sender.sent) == 1

    store.fail_writes.clear()
    second = await engine.run_sweep()

    assert second.fired == 1
    assert len(sender.sent) == 2  # accepted duplicate


@pytest.mark.asyncio
async def test_empty_candidate_set_is_a_noop():
    store = InMemoryDeadlineStore([])
    sender = RecordingSender()

    result = await _make_engine(store, sender).run_sweep()

    assert result.aborted is False
    assert result.summary() == {"scanned": 0, "fired": 0, "failed": 0}
    assert result.finished_at == NOW
