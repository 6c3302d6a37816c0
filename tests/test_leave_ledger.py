"""Leave ledger tests — day counting, state machine, derived balances.

Pure logic; no database.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

import pytest

from hrms.common.constants import LeaveStatus
from hrms.common.exceptions import AlreadyProcessed, CancellationNotAllowed
from hrms.leave import ledger


@dataclass
class _Type:
    id: uuid.UUID
    name: str
    code: str
    days_allowed: Decimal
    is_active: bool = True
    color: Optional[str] = None


@dataclass
class _Req:
    leave_type_id: uuid.UUID
    from_date: date
    to_date: date
    number_of_days: Decimal
    status: LeaveStatus


def _casual(days: str = "12", **kw) -> _Type:
    return _Type(id=uuid.uuid4(), name="Casual Leave", code="CL", days_allowed=Decimal(days), **kw)


# ═════════════════════════════════════════════════════════════════════
# 1. Day counting
# ═════════════════════════════════════════════════════════════════════


class TestNumberOfDays:

    def test_single_day(self):
        assert ledger.compute_number_of_days(date(2026, 3, 1), date(2026, 3, 1)) == Decimal("1")

    def test_three_day_span(self):
        assert ledger.compute_number_of_days(date(2026, 3, 1), date(2026, 3, 3)) == Decimal("3")

    def test_half_day(self):
        assert ledger.compute_number_of_days(
            date(2026, 3, 1), date(2026, 3, 1), True,
        ) == Decimal("0.5")

    def test_half_day_ignores_span(self):
        assert ledger.compute_number_of_days(
            date(2026, 3, 1), date(2026, 3, 5), is_half_day=True,
        ) == Decimal("0.5")

    def test_weekends_are_counted(self):
        """Calendar days, not working days: Fri..Mon is 4."""
        assert ledger.compute_number_of_days(date(2026, 3, 6), date(2026, 3, 9)) == Decimal("4")


# ═════════════════════════════════════════════════════════════════════
# 2. State machine
# ═════════════════════════════════════════════════════════════════════


class TestTransitions:

    @pytest.mark.parametrize(
        "current, target, allowed",
        [
            (LeaveStatus.pending, LeaveStatus.approved, True),
            (LeaveStatus.pending, LeaveStatus.rejected, True),
            (LeaveStatus.pending, LeaveStatus.cancelled, True),
            (LeaveStatus.approved, LeaveStatus.cancelled, True),
            (LeaveStatus.approved, LeaveStatus.rejected, False),
            (LeaveStatus.approved, LeaveStatus.pending, False),
            (LeaveStatus.rejected, LeaveStatus.approved, False),
            (LeaveStatus.rejected, LeaveStatus.cancelled, False),
            (LeaveStatus.cancelled, LeaveStatus.approved, False),
            (LeaveStatus.cancelled, LeaveStatus.pending, False),
        ],
    )
    def test_can_transition(self, current, target, allowed):
        assert ledger.can_transition(current, target) is allowed

    def test_decide_pending_ok(self):
        ledger.ensure_can_decide(LeaveStatus.pending)

    @pytest.mark.parametrize(
        "current", [LeaveStatus.approved, LeaveStatus.rejected, LeaveStatus.cancelled],
    )
    def test_decide_processed_fails(self, current):
        with pytest.raises(AlreadyProcessed) as exc:
            ledger.ensure_can_decide(current)
        assert current.value in exc.value.detail

    def test_cancel_pending_any_time(self):
        ledger.ensure_can_cancel(LeaveStatus.pending, date(2026, 3, 1), date(2026, 3, 10))

    def test_cancel_future_approved(self):
        ledger.ensure_can_cancel(LeaveStatus.approved, date(2026, 3, 11), date(2026, 3, 10))

    @pytest.mark.parametrize("from_date", [date(2026, 3, 10), date(2026, 3, 1)])
    def test_cancel_started_approved_fails(self, from_date):
        with pytest.raises(CancellationNotAllowed):
            ledger.ensure_can_cancel(LeaveStatus.approved, from_date, date(2026, 3, 10))

    @pytest.mark.parametrize("current", [LeaveStatus.rejected, LeaveStatus.cancelled])
    def test_cancel_terminal_fails(self, current):
        with pytest.raises(CancellationNotAllowed):
            ledger.ensure_can_cancel(current, date(2026, 4, 1), date(2026, 3, 10))

    def test_cancellable_statuses(self):
        today = date(2026, 3, 10)
        assert ledger.cancellable_statuses(date(2026, 3, 11), today) == (
            LeaveStatus.pending, LeaveStatus.approved,
        )
        assert ledger.cancellable_statuses(today, today) == (LeaveStatus.pending,)


# ═════════════════════════════════════════════════════════════════════
# 3. Balances
# ═════════════════════════════════════════════════════════════════════


class TestBalances:

    def test_used_and_available(self):
        cl = _casual()
        reqs = [_Req(cl.id, date(2026, 3, 2), date(2026, 3, 6), Decimal("5"), LeaveStatus.approved)]
        [bal] = ledger.compute_balances([cl], reqs, 2026)
        assert bal.allocated == Decimal("12")
        assert bal.used == Decimal("5")
        assert bal.available == Decimal("7")
        assert bal.pending == Decimal("0")

    def test_pending_does_not_reduce_available(self):
        cl = _casual()
        reqs = [
            _Req(cl.id, date(2026, 3, 2), date(2026, 3, 6), Decimal("5"), LeaveStatus.approved),
            _Req(cl.id, date(2026, 4, 1), date(2026, 4, 3), Decimal("3"), LeaveStatus.pending),
        ]
        [bal] = ledger.compute_balances([cl], reqs, 2026)
        assert bal.used == Decimal("5")
        assert bal.pending == Decimal("3")
        assert bal.available == Decimal("7")

    def test_available_clamped_at_zero(self):
        cl = _casual()
        reqs = [_Req(cl.id, date(2026, 1, 5), date(2026, 1, 19), Decimal("15"), LeaveStatus.approved)]
        [bal] = ledger.compute_balances([cl], reqs, 2026)
        assert bal.used == Decimal("15")
        assert bal.available == Decimal("0")

    @pytest.mark.parametrize("status", [LeaveStatus.rejected, LeaveStatus.cancelled])
    def test_terminal_requests_ignored(self, status):
        cl = _casual()
        reqs = [_Req(cl.id, date(2026, 3, 2), date(2026, 3, 6), Decimal("5"), status)]
        [bal] = ledger.compute_balances([cl], reqs, 2026)
        assert bal.used == Decimal("0")
        assert bal.available == Decimal("12")

    def test_other_year_ignored(self):
        cl = _casual()
        reqs = [_Req(cl.id, date(2025, 3, 2), date(2025, 3, 6), Decimal("5"), LeaveStatus.approved)]
        [bal] = ledger.compute_balances([cl], reqs, 2026)
        assert bal.used == Decimal("0")

    def test_year_straddling_request_counts_in_both_years(self):
        cl = _casual()
        reqs = [_Req(cl.id, date(2025, 12, 30), date(2026, 1, 2), Decimal("4"), LeaveStatus.approved)]
        assert ledger.compute_balances([cl], reqs, 2025)[0].used == Decimal("4")
        assert ledger.compute_balances([cl], reqs, 2026)[0].used == Decimal("4")

    def test_half_day_counts_half(self):
        cl = _casual()
        reqs = [_Req(cl.id, date(2026, 3, 2), date(2026, 3, 2), Decimal("0.5"), LeaveStatus.approved)]
        assert ledger.compute_balances([cl], reqs, 2026)[0].available == Decimal("11.5")

    def test_per_type_buckets_and_inactive_types_skipped(self):
        cl = _casual()
        sl = _Type(id=uuid.uuid4(), name="Sick Leave", code="SL", days_allowed=Decimal("10"))
        old = _Type(
            id=uuid.uuid4(), name="Old Leave", code="OL",
            days_allowed=Decimal("5"), is_active=False,
        )
        reqs = [
            _Req(cl.id, date(2026, 3, 2), date(2026, 3, 3), Decimal("2"), LeaveStatus.approved),
            _Req(sl.id, date(2026, 3, 4), date(2026, 3, 4), Decimal("1"), LeaveStatus.approved),
        ]
        balances = {b.code: b for b in ledger.compute_balances([cl, sl, old], reqs, 2026)}
        assert set(balances) == {"CL", "SL"}
        assert balances["CL"].available == Decimal("10")
        assert balances["SL"].available == Decimal("9")

    def test_carry_forward_and_adjustment_are_zero(self):
        [bal] = ledger.compute_balances([_casual()], [], 2026)
        assert bal.carried_forward == Decimal("0")
        assert bal.adjustment == Decimal("0")
