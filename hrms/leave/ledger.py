"""Leave ledger — balance derivation and the leave-request state machine.

Balances are never stored. Every read folds the employee's requests
against the active leave-type catalog, so a balance always agrees with
the request history.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from hrms.common.constants import LeaveStatus
from hrms.common.exceptions import AlreadyProcessed, CancellationNotAllowed

HALF_DAY = Decimal("0.5")
ZERO = Decimal("0")

# Edges an existing request may take. Anything absent is rejected.
ALLOWED_TRANSITIONS: dict[LeaveStatus, frozenset[LeaveStatus]] = {
    LeaveStatus.pending: frozenset(
        {LeaveStatus.approved, LeaveStatus.rejected, LeaveStatus.cancelled}
    ),
    LeaveStatus.approved: frozenset({LeaveStatus.cancelled}),
    LeaveStatus.rejected: frozenset(),
    LeaveStatus.cancelled: frozenset(),
}


# ── Day counting ────────────────────────────────────────────────────

def compute_number_of_days(from_date: date, to_date: date, is_half_day: bool = False) -> Decimal:
    """Calendar-day span, inclusive. A half-day request is always 0.5."""
    if is_half_day:
        return HALF_DAY
    return Decimal((to_date - from_date).days + 1)


# ── State machine ───────────────────────────────────────────────────

def can_transition(current: LeaveStatus, target: LeaveStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_can_decide(current: LeaveStatus) -> None:
    """Approver decisions apply only to pending requests."""
    if current != LeaveStatus.pending:
        raise AlreadyProcessed(current)


def ensure_can_cancel(current: LeaveStatus, from_date: date, today: date) -> None:
    """Cancellable while pending, or while approved and not yet started."""
    if not can_transition(current, LeaveStatus.cancelled):
        raise CancellationNotAllowed(
            f"Cannot cancel a leave request with status '{current.value}'."
        )
    if current == LeaveStatus.approved and from_date <= today:
        raise CancellationNotAllowed(
            "Approved leave that has already started cannot be cancelled."
        )


def cancellable_statuses(from_date: date, today: date) -> tuple[LeaveStatus, ...]:
    """Statuses from which a cancel may be persisted right now."""
    if from_date > today:
        return (LeaveStatus.pending, LeaveStatus.approved)
    return (LeaveStatus.pending,)


# ── Balances ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class LeaveBalance:
    leave_type_id: uuid.UUID
    name: str
    code: str
    allocated: Decimal
    used: Decimal
    pending: Decimal
    available: Decimal
    carried_forward: Decimal = ZERO
    adjustment: Decimal = ZERO
    color: Optional[str] = None


def _overlaps_year(from_date: date, to_date: date, year: int) -> bool:
    return from_date <= date(year, 12, 31) and to_date >= date(year, 1, 1)


def compute_balances(
    leave_types: Iterable[Any],
    requests: Iterable[Any],
    year: int,
) -> list[LeaveBalance]:
    """One balance per active leave type for *year*.

    ``used`` and ``pending`` sum ``number_of_days`` over approved and
    pending requests whose range overlaps the year; the whole request
    counts even when it straddles a year boundary. Carry-forward and
    adjustment are always zero. ``available`` is clamped at zero.
    """
    used: dict[uuid.UUID, Decimal] = {}
    pending: dict[uuid.UUID, Decimal] = {}
    for req in requests:
        if not _overlaps_year(req.from_date, req.to_date, year):
            continue
        status = LeaveStatus(req.status)
        if status == LeaveStatus.approved:
            bucket = used
        elif status == LeaveStatus.pending:
            bucket = pending
        else:
            continue
        bucket[req.leave_type_id] = bucket.get(req.leave_type_id, ZERO) + Decimal(req.number_of_days)

    balances: list[LeaveBalance] = []
    for lt in leave_types:
        if not lt.is_active:
            continue
        allocated = Decimal(lt.days_allowed)
        lt_used = used.get(lt.id, ZERO)
        balances.append(
            LeaveBalance(
                leave_type_id=lt.id,
                name=lt.name,
                code=lt.code,
                allocated=allocated,
                used=lt_used,
                pending=pending.get(lt.id, ZERO),
                available=max(ZERO, allocated - lt_used),
                color=getattr(lt, "color", None),
            )
        )
    return balances
