"""Day resolver — one canonical status per employee per calendar date.

Pure functions over plain records. Services load rows from storage,
wrap them in the ``*Fact`` snapshots below and hand them here; nothing
in this module touches a database session.

Precedence (first matching rule wins):

  1. attendance record with a check-in
  2. approved leave covering the date
  3. active holiday (any type)
  4. configured weekend day
  5. absent
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Iterable, NamedTuple, Optional, Sequence

from hrms.common.constants import (
    AttendanceStatus,
    DaySource,
    DayStatus,
    HalfDayType,
    HolidayType,
    LeaveStatus,
)
from hrms.common.timeutils import ensure_aware, format_clock, to_local

DEFAULT_WEEKEND: frozenset[int] = frozenset({5, 6})   # Sat, Sun
FULL_DAY_HOURS = 8.0
HALF_DAY_HOURS = 4.0

LEADER_PATTERN = re.compile(r"(Chief|Head|Manager|Director|Lead)", re.IGNORECASE)


# ═════════════════════════════════════════════════════════════════════
# Input snapshots
# ═════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AttendanceFact:
    date: date
    status: AttendanceStatus
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    working_hours: Optional[float] = None
    is_late: bool = False
    remarks: Optional[str] = None

    @classmethod
    def of(cls, row: Any) -> AttendanceFact:
        return cls(
            date=row.date,
            status=AttendanceStatus(row.status),
            check_in_time=ensure_aware(row.check_in_time) if row.check_in_time else None,
            check_out_time=ensure_aware(row.check_out_time) if row.check_out_time else None,
            working_hours=row.working_hours,
            is_late=bool(row.is_late),
            remarks=row.remarks,
        )


@dataclass(frozen=True)
class LeaveFact:
    id: Optional[uuid.UUID]
    leave_type_name: str
    from_date: date
    to_date: date
    status: LeaveStatus
    number_of_days: Decimal = Decimal("1")
    is_half_day: bool = False
    half_day_type: Optional[HalfDayType] = None

    @classmethod
    def of(cls, row: Any) -> LeaveFact:
        """Snapshot a LeaveRequest row (``leave_type`` must be loaded)."""
        return cls(
            id=row.id,
            leave_type_name=row.leave_type.name if row.leave_type else "Leave",
            from_date=row.from_date,
            to_date=row.to_date,
            status=LeaveStatus(row.status),
            number_of_days=Decimal(row.number_of_days),
            is_half_day=bool(row.is_half_day),
            half_day_type=row.half_day_type,
        )

    def covers(self, day: date) -> bool:
        return self.from_date <= day <= self.to_date

    @property
    def label(self) -> str:
        return f"{self.leave_type_name} (Half Day)" if self.is_half_day else self.leave_type_name


@dataclass(frozen=True)
class HolidayFact:
    date: date
    name: str
    type: HolidayType = HolidayType.public
    is_active: bool = True

    @classmethod
    def of(cls, row: Any) -> HolidayFact:
        return cls(
            date=row.date,
            name=row.name,
            type=HolidayType(row.type),
            is_active=bool(row.is_active),
        )


# ═════════════════════════════════════════════════════════════════════
# Output
# ═════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ResolvedDay:
    """Resolution of one date.

    ``status`` is the coarse display status (half-day attendance shows as
    present); ``stat_status`` keeps half_day separate for counting.
    """

    date: date
    status: DayStatus
    stat_status: DayStatus
    source: DaySource
    remarks: Optional[str] = None
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    working_hours: Optional[float] = None
    is_late: bool = False
    leave: Optional[LeaveFact] = None
    holidays: tuple[HolidayFact, ...] = ()

    def details(self) -> dict[str, Any]:
        return {
            "source": self.source.value,
            "stat_status": self.stat_status.value,
            "remarks": self.remarks,
            "check_in": self.check_in,
            "check_out": self.check_out,
            "working_hours": self.working_hours,
            "is_late": self.is_late,
            "leave_request_id": self.leave.id if self.leave else None,
            "holidays": [
                {"name": h.name, "type": h.type.value} for h in self.holidays
            ],
        }


@dataclass(frozen=True)
class DayContext:
    """Everything known about one employee on one date."""

    date: date
    attendance: Optional[AttendanceFact] = None
    leave: Optional[LeaveFact] = None
    holidays: tuple[HolidayFact, ...] = ()
    weekend_days: frozenset[int] = DEFAULT_WEEKEND

    @property
    def holiday(self) -> Optional[HolidayFact]:
        """The active holiday for the date, public holidays first."""
        active = [h for h in self.holidays if h.is_active and h.date == self.date]
        active.sort(key=lambda h: h.type != HolidayType.public)
        return active[0] if active else None


# ═════════════════════════════════════════════════════════════════════
# Precedence rules
# ═════════════════════════════════════════════════════════════════════


class Rule(NamedTuple):
    name: str
    applies: Callable[[DayContext], bool]
    build: Callable[[DayContext], ResolvedDay]


_COARSE_FROM_RAW: dict[AttendanceStatus, DayStatus] = {
    AttendanceStatus.wfh: DayStatus.wfh,
    AttendanceStatus.on_break: DayStatus.on_break,
}

_GRANULAR_FROM_RAW: dict[AttendanceStatus, DayStatus] = {
    AttendanceStatus.wfh: DayStatus.wfh,
    AttendanceStatus.on_break: DayStatus.on_break,
    AttendanceStatus.half_day: DayStatus.half_day,
}


def _from_attendance(ctx: DayContext) -> ResolvedDay:
    rec = ctx.attendance
    return ResolvedDay(
        date=ctx.date,
        status=_COARSE_FROM_RAW.get(rec.status, DayStatus.present),
        stat_status=_GRANULAR_FROM_RAW.get(rec.status, DayStatus.present),
        source=DaySource.attendance,
        remarks=rec.remarks,
        check_in=rec.check_in_time,
        check_out=rec.check_out_time,
        working_hours=rec.working_hours,
        is_late=rec.is_late,
        holidays=ctx.holidays,
    )


def _from_leave(ctx: DayContext) -> ResolvedDay:
    return ResolvedDay(
        date=ctx.date,
        status=DayStatus.on_leave,
        stat_status=DayStatus.on_leave,
        source=DaySource.leave,
        remarks=ctx.leave.label,
        leave=ctx.leave,
        holidays=ctx.holidays,
    )


def _from_holiday(ctx: DayContext) -> ResolvedDay:
    return ResolvedDay(
        date=ctx.date,
        status=DayStatus.holiday,
        stat_status=DayStatus.holiday,
        source=DaySource.holiday,
        remarks=ctx.holiday.name,
        holidays=ctx.holidays,
    )


def _simple(status: DayStatus, source: DaySource) -> Callable[[DayContext], ResolvedDay]:
    def _build(ctx: DayContext) -> ResolvedDay:
        return ResolvedDay(
            date=ctx.date,
            status=status,
            stat_status=status,
            source=source,
            holidays=ctx.holidays,
        )
    return _build


PRECEDENCE: tuple[Rule, ...] = (
    Rule(
        "attendance",
        lambda ctx: ctx.attendance is not None and ctx.attendance.check_in_time is not None,
        _from_attendance,
    ),
    Rule("leave", lambda ctx: ctx.leave is not None, _from_leave),
    Rule("holiday", lambda ctx: ctx.holiday is not None, _from_holiday),
    Rule(
        "weekend",
        lambda ctx: ctx.date.weekday() in ctx.weekend_days,
        _simple(DayStatus.weekend, DaySource.weekend),
    ),
    Rule("absent", lambda ctx: True, _simple(DayStatus.absent, DaySource.none)),
)


# ═════════════════════════════════════════════════════════════════════
# Resolution
# ═════════════════════════════════════════════════════════════════════


def resolve_day(
    day: date,
    *,
    attendance: Optional[AttendanceFact] = None,
    leaves: Iterable[LeaveFact] = (),
    holidays: Iterable[HolidayFact] = (),
    weekend_days: Optional[frozenset[int]] = None,
) -> ResolvedDay:
    """Resolve the status of *day*.

    *leaves* and *holidays* may contain rows for other dates or in other
    states; only approved leave covering *day* and holidays dated *day*
    are considered. An attendance fact for another date is ignored.
    """
    if attendance is not None and attendance.date != day:
        attendance = None
    covering = [
        lv for lv in leaves
        if lv.status == LeaveStatus.approved and lv.covers(day)
    ]
    # Earliest-starting leave wins when approved requests overlap
    covering.sort(key=lambda lv: (lv.from_date, lv.to_date))
    ctx = DayContext(
        date=day,
        attendance=attendance,
        leave=covering[0] if covering else None,
        holidays=tuple(h for h in holidays if h.date == day and h.is_active),
        weekend_days=DEFAULT_WEEKEND if weekend_days is None else weekend_days,
    )
    for rule in PRECEDENCE:
        if rule.applies(ctx):
            return rule.build(ctx)
    raise AssertionError("precedence list must end with a catch-all rule")


def resolve_range(
    start: date,
    end: date,
    *,
    attendance: Iterable[AttendanceFact] = (),
    leaves: Sequence[LeaveFact] = (),
    holidays: Sequence[HolidayFact] = (),
    weekend_days: Optional[frozenset[int]] = None,
) -> list[ResolvedDay]:
    """Resolve every date in [start, end] for a single employee."""
    by_date = {a.date: a for a in attendance}
    days: list[ResolvedDay] = []
    current = start
    while current <= end:
        days.append(
            resolve_day(
                current,
                attendance=by_date.get(current),
                leaves=leaves,
                holidays=holidays,
                weekend_days=weekend_days,
            )
        )
        current += timedelta(days=1)
    return days


# ── Working hours ───────────────────────────────────────────────────

def compute_working_hours(check_in: datetime, check_out: datetime) -> float:
    """Elapsed hours between check-in and check-out, unrounded."""
    return (ensure_aware(check_out) - ensure_aware(check_in)).total_seconds() / 3600


def classify_working_hours(
    hours: float,
    *,
    full_day: float = FULL_DAY_HOURS,
    half_day: float = HALF_DAY_HOURS,
) -> AttendanceStatus:
    """Status after check-out.

    Days shorter than *half_day* stay present; there is no short-day
    bucket.
    """
    if hours >= full_day:
        return AttendanceStatus.present
    if hours >= half_day:
        return AttendanceStatus.half_day
    return AttendanceStatus.present


# ── Aggregation ─────────────────────────────────────────────────────

@dataclass
class MonthSummary:
    present: int = 0
    wfh: int = 0
    leave: int = 0
    holiday: int = 0
    absent: int = 0
    half_day: int = 0
    weekend: int = 0
    on_break: int = 0

    def as_dict(self) -> dict[str, int]:
        return dict(self.__dict__)


_SUMMARY_BUCKET: dict[DayStatus, str] = {
    DayStatus.present: "present",
    DayStatus.wfh: "wfh",
    DayStatus.on_leave: "leave",
    DayStatus.holiday: "holiday",
    DayStatus.absent: "absent",
    DayStatus.half_day: "half_day",
    DayStatus.weekend: "weekend",
    DayStatus.on_break: "on_break",
}


def summarize(days: Iterable[ResolvedDay]) -> MonthSummary:
    """Count resolved days by granular status."""
    summary = MonthSummary()
    for day in days:
        bucket = _SUMMARY_BUCKET[day.stat_status]
        setattr(summary, bucket, getattr(summary, bucket) + 1)
    return summary


# ── Presentation helpers (team / virtual-office views) ──────────────

def format_duration(start: datetime, end: datetime) -> str:
    """``Xh Ym`` between two instants; negative spans render as ``0h 0m``."""
    minutes = max(0, int((ensure_aware(end) - ensure_aware(start)).total_seconds() // 60))
    return f"{minutes // 60}h {minutes % 60}m"


def format_since(check_in: datetime) -> str:
    return f"Since {format_clock(check_in)}"


def format_until(day: date) -> str:
    return f"until {day.strftime('%b')} {day.day}"


def is_leader(designation: Optional[str], department: Optional[str], *, leadership_department: str) -> bool:
    if designation and LEADER_PATTERN.search(designation):
        return True
    return bool(department) and department == leadership_department


def average_clock(instants: Iterable[datetime]) -> Optional[str]:
    """Average office-local time of day of *instants* as ``h:mm AM``."""
    minutes = [
        (local.hour * 60 + local.minute)
        for local in (to_local(i) for i in instants)
    ]
    if not minutes:
        return None
    avg = sum(minutes) // len(minutes)
    hour, minute = divmod(avg, 60)
    return f"{hour % 12 or 12}:{minute:02d} {'AM' if hour < 12 else 'PM'}"
