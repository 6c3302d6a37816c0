"""Day resolver tests — precedence, working hours, month summary, view helpers.

Pure logic; no database. Dates are in March 2026 (1st is a Sunday).
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from hrms.attendance import resolver
from hrms.attendance.resolver import (
    AttendanceFact,
    HolidayFact,
    LeaveFact,
    classify_working_hours,
    compute_working_hours,
    resolve_day,
    resolve_range,
    summarize,
)
from hrms.common.constants import (
    AttendanceStatus,
    DaySource,
    DayStatus,
    HolidayType,
    LeaveStatus,
)

MONDAY = date(2026, 3, 2)
SATURDAY = date(2026, 3, 7)
SUNDAY = date(2026, 3, 8)

UTC = timezone.utc


def _attendance(day: date, status=AttendanceStatus.present, **kw) -> AttendanceFact:
    check_in = kw.pop("check_in", datetime(day.year, day.month, day.day, 3, 30, tzinfo=UTC))
    return AttendanceFact(date=day, status=status, check_in_time=check_in, **kw)


def _leave(from_date: date, to_date: date, status=LeaveStatus.approved, **kw) -> LeaveFact:
    return LeaveFact(
        id=uuid.uuid4(),
        leave_type_name=kw.pop("name", "Casual Leave"),
        from_date=from_date,
        to_date=to_date,
        status=status,
        **kw,
    )


def _holiday(day: date, name="Holi", type=HolidayType.public, is_active=True) -> HolidayFact:
    return HolidayFact(date=day, name=name, type=type, is_active=is_active)


# ═════════════════════════════════════════════════════════════════════
# 1. Precedence
# ═════════════════════════════════════════════════════════════════════


class TestPrecedence:

    def test_plain_weekday_is_absent(self):
        day = resolve_day(MONDAY)
        assert day.status == DayStatus.absent
        assert day.source == DaySource.none

    def test_weekend(self):
        assert resolve_day(SATURDAY).status == DayStatus.weekend
        assert resolve_day(SUNDAY).status == DayStatus.weekend

    def test_custom_weekend_days(self):
        """Friday-only weekend: Saturday becomes a working day."""
        friday = date(2026, 3, 6)
        assert resolve_day(friday, weekend_days=frozenset({4})).status == DayStatus.weekend
        assert resolve_day(SATURDAY, weekend_days=frozenset({4})).status == DayStatus.absent

    def test_public_holiday_on_weekday(self):
        day = resolve_day(MONDAY, holidays=[_holiday(MONDAY)])
        assert day.status == DayStatus.holiday
        assert day.remarks == "Holi"

    @pytest.mark.parametrize("kind", [HolidayType.restricted, HolidayType.optional])
    def test_non_public_holiday_on_weekday(self, kind):
        day = resolve_day(MONDAY, holidays=[_holiday(MONDAY, name="Maha Shivaratri", type=kind)])
        assert day.status == DayStatus.holiday
        assert day.source == DaySource.holiday
        assert day.remarks == "Maha Shivaratri"
        assert day.details()["holidays"] == [{"name": "Maha Shivaratri", "type": kind.value}]

    def test_public_holiday_named_first_on_shared_date(self):
        day = resolve_day(
            MONDAY,
            holidays=[
                _holiday(MONDAY, name="Onam", type=HolidayType.restricted),
                _holiday(MONDAY, name="Holi"),
            ],
        )
        assert day.status == DayStatus.holiday
        assert day.remarks == "Holi"

    def test_inactive_holiday_ignored(self):
        day = resolve_day(MONDAY, holidays=[_holiday(MONDAY, is_active=False)])
        assert day.status == DayStatus.absent

    def test_holiday_outranks_weekend(self):
        assert resolve_day(SATURDAY, holidays=[_holiday(SATURDAY)]).status == DayStatus.holiday

    def test_leave_outranks_weekend(self):
        """Approved leave covering a Saturday resolves to on_leave."""
        day = resolve_day(SATURDAY, leaves=[_leave(date(2026, 3, 6), date(2026, 3, 9))])
        assert day.status == DayStatus.on_leave
        assert day.source == DaySource.leave

    def test_leave_outranks_holiday(self):
        day = resolve_day(MONDAY, leaves=[_leave(MONDAY, MONDAY)], holidays=[_holiday(MONDAY)])
        assert day.status == DayStatus.on_leave

    def test_attendance_outranks_leave(self):
        day = resolve_day(
            MONDAY,
            attendance=_attendance(MONDAY),
            leaves=[_leave(MONDAY, MONDAY)],
        )
        assert day.status == DayStatus.present
        assert day.source == DaySource.attendance

    def test_attendance_on_weekend_is_present(self):
        assert resolve_day(SUNDAY, attendance=_attendance(SUNDAY)).status == DayStatus.present

    def test_attendance_without_check_in_falls_through(self):
        fact = AttendanceFact(date=MONDAY, status=AttendanceStatus.absent, check_in_time=None)
        day = resolve_day(MONDAY, attendance=fact, holidays=[_holiday(MONDAY)])
        assert day.status == DayStatus.holiday

    def test_attendance_for_another_date_ignored(self):
        day = resolve_day(MONDAY, attendance=_attendance(date(2026, 3, 3)))
        assert day.status == DayStatus.absent

    @pytest.mark.parametrize(
        "status",
        [LeaveStatus.pending, LeaveStatus.rejected, LeaveStatus.cancelled],
    )
    def test_non_approved_leave_ignored(self, status):
        day = resolve_day(MONDAY, leaves=[_leave(MONDAY, MONDAY, status=status)])
        assert day.status == DayStatus.absent

    def test_half_day_leave_label(self):
        day = resolve_day(MONDAY, leaves=[_leave(MONDAY, MONDAY, is_half_day=True)])
        assert day.remarks == "Casual Leave (Half Day)"

    def test_overlapping_leaves_earliest_wins(self):
        later = _leave(MONDAY, MONDAY, name="Sick Leave")
        earlier = _leave(date(2026, 2, 27), MONDAY, name="Earned Leave")
        day = resolve_day(MONDAY, leaves=[later, earlier])
        assert day.leave == earlier

    def test_every_day_gets_exactly_one_status(self):
        """The rule list is total: any combination yields one status."""
        leaves = [_leave(date(2026, 3, 10), date(2026, 3, 12))]
        holidays = [_holiday(date(2026, 3, 4)), _holiday(SATURDAY)]
        attendance = [_attendance(date(2026, 3, 11)), _attendance(SUNDAY)]
        days = resolve_range(
            date(2026, 3, 1), date(2026, 3, 31),
            attendance=attendance, leaves=leaves, holidays=holidays,
        )
        assert len(days) == 31
        assert [d.date for d in days] == [
            date(2026, 3, 1) + timedelta(days=i) for i in range(31)
        ]
        assert all(isinstance(d.status, DayStatus) for d in days)


# ═════════════════════════════════════════════════════════════════════
# 2. Raw attendance statuses
# ═════════════════════════════════════════════════════════════════════


class TestAttendanceStatuses:

    def test_wfh_record(self):
        day = resolve_day(MONDAY, attendance=_attendance(MONDAY, status=AttendanceStatus.wfh))
        assert day.status == DayStatus.wfh
        assert day.stat_status == DayStatus.wfh

    def test_on_break_record(self):
        day = resolve_day(MONDAY, attendance=_attendance(MONDAY, status=AttendanceStatus.on_break))
        assert day.status == DayStatus.on_break

    def test_half_day_shows_present_but_counts_half_day(self):
        day = resolve_day(MONDAY, attendance=_attendance(MONDAY, status=AttendanceStatus.half_day))
        assert day.status == DayStatus.present
        assert day.stat_status == DayStatus.half_day


# ═════════════════════════════════════════════════════════════════════
# 3. Working hours
# ═════════════════════════════════════════════════════════════════════


class TestWorkingHours:

    def test_nine_to_six_is_present(self):
        hours = compute_working_hours(
            datetime(2026, 3, 2, 9, 0, tzinfo=UTC), datetime(2026, 3, 2, 18, 0, tzinfo=UTC),
        )
        assert hours == 9.0
        assert classify_working_hours(hours) == AttendanceStatus.present

    def test_short_day_stays_present(self):
        hours = compute_working_hours(
            datetime(2026, 3, 2, 9, 0, tzinfo=UTC), datetime(2026, 3, 2, 12, 30, tzinfo=UTC),
        )
        assert hours == 3.5
        assert classify_working_hours(hours) == AttendanceStatus.present

    @pytest.mark.parametrize(
        "hours, expected",
        [
            (8.0, AttendanceStatus.present),
            (7.99, AttendanceStatus.half_day),
            (4.0, AttendanceStatus.half_day),
            (3.99, AttendanceStatus.present),
            (0.0, AttendanceStatus.present),
        ],
    )
    def test_thresholds(self, hours, expected):
        assert classify_working_hours(hours) == expected

    def test_custom_thresholds(self):
        assert classify_working_hours(6.0, full_day=9.0, half_day=5.0) == AttendanceStatus.half_day

    def test_naive_instants_treated_as_utc(self):
        hours = compute_working_hours(
            datetime(2026, 3, 2, 3, 30), datetime(2026, 3, 2, 12, 30, tzinfo=UTC),
        )
        assert hours == 9.0


# ═════════════════════════════════════════════════════════════════════
# 4. Month summary
# ═════════════════════════════════════════════════════════════════════


class TestSummary:

    def test_march_summary(self):
        days = resolve_range(
            date(2026, 3, 1), date(2026, 3, 31),
            attendance=[
                _attendance(date(2026, 3, 2)),
                _attendance(date(2026, 3, 3), status=AttendanceStatus.half_day),
                _attendance(date(2026, 3, 4), status=AttendanceStatus.wfh),
            ],
            leaves=[_leave(date(2026, 3, 5), date(2026, 3, 6))],
            holidays=[_holiday(date(2026, 3, 9))],
        )
        summary = summarize(days)
        assert summary.present == 1
        assert summary.half_day == 1
        assert summary.wfh == 1
        assert summary.leave == 2
        assert summary.holiday == 1
        assert summary.weekend == 9
        assert summary.absent == 31 - 1 - 1 - 1 - 2 - 1 - 9

    def test_as_dict_keys(self):
        assert set(summarize([]).as_dict()) == {
            "present", "wfh", "leave", "holiday", "absent", "half_day", "weekend", "on_break",
        }


# ═════════════════════════════════════════════════════════════════════
# 5. Presentation helpers
# ═════════════════════════════════════════════════════════════════════


class TestPresentation:

    def test_format_duration(self):
        start = datetime(2026, 3, 2, 3, 30, tzinfo=UTC)
        assert resolver.format_duration(start, start + timedelta(hours=2, minutes=5)) == "2h 5m"

    def test_format_duration_negative_clamped(self):
        start = datetime(2026, 3, 2, 3, 30, tzinfo=UTC)
        assert resolver.format_duration(start, start - timedelta(minutes=5)) == "0h 0m"

    def test_format_since_uses_office_time(self):
        # 03:30 UTC is 09:00 in Asia/Kolkata
        assert resolver.format_since(datetime(2026, 3, 2, 3, 30, tzinfo=UTC)) == "Since 9:00 AM"

    def test_format_until(self):
        assert resolver.format_until(date(2026, 3, 5)) == "until Mar 5"

    @pytest.mark.parametrize(
        "designation, department, expected",
        [
            ("Engineering Manager", "Engineering", True),
            ("Head of Design", "Design", True),
            ("Software Engineer", "Management", True),
            ("Software Engineer", "Engineering", False),
            (None, None, False),
        ],
    )
    def test_is_leader(self, designation, department, expected):
        assert resolver.is_leader(
            designation, department, leadership_department="Management",
        ) is expected

    def test_average_clock(self):
        instants = [
            datetime(2026, 3, 2, 3, 30, tzinfo=UTC),   # 9:00 AM IST
            datetime(2026, 3, 2, 4, 31, tzinfo=UTC),   # 10:01 AM IST
        ]
        assert resolver.average_clock(instants) == "9:30 AM"

    def test_average_clock_empty(self):
        assert resolver.average_clock([]) is None

    def test_details_reference_leave(self):
        lv = _leave(MONDAY, MONDAY)
        details = resolve_day(MONDAY, leaves=[lv]).details()
        assert details["leave_request_id"] == lv.id
        assert details["source"] == "leave"

    def test_leave_fact_number_of_days_default(self):
        assert _leave(MONDAY, MONDAY).number_of_days == Decimal("1")
