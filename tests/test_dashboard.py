"""Dashboard tests — KPI aggregation built on resolved days."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from hrms.attendance.models import AttendanceRecord, Holiday
from hrms.common.constants import AttendanceStatus, HolidayType, LeaveStatus
from hrms.core_hr.models import Employee
from hrms.dashboard.service import DashboardService
from hrms.leave.models import LeaveRequest, LeaveType
from tests.conftest import _make_employee

UTC = timezone.utc
MONDAY = date(2026, 3, 2)
NOON_IST = datetime(2026, 3, 2, 6, 30, tzinfo=UTC)


async def _seed_team(db, department_id):
    people = []
    for name in ("Arjun", "Bela", "Chirag", "Dev"):
        emp = Employee(**_make_employee(first_name=name, department_id=department_id))
        db.add(emp)
        people.append(emp)
    await db.flush()
    return people


async def test_stats_use_resolved_days(db, test_department):
    arjun, bela, chirag, dev = await _seed_team(db, test_department["id"])

    db.add_all([
        AttendanceRecord(
            employee_id=arjun.id, date=MONDAY,
            check_in_time=datetime(2026, 3, 2, 3, 30, tzinfo=UTC),
            status=AttendanceStatus.present,
        ),
        AttendanceRecord(
            employee_id=bela.id, date=MONDAY,
            check_in_time=datetime(2026, 3, 2, 3, 45, tzinfo=UTC),
            status=AttendanceStatus.wfh,
        ),
    ])
    cl = LeaveType(code="CL", name="Casual Leave", days_allowed=Decimal("12"))
    db.add(cl)
    await db.flush()
    db.add_all([
        # Approved leave with no attendance row still counts as on leave
        LeaveRequest(
            employee_id=chirag.id, leave_type_id=cl.id,
            from_date=date(2026, 2, 27), to_date=date(2026, 3, 3),
            number_of_days=Decimal("5"), reason="Travel", status=LeaveStatus.approved,
        ),
        LeaveRequest(
            employee_id=dev.id, leave_type_id=cl.id,
            from_date=date(2026, 3, 20), to_date=date(2026, 3, 20),
            number_of_days=Decimal("1"), reason="Errand", status=LeaveStatus.pending,
        ),
    ])
    db.add_all([
        Holiday(name="Holi", date=date(2026, 3, 4), type=HolidayType.public),
        Holiday(name="Past", date=date(2026, 1, 26), type=HolidayType.public),
    ])
    await db.flush()

    stats = await DashboardService.get_stats(db, now=NOON_IST)

    assert stats.total_employees == 4
    assert stats.present_today == 2
    assert stats.on_leave_today == 1
    assert stats.pending_leaves == 1
    assert [r.employee_id for r in stats.pending_leave_requests] == [dev.id]
    assert [h.name for h in stats.upcoming_holidays] == ["Holi"]


async def test_recent_activity_newest_first(db, test_department):
    arjun, bela, chirag, dev = await _seed_team(db, test_department["id"])
    db.add_all([
        AttendanceRecord(
            employee_id=arjun.id, date=MONDAY,
            check_in_time=datetime(2026, 3, 2, 3, 30, tzinfo=UTC),
            check_out_time=datetime(2026, 3, 2, 12, 30, tzinfo=UTC),
            updated_at=datetime(2026, 3, 2, 12, 30, tzinfo=UTC),
        ),
        AttendanceRecord(
            employee_id=bela.id, date=MONDAY,
            check_in_time=datetime(2026, 3, 2, 4, 0, tzinfo=UTC),
            updated_at=datetime(2026, 3, 2, 4, 0, tzinfo=UTC),
        ),
        AttendanceRecord(
            employee_id=chirag.id, date=MONDAY,
            status=AttendanceStatus.on_break,
            updated_at=datetime(2026, 3, 2, 5, 0, tzinfo=UTC),
        ),
    ])
    db.add_all([
        AttendanceRecord(
            employee_id=dev.id, date=date(2026, 2, 20 + i),
            check_in_time=datetime(2026, 2, 20 + i, 3, 30, tzinfo=UTC),
            updated_at=datetime(2026, 2, 20 + i, 3, 30, tzinfo=UTC),
        )
        for i in range(4)
    ])
    await db.flush()

    feed = await DashboardService.get_recent_activity(db)

    assert len(feed) == 5
    assert [(a.employee_name, a.action) for a in feed[:3]] == [
        ("Arjun User", "checked out"),
        ("Chirag User", "updated attendance"),
        ("Bela User", "checked in"),
    ]
    assert [a.date for a in feed[3:]] == [date(2026, 2, 23), date(2026, 2, 22)]
    assert feed[0].avatar.startswith("https://ui-avatars.com/api/?name=Arjun+User")


async def test_weekend_counts_nobody_present(db, test_employee):
    stats = await DashboardService.get_stats(
        db, now=datetime(2026, 3, 7, 6, 30, tzinfo=UTC),
    )
    assert stats.total_employees == 1
    assert stats.present_today == 0
    assert stats.on_leave_today == 0


async def test_stats_endpoint(client, auth_headers):
    resp = await client.get("/api/v1/dashboard/stats", headers=auth_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_employees"] == 1
    assert body["pending_leaves"] == 0
    assert body["pending_leave_requests"] == []
    assert body["recent_activity"] == []


async def test_stats_requires_auth(client):
    resp = await client.get("/api/v1/dashboard/stats")
    assert resp.status_code == 401
