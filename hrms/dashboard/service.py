"""Dashboard service — read-only aggregation across attendance and leave.

Today's counts come from the day resolver, so an employee on approved
leave with no check-in counts as on leave even though no attendance row
exists for them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from urllib.parse import quote_plus

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrms.attendance.models import AttendanceRecord
from hrms.attendance.service import AttendanceService
from hrms.common.constants import AVATAR_FALLBACK_URL, DayStatus
from hrms.common.timeutils import ensure_aware, local_today
from hrms.dashboard.schemas import ActivityItem, DashboardStatsResponse
from hrms.leave.service import LeaveService

_PRESENT_STATUSES = frozenset({DayStatus.present, DayStatus.half_day, DayStatus.wfh})

PENDING_PREVIEW_LIMIT = 5
UPCOMING_HOLIDAY_LIMIT = 3
RECENT_ACTIVITY_LIMIT = 5


class DashboardService:
    """Async dashboard aggregation queries."""

    @staticmethod
    async def get_stats(
        db: AsyncSession,
        *,
        now: Optional[datetime] = None,
    ) -> DashboardStatsResponse:
        """Return top-level KPI metrics for the dashboard."""
        today = local_today(now)

        employees = await AttendanceService.get_active_employees(db)
        resolved = await AttendanceService.resolve_employees_on(db, today, employees)
        days = resolved.values()

        return DashboardStatsResponse(
            total_employees=len(employees),
            present_today=sum(1 for d in days if d.stat_status in _PRESENT_STATUSES),
            on_leave_today=sum(1 for d in days if d.stat_status == DayStatus.on_leave),
            pending_leaves=await LeaveService.count_pending(db),
            pending_leave_requests=await LeaveService.latest_pending(
                db, limit=PENDING_PREVIEW_LIMIT,
            ),
            upcoming_holidays=await AttendanceService.get_upcoming_holidays(
                db, today, limit=UPCOMING_HOLIDAY_LIMIT,
            ),
            recent_activity=await DashboardService.get_recent_activity(
                db, limit=RECENT_ACTIVITY_LIMIT,
            ),
        )

    @staticmethod
    async def get_recent_activity(
        db: AsyncSession,
        *,
        limit: int = RECENT_ACTIVITY_LIMIT,
    ) -> list[ActivityItem]:
        """Latest attendance rows by last update, labelled with what changed."""
        result = await db.execute(
            select(AttendanceRecord)
            .options(selectinload(AttendanceRecord.employee))
            .order_by(AttendanceRecord.updated_at.desc(), AttendanceRecord.id)
            .limit(limit)
        )
        items = []
        for rec in result.scalars().all():
            if rec.check_out_time is not None:
                action = "checked out"
            elif rec.check_in_time is not None:
                action = "checked in"
            else:
                action = "updated attendance"
            name = rec.employee.full_name
            items.append(
                ActivityItem(
                    id=rec.id,
                    employee_id=rec.employee_id,
                    employee_name=name,
                    avatar=rec.employee.profile_photo_url
                    or AVATAR_FALLBACK_URL.format(name=quote_plus(name)),
                    action=action,
                    date=rec.date,
                    at=ensure_aware(rec.updated_at),
                )
            )
        return items
