"""Attendance router — check in/out, resolved day views, holidays.

All endpoints require authentication. Team view and holiday creation
enforce role checks.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.attendance.schemas import (
    AttendanceListResponse,
    CheckActionResponse,
    CheckInRequest,
    CheckOutRequest,
    DayStatusView,
    HolidayCreate,
    HolidayResponse,
    MonthlyCalendarResponse,
    TeamAttendanceResponse,
    VirtualOfficeResponse,
)
from hrms.attendance.service import AttendanceService
from hrms.auth.dependencies import ADMIN_ROLES, APPROVER_ROLES, get_current_user, require_role
from hrms.common.constants import UserRole
from hrms.common.pagination import PaginationParams
from hrms.common.rate_limit import PRESENCE_MUTATION_LIMIT, limiter
from hrms.common.timeutils import local_today
from hrms.core_hr.models import Employee
from hrms.database import get_db

router = APIRouter(prefix="", tags=["attendance"])


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


# ── POST /check-in ──────────────────────────────────────────────────

@router.post("/check-in", response_model=CheckActionResponse)
@limiter.limit(PRESENCE_MUTATION_LIMIT)
async def check_in(
    request: Request,
    body: Optional[CheckInRequest] = None,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Record today's check-in for the current user."""
    body = body or CheckInRequest()
    return await AttendanceService.check_in(
        db,
        employee.id,
        ip_address=_client_ip(request),
        latitude=body.latitude,
        longitude=body.longitude,
        late_reason=body.late_reason,
        project=body.project,
    )


# ── POST /check-out ─────────────────────────────────────────────────

@router.post("/check-out", response_model=CheckActionResponse)
@limiter.limit(PRESENCE_MUTATION_LIMIT)
async def check_out(
    request: Request,
    body: Optional[CheckOutRequest] = None,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Record today's check-out for the current user."""
    body = body or CheckOutRequest()
    return await AttendanceService.check_out(
        db,
        employee.id,
        ip_address=_client_ip(request),
        latitude=body.latitude,
        longitude=body.longitude,
    )


# ── GET /day-status ─────────────────────────────────────────────────

@router.get("/day-status", response_model=DayStatusView)
async def day_status(
    target_date: Optional[date] = Query(None, alias="date"),
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Resolved status of one date (default: office-local today)."""
    return await AttendanceService.get_day_status(
        db, employee.id, target_date or local_today(),
    )


# ── GET /calendar ───────────────────────────────────────────────────

@router.get("/calendar", response_model=MonthlyCalendarResponse)
async def monthly_calendar(
    year: Optional[int] = Query(None, ge=1970, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Every date of the month resolved for the current user, with a summary."""
    today = local_today()
    return await AttendanceService.get_monthly_calendar(
        db, employee.id, year or today.year, month or today.month,
    )


# ── GET /my-attendance ──────────────────────────────────────────────

@router.get("/my-attendance", response_model=AttendanceListResponse)
async def my_attendance(
    from_date: date = Query(..., description="Start date (inclusive)"),
    to_date: date = Query(..., description="End date (inclusive)"),
    params: PaginationParams = Depends(),
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The current user's stored attendance rows, newest first."""
    return await AttendanceService.get_my_attendance(
        db, employee.id, from_date, to_date, params,
    )


# ── GET /team ───────────────────────────────────────────────────────

@router.get("/team", response_model=TeamAttendanceResponse)
async def team_attendance(
    request: Request,
    target_date: Optional[date] = Query(None, alias="date"),
    department_id: Optional[uuid.UUID] = Query(None),
    employee: Employee = Depends(require_role(*APPROVER_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Resolved status of every employee on one date.

    Managers see their direct reports; HR and system admins see everyone.
    """
    manager_id = employee.id if request.state.user_role == UserRole.manager else None
    return await AttendanceService.get_team_attendance(
        db,
        target_date or local_today(),
        department_id=department_id,
        manager_id=manager_id,
    )


# ── GET /virtual-office ─────────────────────────────────────────────

@router.get("/virtual-office", response_model=VirtualOfficeResponse)
async def virtual_office(
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Live presence board for today."""
    return await AttendanceService.get_virtual_office(db)


# ── GET /holidays ───────────────────────────────────────────────────

@router.get("/holidays", response_model=list[HolidayResponse])
async def get_holidays(
    year: Optional[int] = Query(None),
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List active holidays, optionally filtered by year."""
    return await AttendanceService.get_holidays(db, year=year)


# ── POST /holidays ──────────────────────────────────────────────────

@router.post("/holidays", response_model=HolidayResponse)
async def create_holiday(
    body: HolidayCreate,
    employee: Employee = Depends(require_role(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Add a holiday to the calendar (HR only)."""
    return await AttendanceService.create_holiday(db, body, actor_id=employee.id)
