"""Dashboard Pydantic v2 schemas — response models for dashboard widgets."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from hrms.attendance.schemas import HolidayResponse
from hrms.leave.schemas import LeaveRequestOut


# ═════════════════════════════════════════════════════════════════════
# GET /stats
# ═════════════════════════════════════════════════════════════════════


class ActivityItem(BaseModel):
    """One entry of the recent attendance feed."""

    id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: str
    avatar: str
    action: str = Field(..., description="checked in, checked out or updated attendance")
    date: date
    at: datetime


class DashboardStatsResponse(BaseModel):
    """Top-level KPI cards for the home dashboard."""

    total_employees: int = Field(..., description="Active employees count")
    present_today: int = Field(
        ..., description="Employees resolved present, half-day or WFH today"
    )
    on_leave_today: int = Field(..., description="Employees on approved leave today")
    pending_leaves: int = Field(..., description="Leave requests with status=pending")
    pending_leave_requests: list[LeaveRequestOut] = Field(
        default_factory=list, description="Latest pending requests"
    )
    upcoming_holidays: list[HolidayResponse] = Field(default_factory=list)
    recent_activity: list[ActivityItem] = Field(
        default_factory=list, description="Latest attendance changes, newest first"
    )
