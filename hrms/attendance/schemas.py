"""Attendance Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Request / *Create → request bodies (write)
  - *Response / *View  → response bodies (read)
"""


import uuid
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from hrms.common.constants import AttendanceStatus, DayStatus, HolidayType
from hrms.common.pagination import PaginationMeta


# ═════════════════════════════════════════════════════════════════════
# Check in / out
# ═════════════════════════════════════════════════════════════════════


class CheckInRequest(BaseModel):
    """Payload for checking in. Location and late-reason are stored as given."""

    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    late_reason: Optional[str] = Field(None, max_length=500)
    project: Optional[str] = Field(None, max_length=200)


class CheckOutRequest(BaseModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class AttendanceRecordResponse(BaseModel):
    """Stored attendance row."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    date: date
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    status: AttendanceStatus
    working_hours: Optional[float] = None
    is_late: bool = False
    late_reason: Optional[str] = None
    project: Optional[str] = None
    remarks: Optional[str] = None


class CheckActionResponse(BaseModel):
    message: str
    data: AttendanceRecordResponse


class AttendanceListResponse(BaseModel):
    data: list[AttendanceRecordResponse]
    meta: PaginationMeta


# ═════════════════════════════════════════════════════════════════════
# Resolved days
# ═════════════════════════════════════════════════════════════════════


class DayStatusView(BaseModel):
    """One resolved date: the single status plus display details."""

    date: date
    status: DayStatus
    details: dict[str, Any] = Field(default_factory=dict)


class MonthSummaryView(BaseModel):
    present: int = 0
    wfh: int = 0
    leave: int = 0
    holiday: int = 0
    absent: int = 0
    half_day: int = 0
    weekend: int = 0
    on_break: int = 0


class HolidayResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    date: date
    type: HolidayType
    description: Optional[str] = None
    is_active: bool = True


class MonthlyCalendarResponse(BaseModel):
    """Month view keyed by ISO date (``yyyy-mm-dd``)."""

    year: int
    month: int
    days: dict[str, DayStatusView]
    summary: MonthSummaryView
    holidays: list[HolidayResponse]


# ═════════════════════════════════════════════════════════════════════
# Team view
# ═════════════════════════════════════════════════════════════════════


class TeamMemberDay(BaseModel):
    employee_id: uuid.UUID
    employee_code: str
    name: str
    department: Optional[str] = None
    designation: Optional[str] = None
    status: DayStatus
    stat_status: DayStatus
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    working_hours: Optional[float] = None
    is_late: bool = False
    remarks: Optional[str] = None


class TeamStats(BaseModel):
    total: int = 0
    present: int = 0
    wfh: int = 0
    absent: int = 0
    on_leave: int = 0
    holiday: int = 0
    weekend: int = 0
    late: int = 0


class TeamAttendanceResponse(BaseModel):
    date: date
    data: list[TeamMemberDay]
    stats: TeamStats


# ═════════════════════════════════════════════════════════════════════
# Virtual office
# ═════════════════════════════════════════════════════════════════════


class PresenceCard(BaseModel):
    id: uuid.UUID
    name: str
    role: Optional[str] = None
    department: Optional[str] = None
    avatar: str
    status: DayStatus
    time: Optional[str] = None
    duration: Optional[str] = None
    meta: Optional[str] = None
    is_leader: bool = False
    is_late: bool = False


class VirtualOfficeStats(BaseModel):
    total: int = 0
    present: int = 0
    present_percentage: int = 0
    avg_login_time: str = "N/A"
    late_entries: int = 0
    wfo_percentage: int = 0
    wfh_percentage: int = 0


class VirtualOfficeResponse(BaseModel):
    date: date
    leadership: list[PresenceCard]
    departments: dict[str, list[PresenceCard]]
    stats: VirtualOfficeStats


# ═════════════════════════════════════════════════════════════════════
# Holidays
# ═════════════════════════════════════════════════════════════════════


class HolidayCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    date: date
    type: HolidayType = HolidayType.public
    description: Optional[str] = Field(None, max_length=1000)
