"""Enums and constants for the HRMS core — matching PostgreSQL ENUM types.

Member names equal their values: ``sa.Enum`` persists names, and the
migration creates the PG types from values.
"""

from __future__ import annotations

import enum


# ── Employee / Core HR ──────────────────────────────────────────────

class EmploymentStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    manager = "manager"
    hr_admin = "hr_admin"
    system_admin = "system_admin"


# ── Attendance ──────────────────────────────────────────────────────

class AttendanceStatus(str, enum.Enum):
    """Raw status stored on an attendance record."""

    present = "present"
    half_day = "half_day"
    absent = "absent"
    wfh = "wfh"
    on_break = "on_break"


class DayStatus(str, enum.Enum):
    """Resolved status of one employee on one date."""

    present = "present"
    half_day = "half_day"
    absent = "absent"
    on_leave = "on_leave"
    holiday = "holiday"
    weekend = "weekend"
    wfh = "wfh"
    on_break = "on_break"


class DaySource(str, enum.Enum):
    """Which precedence rule produced a resolved day."""

    attendance = "attendance"
    leave = "leave"
    holiday = "holiday"
    weekend = "weekend"
    none = "none"


class HolidayType(str, enum.Enum):
    public = "public"
    restricted = "restricted"
    optional = "optional"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


class LeaveDecision(str, enum.Enum):
    """Outcomes an approver may choose."""

    approved = "approved"
    rejected = "rejected"


class HalfDayType(str, enum.Enum):
    first_half = "first_half"
    second_half = "second_half"


# ── Default leave catalog (seeded when no leave type exists) ────────

DEFAULT_LEAVE_TYPES: tuple[dict, ...] = (
    {"code": "CL", "name": "Casual Leave", "days_allowed": 12, "color": "#3B82F6"},
    {"code": "SL", "name": "Sick Leave", "days_allowed": 10, "color": "#EF4444"},
    {"code": "EL", "name": "Earned Leave", "days_allowed": 18, "color": "#10B981"},
)


# ── Misc ────────────────────────────────────────────────────────────

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
LEADERSHIP_DEPARTMENT = "Management"
AVATAR_FALLBACK_URL = "https://ui-avatars.com/api/?name={name}&background=random"
