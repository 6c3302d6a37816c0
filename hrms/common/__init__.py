"""Common module — shared utilities for the HRMS core."""

from hrms.common.audit import AuditTrail, create_audit_entry
from hrms.common.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    AttendanceStatus,
    DaySource,
    DayStatus,
    EmploymentStatus,
    HalfDayType,
    HolidayType,
    LeaveDecision,
    LeaveStatus,
    UserRole,
)
from hrms.common.exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    AlreadyProcessed,
    AppException,
    CancellationNotAllowed,
    ConflictError,
    DuplicateException,
    ForbiddenException,
    NotCheckedIn,
    NotFoundException,
    ValidationException,
    register_exception_handlers,
)
from hrms.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    # Constants / Enums
    "AttendanceStatus",
    "DaySource",
    "DayStatus",
    "EmploymentStatus",
    "HalfDayType",
    "HolidayType",
    "LeaveDecision",
    "LeaveStatus",
    "UserRole",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AlreadyCheckedIn",
    "AlreadyCheckedOut",
    "AlreadyProcessed",
    "AppException",
    "CancellationNotAllowed",
    "ConflictError",
    "DuplicateException",
    "ForbiddenException",
    "NotCheckedIn",
    "NotFoundException",
    "ValidationException",
    "register_exception_handlers",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "paginate",
]
