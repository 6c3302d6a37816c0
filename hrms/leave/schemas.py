"""Leave Pydantic v2 schemas — request / response validation.

Business rules (blank reason, inverted date range, unknown leave type)
are checked by the service so they surface as 400 validation problems;
the schemas only enforce shape.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hrms.common.constants import HalfDayType, LeaveStatus


# ═════════════════════════════════════════════════════════════════════
# Embedded briefs
# ═════════════════════════════════════════════════════════════════════


class EmployeeBrief(BaseModel):
    """Minimal employee info embedded in leave responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_code: str
    display_name: Optional[str] = None
    department_name: Optional[str] = None
    designation_name: Optional[str] = None
    profile_photo_url: Optional[str] = None


class LeaveTypeBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    code: str
    name: str
    color: Optional[str] = None


# ═════════════════════════════════════════════════════════════════════
# Leave Type catalog
# ═════════════════════════════════════════════════════════════════════


class LeaveTypeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    code: str
    name: str
    description: Optional[str] = None
    days_allowed: Decimal
    color: Optional[str] = None
    is_paid: bool
    requires_approval: bool
    is_active: bool


class LeaveTypeCreate(BaseModel):
    """Payload for adding a leave type to the catalog."""

    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=10)
    days_allowed: Decimal = Field(..., ge=0, le=365)
    description: Optional[str] = Field(None, max_length=1000)
    color: Optional[str] = Field(None, max_length=20)
    is_paid: bool = True
    requires_approval: bool = True

    @field_validator("code")
    @classmethod
    def normalise_code(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class LeaveTypeUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    code: Optional[str] = Field(None, min_length=1, max_length=10)
    days_allowed: Optional[Decimal] = Field(None, ge=0, le=365)
    description: Optional[str] = Field(None, max_length=1000)
    color: Optional[str] = Field(None, max_length=20)
    is_paid: Optional[bool] = None
    requires_approval: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("code")
    @classmethod
    def normalise_code(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v is not None else v


# ═════════════════════════════════════════════════════════════════════
# Balance
# ═════════════════════════════════════════════════════════════════════


class LeaveBalanceOut(BaseModel):
    """Derived balance for one leave type in one year."""

    model_config = ConfigDict(from_attributes=True)

    leave_type_id: uuid.UUID
    name: str
    code: str
    color: Optional[str] = None
    allocated: Decimal
    used: Decimal
    pending: Decimal
    available: Decimal
    carried_forward: Decimal = Decimal("0")
    adjustment: Decimal = Decimal("0")


# ═════════════════════════════════════════════════════════════════════
# Leave Request — Create
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    """Payload for applying a leave request."""

    leave_type_id: uuid.UUID
    from_date: date = Field(..., description="Leave start date (inclusive)")
    to_date: date = Field(..., description="Leave end date (inclusive)")
    reason: Optional[str] = Field(None, max_length=1000, description="Reason for leave")
    is_half_day: bool = False
    half_day_type: Optional[HalfDayType] = None
    contact_number: Optional[str] = Field(None, max_length=20)


# ═════════════════════════════════════════════════════════════════════
# Leave Request — Response
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestOut(BaseModel):
    """Leave request as shown to requesters and approvers."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    from_date: date
    to_date: date
    number_of_days: Decimal
    reason: str
    status: LeaveStatus
    is_half_day: bool = False
    half_day_type: Optional[HalfDayType] = None
    contact_number: Optional[str] = None
    admin_comments: Optional[str] = None
    reviewed_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    applied_on: datetime = Field(validation_alias="applied_at")

    # Enriched by service
    employee: Optional[EmployeeBrief] = None
    leave_type: Optional[LeaveTypeBrief] = None


# ═════════════════════════════════════════════════════════════════════
# Decision / Cancel
# ═════════════════════════════════════════════════════════════════════


class LeaveDecisionRequest(BaseModel):
    """Approver's verdict on a pending request: ``approved`` or ``rejected``."""

    status: str = Field(..., max_length=20)
    admin_comments: Optional[str] = Field(None, max_length=1000)


class LeaveCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)
