"""Leave router — apply, decide, cancel, balances, leave-type catalog.

All endpoints require authentication. Approver and catalog-write
endpoints enforce role checks.
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import ADMIN_ROLES, APPROVER_ROLES, get_current_user, require_role
from hrms.common.constants import LeaveStatus
from hrms.common.pagination import PaginatedResponse, PaginationParams
from hrms.common.timeutils import local_today
from hrms.core_hr.models import Employee
from hrms.database import get_db
from hrms.leave.schemas import (
    LeaveBalanceOut,
    LeaveCancelRequest,
    LeaveDecisionRequest,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveTypeCreate,
    LeaveTypeOut,
    LeaveTypeUpdate,
)
from hrms.leave.service import APPROVAL_FILTER_ALL, LeaveService

router = APIRouter(prefix="", tags=["leave"])


# ── POST /apply ─────────────────────────────────────────────────────

@router.post("/apply", response_model=LeaveRequestOut)
async def apply_leave(
    body: LeaveRequestCreate,
    request: Request,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Apply for leave. The request is created pending; balance is not checked."""
    ip = request.client.host if request.client else None
    return await LeaveService.apply_leave(db, employee.id, body, ip_address=ip)


# ── GET /my-leaves ──────────────────────────────────────────────────

@router.get("/my-leaves", response_model=PaginatedResponse[LeaveRequestOut])
async def my_leaves(
    status: Optional[LeaveStatus] = Query(None),
    params: PaginationParams = Depends(),
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get the authenticated user's leave requests, newest first."""
    return await LeaveService.list_my_leaves(db, employee.id, params, status=status)


# ── GET /balances ───────────────────────────────────────────────────

@router.get("/balances", response_model=list[LeaveBalanceOut])
async def get_balances(
    year: Optional[int] = Query(None, description="Leave year; defaults to current year"),
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get the authenticated user's leave balances for a given year."""
    return await LeaveService.get_balances(db, employee.id, year or local_today().year)


# ── GET /approvals ──────────────────────────────────────────────────

@router.get("/approvals", response_model=PaginatedResponse[LeaveRequestOut])
async def approval_queue(
    status: str = Query(
        LeaveStatus.pending.value,
        description=f"A leave status or '{APPROVAL_FILTER_ALL}'",
    ),
    params: PaginationParams = Depends(),
    employee: Employee = Depends(require_role(*APPROVER_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Requests awaiting (or past) a decision, newest first."""
    return await LeaveService.list_approvals(db, params, status=status.strip().lower())


# ── PUT /approvals/{id} ─────────────────────────────────────────────

@router.put("/approvals/{request_id}", response_model=LeaveRequestOut)
async def decide_leave(
    request_id: uuid.UUID,
    body: LeaveDecisionRequest,
    employee: Employee = Depends(require_role(*APPROVER_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Approve or reject a pending leave request."""
    return await LeaveService.decide_leave(
        db, request_id, employee.id, body.status,
        admin_comments=body.admin_comments,
    )


# ── Leave types ─────────────────────────────────────────────────────

@router.get("/types", response_model=list[LeaveTypeOut])
async def list_leave_types(
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List active leave types."""
    return await LeaveService.get_leave_types(db)


@router.post("/types", response_model=LeaveTypeOut)
async def create_leave_type(
    body: LeaveTypeCreate,
    employee: Employee = Depends(require_role(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.create_leave_type(db, body, actor_id=employee.id)


@router.put("/types/{leave_type_id}", response_model=LeaveTypeOut)
async def update_leave_type(
    leave_type_id: uuid.UUID,
    body: LeaveTypeUpdate,
    employee: Employee = Depends(require_role(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.update_leave_type(
        db, leave_type_id, body, actor_id=employee.id,
    )


@router.delete("/types/{leave_type_id}", response_model=LeaveTypeOut)
async def deactivate_leave_type(
    leave_type_id: uuid.UUID,
    employee: Employee = Depends(require_role(*ADMIN_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Deactivate a leave type. Rows are kept for existing requests."""
    return await LeaveService.deactivate_leave_type(db, leave_type_id, actor_id=employee.id)


# ── PUT /{id}/cancel ────────────────────────────────────────────────

@router.put("/{request_id}/cancel", response_model=LeaveRequestOut)
async def cancel_leave(
    request_id: uuid.UUID,
    body: Optional[LeaveCancelRequest] = None,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cancel own request while pending, or approved before it starts."""
    return await LeaveService.cancel_leave(
        db, request_id, employee.id, reason=body.reason if body else None,
    )
