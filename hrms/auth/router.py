"""Auth router — current user profile and logout."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user
from hrms.auth.schemas import MeResponse, MessageResponse
from hrms.auth.service import AuthService
from hrms.common.audit import create_audit_entry
from hrms.common.constants import EmploymentStatus, UserRole
from hrms.core_hr.models import Employee
from hrms.database import get_db

router = APIRouter(prefix="", tags=["auth"])


# ── POST /logout — Revoke current session ──────────────────────────

@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    token = request.headers.get("Authorization", "").removeprefix("Bearer ")
    await AuthService.revoke_session(db, token)

    # Audit trail
    await create_audit_entry(
        db,
        action="logout",
        entity_type="user_session",
        entity_id=employee.id,
        actor_id=employee.id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )

    return MessageResponse(message="Logged out successfully")


# ── GET /me — Current user profile ─────────────────────────────────

@router.get("/me", response_model=MeResponse)
async def me(
    request: Request,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    role: UserRole = request.state.user_role

    # Count direct reports
    result = await db.execute(
        select(func.count()).select_from(Employee).where(
            Employee.reporting_manager_id == employee.id,
            Employee.employment_status == EmploymentStatus.active,
        ),
    )

    return MeResponse(
        id=employee.id,
        employee_code=employee.employee_code,
        display_name=employee.full_name,
        email=employee.email,
        role=role.value,
        profile_photo_url=employee.profile_photo_url,
        department=employee.department.name if employee.department else None,
        designation=employee.designation.name if employee.designation else None,
        direct_reports_count=result.scalar() or 0,
    )
