"""Dashboard router — read-only endpoint for the home dashboard widgets.

Visible to all authenticated employees.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user
from hrms.core_hr.models import Employee
from hrms.dashboard.schemas import DashboardStatsResponse
from hrms.dashboard.service import DashboardService
from hrms.database import get_db

router = APIRouter()


# ── GET /stats ──────────────────────────────────────────────────────

@router.get("/stats", response_model=DashboardStatsResponse)
async def dashboard_stats(
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Headcount, today's presence, pending leave and upcoming holidays."""
    return await DashboardService.get_stats(db)
