"""Leave service layer — application, decisions, cancellation, balances, catalog.

Business logic:
  - Apply: validate input, count days, always create a pending request
  - Decide / cancel: state-machine check, then a status-guarded UPDATE so
    two concurrent transitions of one request cannot both succeed
  - Balances: derived on every read from requests + active leave types
  - Leave-type catalog administration (create / update / deactivate)
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Optional, Sequence

from sqlalchemy import and_, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrms.common.audit import create_audit_entry
from hrms.common.constants import DEFAULT_LEAVE_TYPES, EmploymentStatus, LeaveDecision, LeaveStatus
from hrms.common.exceptions import (
    AlreadyProcessed,
    ConflictError,
    DuplicateException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrms.common.timeutils import local_today, now_utc
from hrms.core_hr.models import Employee
from hrms.leave import ledger
from hrms.leave.models import LeaveRequest, LeaveType
from hrms.leave.schemas import (
    EmployeeBrief,
    LeaveBalanceOut,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveTypeBrief,
    LeaveTypeCreate,
    LeaveTypeOut,
    LeaveTypeUpdate,
)

logger = logging.getLogger(__name__)

APPROVAL_FILTER_ALL = "all"


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Async leave operations: apply, decide, cancel, balances, catalog."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    def _request_query():
        return select(LeaveRequest).options(
            selectinload(LeaveRequest.employee).selectinload(Employee.department),
            selectinload(LeaveRequest.employee).selectinload(Employee.designation),
            selectinload(LeaveRequest.leave_type),
        )

    @staticmethod
    async def _load_request(db: AsyncSession, request_id: uuid.UUID) -> LeaveRequest:
        result = await db.execute(
            LeaveService._request_query()
            .where(LeaveRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        leave_req = result.scalars().first()
        if leave_req is None:
            raise NotFoundException("LeaveRequest", str(request_id))
        return leave_req

    @staticmethod
    async def _get_employee(db: AsyncSession, employee_id: uuid.UUID) -> Employee:
        result = await db.execute(select(Employee).where(Employee.id == employee_id))
        employee = result.scalars().first()
        if employee is None:
            raise NotFoundException("Employee", str(employee_id))
        return employee

    @staticmethod
    def _build_employee_brief(emp: Employee) -> EmployeeBrief:
        return EmployeeBrief(
            id=emp.id,
            employee_code=emp.employee_code,
            display_name=emp.full_name,
            department_name=emp.department.name if emp.department else None,
            designation_name=emp.designation.name if emp.designation else None,
            profile_photo_url=emp.profile_photo_url,
        )

    @staticmethod
    def _build_request_response(req: LeaveRequest) -> LeaveRequestOut:
        """Build LeaveRequestOut from an ORM row loaded via ``_request_query``."""
        return LeaveRequestOut(
            id=req.id,
            employee_id=req.employee_id,
            leave_type_id=req.leave_type_id,
            from_date=req.from_date,
            to_date=req.to_date,
            number_of_days=req.number_of_days,
            reason=req.reason,
            status=req.status,
            is_half_day=req.is_half_day,
            half_day_type=req.half_day_type,
            contact_number=req.contact_number,
            admin_comments=req.admin_comments,
            reviewed_by=req.reviewed_by,
            reviewed_at=req.reviewed_at,
            cancelled_at=req.cancelled_at,
            applied_on=req.applied_at,
            employee=LeaveService._build_employee_brief(req.employee) if req.employee else None,
            leave_type=LeaveTypeBrief.model_validate(req.leave_type) if req.leave_type else None,
        )

    # ─────────────────────────────────────────────────────────────────
    # Leave Types
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def ensure_default_leave_types(db: AsyncSession) -> bool:
        """Seed the default catalog when no leave type exists at all."""
        count = (await db.execute(select(func.count()).select_from(LeaveType))).scalar_one()
        if count:
            return False
        for entry in DEFAULT_LEAVE_TYPES:
            db.add(LeaveType(**entry))
        await db.flush()
        logger.info("Seeded default leave types: %s", [e["code"] for e in DEFAULT_LEAVE_TYPES])
        return True

    @staticmethod
    async def get_leave_types(
        db: AsyncSession,
        *,
        include_inactive: bool = False,
    ) -> list[LeaveTypeOut]:
        """List leave types, active only unless *include_inactive*."""
        query = select(LeaveType).order_by(LeaveType.name)
        if not include_inactive:
            query = query.where(LeaveType.is_active.is_(True))
        result = await db.execute(query)
        return [LeaveTypeOut.model_validate(lt) for lt in result.scalars().all()]

    @staticmethod
    async def _ensure_unique_type(
        db: AsyncSession,
        *,
        name: Optional[str],
        code: Optional[str],
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        checks = []
        if name is not None:
            checks.append(("name", name, func.lower(LeaveType.name) == name.lower()))
        if code is not None:
            checks.append(("code", code, LeaveType.code == code))
        for field_name, value, clause in checks:
            query = select(LeaveType.id).where(clause)
            if exclude_id is not None:
                query = query.where(LeaveType.id != exclude_id)
            if (await db.execute(query)).first() is not None:
                raise DuplicateException(field_name, value)

    @staticmethod
    async def create_leave_type(
        db: AsyncSession,
        data: LeaveTypeCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveTypeOut:
        """Add a leave type. Name and code must be unique."""
        await LeaveService._ensure_unique_type(db, name=data.name, code=data.code)

        lt = LeaveType(**data.model_dump())
        db.add(lt)
        try:
            await db.flush()
        except IntegrityError as exc:
            raise ConflictError("A leave type with this name or code already exists.") from exc

        await create_audit_entry(
            db,
            action="create",
            entity_type="leave_type",
            entity_id=lt.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        logger.info("Created leave type %s (%s)", lt.code, lt.id)
        return LeaveTypeOut.model_validate(lt)

    @staticmethod
    async def update_leave_type(
        db: AsyncSession,
        leave_type_id: uuid.UUID,
        data: LeaveTypeUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveTypeOut:
        lt = await db.get(LeaveType, leave_type_id)
        if lt is None:
            raise NotFoundException("LeaveType", str(leave_type_id))

        changes = data.model_dump(exclude_unset=True)
        await LeaveService._ensure_unique_type(
            db,
            name=changes.get("name"),
            code=changes.get("code"),
            exclude_id=lt.id,
        )

        old_values = {k: getattr(lt, k) for k in changes}
        for key, value in changes.items():
            setattr(lt, key, value)
        lt.updated_at = now_utc()
        try:
            await db.flush()
        except IntegrityError as exc:
            raise ConflictError("A leave type with this name or code already exists.") from exc

        await create_audit_entry(
            db,
            action="update",
            entity_type="leave_type",
            entity_id=lt.id,
            actor_id=actor_id,
            old_values={k: str(v) for k, v in old_values.items()},
            new_values={k: str(v) for k, v in changes.items()},
        )
        return LeaveTypeOut.model_validate(lt)

    @staticmethod
    async def deactivate_leave_type(
        db: AsyncSession,
        leave_type_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveTypeOut:
        """Soft-delete: existing requests keep referencing the row."""
        lt = await db.get(LeaveType, leave_type_id)
        if lt is None:
            raise NotFoundException("LeaveType", str(leave_type_id))
        lt.is_active = False
        lt.updated_at = now_utc()
        await db.flush()

        await create_audit_entry(
            db,
            action="deactivate",
            entity_type="leave_type",
            entity_id=lt.id,
            actor_id=actor_id,
            old_values={"is_active": True},
            new_values={"is_active": False},
        )
        logger.info("Deactivated leave type %s", lt.code)
        return LeaveTypeOut.model_validate(lt)

    # ─────────────────────────────────────────────────────────────────
    # Balance
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_balances(
        db: AsyncSession,
        employee_id: uuid.UUID,
        year: int,
    ) -> list[LeaveBalanceOut]:
        """Derive every active leave type's balance for *year* from requests."""
        await LeaveService._get_employee(db, employee_id)
        await LeaveService.ensure_default_leave_types(db)

        types = (
            await db.execute(
                select(LeaveType)
                .where(LeaveType.is_active.is_(True))
                .order_by(LeaveType.name)
            )
        ).scalars().all()

        requests = (
            await db.execute(
                select(LeaveRequest).where(
                    LeaveRequest.employee_id == employee_id,
                    LeaveRequest.status.in_([LeaveStatus.approved, LeaveStatus.pending]),
                    LeaveRequest.from_date <= date(year, 12, 31),
                    LeaveRequest.to_date >= date(year, 1, 1),
                )
            )
        ).scalars().all()

        return [
            LeaveBalanceOut.model_validate(b)
            for b in ledger.compute_balances(types, requests, year)
        ]

    # ─────────────────────────────────────────────────────────────────
    # Apply Leave
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def apply_leave(
        db: AsyncSession,
        employee_id: uuid.UUID,
        data: LeaveRequestCreate,
        *,
        ip_address: Optional[str] = None,
    ) -> LeaveRequestOut:
        """Create a pending leave request.

        Balance is advisory only and is not checked here.
        """
        errors: dict[str, list[str]] = {}
        reason = (data.reason or "").strip()
        if not reason:
            errors.setdefault("reason", []).append("Reason is required.")
        if data.from_date > data.to_date:
            errors.setdefault("date_range", []).append(
                "from_date must be on or before to_date."
            )

        leave_type = await db.get(LeaveType, data.leave_type_id)
        if leave_type is None or not leave_type.is_active:
            errors.setdefault("leave_type_id", []).append(
                "Leave type does not exist or is inactive."
            )
        if errors:
            logger.warning("Rejected leave application for %s: %s", employee_id, errors)
            raise ValidationException(errors)

        employee = await LeaveService._get_employee(db, employee_id)
        if employee.employment_status != EmploymentStatus.active:
            raise ValidationException({"employee": ["Employee is not active."]})

        number_of_days = ledger.compute_number_of_days(
            data.from_date, data.to_date, data.is_half_day,
        )
        now = now_utc()
        leave_req = LeaveRequest(
            employee_id=employee_id,
            leave_type_id=leave_type.id,
            from_date=data.from_date,
            to_date=data.to_date,
            number_of_days=number_of_days,
            reason=reason,
            status=LeaveStatus.pending,
            is_half_day=data.is_half_day,
            half_day_type=data.half_day_type if data.is_half_day else None,
            contact_number=data.contact_number,
            applied_at=now,
            updated_at=now,
        )
        db.add(leave_req)
        await db.flush()

        await create_audit_entry(
            db,
            action="apply",
            entity_type="leave_request",
            entity_id=leave_req.id,
            actor_id=employee_id,
            new_values={
                "leave_type": leave_type.code,
                "from_date": data.from_date.isoformat(),
                "to_date": data.to_date.isoformat(),
                "number_of_days": str(number_of_days),
                "status": LeaveStatus.pending.value,
            },
            ip_address=ip_address,
        )
        logger.info(
            "Leave applied: %s %s %s..%s (%s days)",
            employee_id, leave_type.code, data.from_date, data.to_date, number_of_days,
        )

        leave_req = await LeaveService._load_request(db, leave_req.id)
        return LeaveService._build_request_response(leave_req)

    # ─────────────────────────────────────────────────────────────────
    # Approve / Reject
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def decide_leave(
        db: AsyncSession,
        request_id: uuid.UUID,
        approver_id: uuid.UUID,
        decision: str,
        *,
        admin_comments: Optional[str] = None,
    ) -> LeaveRequestOut:
        """Move a pending request to approved or rejected.

        The write is conditional on the row still being pending; a lost
        race surfaces as AlreadyProcessed.
        """
        try:
            verdict = LeaveDecision(str(decision).strip().lower())
        except ValueError:
            raise ValidationException(
                {"status": ["Invalid status. Must be APPROVED or REJECTED."]}
            )

        leave_req = await LeaveService._load_request(db, request_id)
        if leave_req.employee_id == approver_id:
            raise ForbiddenException("You cannot decide on your own leave request.")
        try:
            ledger.ensure_can_decide(leave_req.status)
        except AlreadyProcessed:
            logger.warning(
                "Decision %s on %s rejected: already %s",
                verdict.value, request_id, leave_req.status.value,
            )
            raise

        now = now_utc()
        target = LeaveStatus(verdict.value)
        result = await db.execute(
            update(LeaveRequest)
            .where(
                LeaveRequest.id == request_id,
                LeaveRequest.status == LeaveStatus.pending,
            )
            .values(
                status=target,
                admin_comments=admin_comments,
                reviewed_by=approver_id,
                reviewed_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            current = await LeaveService._load_request(db, request_id)
            raise AlreadyProcessed(current.status)

        await create_audit_entry(
            db,
            action="approve" if target == LeaveStatus.approved else "reject",
            entity_type="leave_request",
            entity_id=request_id,
            actor_id=approver_id,
            old_values={"status": LeaveStatus.pending.value},
            new_values={"status": target.value, "admin_comments": admin_comments},
        )
        logger.info("Leave %s %s by %s", request_id, target.value, approver_id)

        leave_req = await LeaveService._load_request(db, request_id)
        return LeaveService._build_request_response(leave_req)

    # ─────────────────────────────────────────────────────────────────
    # Cancel Leave
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def cancel_leave(
        db: AsyncSession,
        request_id: uuid.UUID,
        employee_id: uuid.UUID,
        *,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> LeaveRequestOut:
        """Cancel own request while pending, or approved and not yet started."""
        now = now or now_utc()
        today = local_today(now)

        leave_req = await LeaveService._load_request(db, request_id)
        if leave_req.employee_id != employee_id:
            raise ForbiddenException("You can only cancel your own leave requests.")

        old_status = leave_req.status
        ledger.ensure_can_cancel(old_status, leave_req.from_date, today)

        result = await db.execute(
            update(LeaveRequest)
            .where(
                LeaveRequest.id == request_id,
                LeaveRequest.employee_id == employee_id,
                LeaveRequest.status.in_(
                    ledger.cancellable_statuses(leave_req.from_date, today)
                ),
            )
            .values(status=LeaveStatus.cancelled, cancelled_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            current = await LeaveService._load_request(db, request_id)
            ledger.ensure_can_cancel(current.status, current.from_date, today)
            raise ConflictError("Leave request changed concurrently; reload and retry.")

        await create_audit_entry(
            db,
            action="cancel",
            entity_type="leave_request",
            entity_id=request_id,
            actor_id=employee_id,
            old_values={"status": old_status.value},
            new_values={"status": LeaveStatus.cancelled.value, "reason": reason},
        )
        logger.info("Leave %s cancelled by %s (was %s)", request_id, employee_id, old_status.value)

        leave_req = await LeaveService._load_request(db, request_id)
        return LeaveService._build_request_response(leave_req)

    # ─────────────────────────────────────────────────────────────────
    # Listings
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_my_leaves(
        db: AsyncSession,
        employee_id: uuid.UUID,
        params: PaginationParams,
        *,
        status: Optional[LeaveStatus] = None,
    ) -> PaginatedResponse:
        """Caller's own requests, newest first."""
        query = (
            LeaveService._request_query()
            .where(LeaveRequest.employee_id == employee_id)
            .order_by(LeaveRequest.applied_at.desc())
        )
        if status is not None:
            query = query.where(LeaveRequest.status == status)
        return await paginate(
            db, query, params,
            model=LeaveRequest,
            transform=LeaveService._build_request_response,
        )

    @staticmethod
    async def list_approvals(
        db: AsyncSession,
        params: PaginationParams,
        *,
        status: str = LeaveStatus.pending.value,
        exclude_employee_id: Optional[uuid.UUID] = None,
    ) -> PaginatedResponse:
        """Approver queue. ``status`` is a LeaveStatus value or ``all``."""
        query = LeaveService._request_query().order_by(LeaveRequest.applied_at.desc())
        if status != APPROVAL_FILTER_ALL:
            try:
                wanted = LeaveStatus(status)
            except ValueError:
                raise ValidationException(
                    {"status": [f"Unknown status filter '{status}'."]}
                )
            query = query.where(LeaveRequest.status == wanted)
        if exclude_employee_id is not None:
            query = query.where(LeaveRequest.employee_id != exclude_employee_id)
        return await paginate(
            db, query, params,
            model=LeaveRequest,
            transform=LeaveService._build_request_response,
        )

    @staticmethod
    async def get_approved_leaves(
        db: AsyncSession,
        from_date: date,
        to_date: date,
        *,
        employee_ids: Optional[Sequence[uuid.UUID]] = None,
    ) -> Sequence[LeaveRequest]:
        """Approved requests overlapping [from_date, to_date], leave_type loaded."""
        query = (
            select(LeaveRequest)
            .options(selectinload(LeaveRequest.leave_type))
            .where(
                and_(
                    LeaveRequest.status == LeaveStatus.approved,
                    LeaveRequest.from_date <= to_date,
                    LeaveRequest.to_date >= from_date,
                )
            )
        )
        if employee_ids is not None:
            query = query.where(LeaveRequest.employee_id.in_(list(employee_ids)))
        return (await db.execute(query)).scalars().all()

    @staticmethod
    async def count_pending(db: AsyncSession) -> int:
        result = await db.execute(
            select(func.count())
            .select_from(LeaveRequest)
            .where(LeaveRequest.status == LeaveStatus.pending)
        )
        return result.scalar_one()

    @staticmethod
    async def latest_pending(db: AsyncSession, limit: int = 5) -> list[LeaveRequestOut]:
        result = await db.execute(
            LeaveService._request_query()
            .where(LeaveRequest.status == LeaveStatus.pending)
            .order_by(LeaveRequest.applied_at.desc())
            .limit(limit)
        )
        return [LeaveService._build_request_response(r) for r in result.scalars().all()]
