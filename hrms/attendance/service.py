"""Attendance service layer — check in/out, resolved day views, holidays.

Business logic:
  - Check in / check out with a single record per employee per office date
  - Day status, monthly calendar, team and virtual-office views, all built
    on ``hrms.attendance.resolver``
  - Holiday calendar reads and HR-managed holiday creation
"""

from __future__ import annotations

import calendar
import logging
import uuid
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Optional, Sequence
from urllib.parse import quote_plus

from sqlalchemy import extract, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrms.attendance import resolver
from hrms.attendance.models import AttendanceRecord, Holiday
from hrms.attendance.resolver import AttendanceFact, HolidayFact, LeaveFact, ResolvedDay
from hrms.attendance.schemas import (
    AttendanceRecordResponse,
    CheckActionResponse,
    DayStatusView,
    HolidayCreate,
    HolidayResponse,
    MonthlyCalendarResponse,
    MonthSummaryView,
    PresenceCard,
    TeamAttendanceResponse,
    TeamMemberDay,
    TeamStats,
    VirtualOfficeResponse,
    VirtualOfficeStats,
)
from hrms.common.audit import create_audit_entry
from hrms.common.constants import (
    AVATAR_FALLBACK_URL,
    LEADERSHIP_DEPARTMENT,
    AttendanceStatus,
    DayStatus,
    EmploymentStatus,
)
from hrms.common.exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    DuplicateException,
    NotCheckedIn,
    ValidationException,
)
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrms.common.timeutils import local_today, now_utc, to_local
from hrms.config import settings
from hrms.core_hr.models import Employee
from hrms.leave.service import LeaveService

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════
# AttendanceService
# ═════════════════════════════════════════════════════════════════════


class AttendanceService:
    """Async attendance operations: check in/out and resolved views."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    def _validate_date_range(from_date: date, to_date: date) -> None:
        """Ensure date range is valid and within MAX_DATE_RANGE_DAYS."""
        if from_date > to_date:
            raise ValidationException(
                {"date_range": ["from_date must be before or equal to to_date."]}
            )
        if (to_date - from_date).days > settings.MAX_DATE_RANGE_DAYS:
            raise ValidationException(
                {"date_range": [f"Date range cannot exceed {settings.MAX_DATE_RANGE_DAYS} days."]}
            )

    @staticmethod
    def _is_late(check_in: datetime) -> bool:
        return to_local(check_in).time() > settings.late_after

    @staticmethod
    async def _get_record(
        db: AsyncSession,
        employee_id: uuid.UUID,
        target_date: date,
    ) -> Optional[AttendanceRecord]:
        result = await db.execute(
            select(AttendanceRecord)
            .where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.date == target_date,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def _holiday_facts(
        db: AsyncSession,
        from_date: date,
        to_date: date,
    ) -> list[HolidayFact]:
        result = await db.execute(
            select(Holiday).where(
                Holiday.is_active.is_(True),
                Holiday.date >= from_date,
                Holiday.date <= to_date,
            )
        )
        return [HolidayFact.of(h) for h in result.scalars().all()]

    @staticmethod
    async def get_active_employees(
        db: AsyncSession,
        *,
        department_id: Optional[uuid.UUID] = None,
        manager_id: Optional[uuid.UUID] = None,
    ) -> Sequence[Employee]:
        query = (
            select(Employee)
            .where(Employee.employment_status == EmploymentStatus.active)
            .options(
                selectinload(Employee.department),
                selectinload(Employee.designation),
            )
            .order_by(Employee.first_name, Employee.last_name)
        )
        if department_id is not None:
            query = query.where(Employee.department_id == department_id)
        if manager_id is not None:
            query = query.where(Employee.reporting_manager_id == manager_id)
        return (await db.execute(query)).scalars().all()

    @staticmethod
    async def resolve_employees_on(
        db: AsyncSession,
        target_date: date,
        employees: Sequence[Employee],
    ) -> dict[uuid.UUID, ResolvedDay]:
        """Resolve *target_date* for every employee with three batched reads."""
        ids = [e.id for e in employees]
        if not ids:
            return {}

        records = (
            await db.execute(
                select(AttendanceRecord).where(
                    AttendanceRecord.employee_id.in_(ids),
                    AttendanceRecord.date == target_date,
                )
            )
        ).scalars().all()
        attendance_by_emp = {r.employee_id: AttendanceFact.of(r) for r in records}

        leaves_by_emp: dict[uuid.UUID, list[LeaveFact]] = defaultdict(list)
        for lv in await LeaveService.get_approved_leaves(
            db, target_date, target_date, employee_ids=ids,
        ):
            leaves_by_emp[lv.employee_id].append(LeaveFact.of(lv))

        holidays = await AttendanceService._holiday_facts(db, target_date, target_date)
        weekend = settings.weekend_days

        return {
            emp_id: resolver.resolve_day(
                target_date,
                attendance=attendance_by_emp.get(emp_id),
                leaves=leaves_by_emp.get(emp_id, ()),
                holidays=holidays,
                weekend_days=weekend,
            )
            for emp_id in ids
        }

    @staticmethod
    def _day_view(day: ResolvedDay) -> DayStatusView:
        return DayStatusView(date=day.date, status=day.status, details=day.details())

    # ── Check in ────────────────────────────────────────────────────

    @staticmethod
    async def check_in(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        ip_address: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        late_reason: Optional[str] = None,
        project: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CheckActionResponse:
        """Create today's attendance record. At most one per employee per date."""
        now = now or now_utc()
        today = local_today(now)

        if await AttendanceService._get_record(db, employee_id, today) is not None:
            logger.warning("Duplicate check-in for %s on %s", employee_id, today)
            raise AlreadyCheckedIn()

        record = AttendanceRecord(
            employee_id=employee_id,
            date=today,
            check_in_time=now,
            status=AttendanceStatus.present,
            check_in_ip=ip_address,
            check_in_latitude=latitude,
            check_in_longitude=longitude,
            is_late=AttendanceService._is_late(now),
            late_reason=late_reason,
            project=project,
            created_at=now,
            updated_at=now,
        )
        db.add(record)
        try:
            await db.flush()
        except IntegrityError as exc:
            # Lost a race with a concurrent check-in; uq_attendance_emp_date held.
            logger.warning("Concurrent check-in for %s on %s", employee_id, today)
            raise AlreadyCheckedIn() from exc

        await create_audit_entry(
            db,
            action="check_in",
            entity_type="attendance_record",
            entity_id=record.id,
            actor_id=employee_id,
            new_values={
                "date": today.isoformat(),
                "check_in_time": now.isoformat(),
                "is_late": record.is_late,
            },
            ip_address=ip_address,
        )
        logger.info("Check-in %s at %s (late=%s)", employee_id, now.isoformat(), record.is_late)

        return CheckActionResponse(
            message="Checked in successfully",
            data=AttendanceRecordResponse.model_validate(record),
        )

    # ── Check out ───────────────────────────────────────────────────

    @staticmethod
    async def check_out(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        ip_address: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> CheckActionResponse:
        """Close the open record, store working hours and reclassify status.

        Today's record is used when one exists. Otherwise a check-in from the
        previous office date that is still open is closed, so a shift that
        runs past midnight can be checked out.
        """
        now = now or now_utc()
        today = local_today(now)

        record = await AttendanceService._get_record(db, employee_id, today)
        if record is None:
            overnight = await AttendanceService._get_record(
                db, employee_id, today - timedelta(days=1),
            )
            if overnight is not None and overnight.check_out_time is None:
                record = overnight
        if record is None or record.check_in_time is None:
            raise NotCheckedIn()
        if record.check_out_time is not None:
            raise AlreadyCheckedOut()

        hours = resolver.compute_working_hours(record.check_in_time, now)
        status = resolver.classify_working_hours(
            hours,
            full_day=settings.FULL_DAY_HOURS,
            half_day=settings.HALF_DAY_HOURS,
        )
        result = await db.execute(
            update(AttendanceRecord)
            .where(
                AttendanceRecord.id == record.id,
                AttendanceRecord.check_out_time.is_(None),
            )
            .values(
                check_out_time=now,
                working_hours=hours,
                status=status,
                check_out_ip=ip_address,
                check_out_latitude=latitude,
                check_out_longitude=longitude,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise AlreadyCheckedOut()

        await create_audit_entry(
            db,
            action="check_out",
            entity_type="attendance_record",
            entity_id=record.id,
            actor_id=employee_id,
            old_values={"status": record.status.value},
            new_values={
                "check_out_time": now.isoformat(),
                "working_hours": hours,
                "status": status.value,
            },
            ip_address=ip_address,
        )
        logger.info("Check-out %s after %.2fh -> %s", employee_id, hours, status.value)

        record = await AttendanceService._get_record(db, employee_id, record.date)
        return CheckActionResponse(
            message="Checked out successfully",
            data=AttendanceRecordResponse.model_validate(record),
        )

    # ── Day status ──────────────────────────────────────────────────

    @staticmethod
    async def get_day_status(
        db: AsyncSession,
        employee_id: uuid.UUID,
        target_date: date,
    ) -> DayStatusView:
        record = await AttendanceService._get_record(db, employee_id, target_date)
        leaves = await LeaveService.get_approved_leaves(
            db, target_date, target_date, employee_ids=[employee_id],
        )
        day = resolver.resolve_day(
            target_date,
            attendance=AttendanceFact.of(record) if record else None,
            leaves=[LeaveFact.of(lv) for lv in leaves],
            holidays=await AttendanceService._holiday_facts(db, target_date, target_date),
            weekend_days=settings.weekend_days,
        )
        return AttendanceService._day_view(day)

    # ── Monthly calendar ────────────────────────────────────────────

    @staticmethod
    async def get_monthly_calendar(
        db: AsyncSession,
        employee_id: uuid.UUID,
        year: int,
        month: int,
        *,
        now: Optional[datetime] = None,
    ) -> MonthlyCalendarResponse:
        """Resolve every date of the month for one employee.

        Future dates that would resolve to absent are omitted: an absence
        cannot be known yet.
        """
        if not 1 <= month <= 12:
            raise ValidationException({"month": ["Month must be between 1 and 12."]})

        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        today = local_today(now)

        records = (
            await db.execute(
                select(AttendanceRecord).where(
                    AttendanceRecord.employee_id == employee_id,
                    AttendanceRecord.date >= first,
                    AttendanceRecord.date <= last,
                )
            )
        ).scalars().all()
        leaves = await LeaveService.get_approved_leaves(
            db, first, last, employee_ids=[employee_id],
        )
        holiday_rows = (
            await db.execute(
                select(Holiday)
                .where(
                    Holiday.is_active.is_(True),
                    Holiday.date >= first,
                    Holiday.date <= last,
                )
                .order_by(Holiday.date)
            )
        ).scalars().all()

        resolved = resolver.resolve_range(
            first,
            last,
            attendance=[AttendanceFact.of(r) for r in records],
            leaves=[LeaveFact.of(lv) for lv in leaves],
            holidays=[HolidayFact.of(h) for h in holiday_rows],
            weekend_days=settings.weekend_days,
        )
        emitted = [
            d for d in resolved
            if not (d.date > today and d.status == DayStatus.absent)
        ]
        summary = resolver.summarize(emitted)

        return MonthlyCalendarResponse(
            year=year,
            month=month,
            days={d.date.isoformat(): AttendanceService._day_view(d) for d in emitted},
            summary=MonthSummaryView(**summary.as_dict()),
            holidays=[HolidayResponse.model_validate(h) for h in holiday_rows],
        )

    # ── Raw history ─────────────────────────────────────────────────

    @staticmethod
    async def get_my_attendance(
        db: AsyncSession,
        employee_id: uuid.UUID,
        from_date: date,
        to_date: date,
        params: PaginationParams,
    ) -> PaginatedResponse:
        AttendanceService._validate_date_range(from_date, to_date)
        query = (
            select(AttendanceRecord)
            .where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.date >= from_date,
                AttendanceRecord.date <= to_date,
            )
            .order_by(AttendanceRecord.date.desc())
        )
        return await paginate(
            db, query, params,
            model=AttendanceRecord,
            transform=AttendanceRecordResponse.model_validate,
        )

    # ── Team view ───────────────────────────────────────────────────

    @staticmethod
    async def get_team_attendance(
        db: AsyncSession,
        target_date: date,
        *,
        department_id: Optional[uuid.UUID] = None,
        manager_id: Optional[uuid.UUID] = None,
    ) -> TeamAttendanceResponse:
        """Resolve one date for every active employee in scope.

        *manager_id* narrows the scope to that manager's direct reports.
        """
        employees = await AttendanceService.get_active_employees(
            db, department_id=department_id, manager_id=manager_id,
        )
        resolved = await AttendanceService.resolve_employees_on(db, target_date, employees)

        rows: list[TeamMemberDay] = []
        stats = TeamStats(total=len(employees))
        for emp in employees:
            day = resolved[emp.id]
            rows.append(
                TeamMemberDay(
                    employee_id=emp.id,
                    employee_code=emp.employee_code,
                    name=emp.full_name,
                    department=emp.department.name if emp.department else None,
                    designation=emp.designation.name if emp.designation else None,
                    status=day.status,
                    stat_status=day.stat_status,
                    check_in=day.check_in,
                    check_out=day.check_out,
                    working_hours=day.working_hours,
                    is_late=day.is_late,
                    remarks=day.remarks,
                )
            )
            if day.stat_status in (DayStatus.present, DayStatus.half_day):
                stats.present += 1
            elif day.stat_status == DayStatus.wfh:
                stats.wfh += 1
            elif day.stat_status == DayStatus.absent:
                stats.absent += 1
            elif day.stat_status == DayStatus.on_leave:
                stats.on_leave += 1
            elif day.stat_status == DayStatus.holiday:
                stats.holiday += 1
            elif day.stat_status == DayStatus.weekend:
                stats.weekend += 1
            if day.is_late:
                stats.late += 1

        return TeamAttendanceResponse(date=target_date, data=rows, stats=stats)

    # ── Virtual office ──────────────────────────────────────────────

    @staticmethod
    def _presence_card(emp: Employee, day: ResolvedDay, now: datetime) -> PresenceCard:
        name = emp.full_name
        department = emp.department.name if emp.department else "General"
        role = emp.designation.name if emp.designation else "Employee"

        time_info = duration = meta = None
        if day.check_in is not None:
            time_info = resolver.format_since(day.check_in)
            duration = resolver.format_duration(day.check_in, day.check_out or now)
        elif day.leave is not None:
            meta = resolver.format_until(day.leave.to_date)
        elif day.status == DayStatus.holiday:
            meta = day.remarks

        return PresenceCard(
            id=emp.id,
            name=name,
            role=role,
            department=department,
            avatar=emp.profile_photo_url or AVATAR_FALLBACK_URL.format(name=quote_plus(name)),
            status=day.status,
            time=time_info,
            duration=duration,
            meta=meta,
            is_leader=resolver.is_leader(
                emp.designation.name if emp.designation else None,
                emp.department.name if emp.department else None,
                leadership_department=LEADERSHIP_DEPARTMENT,
            ),
            is_late=day.is_late,
        )

    @staticmethod
    async def get_virtual_office(
        db: AsyncSession,
        *,
        now: Optional[datetime] = None,
    ) -> VirtualOfficeResponse:
        """Live presence board for today, grouped into leadership and departments."""
        now = now or now_utc()
        today = local_today(now)
        employees = await AttendanceService.get_active_employees(db)
        resolved = await AttendanceService.resolve_employees_on(db, today, employees)

        leadership: list[PresenceCard] = []
        departments: dict[str, list[PresenceCard]] = defaultdict(list)
        for emp in employees:
            card = AttendanceService._presence_card(emp, resolved[emp.id], now)
            if card.is_leader:
                leadership.append(card)
            else:
                departments[card.department].append(card)

        days = list(resolved.values())
        total = len(days)
        wfh = sum(1 for d in days if d.status == DayStatus.wfh)
        present = sum(1 for d in days if d.status in (DayStatus.present, DayStatus.wfh))
        wfo = present - wfh
        check_ins = [d.check_in for d in days if d.check_in is not None]

        stats = VirtualOfficeStats(
            total=total,
            present=present,
            present_percentage=round(present / total * 100) if total else 0,
            avg_login_time=resolver.average_clock(check_ins) or "N/A",
            late_entries=sum(1 for d in days if d.is_late),
            wfo_percentage=round(wfo / present * 100) if present else 0,
            wfh_percentage=round(wfh / present * 100) if present else 0,
        )
        return VirtualOfficeResponse(
            date=today,
            leadership=leadership,
            departments=dict(departments),
            stats=stats,
        )

    # ── Holidays ────────────────────────────────────────────────────

    @staticmethod
    async def get_holidays(
        db: AsyncSession,
        *,
        year: Optional[int] = None,
    ) -> list[HolidayResponse]:
        query = select(Holiday).where(Holiday.is_active.is_(True)).order_by(Holiday.date)
        if year is not None:
            query = query.where(extract("year", Holiday.date) == year)
        result = await db.execute(query)
        return [HolidayResponse.model_validate(h) for h in result.scalars().all()]

    @staticmethod
    async def get_upcoming_holidays(
        db: AsyncSession,
        from_date: date,
        limit: int = 3,
    ) -> list[HolidayResponse]:
        result = await db.execute(
            select(Holiday)
            .where(Holiday.is_active.is_(True), Holiday.date >= from_date)
            .order_by(Holiday.date)
            .limit(limit)
        )
        return [HolidayResponse.model_validate(h) for h in result.scalars().all()]

    @staticmethod
    async def create_holiday(
        db: AsyncSession,
        data: HolidayCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> HolidayResponse:
        existing = await db.execute(
            select(Holiday.id).where(Holiday.date == data.date, Holiday.name == data.name)
        )
        if existing.first() is not None:
            raise DuplicateException("holiday", f"{data.name} on {data.date.isoformat()}")

        holiday = Holiday(**data.model_dump(), is_active=True)
        db.add(holiday)
        try:
            await db.flush()
        except IntegrityError as exc:
            raise DuplicateException("holiday", f"{data.name} on {data.date.isoformat()}") from exc

        await create_audit_entry(
            db,
            action="create",
            entity_type="holiday",
            entity_id=holiday.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        logger.info("Holiday added: %s %s (%s)", data.date, data.name, data.type.value)
        return HolidayResponse.model_validate(holiday)
