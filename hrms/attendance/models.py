"""Attendance ORM models: AttendanceRecord, Holiday."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import INET, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.constants import AttendanceStatus, HolidayType
from hrms.common.timeutils import now_utc
from hrms.database import Base

if TYPE_CHECKING:
    from hrms.core_hr.models import Employee


class Holiday(Base):
    """Company holiday. Any active holiday marks its date as a holiday."""

    __tablename__ = "holidays"
    __table_args__ = (
        sa.UniqueConstraint("date", "name", name="uq_holiday_date_name"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    date: Mapped[date] = mapped_column(sa.Date, nullable=False, index=True)
    type: Mapped[HolidayType] = mapped_column(
        sa.Enum(HolidayType, name="holiday_type", create_type=False),
        default=HolidayType.public,
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=now_utc
    )

    def __repr__(self) -> str:
        return f"<Holiday {self.date} {self.name!r} ({self.type.value})>"


class AttendanceRecord(Base):
    """One row per employee per calendar date.

    ``status`` is the raw stored status; the day's displayed status comes
    from the resolver, which also weighs leave, holidays and weekends.
    """

    __tablename__ = "attendance_records"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "date", name="uq_attendance_emp_date"),
        sa.Index("ix_attendance_records_date", "date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    check_in_time: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    check_out_time: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    status: Mapped[AttendanceStatus] = mapped_column(
        sa.Enum(AttendanceStatus, name="attendance_status", create_type=False),
        default=AttendanceStatus.present,
        nullable=False,
    )
    working_hours: Mapped[Optional[float]] = mapped_column(sa.Float)

    # ── Opaque client metadata ──────────────────────────────────────
    check_in_ip: Mapped[Optional[str]] = mapped_column(INET)
    check_in_latitude: Mapped[Optional[float]] = mapped_column(sa.Float)
    check_in_longitude: Mapped[Optional[float]] = mapped_column(sa.Float)
    check_out_ip: Mapped[Optional[str]] = mapped_column(INET)
    check_out_latitude: Mapped[Optional[float]] = mapped_column(sa.Float)
    check_out_longitude: Mapped[Optional[float]] = mapped_column(sa.Float)
    is_late: Mapped[bool] = mapped_column(sa.Boolean, default=False)
    late_reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    project: Mapped[Optional[str]] = mapped_column(sa.String(200))
    remarks: Mapped[Optional[str]] = mapped_column(sa.Text)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=now_utc
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=now_utc, onupdate=now_utc
    )

    # Relationships
    employee: Mapped["Employee"] = relationship(back_populates="attendance_records")

    def __repr__(self) -> str:
        return f"<AttendanceRecord {self.employee_id} {self.date} {self.status.value}>"
