import uuid
from datetime import date, datetime, time
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.db.base import Base
from app.models.school_class import SchoolClass
from app.models.subject import Subject
from app.models.user import User


class DayOfWeek(str, Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @property
    def position(self) -> int:
        return DAY_ORDER.index(self)


DAY_ORDER = list(DayOfWeek)


class ScheduleStatus(str, Enum):
    active = "active"
    inactive = "inactive"


class ClassSchedule(Base):
    __tablename__ = "class_schedules"
    __table_args__ = (
        CheckConstraint(
            "(day_of_week IS NOT NULL AND schedule_date IS NULL) "
            "OR (day_of_week IS NULL AND schedule_date IS NOT NULL)",
            name="ck_class_schedules_validity_kind",
        ),
        CheckConstraint("start_time < end_time", name="ck_class_schedules_time_order"),
        # Backstop for the application-level conflict check; only active rows
        # participate so a deactivated slot can be booked again.
        Index(
            "uq_class_schedules_active_slot",
            "class_id",
            "subject_id",
            "day_of_week",
            "start_time",
            "end_time",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        Index("ix_class_schedules_tenant_day", "tenant_id", "day_of_week", "start_time"),
        Index("ix_class_schedules_tenant_date", "tenant_id", "schedule_date", "start_time"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id: Mapped[str] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), index=True, nullable=False)
    class_id: Mapped[str] = mapped_column(ForeignKey("classes.id", ondelete="CASCADE"), index=True, nullable=False)
    subject_id: Mapped[str] = mapped_column(ForeignKey("subjects.id", ondelete="CASCADE"), index=True, nullable=False)
    teacher_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    day_of_week: Mapped[DayOfWeek | None] = mapped_column(SAEnum(DayOfWeek, name="day_of_week"), nullable=True)
    schedule_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    room_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    semester: Mapped[str | None] = mapped_column(String(50), nullable=True)
    academic_year: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ScheduleStatus] = mapped_column(
        SAEnum(ScheduleStatus, name="schedule_status"),
        nullable=False,
        default=ScheduleStatus.active,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    school_class: Mapped[SchoolClass] = relationship(lazy="joined")
    subject: Mapped[Subject] = relationship(lazy="joined")
    teacher: Mapped[User] = relationship(lazy="joined")

    @property
    def is_active(self) -> bool:
        return self.status == ScheduleStatus.active

    @property
    def class_name(self) -> str | None:
        return self.school_class.name if self.school_class is not None else None

    @property
    def subject_name(self) -> str | None:
        return self.subject.name if self.subject is not None else None

    @property
    def subject_code(self) -> str | None:
        return self.subject.code if self.subject is not None else None

    @property
    def teacher_name(self) -> str | None:
        return self.teacher.full_name if self.teacher is not None else None

    @property
    def teacher_email(self) -> str | None:
        return self.teacher.email if self.teacher is not None else None
