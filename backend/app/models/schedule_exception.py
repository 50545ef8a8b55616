import uuid
from datetime import date, datetime, time
from enum import Enum

from sqlalchemy import Date, DateTime, Enum as SAEnum, ForeignKey, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.db.base import Base
from app.models.class_schedule import ClassSchedule, DayOfWeek


class ExceptionType(str, Enum):
    HOLIDAY = "HOLIDAY"
    CANCELLED = "CANCELLED"
    RESCHEDULED = "RESCHEDULED"
    SPECIAL_EVENT = "SPECIAL_EVENT"


class ScheduleException(Base):
    __tablename__ = "schedule_exceptions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id: Mapped[str] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), index=True, nullable=False)
    schedule_id: Mapped[str] = mapped_column(
        ForeignKey("class_schedules.id", ondelete="CASCADE"), index=True, nullable=False
    )
    exception_date: Mapped[date] = mapped_column(Date, index=True, nullable=False)
    exception_type: Mapped[ExceptionType] = mapped_column(
        SAEnum(ExceptionType, name="exception_type"), nullable=False
    )
    new_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    new_start_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    new_end_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    schedule: Mapped[ClassSchedule] = relationship(lazy="joined")

    @property
    def class_id(self) -> str:
        return self.schedule.class_id

    @property
    def class_name(self) -> str | None:
        return self.schedule.class_name

    @property
    def subject_name(self) -> str | None:
        return self.schedule.subject_name

    @property
    def teacher_name(self) -> str | None:
        return self.schedule.teacher_name

    @property
    def day_of_week(self) -> DayOfWeek | None:
        return self.schedule.day_of_week

    @property
    def start_time(self) -> time:
        return self.schedule.start_time

    @property
    def end_time(self) -> time:
        return self.schedule.end_time
