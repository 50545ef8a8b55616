from datetime import date, datetime, time

from pydantic import BaseModel, Field, field_validator

from app.core.exceptions import ConflictKind
from app.models.class_schedule import DayOfWeek, ScheduleStatus
from app.models.schedule_exception import ExceptionType
from app.services.intervals import parse_clock_time


class ScheduleCreate(BaseModel):
    class_id: str = Field(min_length=1, max_length=36)
    subject_id: str = Field(min_length=1, max_length=36)
    teacher_id: str = Field(min_length=1, max_length=36)
    day_of_week: DayOfWeek | None = None
    schedule_date: date | None = None
    start_time: time
    end_time: time
    room_number: str | None = Field(default=None, max_length=50)
    semester: str | None = Field(default=None, max_length=50)
    academic_year: str | None = Field(default=None, max_length=50)
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_clock(cls, value):
        if value is None:
            return value
        return parse_clock_time(value)


class ScheduleUpdate(BaseModel):
    """Partial update; only fields present in the request are applied."""

    class_id: str | None = Field(default=None, min_length=1, max_length=36)
    subject_id: str | None = Field(default=None, min_length=1, max_length=36)
    teacher_id: str | None = Field(default=None, min_length=1, max_length=36)
    day_of_week: DayOfWeek | None = None
    schedule_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    room_number: str | None = Field(default=None, max_length=50)
    semester: str | None = Field(default=None, max_length=50)
    academic_year: str | None = Field(default=None, max_length=50)
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_clock(cls, value):
        if value is None:
            return value
        return parse_clock_time(value)


class ScheduleOut(BaseModel):
    id: str
    class_id: str
    subject_id: str
    teacher_id: str
    day_of_week: DayOfWeek | None = None
    schedule_date: date | None = None
    start_time: time
    end_time: time
    room_number: str | None = None
    semester: str | None = None
    academic_year: str | None = None
    notes: str | None = None
    status: ScheduleStatus
    is_active: bool
    class_name: str | None = None
    subject_name: str | None = None
    subject_code: str | None = None
    teacher_name: str | None = None
    teacher_email: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class WeeklyScheduleOut(BaseModel):
    class_id: str
    weekly_schedule: dict[DayOfWeek, list[ScheduleOut]]


class ScheduleConflictCheck(BaseModel):
    class_id: str = Field(min_length=1, max_length=36)
    teacher_id: str = Field(min_length=1, max_length=36)
    day_of_week: DayOfWeek | None = None
    schedule_date: date | None = None
    start_time: time
    end_time: time
    exclude_id: str | None = Field(default=None, max_length=36)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_clock(cls, value):
        return parse_clock_time(value)


class ConflictHitOut(BaseModel):
    kind: ConflictKind
    conflicting_entry_id: str


class ConflictCheckOut(BaseModel):
    clean: bool
    conflicts: list[ConflictHitOut] = Field(default_factory=list)


class ScheduleExceptionCreate(BaseModel):
    exception_date: date
    exception_type: ExceptionType
    new_date: date | None = None
    new_start_time: time | None = None
    new_end_time: time | None = None
    reason: str | None = Field(default=None, max_length=1000)

    @field_validator("new_start_time", "new_end_time", mode="before")
    @classmethod
    def validate_clock(cls, value):
        if value is None:
            return value
        return parse_clock_time(value)


class ScheduleExceptionOut(BaseModel):
    id: str
    schedule_id: str
    exception_date: date
    exception_type: ExceptionType
    new_date: date | None = None
    new_start_time: time | None = None
    new_end_time: time | None = None
    reason: str | None = None
    created_by_id: str | None = None
    created_at: datetime | None = None
    class_id: str
    class_name: str | None = None
    subject_name: str | None = None
    teacher_name: str | None = None
    day_of_week: DayOfWeek | None = None
    start_time: time
    end_time: time

    model_config = {"from_attributes": True}
