"""Read-only projections over active schedule entries."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.tenant import TenantContext
from app.models.class_schedule import DAY_ORDER, ClassSchedule, DayOfWeek, ScheduleStatus
from app.services.schedule_store import ScheduleFilters, list_active_schedules, schedule_sort_key


def weekly_view_for_class(
    db: Session,
    ctx: TenantContext,
    class_id: str,
    *,
    semester: str | None = None,
    academic_year: str | None = None,
) -> dict[DayOfWeek, list[ClassSchedule]]:
    # Always seven buckets, even when empty.
    weekly: dict[DayOfWeek, list[ClassSchedule]] = {day: [] for day in DAY_ORDER}
    stmt = select(ClassSchedule).where(
        ClassSchedule.tenant_id == ctx.tenant_id,
        ClassSchedule.class_id == class_id,
        ClassSchedule.status == ScheduleStatus.active,
        ClassSchedule.day_of_week.is_not(None),
    )
    if semester is not None:
        stmt = stmt.where(ClassSchedule.semester == semester)
    if academic_year is not None:
        stmt = stmt.where(ClassSchedule.academic_year == academic_year)
    for entry in sorted(db.execute(stmt).unique().scalars(), key=schedule_sort_key):
        weekly[entry.day_of_week].append(entry)
    return weekly


def view_for_teacher(
    db: Session,
    ctx: TenantContext,
    teacher_id: str,
    *,
    semester: str | None = None,
    academic_year: str | None = None,
) -> list[ClassSchedule]:
    return list_active_schedules(
        db,
        ctx,
        ScheduleFilters(teacher_id=teacher_id, semester=semester, academic_year=academic_year),
    )
