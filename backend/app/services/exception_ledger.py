from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import ScheduleValidationError
from app.core.tenant import TenantContext
from app.models.class_schedule import ClassSchedule
from app.models.schedule_exception import ExceptionType, ScheduleException
from app.schemas.schedule import ScheduleExceptionCreate
from app.services.audit import log_activity
from app.services.intervals import TimeInterval
from app.services.schedule_store import get_schedule

logger = logging.getLogger(__name__)


def _validate_reschedule(payload: ScheduleExceptionCreate) -> None:
    has_new_values = any(
        value is not None for value in (payload.new_date, payload.new_start_time, payload.new_end_time)
    )
    if payload.exception_type != ExceptionType.RESCHEDULED:
        if has_new_values:
            raise ScheduleValidationError(
                "new_date, new_start_time and new_end_time are only allowed for RESCHEDULED exceptions"
            )
        return
    if (payload.new_start_time is None) != (payload.new_end_time is None):
        raise ScheduleValidationError("new_start_time and new_end_time must be provided together")
    if payload.new_start_time is not None:
        TimeInterval(payload.new_start_time, payload.new_end_time)


def record_exception(
    db: Session,
    ctx: TenantContext,
    schedule_id: str,
    payload: ScheduleExceptionCreate,
) -> ScheduleException:
    """Record a deviation against one date of an entry.

    The base entry is left untouched and no conflict check runs: a reschedule
    is a caller-asserted deviation. Inactive entries still accept exceptions
    so their history stays complete.
    """
    _validate_reschedule(payload)
    entry = get_schedule(db, ctx, schedule_id)

    record = ScheduleException(
        tenant_id=ctx.tenant_id,
        schedule_id=entry.id,
        exception_date=payload.exception_date,
        exception_type=payload.exception_type,
        new_date=payload.new_date,
        new_start_time=payload.new_start_time,
        new_end_time=payload.new_end_time,
        reason=(payload.reason or "").strip() or None,
        created_by_id=ctx.user_id,
    )
    db.add(record)
    db.flush()
    log_activity(
        db,
        ctx=ctx,
        action="schedule_exception.recorded",
        entity_type="schedule_exception",
        entity_id=record.id,
        details={
            "schedule_id": entry.id,
            "exception_date": payload.exception_date.isoformat(),
            "exception_type": payload.exception_type.value,
        },
    )
    db.commit()
    db.refresh(record)
    logger.info(
        "Recorded %s exception %s for schedule %s on %s",
        record.exception_type.value,
        record.id,
        entry.id,
        record.exception_date.isoformat(),
    )
    return record


def list_exceptions(
    db: Session,
    ctx: TenantContext,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
    class_id: str | None = None,
) -> list[ScheduleException]:
    if start_date is not None and end_date is not None and start_date > end_date:
        raise ScheduleValidationError("start_date must not be after end_date")

    stmt = (
        select(ScheduleException)
        .join(ClassSchedule, ScheduleException.schedule_id == ClassSchedule.id)
        .where(
            ScheduleException.tenant_id == ctx.tenant_id,
            ClassSchedule.tenant_id == ctx.tenant_id,
        )
    )
    if start_date is not None:
        stmt = stmt.where(ScheduleException.exception_date >= start_date)
    if end_date is not None:
        stmt = stmt.where(ScheduleException.exception_date <= end_date)
    if class_id is not None:
        stmt = stmt.where(ClassSchedule.class_id == class_id)
    stmt = stmt.order_by(ScheduleException.exception_date, ScheduleException.created_at, ScheduleException.id)
    return list(db.execute(stmt).unique().scalars())
