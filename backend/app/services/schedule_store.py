from __future__ import annotations

import hashlib
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from threading import Lock
from typing import Any, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import (
    AppError,
    ResourceNotFoundError,
    ScheduleConflictError,
    ScheduleValidationError,
    TransientScheduleError,
)
from app.core.tenant import TenantContext
from app.models.class_schedule import ClassSchedule, DayOfWeek, ScheduleStatus
from app.models.school_class import SchoolClass
from app.models.subject import Subject
from app.models.user import User, UserRole
from app.schemas.schedule import ScheduleConflictCheck, ScheduleCreate, ScheduleUpdate
from app.services.audit import log_activity
from app.services.conflict_checker import (
    ConflictHit,
    ScheduleCandidate,
    ensure_no_conflicts,
    find_conflicts,
)
from app.services.intervals import TimeInterval, format_clock_time

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONFLICT_FIELDS = ("class_id", "teacher_id", "day_of_week", "schedule_date", "start_time", "end_time")
REQUIRED_FIELDS = ("class_id", "subject_id", "teacher_id", "start_time", "end_time")
TEXT_FIELDS = ("room_number", "semester", "academic_year", "notes")

# Fixed stripe table; unrelated keys may share a stripe, which only costs contention.
PROCESS_LOCK_STRIPES = 64
_process_locks: tuple[Lock, ...] = tuple(Lock() for _ in range(PROCESS_LOCK_STRIPES))

# Upper bound on re-locking when a concurrent write moves the entry to another day or date.
MAX_LOCK_KEY_HOPS = 3


class _LockKeyMoved(Exception):
    def __init__(self, discriminant: str) -> None:
        super().__init__(discriminant)
        self.discriminant = discriminant


@dataclass(frozen=True)
class ScheduleFilters:
    class_id: str | None = None
    subject_id: str | None = None
    teacher_id: str | None = None
    day_of_week: DayOfWeek | None = None
    semester: str | None = None
    academic_year: str | None = None


def _normalize_text(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def schedule_sort_key(entry: ClassSchedule) -> tuple:
    """Recurring entries Monday..Sunday first, then dated entries by date."""
    if entry.day_of_week is not None:
        return (0, entry.day_of_week.position, entry.start_time, entry.id)
    return (1, entry.schedule_date.toordinal(), entry.start_time, entry.id)


def _audit_snapshot(entry: ClassSchedule) -> dict[str, Any]:
    return {
        "class_id": entry.class_id,
        "subject_id": entry.subject_id,
        "teacher_id": entry.teacher_id,
        "day_of_week": entry.day_of_week.value if entry.day_of_week is not None else None,
        "schedule_date": entry.schedule_date.isoformat() if entry.schedule_date is not None else None,
        "start_time": format_clock_time(entry.start_time),
        "end_time": format_clock_time(entry.end_time),
    }


def _ensure_single_validity_kind(day_of_week: DayOfWeek | None, schedule_date: date | None) -> None:
    if day_of_week is None and schedule_date is None:
        raise ScheduleValidationError("Either day_of_week or schedule_date is required")
    if day_of_week is not None and schedule_date is not None:
        raise ScheduleValidationError("Cannot specify both day_of_week and schedule_date")


def _teaching_roles() -> list[UserRole]:
    known = {role.value for role in UserRole}
    return [UserRole(role) for role in get_settings().teaching_roles if role in known]


def _resolve_references(
    db: Session,
    ctx: TenantContext,
    *,
    class_id: str | None = None,
    subject_id: str | None = None,
    teacher_id: str | None = None,
) -> None:
    checks = (
        ("Class", SchoolClass, class_id),
        ("Subject", Subject, subject_id),
        ("Teacher", User, teacher_id),
    )
    for label, model, resource_id in checks:
        if resource_id is None:
            continue
        stmt = select(model.id).where(model.id == resource_id, model.tenant_id == ctx.tenant_id)
        if model is User:
            # Only active accounts in a teaching role can be booked.
            stmt = stmt.where(User.is_active.is_(True), User.role.in_(_teaching_roles()))
        if db.execute(stmt).scalar_one_or_none() is None:
            raise ResourceNotFoundError(label, resource_id)


def _advisory_key(key: str) -> int:
    digest = hashlib.blake2b(key.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


def _process_lock(key: str) -> Lock:
    return _process_locks[_advisory_key(key) % PROCESS_LOCK_STRIPES]


@contextmanager
def schedule_write_lock(db: Session, tenant_id: str, discriminant: str) -> Iterator[None]:
    """Serialize check-and-write for one tenant's day (or date) bucket.

    PostgreSQL uses a transaction-scoped advisory lock, released on commit or
    rollback. Other dialects fall back to a per-process lock; callers must
    commit before leaving the block.
    """
    key = f"{tenant_id}|{discriminant}"
    if db.get_bind().dialect.name == "postgresql":
        db.execute(select(func.pg_advisory_xact_lock(_advisory_key(key))))
        yield
        return
    with _process_lock(key):
        yield


def _run_atomic(db: Session, tenant_id: str, discriminant: str, work: Callable[[], T]) -> T:
    attempts = get_settings().schedule_write_retries + 1
    for attempt in range(1, attempts + 1):
        try:
            with schedule_write_lock(db, tenant_id, discriminant):
                result = work()
                db.commit()
            return result
        except ScheduleConflictError as exc:
            db.rollback()
            logger.warning(
                "Rejected schedule for tenant %s on %s: %s with entry %s",
                tenant_id,
                discriminant,
                exc.kind.value,
                exc.conflicting_entry_id,
            )
            raise
        except (AppError, _LockKeyMoved):
            db.rollback()
            raise
        except (OperationalError, IntegrityError) as exc:
            db.rollback()
            if attempt >= attempts:
                logger.error(
                    "Schedule write for tenant %s on %s failed after %d attempt(s)",
                    tenant_id,
                    discriminant,
                    attempt,
                )
                raise TransientScheduleError() from exc
            logger.warning(
                "Schedule write for tenant %s on %s failed (attempt %d/%d), retrying",
                tenant_id,
                discriminant,
                attempt,
                attempts,
                exc_info=True,
            )
    raise TransientScheduleError()


def get_schedule(db: Session, ctx: TenantContext, schedule_id: str) -> ClassSchedule:
    """Fetch an entry in any lifecycle state; other tenants' ids look missing."""
    entry = db.execute(
        select(ClassSchedule).where(
            ClassSchedule.id == schedule_id,
            ClassSchedule.tenant_id == ctx.tenant_id,
        )
    ).unique().scalar_one_or_none()
    if entry is None:
        raise ResourceNotFoundError("Schedule", schedule_id)
    return entry


def _get_active_schedule(db: Session, ctx: TenantContext, schedule_id: str) -> ClassSchedule:
    entry = get_schedule(db, ctx, schedule_id)
    if entry.status != ScheduleStatus.active:
        raise ResourceNotFoundError("Schedule", schedule_id)
    return entry


def list_active_schedules(
    db: Session,
    ctx: TenantContext,
    filters: ScheduleFilters | None = None,
) -> list[ClassSchedule]:
    filters = filters or ScheduleFilters()
    stmt = select(ClassSchedule).where(
        ClassSchedule.tenant_id == ctx.tenant_id,
        ClassSchedule.status == ScheduleStatus.active,
    )
    if filters.class_id is not None:
        stmt = stmt.where(ClassSchedule.class_id == filters.class_id)
    if filters.subject_id is not None:
        stmt = stmt.where(ClassSchedule.subject_id == filters.subject_id)
    if filters.teacher_id is not None:
        stmt = stmt.where(ClassSchedule.teacher_id == filters.teacher_id)
    if filters.day_of_week is not None:
        stmt = stmt.where(ClassSchedule.day_of_week == filters.day_of_week)
    if filters.semester is not None:
        stmt = stmt.where(ClassSchedule.semester == filters.semester)
    if filters.academic_year is not None:
        stmt = stmt.where(ClassSchedule.academic_year == filters.academic_year)
    return sorted(db.execute(stmt).unique().scalars(), key=schedule_sort_key)


def create_schedule(db: Session, ctx: TenantContext, payload: ScheduleCreate) -> ClassSchedule:
    _ensure_single_validity_kind(payload.day_of_week, payload.schedule_date)
    interval = TimeInterval(payload.start_time, payload.end_time)
    _resolve_references(
        db,
        ctx,
        class_id=payload.class_id,
        subject_id=payload.subject_id,
        teacher_id=payload.teacher_id,
    )
    candidate = ScheduleCandidate(
        tenant_id=ctx.tenant_id,
        class_id=payload.class_id,
        teacher_id=payload.teacher_id,
        interval=interval,
        day_of_week=payload.day_of_week,
        schedule_date=payload.schedule_date,
    )

    def write() -> ClassSchedule:
        ensure_no_conflicts(db, candidate)
        entry = ClassSchedule(
            tenant_id=ctx.tenant_id,
            class_id=payload.class_id,
            subject_id=payload.subject_id,
            teacher_id=payload.teacher_id,
            day_of_week=payload.day_of_week,
            schedule_date=payload.schedule_date,
            start_time=interval.start,
            end_time=interval.end,
            room_number=_normalize_text(payload.room_number),
            semester=_normalize_text(payload.semester),
            academic_year=_normalize_text(payload.academic_year),
            notes=_normalize_text(payload.notes),
            status=ScheduleStatus.active,
        )
        db.add(entry)
        db.flush()
        log_activity(
            db,
            ctx=ctx,
            action="class_schedule.created",
            entity_type="class_schedule",
            entity_id=entry.id,
            details=_audit_snapshot(entry),
        )
        return entry

    entry = _run_atomic(db, ctx.tenant_id, candidate.discriminant, write)
    db.refresh(entry)
    logger.info("Created schedule %s for tenant %s on %s", entry.id, ctx.tenant_id, candidate.discriminant)
    return entry


def _collect_updates(entry: ClassSchedule, patch: ScheduleUpdate) -> dict[str, Any]:
    changes = patch.model_dump(exclude_unset=True)
    cleared = [name for name in REQUIRED_FIELDS if name in changes and changes[name] is None]
    if cleared:
        raise ScheduleValidationError(
            f"Fields cannot be cleared: {', '.join(cleared)}",
            details={"fields": cleared},
        )
    if changes.get("day_of_week") is not None and changes.get("schedule_date") is not None:
        raise ScheduleValidationError("Cannot specify both day_of_week and schedule_date")

    # Setting one validity kind switches the entry to it.
    if changes.get("day_of_week") is not None:
        changes["schedule_date"] = None
    elif changes.get("schedule_date") is not None:
        changes["day_of_week"] = None

    for name in TEXT_FIELDS:
        if name in changes:
            changes[name] = _normalize_text(changes[name])
    return {name: value for name, value in changes.items() if getattr(entry, name) != value}


def _plan_update(
    db: Session,
    ctx: TenantContext,
    entry: ClassSchedule,
    patch: ScheduleUpdate,
) -> tuple[dict[str, Any], ScheduleCandidate]:
    updates = _collect_updates(entry, patch)
    merged = {name: updates.get(name, getattr(entry, name)) for name in CONFLICT_FIELDS}
    _ensure_single_validity_kind(merged["day_of_week"], merged["schedule_date"])
    interval = TimeInterval(merged["start_time"], merged["end_time"])
    _resolve_references(
        db,
        ctx,
        class_id=updates.get("class_id"),
        subject_id=updates.get("subject_id"),
        teacher_id=updates.get("teacher_id"),
    )
    candidate = ScheduleCandidate(
        tenant_id=ctx.tenant_id,
        class_id=merged["class_id"],
        teacher_id=merged["teacher_id"],
        interval=interval,
        day_of_week=merged["day_of_week"],
        schedule_date=merged["schedule_date"],
        exclude_id=entry.id,
    )
    return updates, candidate


def _lock_active_schedule(db: Session, ctx: TenantContext, schedule_id: str) -> ClassSchedule:
    """Re-read an active entry under the write lock, overwriting identity-map state."""
    entry = db.execute(
        select(ClassSchedule)
        .where(ClassSchedule.id == schedule_id, ClassSchedule.tenant_id == ctx.tenant_id)
        .with_for_update(of=ClassSchedule)
        .execution_options(populate_existing=True)
    ).unique().scalar_one_or_none()
    if entry is None or entry.status != ScheduleStatus.active:
        raise ResourceNotFoundError("Schedule", schedule_id)
    return entry


def update_schedule(
    db: Session,
    ctx: TenantContext,
    schedule_id: str,
    patch: ScheduleUpdate,
) -> ClassSchedule:
    """Apply a partial update.

    The patch is validated against the entry as first read so bad input fails
    fast, then re-planned against a fresh read taken under the write lock: the
    conflict check always sees the entry as other writers left it. When that
    fresh state lands in another day or date bucket, the lock is re-taken for
    that bucket.
    """
    entry = _get_active_schedule(db, ctx, schedule_id)
    updates, candidate = _plan_update(db, ctx, entry, patch)
    if not updates:
        return entry

    locked_key = candidate.discriminant
    applied: list[str] = []

    def write() -> ClassSchedule:
        current = _lock_active_schedule(db, ctx, schedule_id)
        fresh_updates, fresh_candidate = _plan_update(db, ctx, current, patch)
        if fresh_candidate.discriminant != locked_key:
            raise _LockKeyMoved(fresh_candidate.discriminant)
        if any(name in fresh_updates for name in CONFLICT_FIELDS):
            ensure_no_conflicts(db, fresh_candidate)
        for name, value in fresh_updates.items():
            setattr(current, name, value)
        if fresh_updates:
            log_activity(
                db,
                ctx=ctx,
                action="class_schedule.updated",
                entity_type="class_schedule",
                entity_id=current.id,
                details={"fields": sorted(fresh_updates), **_audit_snapshot(current)},
            )
        applied[:] = sorted(fresh_updates)
        return current

    for _ in range(MAX_LOCK_KEY_HOPS):
        try:
            entry = _run_atomic(db, ctx.tenant_id, locked_key, write)
            break
        except _LockKeyMoved as moved:
            logger.info("Schedule %s moved to %s while waiting for its lock", schedule_id, moved.discriminant)
            locked_key = moved.discriminant
    else:
        raise TransientScheduleError()

    db.refresh(entry)
    if applied:
        logger.info("Updated schedule %s for tenant %s: %s", entry.id, ctx.tenant_id, ", ".join(applied))
    return entry


def deactivate_schedule(db: Session, ctx: TenantContext, schedule_id: str) -> ClassSchedule:
    entry = get_schedule(db, ctx, schedule_id)
    if entry.status == ScheduleStatus.inactive:
        return entry
    entry.status = ScheduleStatus.inactive
    log_activity(
        db,
        ctx=ctx,
        action="class_schedule.deactivated",
        entity_type="class_schedule",
        entity_id=entry.id,
        details=_audit_snapshot(entry),
    )
    db.commit()
    db.refresh(entry)
    logger.info("Deactivated schedule %s for tenant %s", entry.id, ctx.tenant_id)
    return entry


def preview_conflicts(db: Session, ctx: TenantContext, payload: ScheduleConflictCheck) -> list[ConflictHit]:
    """Dry-run the conflict check without taking the write lock or persisting."""
    _ensure_single_validity_kind(payload.day_of_week, payload.schedule_date)
    candidate = ScheduleCandidate(
        tenant_id=ctx.tenant_id,
        class_id=payload.class_id,
        teacher_id=payload.teacher_id,
        interval=TimeInterval(payload.start_time, payload.end_time),
        day_of_week=payload.day_of_week,
        schedule_date=payload.schedule_date,
        exclude_id=payload.exclude_id,
    )
    return find_conflicts(db, candidate)
