"""Class and teacher double-booking detection for schedule entries.

A candidate is compared only against *active* entries of the same tenant that
share its validity discriminant: the same day of week for recurring entries,
the same calendar date for dated entries. Recurring and dated entries are
never compared with each other.

Callers that persist the candidate afterwards must hold the schedule write
lock (see ``schedule_store``) around both the check and the write.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictKind, ScheduleConflictError
from app.models.class_schedule import ClassSchedule, DayOfWeek, ScheduleStatus
from app.services.intervals import TimeInterval, overlaps


@dataclass(frozen=True)
class ScheduleCandidate:
    tenant_id: str
    class_id: str
    teacher_id: str
    interval: TimeInterval
    day_of_week: DayOfWeek | None = None
    schedule_date: date | None = None
    exclude_id: str | None = None

    @property
    def discriminant(self) -> str:
        if self.day_of_week is not None:
            return f"day:{self.day_of_week.value}"
        return f"date:{self.schedule_date.isoformat()}"


@dataclass(frozen=True)
class ConflictHit:
    kind: ConflictKind
    entry_id: str


def _comparison_set(db: Session, candidate: ScheduleCandidate) -> list[ClassSchedule]:
    stmt = select(ClassSchedule).where(
        ClassSchedule.tenant_id == candidate.tenant_id,
        ClassSchedule.status == ScheduleStatus.active,
        or_(
            ClassSchedule.class_id == candidate.class_id,
            ClassSchedule.teacher_id == candidate.teacher_id,
        ),
    )
    if candidate.day_of_week is not None:
        stmt = stmt.where(ClassSchedule.day_of_week == candidate.day_of_week)
    else:
        stmt = stmt.where(ClassSchedule.schedule_date == candidate.schedule_date)
    if candidate.exclude_id is not None:
        stmt = stmt.where(ClassSchedule.id != candidate.exclude_id)
    stmt = stmt.order_by(ClassSchedule.start_time, ClassSchedule.id)
    return list(db.execute(stmt).unique().scalars())


def find_conflicts(db: Session, candidate: ScheduleCandidate) -> list[ConflictHit]:
    """Return every clash for ``candidate``, class clashes before teacher clashes."""
    class_hits: list[ConflictHit] = []
    teacher_hits: list[ConflictHit] = []
    for entry in _comparison_set(db, candidate):
        existing = TimeInterval(entry.start_time, entry.end_time)
        if not overlaps(candidate.interval, existing):
            continue
        if entry.class_id == candidate.class_id:
            class_hits.append(ConflictHit(ConflictKind.class_conflict, entry.id))
        if entry.teacher_id == candidate.teacher_id:
            teacher_hits.append(ConflictHit(ConflictKind.teacher_conflict, entry.id))
    return class_hits + teacher_hits


def ensure_no_conflicts(db: Session, candidate: ScheduleCandidate) -> None:
    """Raise ``ScheduleConflictError`` for the first clash; class clashes win."""
    hits = find_conflicts(db, candidate)
    if hits:
        first = hits[0]
        raise ScheduleConflictError(first.kind, first.entry_id)
