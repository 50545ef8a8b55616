from datetime import date, time

import pytest

from app.core.exceptions import ConflictKind, ScheduleConflictError
from app.models.class_schedule import DayOfWeek, ScheduleStatus
from app.services.conflict_checker import ScheduleCandidate, ensure_no_conflicts, find_conflicts
from app.services.intervals import TimeInterval


def candidate(campus, **overrides) -> ScheduleCandidate:
    values = {
        "tenant_id": campus.tenant_id,
        "class_id": campus.class_a_id,
        "teacher_id": campus.teacher_a_id,
        "interval": TimeInterval(time(9, 0), time(10, 0)),
        "day_of_week": DayOfWeek.MONDAY,
    }
    values.update(overrides)
    return ScheduleCandidate(**values)


def test_clean_when_no_entries(db_session, campus):
    assert find_conflicts(db_session, candidate(campus)) == []
    ensure_no_conflicts(db_session, candidate(campus))


def test_class_overlap_is_reported(db_session, campus, make_entry):
    existing = make_entry(teacher_id=campus.teacher_b_id)

    hits = find_conflicts(
        db_session,
        candidate(campus, interval=TimeInterval(time(9, 30), time(10, 30))),
    )

    assert [(hit.kind, hit.entry_id) for hit in hits] == [(ConflictKind.class_conflict, existing.id)]


def test_teacher_overlap_across_classes_is_reported(db_session, campus, make_entry):
    existing = make_entry(class_id=campus.class_a_id)

    with pytest.raises(ScheduleConflictError) as excinfo:
        ensure_no_conflicts(
            db_session,
            candidate(
                campus,
                class_id=campus.class_b_id,
                interval=TimeInterval(time(9, 0), time(9, 30)),
            ),
        )

    assert excinfo.value.kind is ConflictKind.teacher_conflict
    assert excinfo.value.conflicting_entry_id == existing.id


def test_class_conflict_is_raised_before_teacher_conflict(db_session, campus, make_entry):
    make_entry(class_id=campus.class_b_id, start_time=time(9, 0), end_time=time(9, 30))
    class_blocker = make_entry(
        teacher_id=campus.teacher_b_id,
        start_time=time(9, 30),
        end_time=time(10, 0),
    )

    with pytest.raises(ScheduleConflictError) as excinfo:
        ensure_no_conflicts(db_session, candidate(campus))

    assert excinfo.value.kind is ConflictKind.class_conflict
    assert excinfo.value.conflicting_entry_id == class_blocker.id


def test_find_conflicts_lists_every_clash(db_session, campus, make_entry):
    same_both = make_entry()
    teacher_only = make_entry(class_id=campus.class_b_id, start_time=time(9, 30), end_time=time(11, 0))

    hits = find_conflicts(db_session, candidate(campus, interval=TimeInterval(time(8, 0), time(12, 0))))

    assert [(hit.kind, hit.entry_id) for hit in hits] == [
        (ConflictKind.class_conflict, same_both.id),
        (ConflictKind.teacher_conflict, same_both.id),
        (ConflictKind.teacher_conflict, teacher_only.id),
    ]


def test_back_to_back_slots_are_clean(db_session, campus, make_entry):
    make_entry(start_time=time(9, 0), end_time=time(10, 0))

    assert find_conflicts(db_session, candidate(campus, interval=TimeInterval(time(10, 0), time(11, 0)))) == []
    assert find_conflicts(db_session, candidate(campus, interval=TimeInterval(time(8, 0), time(9, 0)))) == []


def test_excluded_entry_never_conflicts_with_itself(db_session, campus, make_entry):
    existing = make_entry()

    assert find_conflicts(db_session, candidate(campus, exclude_id=existing.id)) == []


def test_inactive_entries_are_ignored(db_session, campus, make_entry):
    make_entry(status=ScheduleStatus.inactive)

    assert find_conflicts(db_session, candidate(campus)) == []


def test_other_days_and_unrelated_resources_are_ignored(db_session, campus, make_entry):
    make_entry(day_of_week=DayOfWeek.TUESDAY)
    make_entry(class_id=campus.class_b_id, teacher_id=campus.teacher_b_id)

    assert find_conflicts(db_session, candidate(campus)) == []


def test_dated_and_recurring_entries_are_compared_separately(db_session, campus, make_entry):
    monday = date(2026, 10, 12)
    assert monday.weekday() == 0
    make_entry(day_of_week=DayOfWeek.MONDAY)

    dated = candidate(campus, day_of_week=None, schedule_date=monday)
    assert find_conflicts(db_session, dated) == []

    existing_dated = make_entry(day_of_week=None, schedule_date=monday, teacher_id=campus.teacher_b_id)
    hits = find_conflicts(db_session, dated)
    assert [(hit.kind, hit.entry_id) for hit in hits] == [(ConflictKind.class_conflict, existing_dated.id)]


def test_dated_entries_on_other_dates_are_ignored(db_session, campus, make_entry):
    make_entry(day_of_week=None, schedule_date=date(2026, 10, 13))

    dated = candidate(campus, day_of_week=None, schedule_date=date(2026, 10, 12))
    assert find_conflicts(db_session, dated) == []


def test_other_tenants_entries_are_invisible(db_session, campus, other_campus, make_entry):
    make_entry(
        tenant_id=other_campus.tenant_id,
        class_id=other_campus.class_a_id,
        subject_id=other_campus.math_id,
        teacher_id=other_campus.teacher_a_id,
    )

    # Same ids from the other tenant never leak into this tenant's check.
    foreign = candidate(
        campus,
        class_id=other_campus.class_a_id,
        teacher_id=other_campus.teacher_a_id,
    )
    assert find_conflicts(db_session, foreign) == []


def test_candidate_discriminant_keys_by_day_or_date(campus):
    assert candidate(campus).discriminant == "day:MONDAY"
    dated = candidate(campus, day_of_week=None, schedule_date=date(2026, 10, 12))
    assert dated.discriminant == "date:2026-10-12"
