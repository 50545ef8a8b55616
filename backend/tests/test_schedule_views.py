from datetime import date, time

from app.models.class_schedule import DAY_ORDER, DayOfWeek, ScheduleStatus
from app.services.schedule_views import view_for_teacher, weekly_view_for_class


def test_weekly_view_always_has_seven_buckets(db_session, campus, make_entry):
    tuesday = make_entry(day_of_week=DayOfWeek.TUESDAY)

    weekly = weekly_view_for_class(db_session, campus.ctx, campus.class_a_id)

    assert list(weekly) == DAY_ORDER
    assert [entry.id for entry in weekly[DayOfWeek.TUESDAY]] == [tuesday.id]
    assert all(weekly[day] == [] for day in DAY_ORDER if day is not DayOfWeek.TUESDAY)


def test_weekly_view_orders_by_start_and_skips_dated_and_inactive(db_session, campus, make_entry):
    late = make_entry(start_time=time(13, 0), end_time=time(14, 0))
    early = make_entry(start_time=time(8, 0), end_time=time(9, 0))
    make_entry(start_time=time(10, 0), end_time=time(11, 0), status=ScheduleStatus.inactive)
    make_entry(day_of_week=None, schedule_date=date(2026, 10, 19))
    make_entry(class_id=campus.class_b_id, teacher_id=campus.teacher_b_id)

    weekly = weekly_view_for_class(db_session, campus.ctx, campus.class_a_id)

    assert [entry.id for entry in weekly[DayOfWeek.MONDAY]] == [early.id, late.id]
    assert sum(len(entries) for entries in weekly.values()) == 2


def test_weekly_view_filters_by_semester_and_year(db_session, campus, make_entry):
    fall = make_entry(semester="Fall", academic_year="2026-2027")
    make_entry(semester="Spring", academic_year="2026-2027", start_time=time(11, 0), end_time=time(12, 0))

    weekly = weekly_view_for_class(
        db_session,
        campus.ctx,
        campus.class_a_id,
        semester="Fall",
        academic_year="2026-2027",
    )

    assert [entry.id for entry in weekly[DayOfWeek.MONDAY]] == [fall.id]


def test_weekly_view_is_tenant_scoped(db_session, campus, other_campus, make_entry):
    make_entry()

    weekly = weekly_view_for_class(db_session, other_campus.ctx, campus.class_a_id)

    assert all(entries == [] for entries in weekly.values())


def test_teacher_view_lists_recurring_by_day_then_dated_by_date(db_session, campus, make_entry):
    dated_late = make_entry(day_of_week=None, schedule_date=date(2026, 10, 21), class_id=campus.class_b_id)
    dated_early = make_entry(day_of_week=None, schedule_date=date(2026, 10, 20), class_id=campus.class_b_id)
    friday = make_entry(day_of_week=DayOfWeek.FRIDAY)
    monday_late = make_entry(start_time=time(14, 0), end_time=time(15, 0))
    monday_early = make_entry(class_id=campus.class_b_id, start_time=time(8, 0), end_time=time(9, 0))
    make_entry(teacher_id=campus.teacher_b_id, class_id=campus.class_b_id, day_of_week=DayOfWeek.TUESDAY)

    entries = view_for_teacher(db_session, campus.ctx, campus.teacher_a_id)

    assert [entry.id for entry in entries] == [
        monday_early.id,
        monday_late.id,
        friday.id,
        dated_early.id,
        dated_late.id,
    ]
