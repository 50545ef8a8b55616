from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_permission
from app.core.tenant import TenantContext
from app.models.class_schedule import DayOfWeek
from app.schemas.schedule import (
    ConflictCheckOut,
    ConflictHitOut,
    ScheduleConflictCheck,
    ScheduleCreate,
    ScheduleExceptionCreate,
    ScheduleExceptionOut,
    ScheduleOut,
    ScheduleUpdate,
    WeeklyScheduleOut,
)
from app.services.exception_ledger import list_exceptions, record_exception
from app.services.schedule_store import (
    ScheduleFilters,
    create_schedule,
    deactivate_schedule,
    get_schedule,
    list_active_schedules,
    preview_conflicts,
    update_schedule,
)
from app.services.schedule_views import view_for_teacher, weekly_view_for_class

router = APIRouter()


@router.get("/", response_model=list[ScheduleOut])
def list_schedules(
    class_id: str | None = Query(default=None),
    subject_id: str | None = Query(default=None),
    teacher_id: str | None = Query(default=None),
    day_of_week: DayOfWeek | None = Query(default=None),
    semester: str | None = Query(default=None),
    academic_year: str | None = Query(default=None),
    ctx: TenantContext = Depends(require_permission("class_schedules:read")),
    db: Session = Depends(get_db),
) -> list[ScheduleOut]:
    filters = ScheduleFilters(
        class_id=class_id,
        subject_id=subject_id,
        teacher_id=teacher_id,
        day_of_week=day_of_week,
        semester=semester,
        academic_year=academic_year,
    )
    return [ScheduleOut.model_validate(entry) for entry in list_active_schedules(db, ctx, filters)]


@router.get("/exceptions", response_model=list[ScheduleExceptionOut])
def list_schedule_exceptions(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    class_id: str | None = Query(default=None),
    ctx: TenantContext = Depends(require_permission("class_schedules:read")),
    db: Session = Depends(get_db),
) -> list[ScheduleExceptionOut]:
    records = list_exceptions(db, ctx, start_date=start_date, end_date=end_date, class_id=class_id)
    return [ScheduleExceptionOut.model_validate(record) for record in records]


@router.post("/check", response_model=ConflictCheckOut)
def check_schedule_conflicts(
    payload: ScheduleConflictCheck,
    ctx: TenantContext = Depends(require_permission("class_schedules:read")),
    db: Session = Depends(get_db),
) -> ConflictCheckOut:
    hits = preview_conflicts(db, ctx, payload)
    return ConflictCheckOut(
        clean=not hits,
        conflicts=[ConflictHitOut(kind=hit.kind, conflicting_entry_id=hit.entry_id) for hit in hits],
    )


@router.get("/class/{class_id}/weekly", response_model=WeeklyScheduleOut)
def get_weekly_schedule(
    class_id: str,
    semester: str | None = Query(default=None),
    academic_year: str | None = Query(default=None),
    ctx: TenantContext = Depends(require_permission("class_schedules:read")),
    db: Session = Depends(get_db),
) -> WeeklyScheduleOut:
    weekly = weekly_view_for_class(db, ctx, class_id, semester=semester, academic_year=academic_year)
    return WeeklyScheduleOut(
        class_id=class_id,
        weekly_schedule={
            day: [ScheduleOut.model_validate(entry) for entry in entries] for day, entries in weekly.items()
        },
    )


@router.get("/teacher/{teacher_id}", response_model=list[ScheduleOut])
def get_teacher_schedule(
    teacher_id: str,
    semester: str | None = Query(default=None),
    academic_year: str | None = Query(default=None),
    ctx: TenantContext = Depends(require_permission("class_schedules:read")),
    db: Session = Depends(get_db),
) -> list[ScheduleOut]:
    entries = view_for_teacher(db, ctx, teacher_id, semester=semester, academic_year=academic_year)
    return [ScheduleOut.model_validate(entry) for entry in entries]


@router.post("/", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED)
def create_class_schedule(
    payload: ScheduleCreate,
    ctx: TenantContext = Depends(require_permission("class_schedules:create")),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    return ScheduleOut.model_validate(create_schedule(db, ctx, payload))


@router.get("/{schedule_id}", response_model=ScheduleOut)
def get_class_schedule(
    schedule_id: str,
    ctx: TenantContext = Depends(require_permission("class_schedules:read")),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    return ScheduleOut.model_validate(get_schedule(db, ctx, schedule_id))


@router.put("/{schedule_id}", response_model=ScheduleOut)
def update_class_schedule(
    schedule_id: str,
    payload: ScheduleUpdate,
    ctx: TenantContext = Depends(require_permission("class_schedules:update")),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    return ScheduleOut.model_validate(update_schedule(db, ctx, schedule_id, payload))


@router.delete("/{schedule_id}")
def delete_class_schedule(
    schedule_id: str,
    ctx: TenantContext = Depends(require_permission("class_schedules:delete")),
    db: Session = Depends(get_db),
) -> dict:
    entry = deactivate_schedule(db, ctx, schedule_id)
    return {"success": True, "id": entry.id, "status": entry.status.value}


@router.post(
    "/{schedule_id}/exceptions",
    response_model=ScheduleExceptionOut,
    status_code=status.HTTP_201_CREATED,
)
def create_schedule_exception(
    schedule_id: str,
    payload: ScheduleExceptionCreate,
    ctx: TenantContext = Depends(require_permission("class_schedules:update")),
    db: Session = Depends(get_db),
) -> ScheduleExceptionOut:
    return ScheduleExceptionOut.model_validate(record_exception(db, ctx, schedule_id, payload))
