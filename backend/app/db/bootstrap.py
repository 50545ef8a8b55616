from __future__ import annotations

import logging

from sqlalchemy import inspect, text

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import engine
from app.models.class_schedule import ClassSchedule

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "tenants": {"id", "slug"},
    "users": {"id", "tenant_id", "role"},
    "classes": {"id", "tenant_id", "name"},
    "subjects": {"id", "tenant_id", "name", "code"},
    "class_schedules": {
        "id",
        "tenant_id",
        "class_id",
        "subject_id",
        "teacher_id",
        "day_of_week",
        "schedule_date",
        "start_time",
        "end_time",
        "status",
    },
    "schedule_exceptions": {"id", "tenant_id", "schedule_id", "exception_date", "exception_type"},
}


def _ensure_schedule_date_column() -> None:
    # Older databases stored only recurring slots.
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "class_schedules" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("class_schedules")}
        if "schedule_date" in column_names:
            return
        connection.execute(text("ALTER TABLE class_schedules ADD COLUMN schedule_date DATE"))


def _ensure_schedule_status_column() -> None:
    # Older databases tracked the lifecycle as an is_active boolean.
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "class_schedules" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("class_schedules")}
        if "status" in column_names:
            return
        if connection.dialect.name == "postgresql":
            ClassSchedule.__table__.c.status.type.create(connection, checkfirst=True)
            connection.execute(
                text("ALTER TABLE class_schedules ADD COLUMN status schedule_status NOT NULL DEFAULT 'active'")
            )
        else:
            connection.execute(text("ALTER TABLE class_schedules ADD COLUMN status VARCHAR(8) NOT NULL DEFAULT 'active'"))
        if "is_active" in column_names:
            connection.execute(text("UPDATE class_schedules SET status = 'inactive' WHERE NOT is_active"))
            logger.info("Backfilled class_schedules.status from is_active")


def missing_schema_items(connection) -> tuple[list[str], dict[str, list[str]]]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    for table_name, required in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            missing_tables.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(required - existing)
        if missing:
            missing_columns[table_name] = missing
    return sorted(missing_tables), missing_columns


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        missing_tables, missing_columns = missing_schema_items(connection)
    if missing_tables:
        raise RuntimeError(f"Missing required tables: {', '.join(missing_tables)}")
    if missing_columns:
        flat = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
        raise RuntimeError(f"Missing required columns: {', '.join(flat)}")


def ensure_runtime_schema_compatibility() -> None:
    try:
        # Ensure missing tables are present before additive compatibility patches.
        Base.metadata.create_all(bind=engine)
        _ensure_schedule_date_column()
        _ensure_schedule_status_column()
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
