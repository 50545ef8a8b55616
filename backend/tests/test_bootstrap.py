import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.pool import StaticPool

from app.db import bootstrap


def _raise_error(message: str):
    raise RuntimeError(message)


def test_runtime_schema_bootstrap_raises_on_validation_failure(monkeypatch):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(bootstrap, "_ensure_schedule_date_column", lambda: None)
    monkeypatch.setattr(bootstrap, "_ensure_schedule_status_column", lambda: None)
    monkeypatch.setattr(
        bootstrap,
        "_assert_required_columns",
        lambda: _raise_error("missing required schema"),
    )

    with pytest.raises(RuntimeError, match="Runtime schema compatibility bootstrap failed"):
        bootstrap.ensure_runtime_schema_compatibility()


def test_missing_schema_items_reports_nothing_for_full_schema(engine):
    with engine.connect() as connection:
        missing_tables, missing_columns = bootstrap.missing_schema_items(connection)
    assert missing_tables == []
    assert missing_columns == {}


@pytest.fixture()
def legacy_engine(monkeypatch):
    legacy = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with legacy.begin() as connection:
        connection.execute(
            text(
                "CREATE TABLE class_schedules ("
                "id VARCHAR(36) PRIMARY KEY, "
                "tenant_id VARCHAR(36) NOT NULL, "
                "class_id VARCHAR(36) NOT NULL, "
                "subject_id VARCHAR(36) NOT NULL, "
                "teacher_id VARCHAR(36) NOT NULL, "
                "day_of_week VARCHAR(9), "
                "start_time TIME NOT NULL, "
                "end_time TIME NOT NULL, "
                "is_active BOOLEAN DEFAULT TRUE)"
            )
        )
        connection.execute(
            text(
                "INSERT INTO class_schedules "
                "(id, tenant_id, class_id, subject_id, teacher_id, day_of_week, start_time, end_time, is_active) "
                "VALUES "
                "('kept', 't1', 'c1', 's1', 'u1', 'MONDAY', '09:00:00', '10:00:00', 1), "
                "('retired', 't1', 'c1', 's1', 'u1', 'TUESDAY', '09:00:00', '10:00:00', 0)"
            )
        )
    monkeypatch.setattr(bootstrap, "engine", legacy)
    yield legacy
    legacy.dispose()


def test_legacy_schedule_table_gains_date_and_status_columns(legacy_engine):
    bootstrap._ensure_schedule_date_column()
    bootstrap._ensure_schedule_status_column()

    with legacy_engine.connect() as connection:
        columns = {item["name"] for item in inspect(connection).get_columns("class_schedules")}
        rows = dict(connection.execute(text("SELECT id, status FROM class_schedules")).all())

    assert {"schedule_date", "status", "is_active"} <= columns
    assert rows == {"kept": "active", "retired": "inactive"}


def test_status_patch_is_idempotent(legacy_engine):
    bootstrap._ensure_schedule_status_column()
    with legacy_engine.begin() as connection:
        connection.execute(text("UPDATE class_schedules SET status = 'active' WHERE id = 'retired'"))

    bootstrap._ensure_schedule_status_column()

    with legacy_engine.connect() as connection:
        status = connection.execute(text("SELECT status FROM class_schedules WHERE id = 'retired'")).scalar_one()
    assert status == "active"


def test_status_patch_skips_missing_table(monkeypatch):
    empty = create_engine("sqlite+pysqlite:///:memory:", poolclass=StaticPool)
    monkeypatch.setattr(bootstrap, "engine", empty)

    bootstrap._ensure_schedule_status_column()

    with empty.connect() as connection:
        assert inspect(connection).get_table_names() == []
    empty.dispose()
