import os
import tempfile
from dataclasses import dataclass
from datetime import time

# The app's global engine backs the lifespan bootstrap and /health/ready.
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+pysqlite:///{os.path.join(tempfile.gettempdir(), 'campus_schedules_bootstrap.db')}",
)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.core.tenant import TenantContext
from app.db.base import Base
from app.main import app
from app.models.class_schedule import ClassSchedule, DayOfWeek, ScheduleStatus
from app.models.school_class import SchoolClass
from app.models.subject import Subject
from app.models.tenant import Tenant
from app.models.user import User, UserRole


@dataclass(frozen=True)
class Campus:
    tenant_id: str
    admin_id: str
    student_id: str
    teacher_a_id: str
    teacher_b_id: str
    class_a_id: str
    class_b_id: str
    math_id: str
    science_id: str

    @property
    def ctx(self) -> TenantContext:
        return TenantContext(tenant_id=self.tenant_id, user_id=self.admin_id, role=UserRole.principal)


def build_campus(db, slug: str) -> Campus:
    tenant = Tenant(name=f"{slug.title()} Academy", slug=slug)
    db.add(tenant)
    db.flush()

    def user(first_name: str, last_name: str, role: UserRole) -> User:
        record = User(
            tenant_id=tenant.id,
            first_name=first_name,
            last_name=last_name,
            email=f"{first_name.lower()}@{slug}.example.com",
            role=role,
        )
        db.add(record)
        return record

    admin = user("Priya", "Principal", UserRole.principal)
    student = user("Sam", "Student", UserRole.student)
    teacher_a = user("Ada", "Lovelace", UserRole.faculty)
    teacher_b = user("Alan", "Turing", UserRole.faculty)
    class_a = SchoolClass(tenant_id=tenant.id, name="Grade 7 A", grade_level="7", section="A")
    class_b = SchoolClass(tenant_id=tenant.id, name="Grade 7 B", grade_level="7", section="B")
    math = Subject(tenant_id=tenant.id, name="Mathematics", code="MATH7")
    science = Subject(tenant_id=tenant.id, name="Science", code="SCI7")
    db.add_all([class_a, class_b, math, science])
    db.flush()

    campus = Campus(
        tenant_id=tenant.id,
        admin_id=admin.id,
        student_id=student.id,
        teacher_a_id=teacher_a.id,
        teacher_b_id=teacher_b.id,
        class_a_id=class_a.id,
        class_b_id=class_b.id,
        math_id=math.id,
        science_id=science.id,
    )
    db.commit()
    return campus


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def campus(db_session) -> Campus:
    return build_campus(db_session, "northside")


@pytest.fixture()
def other_campus(db_session) -> Campus:
    return build_campus(db_session, "southside")


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def make_entry(db_session, campus):
    """Insert an active entry directly, bypassing the store's checks."""

    def _make_entry(**overrides) -> ClassSchedule:
        values = {
            "tenant_id": campus.tenant_id,
            "class_id": campus.class_a_id,
            "subject_id": campus.math_id,
            "teacher_id": campus.teacher_a_id,
            "day_of_week": DayOfWeek.MONDAY,
            "start_time": time(9, 0),
            "end_time": time(10, 0),
            "status": ScheduleStatus.active,
        }
        values.update(overrides)
        entry = ClassSchedule(**values)
        db_session.add(entry)
        db_session.commit()
        return entry

    return _make_entry


@pytest.fixture()
def file_session_factory(tmp_path):
    """Sessions on a file-backed SQLite database, each with its own connection."""
    file_engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'schedules.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=file_engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    file_engine.dispose()


@pytest.fixture()
def file_campus(file_session_factory) -> Campus:
    db = file_session_factory()
    try:
        return build_campus(db, "eastside")
    finally:
        db.close()
