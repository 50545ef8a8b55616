"""create scheduling tables

Revision ID: 20261019_0001
Revises: None
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


user_role_enum = sa.Enum(
    "super_admin", "manager", "principal", "faculty", "student", "parent", name="user_role"
)
day_of_week_enum = sa.Enum(
    "MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY", name="day_of_week"
)
schedule_status_enum = sa.Enum("active", "inactive", name="schedule_status")
exception_type_enum = sa.Enum("HOLIDAY", "CANCELLED", "RESCHEDULED", "SPECIAL_EVENT", name="exception_type")


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("slug", sa.String(length=100), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_tenants_slug", "tenants", ["slug"], unique=True)

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("tenant_id", sa.String(length=36), sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("tenant_id", "email", name="uq_users_tenant_email"),
    )
    op.create_index("ix_users_tenant_id", "users", ["tenant_id"])
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "classes",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("tenant_id", sa.String(length=36), sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("grade_level", sa.String(length=50), nullable=True),
        sa.Column("section", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_classes_tenant_id", "classes", ["tenant_id"])

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("tenant_id", sa.String(length=36), sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_subjects_tenant_id", "subjects", ["tenant_id"])

    op.create_table(
        "class_schedules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("tenant_id", sa.String(length=36), sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("class_id", sa.String(length=36), sa.ForeignKey("classes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("subject_id", sa.String(length=36), sa.ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("day_of_week", day_of_week_enum, nullable=True),
        sa.Column("schedule_date", sa.Date(), nullable=True),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("room_number", sa.String(length=50), nullable=True),
        sa.Column("semester", sa.String(length=50), nullable=True),
        sa.Column("academic_year", sa.String(length=50), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", schedule_status_enum, nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "(day_of_week IS NOT NULL AND schedule_date IS NULL) "
            "OR (day_of_week IS NULL AND schedule_date IS NOT NULL)",
            name="ck_class_schedules_validity_kind",
        ),
        sa.CheckConstraint("start_time < end_time", name="ck_class_schedules_time_order"),
    )
    op.create_index("ix_class_schedules_tenant_id", "class_schedules", ["tenant_id"])
    op.create_index("ix_class_schedules_class_id", "class_schedules", ["class_id"])
    op.create_index("ix_class_schedules_subject_id", "class_schedules", ["subject_id"])
    op.create_index("ix_class_schedules_teacher_id", "class_schedules", ["teacher_id"])
    op.create_index(
        "ix_class_schedules_tenant_day",
        "class_schedules",
        ["tenant_id", "day_of_week", "start_time"],
    )
    op.create_index(
        "ix_class_schedules_tenant_date",
        "class_schedules",
        ["tenant_id", "schedule_date", "start_time"],
    )
    op.create_index(
        "uq_class_schedules_active_slot",
        "class_schedules",
        ["class_id", "subject_id", "day_of_week", "start_time", "end_time"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "schedule_exceptions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("tenant_id", sa.String(length=36), sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "schedule_id",
            sa.String(length=36),
            sa.ForeignKey("class_schedules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("exception_date", sa.Date(), nullable=False),
        sa.Column("exception_type", exception_type_enum, nullable=False),
        sa.Column("new_date", sa.Date(), nullable=True),
        sa.Column("new_start_time", sa.Time(), nullable=True),
        sa.Column("new_end_time", sa.Time(), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_schedule_exceptions_tenant_id", "schedule_exceptions", ["tenant_id"])
    op.create_index("ix_schedule_exceptions_schedule_id", "schedule_exceptions", ["schedule_id"])
    op.create_index("ix_schedule_exceptions_exception_date", "schedule_exceptions", ["exception_date"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("tenant_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_tenant_id", "activity_logs", ["tenant_id"])


def downgrade() -> None:
    op.drop_index("ix_activity_logs_tenant_id", table_name="activity_logs")
    op.drop_table("activity_logs")

    op.drop_index("ix_schedule_exceptions_exception_date", table_name="schedule_exceptions")
    op.drop_index("ix_schedule_exceptions_schedule_id", table_name="schedule_exceptions")
    op.drop_index("ix_schedule_exceptions_tenant_id", table_name="schedule_exceptions")
    op.drop_table("schedule_exceptions")

    op.drop_index("uq_class_schedules_active_slot", table_name="class_schedules")
    op.drop_index("ix_class_schedules_tenant_date", table_name="class_schedules")
    op.drop_index("ix_class_schedules_tenant_day", table_name="class_schedules")
    op.drop_index("ix_class_schedules_teacher_id", table_name="class_schedules")
    op.drop_index("ix_class_schedules_subject_id", table_name="class_schedules")
    op.drop_index("ix_class_schedules_class_id", table_name="class_schedules")
    op.drop_index("ix_class_schedules_tenant_id", table_name="class_schedules")
    op.drop_table("class_schedules")

    op.drop_index("ix_subjects_tenant_id", table_name="subjects")
    op.drop_table("subjects")
    op.drop_index("ix_classes_tenant_id", table_name="classes")
    op.drop_table("classes")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_tenant_id", table_name="users")
    op.drop_table("users")

    op.drop_index("ix_tenants_slug", table_name="tenants")
    op.drop_table("tenants")

    bind = op.get_bind()
    exception_type_enum.drop(bind, checkfirst=True)
    schedule_status_enum.drop(bind, checkfirst=True)
    day_of_week_enum.drop(bind, checkfirst=True)
    user_role_enum.drop(bind, checkfirst=True)
