from app.models.activity_log import ActivityLog  # noqa: F401
from app.models.class_schedule import (  # noqa: F401
    ClassSchedule,
    DayOfWeek,
    ScheduleStatus,
)
from app.models.schedule_exception import ExceptionType, ScheduleException  # noqa: F401
from app.models.school_class import SchoolClass  # noqa: F401
from app.models.subject import Subject  # noqa: F401
from app.models.tenant import Tenant  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401
