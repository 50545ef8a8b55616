from enum import Enum


class ConflictKind(str, Enum):
    class_conflict = "class_conflict"
    teacher_conflict = "teacher_conflict"


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ScheduleValidationError(AppError):
    """Raised when schedule input is malformed or self-contradictory."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found for the calling tenant."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)
        self.resource_type = resource_type
        self.resource_id = resource_id

class ScheduleConflictError(AppError):
    """Raised when a candidate slot double-books a class or a teacher."""
    MESSAGES = {
        ConflictKind.class_conflict: "Schedule conflicts with existing class time",
        ConflictKind.teacher_conflict: "Teacher is already scheduled at this time",
    }

    def __init__(self, kind: ConflictKind, conflicting_entry_id: str):
        super().__init__(
            self.MESSAGES[kind],
            status_code=409,
            details={"kind": kind.value, "conflicting_entry_id": conflicting_entry_id},
        )
        self.kind = kind
        self.conflicting_entry_id = conflicting_entry_id

class TransientScheduleError(AppError):
    """Raised when the atomic check-and-write keeps failing; the caller should resubmit."""
    def __init__(self, message: str = "Schedule store is temporarily unavailable, please retry"):
        super().__init__(message, status_code=503)
