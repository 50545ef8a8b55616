from app.core.exceptions import (
    AppError,
    ConflictKind,
    ResourceNotFoundError,
    ScheduleConflictError,
    ScheduleValidationError,
    TransientScheduleError,
)


def test_validation_error_structure():
    err = ScheduleValidationError(message="Test error", details={"foo": "bar"})
    assert err.status_code == 400
    assert err.message == "Test error"
    assert err.details == {"foo": "bar"}
    assert isinstance(err, AppError)


def test_app_error_defaults():
    err = AppError("Generic error")
    assert err.status_code == 500
    assert err.details == {}


def test_conflict_error_carries_kind_and_blocking_entry():
    err = ScheduleConflictError(ConflictKind.teacher_conflict, "entry-1")
    assert err.status_code == 409
    assert err.kind is ConflictKind.teacher_conflict
    assert err.details == {"kind": "teacher_conflict", "conflicting_entry_id": "entry-1"}
    assert "Teacher" in err.message


def test_not_found_and_transient_status_codes():
    missing = ResourceNotFoundError("Schedule", "abc")
    assert missing.status_code == 404
    assert missing.message == "Schedule with id abc not found"
    assert TransientScheduleError().status_code == 503
