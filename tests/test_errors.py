from services.errors import (
    BackupNotFoundError,
    DuplicateClientError,
    FailureKind,
    MailDeliveryError,
    RecordNotFoundError,
    ServiceError,
)


def test_failure_kinds():
    assert RecordNotFoundError("x").kind is FailureKind.NOT_FOUND
    assert BackupNotFoundError("x").kind is FailureKind.NOT_FOUND
    assert MailDeliveryError("x").kind is FailureKind.EXTERNAL_SERVICE_FAILURE
    assert ServiceError("x").kind is FailureKind.IO_FAILURE


def test_retryable():
    assert not RecordNotFoundError("x").retryable
    assert MailDeliveryError("x").retryable
    assert ServiceError("disk full").retryable
    assert not ServiceError("gone", kind=FailureKind.NOT_FOUND).retryable


def test_exception_hierarchy():
    assert issubclass(BackupNotFoundError, LookupError)
    error = DuplicateClientError(12, "9000000001")
    assert isinstance(error, ValueError)
    assert error.existing_id == 12
    assert "9000000001" in str(error)
