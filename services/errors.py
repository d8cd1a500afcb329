"""Error types raised by the CRM services."""

from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    IO_FAILURE = "io_failure"
    NOT_FOUND = "not_found"
    EXTERNAL_SERVICE_FAILURE = "external_service_failure"

    @property
    def retryable(self) -> bool:
        """True when the same call may succeed on a later attempt."""
        return self is not FailureKind.NOT_FOUND


class ServiceError(Exception):
    kind: FailureKind = FailureKind.IO_FAILURE

    def __init__(self, message: str, *, kind: FailureKind | None = None) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind

    @property
    def retryable(self) -> bool:
        return self.kind.retryable


class RecordNotFoundError(ServiceError, LookupError):
    kind = FailureKind.NOT_FOUND


class BackupNotFoundError(RecordNotFoundError):
    pass


class MailDeliveryError(ServiceError):
    kind = FailureKind.EXTERNAL_SERVICE_FAILURE


class DuplicateClientError(ValueError):
    """A client with the same phone number already exists."""

    def __init__(self, existing_id: int, phone_number: str) -> None:
        super().__init__(
            f"Client with phone number {phone_number} already exists (#{existing_id})"
        )
        self.existing_id = existing_id
        self.phone_number = phone_number


__all__ = [
    "FailureKind",
    "ServiceError",
    "RecordNotFoundError",
    "BackupNotFoundError",
    "MailDeliveryError",
    "DuplicateClientError",
]
