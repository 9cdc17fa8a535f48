"""Exceptions raised by the booking core and the record store."""

from __future__ import annotations

from medibook.scheduling.models import REJECTION_MESSAGES, RejectionReason


class BookingError(Exception):
    """Base class for booking failures reported to the caller."""


class SlotRejectedError(BookingError):
    """Raised when a requested slot fails validation."""

    def __init__(self, reason: RejectionReason):
        self.reason = reason
        self.message = REJECTION_MESSAGES[reason]
        super().__init__(f"{reason.value}: {self.message}")


class RecordNotFoundError(BookingError):
    """Raised when a referenced appointment, patient or doctor does not exist."""

    def __init__(self, resource: str, resource_id: object | None = None):
        self.resource = resource
        self.resource_id = resource_id
        if resource_id is None:
            super().__init__(f"{resource} not found")
        else:
            super().__init__(f"{resource} {resource_id} not found")


class DuplicateRecordError(BookingError):
    """Raised when a write violates a uniqueness rule of the store."""


class StorageError(BookingError):
    """Raised for storage failures that are not otherwise classified."""


__all__ = [
    "BookingError",
    "DuplicateRecordError",
    "RecordNotFoundError",
    "SlotRejectedError",
    "StorageError",
]
