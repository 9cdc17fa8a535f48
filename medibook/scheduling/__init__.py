"""Scheduling core for MediBook: slot validation and booking."""

from medibook.scheduling.errors import (
    BookingError,
    DuplicateRecordError,
    RecordNotFoundError,
    SlotRejectedError,
    StorageError,
)
from medibook.scheduling.models import (
    AppointmentStatus,
    RejectionReason,
    SlotDecision,
    WorkingWindow,
)

__all__ = [
    "AppointmentStatus",
    "BookingError",
    "DuplicateRecordError",
    "RecordNotFoundError",
    "RejectionReason",
    "SlotDecision",
    "SlotRejectedError",
    "StorageError",
    "WorkingWindow",
]
