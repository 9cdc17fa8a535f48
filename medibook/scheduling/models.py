"""Pydantic models for the scheduling core."""

import uuid
from datetime import datetime, time
from enum import Enum
from typing import Optional

from pydantic import BaseModel, model_validator


class AppointmentStatus(str, Enum):
    """Appointment lifecycle statuses."""

    CONFIRMED = "CONFIRMED"
    RESCHEDULED = "RESCHEDULED"
    CANCELLED = "CANCELLED"  # reserved; no flow produces it yet


class RejectionReason(str, Enum):
    """Why a requested slot was refused."""

    DOCTOR_UNAVAILABLE_TIMEOFF = "DOCTOR_UNAVAILABLE_TIMEOFF"
    OUTSIDE_WORKING_HOURS = "OUTSIDE_WORKING_HOURS"
    SLOT_ALREADY_BOOKED = "SLOT_ALREADY_BOOKED"
    AVAILABILITY_UNKNOWN = "AVAILABILITY_UNKNOWN"


REJECTION_MESSAGES: dict[RejectionReason, str] = {
    RejectionReason.DOCTOR_UNAVAILABLE_TIMEOFF: "Doctor is not available on that date (time off).",
    RejectionReason.OUTSIDE_WORKING_HOURS: "Requested time is outside the doctor's working hours.",
    RejectionReason.SLOT_ALREADY_BOOKED: "Requested time slot is already booked. Please choose another time.",
    RejectionReason.AVAILABILITY_UNKNOWN: "Doctor availability could not be verified. Please try again later.",
}


class WorkingWindow(BaseModel):
    """Time-of-day range a doctor accepts appointments on one weekday."""

    start_time: time
    end_time: time

    @model_validator(mode="after")
    def _check_order(self) -> "WorkingWindow":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self

    def contains(self, moment: time) -> bool:
        """Both boundaries are bookable."""
        return self.start_time <= moment <= self.end_time


class SlotDecision(BaseModel):
    """Outcome of validating one (doctor, timestamp) slot."""

    doctor_id: uuid.UUID
    requested_at: datetime
    accepted: bool
    reason: Optional[RejectionReason] = None
    message: Optional[str] = None

    @classmethod
    def accept(cls, doctor_id: uuid.UUID, requested_at: datetime) -> "SlotDecision":
        return cls(doctor_id=doctor_id, requested_at=requested_at, accepted=True)

    @classmethod
    def reject(
        cls, doctor_id: uuid.UUID, requested_at: datetime, reason: RejectionReason
    ) -> "SlotDecision":
        return cls(
            doctor_id=doctor_id,
            requested_at=requested_at,
            accepted=False,
            reason=reason,
            message=REJECTION_MESSAGES[reason],
        )
