"""Booking orchestration: validate a slot, then commit the appointment write."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Literal, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.core.models import AppointmentDB
from medibook.core.repository import AppointmentRepository, AuditRepository
from medibook.scheduling.availability import AvailabilityStore, SqlAvailabilityStore
from medibook.scheduling.errors import (
    DuplicateRecordError,
    RecordNotFoundError,
    SlotRejectedError,
    StorageError,
)
from medibook.scheduling.models import RejectionReason, SlotDecision
from medibook.scheduling.timeutil import normalize_timestamp
from medibook.scheduling.validator import SlotValidator

logger = logging.getLogger(__name__)

FailurePolicy = Literal["raise", "reject"]


class BookingService:
    """Sole writer of appointment state transitions.

    Both operations follow the same template: validate the requested slot,
    refuse with the validator's reason, otherwise write. The partial unique
    index on (doctor, timestamp) is the final guard; losing that race is
    reported as ``SLOT_ALREADY_BOOKED`` like any other conflict.

    ``failure_policy`` decides what a store failure during validation means:
    ``"raise"`` reports a :class:`StorageError`, ``"reject"`` refuses the
    slot with ``AVAILABILITY_UNKNOWN``.

    ``client_host`` is the caller address stamped on the audit entries.
    """

    def __init__(
        self,
        session: AsyncSession,
        failure_policy: FailurePolicy = "raise",
        store: Optional[AvailabilityStore] = None,
        client_host: Optional[str] = None,
    ):
        self.session = session
        self.failure_policy = failure_policy
        self.client_host = client_host
        self.appointments = AppointmentRepository(session)
        self.audit = AuditRepository(session)
        self.validator = SlotValidator(store or SqlAvailabilityStore(session))

    async def check(
        self,
        doctor_id: uuid.UUID,
        requested_at: datetime,
        exclude_appointment_id: Optional[uuid.UUID] = None,
    ) -> SlotDecision:
        """Validate a slot without writing anything."""
        try:
            return await self.validator.validate(doctor_id, requested_at, exclude_appointment_id)
        except SQLAlchemyError as exc:
            if self.failure_policy == "reject":
                logger.warning(
                    "Availability lookup failed for doctor %s, rejecting slot: %s", doctor_id, exc
                )
                return SlotDecision.reject(
                    doctor_id,
                    normalize_timestamp(requested_at),
                    RejectionReason.AVAILABILITY_UNKNOWN,
                )
            logger.exception("Availability lookup failed for doctor %s", doctor_id)
            raise StorageError("Failed to read doctor availability") from exc

    async def book(
        self, patient_id: uuid.UUID, doctor_id: uuid.UUID, appointment_date: datetime
    ) -> AppointmentDB:
        """Create a CONFIRMED appointment after the slot passes validation.

        Raises:
            SlotRejectedError: the slot is not bookable.
            RecordNotFoundError: the patient or doctor does not exist.
            StorageError: any other storage failure.
        """
        appointment_date = normalize_timestamp(appointment_date)
        await self._admit(doctor_id, appointment_date)

        try:
            appt = await self.appointments.create(patient_id, doctor_id, appointment_date)
        except DuplicateRecordError as exc:
            raise SlotRejectedError(RejectionReason.SLOT_ALREADY_BOOKED) from exc
        except SQLAlchemyError as exc:
            logger.exception("Failed to save appointment")
            raise StorageError("Failed to save appointment") from exc

        await self.audit.log_action(
            action="book",
            resource_type="appointment",
            resource_id=str(appt.id),
            details={
                "patient_id": str(patient_id),
                "doctor_id": str(doctor_id),
                "appointment_date": appointment_date.isoformat(),
            },
            ip_address=self.client_host,
        )
        logger.info("Booked appointment %s with doctor %s at %s", appt.id, doctor_id, appointment_date)
        return appt

    async def reschedule(self, appointment_id: uuid.UUID, new_date: datetime) -> AppointmentDB:
        """Move an appointment to *new_date*; doctor, patient and id stay put.

        The appointment's own current slot does not count as a conflict.
        """
        new_date = normalize_timestamp(new_date)
        try:
            appt = await self.appointments.get_by_id(appointment_id)
        except SQLAlchemyError as exc:
            logger.exception("Failed to load appointment %s", appointment_id)
            raise StorageError("Failed to load appointment") from exc
        if appt is None:
            raise RecordNotFoundError("Appointment", appointment_id)

        await self._admit(appt.doctor_id, new_date, exclude_appointment_id=appt.id)

        previous = appt.appointment_date
        try:
            await self.appointments.reschedule(appt, new_date)
        except DuplicateRecordError as exc:
            raise SlotRejectedError(RejectionReason.SLOT_ALREADY_BOOKED) from exc
        except SQLAlchemyError as exc:
            logger.exception("Failed to update appointment %s", appointment_id)
            raise StorageError("Failed to update appointment") from exc

        await self.audit.log_action(
            action="reschedule",
            resource_type="appointment",
            resource_id=str(appt.id),
            details={
                "from": previous.isoformat(),
                "to": new_date.isoformat(),
            },
            ip_address=self.client_host,
        )
        logger.info("Rescheduled appointment %s from %s to %s", appt.id, previous, new_date)
        return appt

    async def _admit(
        self,
        doctor_id: uuid.UUID,
        requested_at: datetime,
        exclude_appointment_id: Optional[uuid.UUID] = None,
    ) -> None:
        decision = await self.check(doctor_id, requested_at, exclude_appointment_id)
        if not decision.accepted:
            logger.info(
                "Slot %s for doctor %s refused: %s", requested_at, doctor_id, decision.reason.value
            )
            raise SlotRejectedError(decision.reason)
