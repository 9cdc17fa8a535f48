"""Slot admission rules for booking and rescheduling."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Optional

from medibook.scheduling.availability import AvailabilityStore
from medibook.scheduling.models import RejectionReason, SlotDecision
from medibook.scheduling.timeutil import (
    iso_weekday,
    normalize_timestamp,
    slot_date,
    slot_time_of_day,
)

logger = logging.getLogger(__name__)


class SlotValidator:
    """Decides whether a (doctor, timestamp) slot can be booked.

    Checks run in a fixed order and the first failure wins:

    1. time off on the requested date -> ``DOCTOR_UNAVAILABLE_TIMEOFF``
    2. no working window that weekday, or the time of day falls outside
       ``[start, end]`` -> ``OUTSIDE_WORKING_HOURS``
       (compared exactly, so 12:00:00.5 falls outside a window closing at
       12:00; the HTTP and CLI inputs only accept whole seconds)
    3. another active appointment at the same instant ->
       ``SLOT_ALREADY_BOOKED``

    The validator only reads. Errors raised by the store propagate to the
    caller untouched.
    """

    def __init__(self, store: AvailabilityStore):
        self.store = store

    async def validate(
        self,
        doctor_id: uuid.UUID,
        requested_at: datetime,
        exclude_appointment_id: Optional[uuid.UUID] = None,
    ) -> SlotDecision:
        requested_at = normalize_timestamp(requested_at)

        if await self.store.is_time_off(doctor_id, slot_date(requested_at)):
            return self._reject(doctor_id, requested_at, RejectionReason.DOCTOR_UNAVAILABLE_TIMEOFF)

        window = await self.store.working_window(doctor_id, iso_weekday(requested_at))
        if window is None or not window.contains(slot_time_of_day(requested_at)):
            return self._reject(doctor_id, requested_at, RejectionReason.OUTSIDE_WORKING_HOURS)

        if await self.store.has_conflict(doctor_id, requested_at, exclude_appointment_id):
            return self._reject(doctor_id, requested_at, RejectionReason.SLOT_ALREADY_BOOKED)

        return SlotDecision.accept(doctor_id, requested_at)

    @staticmethod
    def _reject(
        doctor_id: uuid.UUID, requested_at: datetime, reason: RejectionReason
    ) -> SlotDecision:
        logger.debug("Slot %s for doctor %s rejected: %s", requested_at, doctor_id, reason.value)
        return SlotDecision.reject(doctor_id, requested_at, reason)
