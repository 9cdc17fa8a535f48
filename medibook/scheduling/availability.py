"""Read-only availability facts consumed by the slot validator."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from medibook.core.repository import (
    AppointmentRepository,
    ScheduleRepository,
    TimeOffRepository,
)
from medibook.scheduling.models import WorkingWindow


class AvailabilityStore(Protocol):
    """The three per-doctor facts that decide whether a slot is bookable."""

    async def is_time_off(self, doctor_id: uuid.UUID, day: date) -> bool: ...

    async def working_window(
        self, doctor_id: uuid.UUID, day_of_week: int
    ) -> Optional[WorkingWindow]: ...

    async def has_conflict(
        self,
        doctor_id: uuid.UUID,
        appointment_date: datetime,
        exclude_appointment_id: Optional[uuid.UUID] = None,
    ) -> bool: ...


class SqlAvailabilityStore:
    """Availability facts read through the request's database session."""

    def __init__(self, session: AsyncSession):
        self._time_off = TimeOffRepository(session)
        self._schedules = ScheduleRepository(session)
        self._appointments = AppointmentRepository(session)

    async def is_time_off(self, doctor_id: uuid.UUID, day: date) -> bool:
        return await self._time_off.exists(doctor_id, day)

    async def working_window(
        self, doctor_id: uuid.UUID, day_of_week: int
    ) -> Optional[WorkingWindow]:
        rule = await self._schedules.get_for_day(doctor_id, day_of_week)
        if rule is None:
            return None
        return WorkingWindow(start_time=rule.start_time, end_time=rule.end_time)

    async def has_conflict(
        self,
        doctor_id: uuid.UUID,
        appointment_date: datetime,
        exclude_appointment_id: Optional[uuid.UUID] = None,
    ) -> bool:
        return await self._appointments.has_conflict(
            doctor_id, appointment_date, exclude_id=exclude_appointment_id
        )
