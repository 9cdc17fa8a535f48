"""CRUD repositories for the booking schema."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timezone
from typing import Literal, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from medibook.core.models import (
    AppointmentDB,
    AuditLog,
    Doctor,
    DoctorSchedule,
    DoctorTimeOff,
    Patient,
)
from medibook.scheduling.errors import DuplicateRecordError, RecordNotFoundError, StorageError
from medibook.scheduling.models import AppointmentStatus

ConstraintKind = Literal["unique", "foreign_key", "check", "other"]

_SQLSTATE_KINDS: dict[str, ConstraintKind] = {
    "23505": "unique",
    "23503": "foreign_key",
    "23514": "check",
}

_SQLITE_KINDS: dict[str, ConstraintKind] = {
    "SQLITE_CONSTRAINT_UNIQUE": "unique",
    "SQLITE_CONSTRAINT_PRIMARYKEY": "unique",
    "SQLITE_CONSTRAINT_FOREIGNKEY": "foreign_key",
    "SQLITE_CONSTRAINT_CHECK": "check",
}

_SQLITE_MESSAGES: dict[str, ConstraintKind] = {
    "UNIQUE constraint failed": "unique",
    "FOREIGN KEY constraint failed": "foreign_key",
    "CHECK constraint failed": "check",
}


def constraint_kind(exc: IntegrityError) -> ConstraintKind:
    """Classify which kind of constraint an ``IntegrityError`` violated."""
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate:
        return _SQLSTATE_KINDS.get(sqlstate, "other")

    errorname = getattr(orig, "sqlite_errorname", None)
    if errorname in _SQLITE_KINDS:
        return _SQLITE_KINDS[errorname]

    # SQLite without extended result codes only says SQLITE_CONSTRAINT.
    message = str(orig)
    for prefix, kind in _SQLITE_MESSAGES.items():
        if message.startswith(prefix):
            return kind
    return "other"


class PatientRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs) -> Patient:
        patient = Patient(**kwargs)
        self.session.add(patient)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            if constraint_kind(exc) == "unique":
                raise DuplicateRecordError(
                    "A patient with that national ID is already registered"
                ) from exc
            raise StorageError("Failed to save patient") from exc
        return patient

    async def get_by_id(self, patient_id: uuid.UUID) -> Optional[Patient]:
        return await self.session.get(Patient, patient_id)


class DoctorRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs) -> Doctor:
        doctor = Doctor(**kwargs)
        self.session.add(doctor)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            if constraint_kind(exc) == "unique":
                raise DuplicateRecordError(
                    "A doctor with that registration number is already registered"
                ) from exc
            raise StorageError("Failed to save doctor") from exc
        return doctor

    async def get_by_id(self, doctor_id: uuid.UUID) -> Optional[Doctor]:
        return await self.session.get(Doctor, doctor_id)

    async def list(self) -> Sequence[Doctor]:
        result = await self.session.execute(select(Doctor).order_by(Doctor.name))
        return result.scalars().all()


class ScheduleRepository:
    """Weekly working windows, one per (doctor, ISO weekday)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self, doctor_id: uuid.UUID, day_of_week: int, start_time: time, end_time: time
    ) -> DoctorSchedule:
        rule = DoctorSchedule(
            doctor_id=doctor_id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
        )
        self.session.add(rule)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            kind = constraint_kind(exc)
            if kind == "unique":
                raise DuplicateRecordError("A schedule for that day already exists") from exc
            if kind == "foreign_key":
                raise RecordNotFoundError("Doctor", doctor_id) from exc
            raise StorageError("Failed to save schedule") from exc
        return rule

    async def get_for_day(self, doctor_id: uuid.UUID, day_of_week: int) -> Optional[DoctorSchedule]:
        stmt = select(DoctorSchedule).where(
            DoctorSchedule.doctor_id == doctor_id,
            DoctorSchedule.day_of_week == day_of_week,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_doctor(self, doctor_id: uuid.UUID) -> Sequence[DoctorSchedule]:
        stmt = (
            select(DoctorSchedule)
            .where(DoctorSchedule.doctor_id == doctor_id)
            .order_by(DoctorSchedule.day_of_week)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()


class TimeOffRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self, doctor_id: uuid.UUID, off_date: date, reason: Optional[str] = None
    ) -> DoctorTimeOff:
        entry = DoctorTimeOff(doctor_id=doctor_id, off_date=off_date, reason=reason)
        self.session.add(entry)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            kind = constraint_kind(exc)
            if kind == "unique":
                raise DuplicateRecordError("That time-off date is already registered") from exc
            if kind == "foreign_key":
                raise RecordNotFoundError("Doctor", doctor_id) from exc
            raise StorageError("Failed to save time off") from exc
        return entry

    async def exists(self, doctor_id: uuid.UUID, off_date: date) -> bool:
        stmt = select(func.count()).select_from(DoctorTimeOff).where(
            DoctorTimeOff.doctor_id == doctor_id,
            DoctorTimeOff.off_date == off_date,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one() > 0

    async def list_by_doctor(self, doctor_id: uuid.UUID) -> Sequence[DoctorTimeOff]:
        stmt = (
            select(DoctorTimeOff)
            .where(DoctorTimeOff.doctor_id == doctor_id)
            .order_by(DoctorTimeOff.off_date)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()


class AppointmentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self, patient_id: uuid.UUID, doctor_id: uuid.UUID, appointment_date: datetime
    ) -> AppointmentDB:
        """Insert a CONFIRMED appointment.

        Raises:
            DuplicateRecordError: the doctor already has an active appointment
                at exactly that timestamp.
            RecordNotFoundError: the patient or doctor does not exist.
        """
        appt = AppointmentDB(
            patient_id=patient_id,
            doctor_id=doctor_id,
            appointment_date=appointment_date,
            status=AppointmentStatus.CONFIRMED.value,
        )
        self.session.add(appt)
        await self._flush_slot_write()
        return appt

    async def get_by_id(self, appointment_id: uuid.UUID) -> Optional[AppointmentDB]:
        return await self.session.get(AppointmentDB, appointment_id)

    async def list_by_patient(self, patient_id: uuid.UUID) -> Sequence[AppointmentDB]:
        stmt = (
            select(AppointmentDB)
            .options(joinedload(AppointmentDB.doctor))
            .where(AppointmentDB.patient_id == patient_id)
            .order_by(AppointmentDB.appointment_date.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def has_conflict(
        self,
        doctor_id: uuid.UUID,
        appointment_date: datetime,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> bool:
        """Check whether an active appointment already holds this exact slot."""
        stmt = select(func.count()).select_from(AppointmentDB).where(
            AppointmentDB.doctor_id == doctor_id,
            AppointmentDB.appointment_date == appointment_date,
            AppointmentDB.status != AppointmentStatus.CANCELLED.value,
        )
        if exclude_id is not None:
            stmt = stmt.where(AppointmentDB.id != exclude_id)
        result = await self.session.execute(stmt)
        return result.scalar_one() > 0

    async def reschedule(self, appt: AppointmentDB, new_date: datetime) -> AppointmentDB:
        """Move *appt* to *new_date* and mark it RESCHEDULED."""
        appt.appointment_date = new_date
        appt.status = AppointmentStatus.RESCHEDULED.value
        appt.updated_at = datetime.now(timezone.utc)
        await self._flush_slot_write()
        return appt

    async def _flush_slot_write(self) -> None:
        try:
            await self.session.flush()
        except IntegrityError as exc:
            kind = constraint_kind(exc)
            if kind == "unique":
                raise DuplicateRecordError("Slot already taken") from exc
            if kind == "foreign_key":
                raise RecordNotFoundError("Patient or doctor") from exc
            raise StorageError("Failed to save appointment") from exc


class AuditRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def log_action(
        self,
        action: str,
        resource_type: str,
        resource_id: str,
        details: Optional[dict] = None,
        ip_address: Optional[str] = None,
    ) -> AuditLog:
        entry = AuditLog(
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id),
            details=details,
            ip_address=ip_address,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def get_by_resource(self, resource_type: str, resource_id: str, limit: int = 50) -> Sequence[AuditLog]:
        stmt = (
            select(AuditLog)
            .where(AuditLog.resource_type == resource_type, AuditLog.resource_id == resource_id)
            .order_by(AuditLog.timestamp.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()
