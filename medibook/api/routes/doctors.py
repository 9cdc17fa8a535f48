"""Doctor registration, weekly schedules and time off."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.api.dependencies import parse_uuid, raise_http_error
from medibook.core.database import get_db
from medibook.core.repository import DoctorRepository, ScheduleRepository, TimeOffRepository
from medibook.core.schemas import (
    DoctorCreate,
    DoctorRead,
    ScheduleCreate,
    ScheduleRead,
    TimeOffCreate,
    TimeOffRead,
)
from medibook.scheduling.errors import BookingError

router = APIRouter(prefix="/doctors", tags=["doctors"])


@router.get("", response_model=list[DoctorRead])
async def list_doctors(db: AsyncSession = Depends(get_db)) -> list[DoctorRead]:
    doctors = await DoctorRepository(db).list()
    return [DoctorRead.model_validate(d) for d in doctors]


@router.post("", response_model=DoctorRead, status_code=201)
async def create_doctor(
    body: DoctorCreate,
    db: AsyncSession = Depends(get_db),
) -> DoctorRead:
    try:
        doctor = await DoctorRepository(db).create(**body.model_dump())
    except BookingError as exc:
        raise_http_error(exc)
    return DoctorRead.model_validate(doctor)


# ---------------------------------------------------------------------------
# Weekly working hours
# ---------------------------------------------------------------------------

@router.post("/{doctor_id}/schedules", response_model=ScheduleRead, status_code=201)
async def add_schedule(
    doctor_id: str,
    body: ScheduleCreate,
    db: AsyncSession = Depends(get_db),
) -> ScheduleRead:
    """Register the working window for one weekday."""
    did = parse_uuid(doctor_id, "doctor_id")
    try:
        rule = await ScheduleRepository(db).create(
            did, body.day_of_week, start_time=body.start_time, end_time=body.end_time
        )
    except BookingError as exc:
        raise_http_error(exc)
    return ScheduleRead.model_validate(rule)


@router.get("/{doctor_id}/schedules", response_model=list[ScheduleRead])
async def list_schedules(
    doctor_id: str,
    db: AsyncSession = Depends(get_db),
) -> list[ScheduleRead]:
    did = parse_uuid(doctor_id, "doctor_id")
    rules = await ScheduleRepository(db).list_by_doctor(did)
    return [ScheduleRead.model_validate(r) for r in rules]


# ---------------------------------------------------------------------------
# Time off
# ---------------------------------------------------------------------------

@router.post("/{doctor_id}/timeoff", response_model=TimeOffRead, status_code=201)
async def add_time_off(
    doctor_id: str,
    body: TimeOffCreate,
    db: AsyncSession = Depends(get_db),
) -> TimeOffRead:
    """Mark a whole calendar date as unavailable."""
    did = parse_uuid(doctor_id, "doctor_id")
    try:
        entry = await TimeOffRepository(db).create(did, body.off_date, reason=body.reason)
    except BookingError as exc:
        raise_http_error(exc)
    return TimeOffRead.model_validate(entry)


@router.get("/{doctor_id}/timeoff", response_model=list[TimeOffRead])
async def list_time_off(
    doctor_id: str,
    db: AsyncSession = Depends(get_db),
) -> list[TimeOffRead]:
    did = parse_uuid(doctor_id, "doctor_id")
    entries = await TimeOffRepository(db).list_by_doctor(did)
    return [TimeOffRead.model_validate(e) for e in entries]
