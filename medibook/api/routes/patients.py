"""Patient registration and lookup routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.api.dependencies import parse_uuid, raise_http_error
from medibook.core.database import get_db
from medibook.core.repository import AppointmentRepository, PatientRepository
from medibook.core.schemas import PatientAppointmentRead, PatientCreate, PatientRead
from medibook.scheduling.errors import BookingError

router = APIRouter(prefix="/patients", tags=["patients"])


@router.post("", response_model=PatientRead, status_code=201)
async def create_patient(
    body: PatientCreate,
    db: AsyncSession = Depends(get_db),
) -> PatientRead:
    repo = PatientRepository(db)
    try:
        patient = await repo.create(**body.model_dump())
    except BookingError as exc:
        raise_http_error(exc)
    return PatientRead.model_validate(patient)


@router.get("/{patient_id}", response_model=PatientRead)
async def get_patient(
    patient_id: str,
    db: AsyncSession = Depends(get_db),
) -> PatientRead:
    pid = parse_uuid(patient_id, "patient_id")
    patient = await PatientRepository(db).get_by_id(pid)
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    return PatientRead.model_validate(patient)


@router.get("/{patient_id}/appointments", response_model=list[PatientAppointmentRead])
async def list_patient_appointments(
    patient_id: str,
    db: AsyncSession = Depends(get_db),
) -> list[PatientAppointmentRead]:
    """A patient's appointments, newest first, with the doctor's name."""
    pid = parse_uuid(patient_id, "patient_id")
    appts = await AppointmentRepository(db).list_by_patient(pid)
    return [
        PatientAppointmentRead(
            id=a.id,
            doctor_id=a.doctor_id,
            doctor_name=a.doctor.name,
            appointment_date=a.appointment_date,
            status=a.status,
        )
        for a in appts
    ]
