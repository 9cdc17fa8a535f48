"""Appointment booking, rescheduling and speculative slot checks."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.api.dependencies import get_booking_service, parse_uuid, raise_http_error
from medibook.core.database import get_db
from medibook.core.repository import AppointmentRepository
from medibook.core.schemas import (
    AppointmentCreate,
    AppointmentRead,
    AppointmentReschedule,
    SlotCheckRequest,
)
from medibook.scheduling.booking import BookingService
from medibook.scheduling.errors import BookingError
from medibook.scheduling.models import SlotDecision

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post("", response_model=AppointmentRead, status_code=201)
async def book_appointment(
    body: AppointmentCreate,
    service: BookingService = Depends(get_booking_service),
) -> AppointmentRead:
    """Book a slot. 409 carries the rejection reason when the slot is not bookable."""
    try:
        appt = await service.book(body.patient_id, body.doctor_id, body.appointment_date)
    except BookingError as exc:
        raise_http_error(exc)
    return AppointmentRead.model_validate(appt)


@router.post("/check", response_model=SlotDecision)
async def check_slot(
    body: SlotCheckRequest,
    service: BookingService = Depends(get_booking_service),
) -> SlotDecision:
    """Run the slot rules without booking anything."""
    try:
        return await service.check(
            body.doctor_id, body.appointment_date, body.exclude_appointment_id
        )
    except BookingError as exc:
        raise_http_error(exc)


@router.get("/{appointment_id}", response_model=AppointmentRead)
async def get_appointment(
    appointment_id: str,
    db: AsyncSession = Depends(get_db),
) -> AppointmentRead:
    aid = parse_uuid(appointment_id, "appointment_id")
    appt = await AppointmentRepository(db).get_by_id(aid)
    if not appt:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return AppointmentRead.model_validate(appt)


@router.patch("/{appointment_id}", response_model=AppointmentRead)
async def reschedule_appointment(
    appointment_id: str,
    body: AppointmentReschedule,
    service: BookingService = Depends(get_booking_service),
) -> AppointmentRead:
    """Move an appointment to a new timestamp (status becomes RESCHEDULED)."""
    aid = parse_uuid(appointment_id, "appointment_id")
    try:
        appt = await service.reschedule(aid, body.new_appointment_date)
    except BookingError as exc:
        raise_http_error(exc)
    return AppointmentRead.model_validate(appt)
