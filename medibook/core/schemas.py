"""Pydantic schemas for the booking API I/O."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from medibook.scheduling.timeutil import (
    format_birth_date,
    format_date,
    format_time_of_day,
    parse_birth_date,
    parse_date,
    parse_time_of_day,
    slot_timestamp,
)


# --- Patient ---

class PatientCreate(BaseModel):
    national_id: str = Field(pattern=r"^[0-9]{16}$", description="16-digit national ID number")
    full_name: str = Field(min_length=3, max_length=100)
    date_of_birth: date = Field(description="DD-MM-YYYY")

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def _parse_dob(cls, value):
        if isinstance(value, str):
            return parse_birth_date(value)
        return value

    @field_validator("date_of_birth")
    @classmethod
    def _not_in_future(cls, value: date) -> date:
        if value > date.today():
            raise ValueError("Date of birth cannot be in the future")
        return value


class PatientRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    national_id: str
    full_name: str
    date_of_birth: date
    created_at: datetime

    @field_serializer("date_of_birth")
    def _format_dob(self, value: date) -> str:
        return format_birth_date(value)


# --- Doctor ---

class DoctorCreate(BaseModel):
    registration_number: str = Field(pattern=r"^[0-9]{10}$", description="10-digit registration number")
    name: str = Field(min_length=3, max_length=100)
    specialty: str = Field(max_length=100)

    @field_validator("specialty")
    @classmethod
    def _specialty_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Specialty cannot be empty")
        return value


class DoctorRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    registration_number: str
    name: str
    specialty: str


# --- Weekly schedule ---

class ScheduleCreate(BaseModel):
    day_of_week: int = Field(ge=1, le=7, description="1=Monday .. 7=Sunday")
    start_time: time = Field(description="HH:MM:SS")
    end_time: time = Field(description="HH:MM:SS")

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _parse_time(cls, value):
        if isinstance(value, str):
            return parse_time_of_day(value)
        return value

    @model_validator(mode="after")
    def _check_order(self) -> "ScheduleCreate":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class ScheduleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day_of_week: int
    start_time: time
    end_time: time

    @field_serializer("start_time", "end_time")
    def _format_time(self, value: time) -> str:
        return format_time_of_day(value)


# --- Time off ---

class TimeOffCreate(BaseModel):
    off_date: date = Field(description="YYYY-MM-DD")
    reason: Optional[str] = Field(default=None, max_length=255)

    @field_validator("off_date", mode="before")
    @classmethod
    def _parse_off_date(cls, value):
        if isinstance(value, str):
            return parse_date(value)
        return value


class TimeOffRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    off_date: date
    reason: Optional[str] = None

    @field_serializer("off_date")
    def _format_off_date(self, value: date) -> str:
        return format_date(value)


# --- Appointment ---

class AppointmentCreate(BaseModel):
    patient_id: uuid.UUID
    doctor_id: uuid.UUID
    appointment_date: datetime

    @field_validator("appointment_date")
    @classmethod
    def _wall_clock(cls, value: datetime) -> datetime:
        return slot_timestamp(value)


class AppointmentReschedule(BaseModel):
    new_appointment_date: datetime

    @field_validator("new_appointment_date")
    @classmethod
    def _wall_clock(cls, value: datetime) -> datetime:
        return slot_timestamp(value)


class SlotCheckRequest(BaseModel):
    doctor_id: uuid.UUID
    appointment_date: datetime
    exclude_appointment_id: Optional[uuid.UUID] = None

    @field_validator("appointment_date")
    @classmethod
    def _wall_clock(cls, value: datetime) -> datetime:
        return slot_timestamp(value)


class AppointmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    patient_id: uuid.UUID
    doctor_id: uuid.UUID
    appointment_date: datetime
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class PatientAppointmentRead(BaseModel):
    """An appointment as listed on a patient's record."""

    id: uuid.UUID
    doctor_id: uuid.UUID
    doctor_name: str
    appointment_date: datetime
    status: str
