"""Pytest configuration and fixtures."""

import uuid
from datetime import date, time

import pytest
from httpx import ASGITransport, AsyncClient

from medibook.core.database import Database
from medibook.core.models import Doctor, DoctorSchedule, DoctorTimeOff, Patient

PATIENT_ID = uuid.UUID("aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa")
OTHER_PATIENT_ID = uuid.UUID("cccccccc-cccc-cccc-cccc-cccccccccccc")
DOCTOR_ID = uuid.UUID("bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb")

# Doctor works Monday 09:00-12:00 and Tuesday 09:00-17:00, and is off Tuesday 2026-03-10.
MONDAY = date(2026, 3, 2)
TUESDAY = date(2026, 3, 3)
DAY_OFF = date(2026, 3, 10)


@pytest.fixture
async def database():
    """Fresh in-memory database with the full schema."""
    db = Database("sqlite+aiosqlite://")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database: Database):
    async with database.session_factory() as sess:
        yield sess
        await sess.rollback()


@pytest.fixture
async def seed_data(database: Database):
    """Seed two patients and one doctor with a weekly schedule and a day off."""
    async with database.session() as sess:
        sess.add_all([
            Patient(
                id=PATIENT_ID,
                national_id="3171234567890001",
                full_name="Budi Santoso",
                date_of_birth=date(1985, 6, 15),
            ),
            Patient(
                id=OTHER_PATIENT_ID,
                national_id="3171234567890002",
                full_name="Siti Rahayu",
                date_of_birth=date(1990, 1, 2),
            ),
            Doctor(
                id=DOCTOR_ID,
                registration_number="1234567890",
                name="Dr. Andi Wijaya",
                specialty="Cardiology",
            ),
        ])
        await sess.flush()
        sess.add_all([
            DoctorSchedule(doctor_id=DOCTOR_ID, day_of_week=1, start_time=time(9, 0), end_time=time(12, 0)),
            DoctorSchedule(doctor_id=DOCTOR_ID, day_of_week=2, start_time=time(9, 0), end_time=time(17, 0)),
            DoctorTimeOff(doctor_id=DOCTOR_ID, off_date=DAY_OFF, reason="Conference"),
        ])
    return {"patient_id": PATIENT_ID, "other_patient_id": OTHER_PATIENT_ID, "doctor_id": DOCTOR_ID}


@pytest.fixture
async def client(database: Database, seed_data):
    """AsyncClient bound to the app using the test database."""
    from medibook.api.app import create_app

    app = create_app(database=database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
