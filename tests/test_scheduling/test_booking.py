"""DB-backed tests for the booking service."""

import uuid
from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.core.models import AppointmentDB
from medibook.core.repository import AuditRepository
from medibook.scheduling.booking import BookingService
from medibook.scheduling.errors import RecordNotFoundError, SlotRejectedError, StorageError
from medibook.scheduling.models import AppointmentStatus, RejectionReason

MONDAY_10 = datetime(2026, 3, 2, 10, 0)
MONDAY_11 = datetime(2026, 3, 2, 11, 0)
MONDAY_13 = datetime(2026, 3, 2, 13, 0)
DAY_OFF_10 = datetime(2026, 3, 10, 10, 0)


@pytest.fixture
async def service(session: AsyncSession, seed_data) -> BookingService:
    return BookingService(session)


class _AlwaysFreeStore:
    """Reports every slot as free, as a concurrent request would have seen it."""

    async def is_time_off(self, doctor_id, day):
        return False

    async def working_window(self, doctor_id, day_of_week):
        from datetime import time

        from medibook.scheduling.models import WorkingWindow

        return WorkingWindow(start_time=time(0), end_time=time(23, 59, 59))

    async def has_conflict(self, doctor_id, appointment_date, exclude_appointment_id=None):
        return False


class _BrokenStore(_AlwaysFreeStore):
    async def is_time_off(self, doctor_id, day):
        raise OperationalError("SELECT", {}, Exception("statement timeout"))


# ---------------------------------------------------------------------------
# Book
# ---------------------------------------------------------------------------

class TestBook:
    async def test_accepted_booking_is_confirmed(self, service: BookingService, seed_data):
        appt = await service.book(seed_data["patient_id"], seed_data["doctor_id"], MONDAY_10)
        assert appt.id is not None
        assert appt.status == AppointmentStatus.CONFIRMED.value
        assert appt.appointment_date == MONDAY_10

    async def test_booking_is_audited(self, service: BookingService, session: AsyncSession, seed_data):
        appt = await service.book(seed_data["patient_id"], seed_data["doctor_id"], MONDAY_10)
        logs = await AuditRepository(session).get_by_resource("appointment", str(appt.id))
        assert [entry.action for entry in logs] == ["book"]

    async def test_audit_carries_client_host(self, session: AsyncSession, seed_data):
        service = BookingService(session, client_host="10.0.0.7")
        appt = await service.book(seed_data["patient_id"], seed_data["doctor_id"], MONDAY_10)
        await service.reschedule(appt.id, MONDAY_11)
        logs = await AuditRepository(session).get_by_resource("appointment", str(appt.id))
        assert sorted(entry.action for entry in logs) == ["book", "reschedule"]
        assert {entry.ip_address for entry in logs} == {"10.0.0.7"}

    async def test_second_booking_same_slot_is_rejected(self, service: BookingService, seed_data):
        await service.book(seed_data["patient_id"], seed_data["doctor_id"], MONDAY_10)
        with pytest.raises(SlotRejectedError) as exc_info:
            await service.book(seed_data["other_patient_id"], seed_data["doctor_id"], MONDAY_10)
        assert exc_info.value.reason == RejectionReason.SLOT_ALREADY_BOOKED

    async def test_time_off_is_rejected(self, service: BookingService, seed_data):
        with pytest.raises(SlotRejectedError) as exc_info:
            await service.book(seed_data["patient_id"], seed_data["doctor_id"], DAY_OFF_10)
        assert exc_info.value.reason == RejectionReason.DOCTOR_UNAVAILABLE_TIMEOFF

    async def test_outside_hours_is_rejected(self, service: BookingService, seed_data):
        with pytest.raises(SlotRejectedError) as exc_info:
            await service.book(seed_data["patient_id"], seed_data["doctor_id"], MONDAY_13)
        assert exc_info.value.reason == RejectionReason.OUTSIDE_WORKING_HOURS

    async def test_unknown_patient_is_not_found(self, service: BookingService, seed_data):
        with pytest.raises(RecordNotFoundError):
            await service.book(uuid.uuid4(), seed_data["doctor_id"], MONDAY_10)

    async def test_cancelled_appointment_frees_the_slot(
        self, service: BookingService, session: AsyncSession, seed_data
    ):
        session.add(AppointmentDB(
            patient_id=seed_data["other_patient_id"],
            doctor_id=seed_data["doctor_id"],
            appointment_date=MONDAY_10,
            status=AppointmentStatus.CANCELLED.value,
        ))
        await session.flush()

        appt = await service.book(seed_data["patient_id"], seed_data["doctor_id"], MONDAY_10)
        assert appt.status == AppointmentStatus.CONFIRMED.value

    async def test_unique_index_catches_a_lost_race(self, session: AsyncSession, seed_data):
        # The first writer wins through the normal path.
        await BookingService(session).book(seed_data["patient_id"], seed_data["doctor_id"], MONDAY_10)

        # The second passed its pre-check before the first committed.
        racer = BookingService(session, store=_AlwaysFreeStore())
        with pytest.raises(SlotRejectedError) as exc_info:
            await racer.book(seed_data["other_patient_id"], seed_data["doctor_id"], MONDAY_10)
        assert exc_info.value.reason == RejectionReason.SLOT_ALREADY_BOOKED


# ---------------------------------------------------------------------------
# Reschedule
# ---------------------------------------------------------------------------

class TestReschedule:
    async def test_reschedule_moves_and_marks_rescheduled(self, service: BookingService, seed_data):
        appt = await service.book(seed_data["patient_id"], seed_data["doctor_id"], MONDAY_10)
        moved = await service.reschedule(appt.id, MONDAY_11)
        assert moved.id == appt.id
        assert moved.appointment_date == MONDAY_11
        assert moved.status == AppointmentStatus.RESCHEDULED.value
        assert moved.patient_id == seed_data["patient_id"]
        assert moved.doctor_id == seed_data["doctor_id"]

    async def test_reschedule_to_own_slot_succeeds(self, service: BookingService, seed_data):
        appt = await service.book(seed_data["patient_id"], seed_data["doctor_id"], MONDAY_10)
        moved = await service.reschedule(appt.id, MONDAY_10)
        assert moved.status == AppointmentStatus.RESCHEDULED.value

    async def test_reschedule_twice_stays_rescheduled(self, service: BookingService, seed_data):
        appt = await service.book(seed_data["patient_id"], seed_data["doctor_id"], MONDAY_10)
        await service.reschedule(appt.id, MONDAY_11)
        moved = await service.reschedule(appt.id, MONDAY_10)
        assert moved.status == AppointmentStatus.RESCHEDULED.value
        assert moved.appointment_date == MONDAY_10

    async def test_reschedule_onto_taken_slot_is_rejected(self, service: BookingService, seed_data):
        await service.book(seed_data["other_patient_id"], seed_data["doctor_id"], MONDAY_11)
        appt = await service.book(seed_data["patient_id"], seed_data["doctor_id"], MONDAY_10)
        with pytest.raises(SlotRejectedError) as exc_info:
            await service.reschedule(appt.id, MONDAY_11)
        assert exc_info.value.reason == RejectionReason.SLOT_ALREADY_BOOKED

    async def test_reschedule_outside_hours_is_rejected(self, service: BookingService, seed_data):
        appt = await service.book(seed_data["patient_id"], seed_data["doctor_id"], MONDAY_10)
        with pytest.raises(SlotRejectedError) as exc_info:
            await service.reschedule(appt.id, MONDAY_13)
        assert exc_info.value.reason == RejectionReason.OUTSIDE_WORKING_HOURS
        assert appt.appointment_date == MONDAY_10
        assert appt.status == AppointmentStatus.CONFIRMED.value

    async def test_reschedule_unknown_appointment(self, service: BookingService):
        with pytest.raises(RecordNotFoundError):
            await service.reschedule(uuid.uuid4(), MONDAY_11)


# ---------------------------------------------------------------------------
# Store failure policy
# ---------------------------------------------------------------------------

class TestFailurePolicy:
    async def test_raise_policy_surfaces_storage_error(self, session: AsyncSession, seed_data):
        service = BookingService(session, failure_policy="raise", store=_BrokenStore())
        with pytest.raises(StorageError):
            await service.book(seed_data["patient_id"], seed_data["doctor_id"], MONDAY_10)

    async def test_reject_policy_fails_closed(self, session: AsyncSession, seed_data):
        service = BookingService(session, failure_policy="reject", store=_BrokenStore())
        with pytest.raises(SlotRejectedError) as exc_info:
            await service.book(seed_data["patient_id"], seed_data["doctor_id"], MONDAY_10)
        assert exc_info.value.reason == RejectionReason.AVAILABILITY_UNKNOWN

    async def test_check_reports_unknown_under_reject_policy(self, session: AsyncSession, seed_data):
        service = BookingService(session, failure_policy="reject", store=_BrokenStore())
        decision = await service.check(seed_data["doctor_id"], MONDAY_10)
        assert not decision.accepted
        assert decision.reason == RejectionReason.AVAILABILITY_UNKNOWN
