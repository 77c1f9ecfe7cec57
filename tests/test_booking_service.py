from dataclasses import replace
from datetime import date, datetime, time, timedelta, timezone

import pytest

from medplus_booking.application.services.booking_service import BookingRequest, BookingService
from medplus_booking.exceptions import ConflictError, NotFoundError, ValidationError

from conftest import MONDAY, NOW


def _request(**overrides):
    req = BookingRequest(
        patient_id="pat-1",
        doctor_id="doc-1",
        service_id="svc-30",
        branch_id="br-1",
        scheduled_date=MONDAY,
        start_time=time(10, 0),
        end_time=time(10, 30),
        duration_minutes=30,
    )
    return replace(req, **overrides)


def test_book_success_creates_pending_appointment_and_log(booking, appt_repo):
    appt = booking.book_appointment(_request(notes="first visit"))
    assert appt.status == "pending"
    assert appt.booking_type == "online"
    assert appt.appointment_number == "MEDPLUS-2030-00001"
    assert appt.created_by == "pat-1"
    logs = appt_repo.list_logs(appt.id)
    assert [entry.action for entry in logs] == ["created"]
    assert logs[0].performed_by == "pat-1"
    assert logs[0].new_data["id"] == appt.id


def test_acting_identity_is_recorded(booking, appt_repo):
    appt = booking.book_appointment(_request(created_by="reception-7", booking_type="phone"))
    assert appt.created_by == "reception-7"
    assert appt.booking_type == "phone"
    assert appt_repo.list_logs(appt.id)[0].performed_by == "reception-7"


def test_appointment_numbers_follow_the_year_count(booking, appt_repo):
    appt_repo.add(time(9, 0), time(9, 30), created_at=datetime(2029, 12, 31, 23, 0))
    appt_repo.add(time(9, 30), time(10, 0), created_at=datetime(2030, 1, 1, 7, 0))
    assert booking.next_appointment_number() == "MEDPLUS-2030-00002"
    appt = booking.book_appointment(_request())
    assert appt.appointment_number == "MEDPLUS-2030-00002"


def test_custom_prefix(booking):
    booking.number_prefix = "CLINIC"
    assert booking.next_appointment_number() == "CLINIC-2030-00001"


def test_second_booking_of_same_slot_conflicts(booking, appt_repo):
    booking.book_appointment(_request())
    with pytest.raises(ConflictError) as exc:
        booking.book_appointment(_request(patient_id="pat-2"))
    assert exc.value.status_code == 409
    assert "no longer available" in exc.value.detail
    assert len(appt_repo.appts) == 1


def test_lost_race_surfaces_store_conflict(booking, appt_repo, availability):
    """Both requests saw the slot free; the store decides who wins."""
    availability.ensure_bookable = lambda *args, **kwargs: None
    first = booking.book_appointment(_request())
    with pytest.raises(ConflictError):
        booking.book_appointment(_request(patient_id="pat-2"))
    live = appt_repo.list_active_for_doctor_on("doc-1", MONDAY)
    assert [a.id for a in live] == [first.id]
    assert len([entry for entry in appt_repo.logs if entry.action == "created"]) == 1


def test_overlapping_booking_with_different_start_conflicts(booking):
    booking.book_appointment(_request(service_id="svc-60", end_time=time(11, 0), duration_minutes=60))
    with pytest.raises(ConflictError):
        booking.book_appointment(_request(start_time=time(10, 30), end_time=time(11, 0)))


def test_back_to_back_bookings_are_fine(booking):
    booking.book_appointment(_request())
    booking.book_appointment(_request(start_time=time(10, 30), end_time=time(11, 0)))


def test_cancelled_slot_can_be_booked_again(booking, appt_repo):
    appt_repo.add(time(10, 0), time(10, 30), status="cancelled")
    assert booking.book_appointment(_request()).status == "pending"


def test_outside_working_hours(booking):
    with pytest.raises(ValidationError):
        booking.book_appointment(_request(start_time=time(12, 0), end_time=time(12, 30)))


def test_closed_day(booking, schedule_repo):
    schedule_repo.upsert_override("doc-1", "br-1", MONDAY, False, None, None, "holiday")
    with pytest.raises(ValidationError):
        booking.book_appointment(_request())


@pytest.mark.parametrize("overrides", [
    {"start_time": time(10, 30), "end_time": time(10, 0)},
    {"duration_minutes": 45},
    {"scheduled_date": date(2029, 12, 31)},
    {"booking_type": "carrier-pigeon"},
])
def test_invalid_requests(booking, overrides):
    with pytest.raises(ValidationError):
        booking.book_appointment(_request(**overrides))


@pytest.mark.parametrize("overrides", [
    {"doctor_id": "doc-x"},
    {"branch_id": "br-x"},
    {"service_id": "svc-x"},
])
def test_unknown_references(booking, overrides):
    with pytest.raises(NotFoundError):
        booking.book_appointment(_request(**overrides))


def test_created_at_uses_the_booking_clock(appt_repo, catalog, availability):
    clock = datetime(2030, 1, 3, 14, 45)
    booking = BookingService(repo=appt_repo, catalog=catalog, availability=availability, now=lambda: clock)
    appt = booking.book_appointment(_request())
    assert appt.created_at == clock
    assert appt.appointment_number == "MEDPLUS-2030-00001"


@pytest.mark.parametrize("overrides", [
    {"start_time": time(10, 0, tzinfo=timezone.utc)},
    {"end_time": time(10, 30, tzinfo=timezone(timedelta(hours=4)))},
])
def test_timezone_aware_times_are_rejected(booking, appt_repo, overrides):
    with pytest.raises(ValidationError):
        booking.book_appointment(_request(**overrides))
    assert appt_repo.appts == {}
