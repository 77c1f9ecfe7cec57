from datetime import time

import pytest

from medplus_booking.application.services.availability_service import generate_slots, mark_conflicts
from medplus_booking.domain.calendar import Interval
from medplus_booking.exceptions import ConflictError, NotFoundError, ValidationError

from conftest import MONDAY


def _times(slots):
    return [(s.start_time, s.end_time) for s in slots]


def test_monday_morning_has_six_free_slots(availability):
    slots = availability.get_available_slots("doc-1", "br-1", MONDAY, "svc-30")
    assert len(slots) == 6
    assert _times(slots)[0] == (time(9, 0), time(9, 30))
    assert _times(slots)[-1] == (time(11, 30), time(12, 0))
    assert all(s.is_available for s in slots)


def test_booked_slot_is_marked_with_its_appointment(availability, appt_repo):
    booked = appt_repo.add(time(10, 0), time(10, 30), status="confirmed")
    slots = availability.get_available_slots("doc-1", "br-1", MONDAY, "svc-30")
    taken = [s for s in slots if not s.is_available]
    assert len(slots) == 6
    assert _times(taken) == [(time(10, 0), time(10, 30))]
    assert taken[0].appointment_id == booked.id


def test_cancelled_and_no_show_do_not_block(availability, appt_repo):
    appt_repo.add(time(10, 0), time(10, 30), status="cancelled")
    appt_repo.add(time(11, 0), time(11, 30), status="no_show")
    slots = availability.get_available_slots("doc-1", "br-1", MONDAY, "svc-30")
    assert all(s.is_available for s in slots)


def test_day_off_override_returns_no_slots(availability, schedule_repo, appt_repo):
    appt_repo.add(time(10, 0), time(10, 30))
    schedule_repo.upsert_override("doc-1", "br-1", MONDAY, False, None, None, None)
    assert availability.get_available_slots("doc-1", "br-1", MONDAY, "svc-30") == []


def test_override_hours_produce_afternoon_slots(availability, schedule_repo):
    schedule_repo.upsert_override("doc-1", "br-1", MONDAY, True, time(13, 0), time(15, 0), None)
    slots = availability.get_available_slots("doc-1", "br-1", MONDAY, "svc-30")
    assert _times(slots)[0] == (time(13, 0), time(13, 30))
    assert _times(slots)[-1] == (time(14, 30), time(15, 0))
    assert len(slots) == 4


def test_no_weekly_row_means_no_slots_even_with_override(availability, schedule_repo):
    schedule_repo.weekly.clear()
    schedule_repo.upsert_override("doc-1", "br-1", MONDAY, True, time(9, 0), time(12, 0), None)
    assert availability.get_available_slots("doc-1", "br-1", MONDAY, "svc-30") == []


def test_partially_overlapping_appointment_blocks_without_link(availability, appt_repo):
    appt_repo.add(time(9, 15), time(9, 45))
    slots = availability.get_available_slots("doc-1", "br-1", MONDAY, "svc-30")
    assert [s.is_available for s in slots[:3]] == [False, False, True]
    assert slots[0].appointment_id is None
    assert slots[1].appointment_id is None


def test_service_duration_drives_slot_length(availability):
    slots = availability.get_available_slots("doc-1", "br-1", MONDAY, "svc-60")
    assert _times(slots) == [(time(9, 0), time(10, 0)), (time(10, 0), time(11, 0)), (time(11, 0), time(12, 0))]


def test_service_without_duration_uses_default(availability):
    assert len(availability.get_available_slots("doc-1", "br-1", MONDAY, "svc-none")) == 6


def test_unknown_service(availability):
    with pytest.raises(NotFoundError):
        availability.get_available_slots("doc-1", "br-1", MONDAY, "svc-missing")


def test_generated_slots_are_contiguous_and_stay_inside_interval():
    intervals = [Interval(time(9, 0), time(10, 50)), Interval(time(14, 10), time(15, 0))]
    slots = generate_slots(intervals, 25)
    morning = [s for s in slots if s.start_time < time(12, 0)]
    afternoon = [s for s in slots if s.start_time >= time(12, 0)]
    for a, b in zip(morning, morning[1:]):
        assert a.end_time == b.start_time
    assert morning[-1].end_time <= time(10, 50)
    # Each interval is stepped from its own start
    assert afternoon[0].start_time == time(14, 10)
    assert afternoon[-1].end_time <= time(15, 0)
    assert len(morning) == 4 and len(afternoon) == 2


def test_generate_slots_rejects_bad_duration():
    with pytest.raises(ValueError):
        generate_slots([Interval(time(9, 0), time(10, 0))], 0)


def test_mark_conflicts_never_drops_slots():
    slots = generate_slots([Interval(time(9, 0), time(10, 0))], 30)
    assert len(mark_conflicts(slots, [])) == 2


def test_ensure_bookable(availability, appt_repo):
    availability.ensure_bookable("doc-1", "br-1", MONDAY, time(9, 0), time(9, 30))
    with pytest.raises(ValidationError):
        availability.ensure_bookable("doc-1", "br-1", MONDAY, time(11, 45), time(12, 15))
    existing = appt_repo.add(time(9, 0), time(9, 30))
    with pytest.raises(ConflictError):
        availability.ensure_bookable("doc-1", "br-1", MONDAY, time(9, 0), time(9, 30))
    availability.ensure_bookable("doc-1", "br-1", MONDAY, time(9, 0), time(9, 30), ignore_appointment_id=existing.id)


def test_generate_slots_near_end_of_day():
    slots = generate_slots([Interval(time(23, 0), time(23, 59))], 30)
    assert _times(slots) == [(time(23, 0), time(23, 30))]
