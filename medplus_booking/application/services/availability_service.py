from dataclasses import dataclass
from typing import Iterable, List, Optional
from datetime import date, time
import logging

from ...domain.calendar import Interval, add_minutes, minutes_between, overlaps, format_time
from ...exceptions import ConflictError, NotFoundError, ValidationError
from ..ports.appointments_repo import AppointmentDto, AppointmentsRepository
from ..ports.catalog_repo import CatalogRepository
from .schedule_service import ScheduleService

logger = logging.getLogger(__name__)


@dataclass
class TimeSlot:
    start_time: time
    end_time: time
    is_available: bool = True
    appointment_id: Optional[str] = None


def generate_slots(intervals: Iterable[Interval], duration_minutes: int) -> List[TimeSlot]:
    """Step every interval from its own start in ``duration_minutes`` increments.

    A slot that would run past the end of its interval is not emitted, so no
    slot straddles two intervals.
    """
    if duration_minutes <= 0:
        raise ValueError("Slot duration must be positive")
    slots: List[TimeSlot] = []
    for interval in intervals:
        cursor = interval.start
        while minutes_between(cursor, interval.end) >= duration_minutes:
            slot_end = add_minutes(cursor, duration_minutes)
            slots.append(TimeSlot(start_time=cursor, end_time=slot_end))
            cursor = slot_end
    return slots


def mark_conflicts(slots: List[TimeSlot], appointments: Iterable[AppointmentDto]) -> List[TimeSlot]:
    """Tag every slot that overlaps a live appointment as unavailable.

    ``appointments`` must already exclude cancelled and no-show rows. The
    linked id is the appointment starting exactly at the slot start, if any.
    """
    appointments = list(appointments)
    for slot in slots:
        booked = [a for a in appointments if overlaps(slot.start_time, slot.end_time, a.start_time, a.end_time)]
        if not booked:
            continue
        slot.is_available = False
        slot.appointment_id = next((a.id for a in booked if a.start_time == slot.start_time), None)
    return slots


@dataclass
class AvailabilityService:
    schedule: ScheduleService
    appointments: AppointmentsRepository
    catalog: CatalogRepository
    default_slot_duration: int = 30

    def get_available_slots(self, doctor_id: str, branch_id: str, on_date: date, service_id: str) -> List[TimeSlot]:
        service = self.catalog.get_service(service_id)
        if not service:
            raise NotFoundError("Service not found")
        duration = service.duration_minutes or self.default_slot_duration

        intervals = self.schedule.get_effective_schedule(doctor_id, branch_id, on_date)
        if not intervals:
            return []

        slots = generate_slots(intervals, duration)
        booked = self.appointments.list_active_for_doctor_on(doctor_id, on_date)
        return mark_conflicts(slots, booked)

    def ensure_bookable(self, doctor_id: str, branch_id: str, on_date: date, start: time, end: time, ignore_appointment_id: Optional[str] = None) -> None:
        """Raise unless ``[start, end)`` is inside working hours and free.

        This is a snapshot check; the store's uniqueness guarantee still
        decides concurrent bookings.
        """
        intervals = self.schedule.get_effective_schedule(doctor_id, branch_id, on_date)
        if not any(i.contains(start, end) for i in intervals):
            raise ValidationError(
                f"Requested time {format_time(start)}-{format_time(end)} is outside the doctor's working hours on {on_date.isoformat()}"
            )

        for appt in self.appointments.list_active_for_doctor_on(doctor_id, on_date):
            if appt.id == ignore_appointment_id:
                continue
            if overlaps(start, end, appt.start_time, appt.end_time):
                logger.info(f"Slot {format_time(start)} on {on_date} for doctor {doctor_id} collides with appointment {appt.id}")
                raise ConflictError()
