from dataclasses import dataclass, field
from typing import Callable, Optional
from datetime import datetime, date, time
import logging

from ...domain.calendar import minutes_between, format_time
from ...domain.status import AppointmentStatus, BookingType
from ...exceptions import ConflictError, NotFoundError, ValidationError
from ..ports.appointments_repo import AppointmentDraft, AppointmentDto, AppointmentsRepository
from ..ports.catalog_repo import CatalogRepository
from .availability_service import AvailabilityService
from .time_input import wall_clock

logger = logging.getLogger(__name__)


@dataclass
class BookingRequest:
    patient_id: str
    doctor_id: str
    service_id: str
    branch_id: str
    scheduled_date: date
    start_time: time
    end_time: time
    duration_minutes: int
    notes: Optional[str] = None
    booking_type: str = BookingType.ONLINE.value
    created_by: Optional[str] = None


@dataclass
class BookingService:
    repo: AppointmentsRepository
    catalog: CatalogRepository
    availability: AvailabilityService
    number_prefix: str = "MEDPLUS"
    now: Callable[[], datetime] = field(default=datetime.now)

    def next_appointment_number(self, stamp: Optional[datetime] = None) -> str:
        """``PREFIX-YYYY-NNNNN`` from this year's appointment count.

        Count-then-insert is not serialized: two concurrent bookings can read
        the same count and share a number. Numbers are only roughly
        sequential and may repeat under load.
        """
        year = (stamp or self.now()).year
        count = self.repo.count_created_since(datetime(year, 1, 1))
        return f"{self.number_prefix}-{year}-{count + 1:05d}"

    def book_appointment(self, request: BookingRequest) -> AppointmentDto:
        if not self.catalog.get_doctor(request.doctor_id):
            raise NotFoundError("Doctor not found")
        if not self.catalog.get_branch(request.branch_id):
            raise NotFoundError("Branch not found")
        if not self.catalog.get_service(request.service_id):
            raise NotFoundError("Service not found")

        try:
            booking_type = BookingType(request.booking_type).value
        except ValueError:
            raise ValidationError(f"Invalid booking type. Must be one of: {[b.value for b in BookingType]}")

        start = wall_clock(request.start_time, "start_time")
        end = wall_clock(request.end_time, "end_time")
        if start >= end:
            raise ValidationError("Start time must be before end time")
        if minutes_between(start, end) != request.duration_minutes:
            raise ValidationError("duration_minutes does not match the requested start and end time")

        # One clock for the past-date check, the number year and created_at
        stamp = self.now()
        if request.scheduled_date < stamp.date():
            raise ValidationError("Appointment date cannot be in the past")

        self.availability.ensure_bookable(
            request.doctor_id,
            request.branch_id,
            request.scheduled_date,
            start,
            end,
        )

        acting_user = request.created_by or request.patient_id
        draft = AppointmentDraft(
            appointment_number=self.next_appointment_number(stamp),
            patient_id=request.patient_id,
            doctor_id=request.doctor_id,
            service_id=request.service_id,
            branch_id=request.branch_id,
            scheduled_date=request.scheduled_date,
            start_time=start,
            end_time=end,
            duration_minutes=request.duration_minutes,
            status=AppointmentStatus.PENDING.value,
            booking_type=booking_type,
            notes=request.notes,
            created_by=acting_user,
            created_at=stamp,
        )
        try:
            appointment = self.repo.create(draft, performed_by=acting_user)
        except ConflictError:
            # Lost the race to another booking; the caller must re-query slots
            logger.warning(
                f"Double booking rejected for doctor {request.doctor_id} on "
                f"{request.scheduled_date} at {format_time(start)}"
            )
            raise

        logger.info(f"Booked appointment {appointment.appointment_number} ({appointment.id}) for patient {request.patient_id}")
        return appointment
