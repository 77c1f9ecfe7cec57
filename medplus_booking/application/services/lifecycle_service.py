from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional
from datetime import datetime, date, time
import logging

from ...domain.calendar import minutes_between, format_time
from ...domain.status import AppointmentStatus
from ...exceptions import ConflictError, NotFoundError, ValidationError
from ..ports.appointments_repo import AppointmentDto, AppointmentsRepository
from .availability_service import AvailabilityService
from .time_input import wall_clock

logger = logging.getLogger(__name__)

# Fields a caller may set alongside a status change
EXTRA_FIELDS = {"cancellation_reason", "notes", "price", "is_paid"}


@dataclass
class LifecycleService:
    repo: AppointmentsRepository
    availability: AvailabilityService
    now: Callable[[], datetime] = field(default=datetime.now)

    def _get(self, appointment_id: str) -> AppointmentDto:
        appt = self.repo.get_by_id(appointment_id)
        if not appt:
            raise NotFoundError("Appointment not found")
        return appt

    def update_status(self, appointment_id: str, new_status: str, acting_user_id: str, extra: Optional[Dict[str, Any]] = None) -> AppointmentDto:
        try:
            target = AppointmentStatus(new_status)
        except ValueError:
            raise ValidationError(f"Invalid status. Must be one of: {[s.value for s in AppointmentStatus]}")

        current = self._get(appointment_id)
        source = AppointmentStatus(current.status)
        if not source.can_become(target):
            raise ValidationError(f"Cannot change appointment status from {source.value} to {target.value}")

        extra = dict(extra or {})
        unknown = set(extra) - EXTRA_FIELDS
        if unknown:
            raise ValidationError(f"Unsupported fields: {sorted(unknown)}")

        stamp = self.now()
        changes: Dict[str, Any] = {**extra, "status": target.value, "updated_at": stamp}
        if target == AppointmentStatus.CHECKED_IN:
            changes["checked_in_at"] = stamp
            changes["checked_in_by"] = acting_user_id
        elif target == AppointmentStatus.COMPLETED:
            changes["completed_at"] = stamp
        elif target == AppointmentStatus.CANCELLED:
            changes["cancelled_at"] = stamp
            changes["cancelled_by"] = acting_user_id

        updated = self.repo.update_with_log(
            appointment_id,
            changes,
            action="status_changed",
            previous_data={"status": source.value},
            new_data={"status": target.value},
            performed_by=acting_user_id,
        )
        logger.info(f"Appointment {appointment_id} status {source.value} -> {target.value} by {acting_user_id}")
        return updated

    def cancel_appointment(self, appointment_id: str, acting_user_id: str, reason: Optional[str] = None) -> AppointmentDto:
        return self.update_status(
            appointment_id,
            AppointmentStatus.CANCELLED.value,
            acting_user_id,
            {"cancellation_reason": reason},
        )

    def reschedule_appointment(self, appointment_id: str, new_date: date, new_start: time, new_end: time, acting_user_id: str) -> AppointmentDto:
        """Move an appointment; it drops back to ``pending`` and needs re-confirmation."""
        current = self._get(appointment_id)
        if AppointmentStatus(current.status).is_terminal:
            raise ValidationError(f"Cannot reschedule a {current.status} appointment")
        new_start = wall_clock(new_start, "start_time")
        new_end = wall_clock(new_end, "end_time")
        if new_start >= new_end:
            raise ValidationError("Start time must be before end time")
        if new_date < self.now().date():
            raise ValidationError("Appointment date cannot be in the past")

        try:
            self.availability.ensure_bookable(
                current.doctor_id,
                current.branch_id,
                new_date,
                new_start,
                new_end,
                ignore_appointment_id=appointment_id,
            )
        except ConflictError:
            raise ConflictError("The new time slot is not available.")

        changes = {
            "scheduled_date": new_date,
            "start_time": new_start,
            "end_time": new_end,
            "duration_minutes": minutes_between(new_start, new_end),
            "status": AppointmentStatus.PENDING.value,
            "updated_at": self.now(),
        }
        try:
            updated = self.repo.update_with_log(
                appointment_id,
                changes,
                action="rescheduled",
                previous_data={
                    "scheduled_date": current.scheduled_date.isoformat(),
                    "start_time": format_time(current.start_time),
                },
                new_data={
                    "scheduled_date": new_date.isoformat(),
                    "start_time": format_time(new_start),
                },
                performed_by=acting_user_id,
            )
        except ConflictError:
            raise ConflictError("The new time slot is not available.")

        logger.info(f"Appointment {appointment_id} rescheduled to {new_date} {format_time(new_start)} by {acting_user_id}")
        return updated
