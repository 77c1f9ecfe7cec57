from dataclasses import dataclass, field
from typing import Callable, List, Optional
from datetime import date, datetime
import logging
import math

from ...domain.status import AppointmentStatus, NoteType
from ...exceptions import NotFoundError, ValidationError
from ..ports.appointments_repo import (
    AppointmentsRepository,
    AppointmentDto,
    AppointmentFilter,
    AppointmentLogDto,
    AppointmentNoteDto,
)

logger = logging.getLogger(__name__)


@dataclass
class AppointmentPage:
    items: List[AppointmentDto]
    count: int
    page: int
    limit: int
    total_pages: int


def _paginate(page: int, limit: int) -> int:
    if page < 1:
        raise ValidationError("page must be 1 or greater")
    if limit < 1:
        raise ValidationError("limit must be 1 or greater")
    return (page - 1) * limit


@dataclass
class AppointmentsService:
    repo: AppointmentsRepository
    upcoming_limit: int = 10
    now: Callable[[], datetime] = field(default=datetime.now)

    def get_appointment(self, appointment_id: str) -> AppointmentDto:
        appt = self.repo.get_by_id(appointment_id)
        if not appt:
            raise NotFoundError("Appointment not found")
        return appt

    def list_logs(self, appointment_id: str) -> List[AppointmentLogDto]:
        self.get_appointment(appointment_id)
        return self.repo.list_logs(appointment_id)

    def list_branch_day(self, branch_id: str, on_date: date) -> List[AppointmentDto]:
        return self.repo.list_for_branch_on(branch_id, on_date)

    def list_patient_upcoming(self, patient_id: str) -> List[AppointmentDto]:
        return self.repo.list_upcoming_for_patient(patient_id, self.now().date(), self.upcoming_limit)

    def list_appointments(self, filters: AppointmentFilter, page: int = 1, limit: int = 20) -> AppointmentPage:
        """Filtered appointments ordered by date and start time, one page at a time."""
        offset = _paginate(page, limit)
        if filters.statuses:
            unknown = [s for s in filters.statuses if s not in {st.value for st in AppointmentStatus}]
            if unknown:
                raise ValidationError(f"Invalid status filter: {unknown}")
        if filters.date_from and filters.date_to and filters.date_from > filters.date_to:
            raise ValidationError("date_from must not be after date_to")

        items, count = self.repo.list_filtered(filters, offset, limit)
        return AppointmentPage(items=items, count=count, page=page, limit=limit, total_pages=math.ceil(count / limit))

    def list_patient_history(self, patient_id: str, page: int = 1, limit: int = 10) -> AppointmentPage:
        offset = _paginate(page, limit)
        items, count = self.repo.list_patient_history(patient_id, offset, limit)
        return AppointmentPage(items=items, count=count, page=page, limit=limit, total_pages=math.ceil(count / limit))

    def add_note(self, appointment_id: str, content: str, doctor_id: Optional[str] = None, note_type: str = NoteType.GENERAL.value, is_private: bool = False) -> AppointmentNoteDto:
        """Attach a note; the author defaults to the appointment's doctor."""
        appt = self.get_appointment(appointment_id)
        try:
            note_type = NoteType(note_type).value
        except ValueError:
            raise ValidationError(f"Invalid note type. Must be one of: {[n.value for n in NoteType]}")
        if not content or not content.strip():
            raise ValidationError("Note content must not be empty")

        note = self.repo.add_note(appointment_id, doctor_id or appt.doctor_id, note_type, content.strip(), is_private)
        logger.info(f"Added {note_type} note {note.id} to appointment {appointment_id}")
        return note

    def list_notes(self, appointment_id: str) -> List[AppointmentNoteDto]:
        self.get_appointment(appointment_id)
        return self.repo.list_notes(appointment_id)
