from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple
from datetime import datetime, date, time


@dataclass
class AppointmentDto:
    id: str
    appointment_number: str
    patient_id: str
    doctor_id: str
    service_id: str
    branch_id: str
    scheduled_date: date
    start_time: time
    end_time: time
    duration_minutes: int
    status: str
    booking_type: str
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    checked_in_at: Optional[datetime] = None
    checked_in_by: Optional[str] = None
    completed_at: Optional[datetime] = None
    price: Optional[float] = None
    currency: str = "AZN"
    is_paid: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None


@dataclass
class AppointmentDraft:
    appointment_number: str
    patient_id: str
    doctor_id: str
    service_id: str
    branch_id: str
    scheduled_date: date
    start_time: time
    end_time: time
    duration_minutes: int
    status: str
    booking_type: str
    notes: Optional[str] = None
    price: Optional[float] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class AppointmentLogDto:
    id: str
    appointment_id: str
    action: str
    previous_data: Optional[Dict[str, Any]]
    new_data: Optional[Dict[str, Any]]
    performed_by: Optional[str]
    performed_at: datetime


@dataclass
class AppointmentFilter:
    branch_id: Optional[str] = None
    doctor_id: Optional[str] = None
    patient_id: Optional[str] = None
    statuses: Optional[List[str]] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None


@dataclass
class AppointmentNoteDto:
    id: str
    appointment_id: str
    doctor_id: str
    note_type: str
    content: str
    is_private: bool
    created_at: datetime
    updated_at: datetime


class AppointmentsRepository(Protocol):
    def list_active_for_doctor_on(self, doctor_id: str, on_date: date) -> List[AppointmentDto]:
        """Appointments of the doctor on that date, excluding cancelled and no-show."""
        ...

    def count_created_since(self, since: datetime) -> int:
        ...

    def create(self, draft: AppointmentDraft, performed_by: Optional[str]) -> AppointmentDto:
        """Insert the appointment and its ``created`` log in one transaction.

        Raises ``ConflictError`` when the store rejects the slot as taken.
        """
        ...

    def get_by_id(self, appointment_id: str) -> Optional[AppointmentDto]:
        ...

    def update_with_log(self, appointment_id: str, changes: Dict[str, Any], action: str, previous_data: Dict[str, Any], new_data: Dict[str, Any], performed_by: Optional[str]) -> AppointmentDto:
        """Apply ``changes`` and append one log row in one transaction."""
        ...

    def list_logs(self, appointment_id: str) -> List[AppointmentLogDto]:
        ...

    def list_for_branch_on(self, branch_id: str, on_date: date) -> List[AppointmentDto]:
        ...

    def list_upcoming_for_patient(self, patient_id: str, from_date: date, limit: int) -> List[AppointmentDto]:
        ...

    def list_filtered(self, filters: AppointmentFilter, offset: int, limit: int) -> Tuple[List[AppointmentDto], int]:
        """One page ordered by date then start, plus the total matching count."""
        ...

    def list_patient_history(self, patient_id: str, offset: int, limit: int) -> Tuple[List[AppointmentDto], int]:
        """Every appointment of the patient, newest date first, plus the total count."""
        ...

    def add_note(self, appointment_id: str, doctor_id: str, note_type: str, content: str, is_private: bool) -> AppointmentNoteDto:
        ...

    def list_notes(self, appointment_id: str) -> List[AppointmentNoteDto]:
        ...
