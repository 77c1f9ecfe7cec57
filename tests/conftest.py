import uuid
from dataclasses import asdict
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

import pytest

from medplus_booking.application.ports.appointments_repo import AppointmentDto, AppointmentLogDto, AppointmentNoteDto
from medplus_booking.application.ports.catalog_repo import BranchDto, DoctorDto, ServiceDto
from medplus_booking.application.ports.schedule_repo import ScheduleOverrideDto, WeeklyScheduleDto
from medplus_booking.application.services.availability_service import AvailabilityService
from medplus_booking.application.services.booking_service import BookingService
from medplus_booking.application.services.lifecycle_service import LifecycleService
from medplus_booking.application.services.schedule_service import ScheduleService
from medplus_booking.exceptions import ConflictError, NotFoundError

# 2030-01-07 is a Monday (day_of_week 1 with Sunday = 0)
MONDAY = date(2030, 1, 7)
NOW = datetime(2030, 1, 1, 8, 0)


class FakeCatalog:
    def __init__(self):
        self.doctors = {"doc-1": DoctorDto("doc-1", "Dr. Aliyev", True)}
        self.branches = {"br-1": BranchDto("br-1", "Central", "hosp-1")}
        self.services = {
            "svc-30": ServiceDto("svc-30", "Consultation", 30),
            "svc-60": ServiceDto("svc-60", "Checkup", 60),
            "svc-none": ServiceDto("svc-none", "Walk-in", None),
        }

    def get_doctor(self, doctor_id):
        return self.doctors.get(doctor_id)

    def get_branch(self, branch_id):
        return self.branches.get(branch_id)

    def get_service(self, service_id):
        return self.services.get(service_id)


class FakeScheduleRepo:
    def __init__(self):
        self.weekly: List[WeeklyScheduleDto] = []
        self.overrides: Dict[tuple, ScheduleOverrideDto] = {}

    def add_weekly(self, day, start, end, doctor_id="doc-1", branch_id="br-1", **kwargs):
        row = WeeklyScheduleDto(
            id=str(uuid.uuid4()),
            doctor_id=doctor_id,
            branch_id=branch_id,
            day_of_week=day,
            start_time=start,
            end_time=end,
            slot_duration_minutes=kwargs.pop("slot_duration_minutes", 30),
            is_active=kwargs.pop("is_active", True),
            **kwargs,
        )
        self.weekly.append(row)
        return row

    def list_weekly_for_day(self, doctor_id, branch_id, day_of_week, on_date):
        rows = [
            w for w in self.weekly
            if w.doctor_id == doctor_id and w.branch_id == branch_id and w.day_of_week == day_of_week and w.is_active
            and (w.valid_from is None or w.valid_from <= on_date)
            and (w.valid_until is None or w.valid_until >= on_date)
        ]
        return sorted(rows, key=lambda w: w.start_time)

    def list_weekly(self, doctor_id, branch_id):
        rows = [w for w in self.weekly if w.doctor_id == doctor_id and w.branch_id == branch_id and w.is_active]
        return sorted(rows, key=lambda w: (w.day_of_week, w.start_time))

    def replace_weekly(self, doctor_id, branch_id, rows):
        self.weekly = [w for w in self.weekly if not (w.doctor_id == doctor_id and w.branch_id == branch_id)]
        for r in rows:
            self.add_weekly(r.day_of_week, r.start_time, r.end_time, doctor_id, branch_id,
                            slot_duration_minutes=r.slot_duration_minutes, is_active=r.is_active,
                            valid_from=r.valid_from, valid_until=r.valid_until)
        return self.list_weekly(doctor_id, branch_id)

    def get_override(self, doctor_id, branch_id, on_date):
        return self.overrides.get((doctor_id, branch_id, on_date))

    def list_overrides(self, doctor_id, branch_id, start_date, end_date):
        return sorted(
            (o for (d, b, day), o in self.overrides.items() if d == doctor_id and b == branch_id and start_date <= day <= end_date),
            key=lambda o: o.override_date,
        )

    def upsert_override(self, doctor_id, branch_id, override_date, is_available, start_time, end_time, reason):
        key = (doctor_id, branch_id, override_date)
        existing = self.overrides.get(key)
        o = ScheduleOverrideDto(
            id=existing.id if existing else str(uuid.uuid4()),
            doctor_id=doctor_id,
            branch_id=branch_id,
            override_date=override_date,
            is_available=is_available,
            start_time=start_time,
            end_time=end_time,
            reason=reason,
        )
        self.overrides[key] = o
        return o


class FakeAppointmentsRepo:
    """In-memory store enforcing the live (doctor, date, start) uniqueness rule."""

    def __init__(self):
        self.appts: Dict[str, AppointmentDto] = {}
        self.logs: List[AppointmentLogDto] = []
        self.notes: List[AppointmentNoteDto] = []

    def _live(self, a):
        return a.status not in ("cancelled", "no_show")

    def _slot_taken(self, doctor_id, on_date, start, ignore_id=None):
        return any(
            a.id != ignore_id and self._live(a) and a.doctor_id == doctor_id
            and a.scheduled_date == on_date and a.start_time == start
            for a in self.appts.values()
        )

    def _log(self, appointment_id, action, previous_data, new_data, performed_by):
        self.logs.append(AppointmentLogDto(str(uuid.uuid4()), appointment_id, action, previous_data, new_data, performed_by, datetime.utcnow()))

    def add(self, start, end, status="confirmed", doctor_id="doc-1", on_date=MONDAY, **kwargs):
        a = AppointmentDto(
            id=kwargs.pop("id", str(uuid.uuid4())),
            appointment_number=kwargs.pop("appointment_number", "MEDPLUS-2030-00001"),
            patient_id=kwargs.pop("patient_id", "pat-1"),
            doctor_id=doctor_id,
            service_id="svc-30",
            branch_id="br-1",
            scheduled_date=on_date,
            start_time=start,
            end_time=end,
            duration_minutes=30,
            status=status,
            booking_type="online",
            created_at=kwargs.pop("created_at", NOW),
            **kwargs,
        )
        self.appts[a.id] = a
        return a

    def list_active_for_doctor_on(self, doctor_id, on_date):
        rows = [a for a in self.appts.values() if a.doctor_id == doctor_id and a.scheduled_date == on_date and self._live(a)]
        return sorted(rows, key=lambda a: a.start_time)

    def count_created_since(self, since):
        return len([a for a in self.appts.values() if a.created_at and a.created_at >= since])

    def create(self, draft, performed_by):
        if self._slot_taken(draft.doctor_id, draft.scheduled_date, draft.start_time):
            raise ConflictError()
        values = asdict(draft)
        values["created_at"] = values["created_at"] or NOW
        a = AppointmentDto(id=str(uuid.uuid4()), updated_at=values["created_at"], **values)
        self.appts[a.id] = a
        self._log(a.id, "created", None, asdict(a), performed_by)
        return a

    def get_by_id(self, appointment_id):
        return self.appts.get(appointment_id)

    def update_with_log(self, appointment_id, changes, action, previous_data, new_data, performed_by):
        a = self.appts.get(appointment_id)
        if not a:
            raise NotFoundError("Appointment not found")
        candidate = AppointmentDto(**{**asdict(a), **changes})
        if self._live(candidate) and self._slot_taken(candidate.doctor_id, candidate.scheduled_date, candidate.start_time, ignore_id=a.id):
            raise ConflictError()
        self.appts[a.id] = candidate
        self._log(a.id, action, previous_data, new_data, performed_by)
        return candidate

    def list_logs(self, appointment_id):
        return [entry for entry in reversed(self.logs) if entry.appointment_id == appointment_id]

    def list_for_branch_on(self, branch_id, on_date):
        rows = [a for a in self.appts.values() if a.branch_id == branch_id and a.scheduled_date == on_date and self._live(a)]
        return sorted(rows, key=lambda a: a.start_time)

    def list_upcoming_for_patient(self, patient_id, from_date, limit):
        rows = [
            a for a in self.appts.values()
            if a.patient_id == patient_id and a.scheduled_date >= from_date and a.status not in ("cancelled", "no_show", "completed")
        ]
        return sorted(rows, key=lambda a: (a.scheduled_date, a.start_time))[:limit]

    def list_filtered(self, filters, offset, limit):
        rows = [
            a for a in self.appts.values()
            if (not filters.branch_id or a.branch_id == filters.branch_id)
            and (not filters.doctor_id or a.doctor_id == filters.doctor_id)
            and (not filters.patient_id or a.patient_id == filters.patient_id)
            and (not filters.statuses or a.status in filters.statuses)
            and (not filters.date_from or a.scheduled_date >= filters.date_from)
            and (not filters.date_to or a.scheduled_date <= filters.date_to)
        ]
        rows.sort(key=lambda a: (a.scheduled_date, a.start_time))
        return rows[offset:offset + limit], len(rows)

    def list_patient_history(self, patient_id, offset, limit):
        rows = sorted(
            (a for a in self.appts.values() if a.patient_id == patient_id),
            key=lambda a: (a.scheduled_date, a.start_time),
            reverse=True,
        )
        return rows[offset:offset + limit], len(rows)

    def add_note(self, appointment_id, doctor_id, note_type, content, is_private):
        note = AppointmentNoteDto(str(uuid.uuid4()), appointment_id, doctor_id, note_type, content, is_private, NOW, NOW)
        self.notes.append(note)
        return note

    def list_notes(self, appointment_id):
        return [n for n in self.notes if n.appointment_id == appointment_id]


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def schedule_repo():
    repo = FakeScheduleRepo()
    repo.add_weekly(1, time(9, 0), time(12, 0))
    return repo


@pytest.fixture
def appt_repo():
    return FakeAppointmentsRepo()


@pytest.fixture
def schedule_service(schedule_repo, catalog):
    return ScheduleService(repo=schedule_repo, catalog=catalog)


@pytest.fixture
def availability(schedule_service, appt_repo, catalog):
    return AvailabilityService(schedule=schedule_service, appointments=appt_repo, catalog=catalog)


@pytest.fixture
def booking(appt_repo, catalog, availability):
    return BookingService(repo=appt_repo, catalog=catalog, availability=availability, now=lambda: NOW)


@pytest.fixture
def lifecycle(appt_repo, availability):
    return LifecycleService(repo=appt_repo, availability=availability, now=lambda: NOW)
