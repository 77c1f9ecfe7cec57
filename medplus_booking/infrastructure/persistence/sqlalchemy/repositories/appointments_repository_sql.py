from dataclasses import asdict
from typing import Any, Dict, List, Optional, Tuple
from datetime import date, datetime
from sqlalchemy import func
from sqlmodel import Session, select

from .....db.models import Appointment, AppointmentLog, AppointmentNote
from .....domain.status import AppointmentStatus, RELEASED_STATUSES
from .....exceptions import NotFoundError
from .....application.ports.appointments_repo import (
    AppointmentsRepository,
    AppointmentDraft,
    AppointmentDto,
    AppointmentFilter,
    AppointmentLogDto,
    AppointmentNoteDto,
)
from ..errors import store_errors


class SqlAppointmentsRepository(AppointmentsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _appt_to_dto(self, a: Appointment) -> AppointmentDto:
        return AppointmentDto(**a.model_dump())

    def _log_to_dto(self, log: AppointmentLog) -> AppointmentLogDto:
        return AppointmentLogDto(
            id=log.id,
            appointment_id=log.appointment_id,
            action=log.action,
            previous_data=log.previous_data,
            new_data=log.new_data,
            performed_by=log.performed_by,
            performed_at=log.performed_at,
        )

    def list_active_for_doctor_on(self, doctor_id: str, on_date: date) -> List[AppointmentDto]:
        with store_errors(self.session, "load appointments"):
            rows = self.session.exec(
                select(Appointment)
                .where(Appointment.doctor_id == doctor_id)
                .where(Appointment.scheduled_date == on_date)
                .where(Appointment.status.not_in(RELEASED_STATUSES))
                .order_by(Appointment.start_time)
            ).all()
        return [self._appt_to_dto(r) for r in rows]

    def count_created_since(self, since: datetime) -> int:
        with store_errors(self.session, "count appointments"):
            count = self.session.exec(
                select(func.count()).select_from(Appointment).where(Appointment.created_at >= since)
            ).one()
        return int(count or 0)

    def create(self, draft: AppointmentDraft, performed_by: Optional[str]) -> AppointmentDto:
        values = asdict(draft)
        if values["created_at"] is None:
            del values["created_at"]
        appt = Appointment(**values)
        if draft.created_at:
            appt.updated_at = draft.created_at
        with store_errors(self.session, "book appointment"):
            self.session.add(appt)
            # Flush first so a slot collision surfaces before the log row is queued
            self.session.flush()
            self.session.add(AppointmentLog(
                appointment_id=appt.id,
                action="created",
                new_data=appt.model_dump(mode="json"),
                performed_by=performed_by,
            ))
            self.session.commit()
            self.session.refresh(appt)
        return self._appt_to_dto(appt)

    def get_by_id(self, appointment_id: str) -> Optional[AppointmentDto]:
        with store_errors(self.session, "load appointment"):
            a = self.session.exec(select(Appointment).where(Appointment.id == appointment_id)).first()
        return self._appt_to_dto(a) if a else None

    def update_with_log(self, appointment_id: str, changes: Dict[str, Any], action: str, previous_data: Dict[str, Any], new_data: Dict[str, Any], performed_by: Optional[str]) -> AppointmentDto:
        with store_errors(self.session, "update appointment"):
            a = self.session.exec(select(Appointment).where(Appointment.id == appointment_id)).first()
            if not a:
                raise NotFoundError("Appointment not found")
            for key, value in changes.items():
                setattr(a, key, value)
            self.session.add(a)
            self.session.add(AppointmentLog(
                appointment_id=appointment_id,
                action=action,
                previous_data=previous_data,
                new_data=new_data,
                performed_by=performed_by,
            ))
            self.session.commit()
            self.session.refresh(a)
        return self._appt_to_dto(a)

    def list_logs(self, appointment_id: str) -> List[AppointmentLogDto]:
        with store_errors(self.session, "load appointment logs"):
            rows = self.session.exec(
                select(AppointmentLog)
                .where(AppointmentLog.appointment_id == appointment_id)
                .order_by(AppointmentLog.performed_at.desc())
            ).all()
        return [self._log_to_dto(r) for r in rows]

    def list_for_branch_on(self, branch_id: str, on_date: date) -> List[AppointmentDto]:
        with store_errors(self.session, "load branch appointments"):
            rows = self.session.exec(
                select(Appointment)
                .where(Appointment.branch_id == branch_id)
                .where(Appointment.scheduled_date == on_date)
                .where(Appointment.status.not_in(RELEASED_STATUSES))
                .order_by(Appointment.start_time)
            ).all()
        return [self._appt_to_dto(r) for r in rows]

    def list_upcoming_for_patient(self, patient_id: str, from_date: date, limit: int) -> List[AppointmentDto]:
        closed = RELEASED_STATUSES + (AppointmentStatus.COMPLETED.value,)
        with store_errors(self.session, "load upcoming appointments"):
            rows = self.session.exec(
                select(Appointment)
                .where(Appointment.patient_id == patient_id)
                .where(Appointment.scheduled_date >= from_date)
                .where(Appointment.status.not_in(closed))
                .order_by(Appointment.scheduled_date, Appointment.start_time)
                .limit(limit)
            ).all()
        return [self._appt_to_dto(r) for r in rows]

    def _page(self, conditions, order_by, offset: int, limit: int) -> Tuple[List[AppointmentDto], int]:
        with store_errors(self.session, "load appointments"):
            total = self.session.exec(
                select(func.count()).select_from(Appointment).where(*conditions)
            ).one()
            rows = self.session.exec(
                select(Appointment)
                .where(*conditions)
                .order_by(*order_by)
                .offset(offset)
                .limit(limit)
            ).all()
        return [self._appt_to_dto(r) for r in rows], int(total or 0)

    def list_filtered(self, filters: AppointmentFilter, offset: int, limit: int) -> Tuple[List[AppointmentDto], int]:
        conditions = []
        if filters.branch_id:
            conditions.append(Appointment.branch_id == filters.branch_id)
        if filters.doctor_id:
            conditions.append(Appointment.doctor_id == filters.doctor_id)
        if filters.patient_id:
            conditions.append(Appointment.patient_id == filters.patient_id)
        if filters.statuses:
            conditions.append(Appointment.status.in_(filters.statuses))
        if filters.date_from:
            conditions.append(Appointment.scheduled_date >= filters.date_from)
        if filters.date_to:
            conditions.append(Appointment.scheduled_date <= filters.date_to)
        return self._page(conditions, (Appointment.scheduled_date, Appointment.start_time), offset, limit)

    def list_patient_history(self, patient_id: str, offset: int, limit: int) -> Tuple[List[AppointmentDto], int]:
        return self._page(
            [Appointment.patient_id == patient_id],
            (Appointment.scheduled_date.desc(), Appointment.start_time.desc()),
            offset,
            limit,
        )

    def _note_to_dto(self, n: AppointmentNote) -> AppointmentNoteDto:
        return AppointmentNoteDto(
            id=n.id,
            appointment_id=n.appointment_id,
            doctor_id=n.doctor_id,
            note_type=n.note_type,
            content=n.content,
            is_private=n.is_private,
            created_at=n.created_at,
            updated_at=n.updated_at,
        )

    def add_note(self, appointment_id: str, doctor_id: str, note_type: str, content: str, is_private: bool) -> AppointmentNoteDto:
        note = AppointmentNote(
            appointment_id=appointment_id,
            doctor_id=doctor_id,
            note_type=note_type,
            content=content,
            is_private=is_private,
        )
        with store_errors(self.session, "add appointment note"):
            self.session.add(note)
            self.session.commit()
            self.session.refresh(note)
        return self._note_to_dto(note)

    def list_notes(self, appointment_id: str) -> List[AppointmentNoteDto]:
        with store_errors(self.session, "load appointment notes"):
            rows = self.session.exec(
                select(AppointmentNote)
                .where(AppointmentNote.appointment_id == appointment_id)
                .order_by(AppointmentNote.created_at)
            ).all()
        return [self._note_to_dto(n) for n in rows]
