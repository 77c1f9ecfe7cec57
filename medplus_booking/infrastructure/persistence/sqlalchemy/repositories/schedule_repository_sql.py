from typing import List, Optional
from datetime import date, time
import logging
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....db.models import WeeklySchedule, ScheduleOverride
from .....application.ports.schedule_repo import (
    ScheduleRepository,
    WeeklyScheduleDraft,
    WeeklyScheduleDto,
    ScheduleOverrideDto,
)
from ..errors import is_override_day_violation, store_errors

logger = logging.getLogger(__name__)


class SqlScheduleRepository(ScheduleRepository):
    def __init__(self, session: Session):
        self.session = session

    def _weekly_to_dto(self, w: WeeklySchedule) -> WeeklyScheduleDto:
        return WeeklyScheduleDto(
            id=w.id,
            doctor_id=w.doctor_id,
            branch_id=w.branch_id,
            day_of_week=w.day_of_week,
            start_time=w.start_time,
            end_time=w.end_time,
            slot_duration_minutes=w.slot_duration_minutes,
            is_active=w.is_active,
            valid_from=w.valid_from,
            valid_until=w.valid_until,
        )

    def _override_to_dto(self, o: ScheduleOverride) -> ScheduleOverrideDto:
        return ScheduleOverrideDto(
            id=o.id,
            doctor_id=o.doctor_id,
            branch_id=o.branch_id,
            override_date=o.override_date,
            is_available=o.is_available,
            start_time=o.start_time,
            end_time=o.end_time,
            reason=o.reason,
        )

    def list_weekly_for_day(self, doctor_id: str, branch_id: str, day_of_week: int, on_date: date) -> List[WeeklyScheduleDto]:
        with store_errors(self.session, "load weekly schedule"):
            rows = self.session.exec(
                select(WeeklySchedule)
                .where(WeeklySchedule.doctor_id == doctor_id)
                .where(WeeklySchedule.branch_id == branch_id)
                .where(WeeklySchedule.day_of_week == day_of_week)
                .where(WeeklySchedule.is_active == True)  # noqa: E712
                .where((WeeklySchedule.valid_from.is_(None)) | (WeeklySchedule.valid_from <= on_date))
                .where((WeeklySchedule.valid_until.is_(None)) | (WeeklySchedule.valid_until >= on_date))
                .order_by(WeeklySchedule.start_time)
            ).all()
        return [self._weekly_to_dto(r) for r in rows]

    def list_weekly(self, doctor_id: str, branch_id: str) -> List[WeeklyScheduleDto]:
        with store_errors(self.session, "load weekly schedule"):
            rows = self.session.exec(
                select(WeeklySchedule)
                .where(WeeklySchedule.doctor_id == doctor_id)
                .where(WeeklySchedule.branch_id == branch_id)
                .where(WeeklySchedule.is_active == True)  # noqa: E712
                .order_by(WeeklySchedule.day_of_week, WeeklySchedule.start_time)
            ).all()
        return [self._weekly_to_dto(r) for r in rows]

    def replace_weekly(self, doctor_id: str, branch_id: str, rows: List[WeeklyScheduleDraft]) -> List[WeeklyScheduleDto]:
        created = [
            WeeklySchedule(
                doctor_id=doctor_id,
                branch_id=branch_id,
                day_of_week=r.day_of_week,
                start_time=r.start_time,
                end_time=r.end_time,
                slot_duration_minutes=r.slot_duration_minutes,
                is_active=r.is_active,
                valid_from=r.valid_from,
                valid_until=r.valid_until,
            )
            for r in rows
        ]
        with store_errors(self.session, "replace weekly schedule"):
            self.session.exec(
                delete(WeeklySchedule)
                .where(WeeklySchedule.doctor_id == doctor_id)
                .where(WeeklySchedule.branch_id == branch_id)
            )
            for w in created:
                self.session.add(w)
            self.session.commit()
            for w in created:
                self.session.refresh(w)
        return [self._weekly_to_dto(w) for w in sorted(created, key=lambda w: (w.day_of_week, w.start_time))]

    def _find_override(self, doctor_id: str, branch_id: str, on_date: date) -> Optional[ScheduleOverride]:
        return self.session.exec(
            select(ScheduleOverride)
            .where(ScheduleOverride.doctor_id == doctor_id)
            .where(ScheduleOverride.branch_id == branch_id)
            .where(ScheduleOverride.override_date == on_date)
        ).first()

    def get_override(self, doctor_id: str, branch_id: str, on_date: date) -> Optional[ScheduleOverrideDto]:
        with store_errors(self.session, "load schedule override"):
            o = self._find_override(doctor_id, branch_id, on_date)
        return self._override_to_dto(o) if o else None

    def list_overrides(self, doctor_id: str, branch_id: str, start_date: date, end_date: date) -> List[ScheduleOverrideDto]:
        with store_errors(self.session, "load schedule overrides"):
            rows = self.session.exec(
                select(ScheduleOverride)
                .where(ScheduleOverride.doctor_id == doctor_id)
                .where(ScheduleOverride.branch_id == branch_id)
                .where(ScheduleOverride.override_date >= start_date)
                .where(ScheduleOverride.override_date <= end_date)
                .order_by(ScheduleOverride.override_date)
            ).all()
        return [self._override_to_dto(o) for o in rows]

    def _save_override(self, doctor_id: str, branch_id: str, override_date: date, is_available: bool, start_time: Optional[time], end_time: Optional[time], reason: Optional[str]) -> ScheduleOverride:
        o = self._find_override(doctor_id, branch_id, override_date)
        if not o:
            o = ScheduleOverride(doctor_id=doctor_id, branch_id=branch_id, override_date=override_date)
        o.is_available = is_available
        o.start_time = start_time
        o.end_time = end_time
        o.reason = reason
        self.session.add(o)
        self.session.commit()
        self.session.refresh(o)
        return o

    def upsert_override(self, doctor_id: str, branch_id: str, override_date: date, is_available: bool, start_time: Optional[time], end_time: Optional[time], reason: Optional[str]) -> ScheduleOverrideDto:
        args = (doctor_id, branch_id, override_date, is_available, start_time, end_time, reason)
        with store_errors(self.session, "save schedule override"):
            try:
                o = self._save_override(*args)
            except IntegrityError as e:
                if not is_override_day_violation(e):
                    raise
                # A concurrent writer inserted the day first; update that row
                self.session.rollback()
                logger.info(f"Override for doctor {doctor_id} on {override_date} created concurrently, updating it")
                o = self._save_override(*args)
        return self._override_to_dto(o)
