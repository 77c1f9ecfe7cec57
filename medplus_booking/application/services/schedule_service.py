from dataclasses import dataclass, replace
from typing import List, Optional
from datetime import date, time
import logging

from ...domain.calendar import Interval, day_of_week, overlaps, format_time
from ...exceptions import NotFoundError, ValidationError
from ..ports.catalog_repo import CatalogRepository
from ..ports.schedule_repo import (
    ScheduleRepository,
    WeeklyScheduleDraft,
    WeeklyScheduleDto,
    ScheduleOverrideDto,
)
from .time_input import wall_clock

logger = logging.getLogger(__name__)


@dataclass
class ScheduleService:
    repo: ScheduleRepository
    catalog: CatalogRepository

    def _require_doctor_and_branch(self, doctor_id: str, branch_id: str) -> None:
        if not self.catalog.get_doctor(doctor_id):
            raise NotFoundError("Doctor not found")
        if not self.catalog.get_branch(branch_id):
            raise NotFoundError("Branch not found")

    def get_effective_schedule(self, doctor_id: str, branch_id: str, on_date: date) -> List[Interval]:
        """Working intervals for ``on_date`` after override precedence.

        An empty list means the doctor does not work that day. An override
        can only close or reshape a day that already has weekly rows.
        """
        self._require_doctor_and_branch(doctor_id, branch_id)

        rows = self.repo.list_weekly_for_day(doctor_id, branch_id, day_of_week(on_date), on_date)
        if not rows:
            return []

        override = self.repo.get_override(doctor_id, branch_id, on_date)
        if override and not override.is_available:
            logger.info(f"Doctor {doctor_id} unavailable on {on_date} at branch {branch_id}: {override.reason or 'no reason'}")
            return []

        intervals: List[Interval] = []
        for row in rows:
            start = row.start_time
            end = row.end_time
            if override:
                start = override.start_time or start
                end = override.end_time or end
            interval = Interval(start, end)
            # Overridden hours are identical for every row; keep one copy
            if start < end and interval not in intervals:
                intervals.append(interval)
        return intervals

    def get_weekly_schedule(self, doctor_id: str, branch_id: str) -> List[WeeklyScheduleDto]:
        self._require_doctor_and_branch(doctor_id, branch_id)
        return self.repo.list_weekly(doctor_id, branch_id)

    def replace_weekly_schedule(self, doctor_id: str, branch_id: str, rows: List[WeeklyScheduleDraft]) -> List[WeeklyScheduleDto]:
        """Replace the full weekly schedule of a doctor at a branch."""
        self._require_doctor_and_branch(doctor_id, branch_id)
        rows = [
            replace(row, start_time=wall_clock(row.start_time, "start_time"), end_time=wall_clock(row.end_time, "end_time"))
            for row in rows
        ]
        for row in rows:
            if not 0 <= row.day_of_week <= 6:
                raise ValidationError("day_of_week must be between 0 (Sunday) and 6 (Saturday)")
            if row.start_time >= row.end_time:
                raise ValidationError("Start time must be before end time")
            if row.slot_duration_minutes <= 0:
                raise ValidationError("Slot duration must be positive")
            if row.valid_from and row.valid_until and row.valid_from > row.valid_until:
                raise ValidationError("valid_from must not be after valid_until")

        active = sorted((r for r in rows if r.is_active), key=lambda r: (r.day_of_week, r.start_time))
        for i, prev in enumerate(active):
            for cur in active[i + 1:]:
                if prev.day_of_week != cur.day_of_week:
                    break
                if not overlaps(prev.start_time, prev.end_time, cur.start_time, cur.end_time):
                    continue
                if not _windows_intersect(prev, cur):
                    continue
                raise ValidationError(
                    f"Schedule rows overlap on day {cur.day_of_week}: "
                    f"{format_time(prev.start_time)}-{format_time(prev.end_time)} and "
                    f"{format_time(cur.start_time)}-{format_time(cur.end_time)}"
                )

        saved = self.repo.replace_weekly(doctor_id, branch_id, rows)
        logger.info(f"Replaced weekly schedule for doctor {doctor_id} at branch {branch_id} ({len(saved)} rows)")
        return saved

    def upsert_override(self, doctor_id: str, branch_id: str, override_date: date, is_available: bool, start_time: Optional[time] = None, end_time: Optional[time] = None, reason: Optional[str] = None) -> ScheduleOverrideDto:
        self._require_doctor_and_branch(doctor_id, branch_id)
        if not is_available:
            # Hours mean nothing on a day off
            start_time = end_time = None
        elif (start_time is None) != (end_time is None):
            raise ValidationError("Override start and end time must be given together")
        elif start_time is not None:
            start_time = wall_clock(start_time, "start_time")
            end_time = wall_clock(end_time, "end_time")
            if start_time >= end_time:
                raise ValidationError("Start time must be before end time")
        return self.repo.upsert_override(doctor_id, branch_id, override_date, is_available, start_time, end_time, reason)

    def list_overrides(self, doctor_id: str, branch_id: str, start_date: date, end_date: date) -> List[ScheduleOverrideDto]:
        if start_date > end_date:
            raise ValidationError("start_date must not be after end_date")
        self._require_doctor_and_branch(doctor_id, branch_id)
        return self.repo.list_overrides(doctor_id, branch_id, start_date, end_date)


def _windows_intersect(a: WeeklyScheduleDraft, b: WeeklyScheduleDraft) -> bool:
    """Whether the validity windows of two rows share at least one date."""
    a_from = a.valid_from or date.min
    a_until = a.valid_until or date.max
    b_from = b.valid_from or date.min
    b_until = b.valid_until or date.max
    return a_from <= b_until and b_from <= a_until
