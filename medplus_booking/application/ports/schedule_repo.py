from dataclasses import dataclass
from typing import List, Optional, Protocol
from datetime import date, time


@dataclass
class WeeklyScheduleDto:
    id: str
    doctor_id: str
    branch_id: str
    day_of_week: int
    start_time: time
    end_time: time
    slot_duration_minutes: int
    is_active: bool
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None


@dataclass
class WeeklyScheduleDraft:
    day_of_week: int
    start_time: time
    end_time: time
    slot_duration_minutes: int = 30
    is_active: bool = True
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None


@dataclass
class ScheduleOverrideDto:
    id: str
    doctor_id: str
    branch_id: str
    override_date: date
    is_available: bool
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = None


class ScheduleRepository(Protocol):
    def list_weekly_for_day(self, doctor_id: str, branch_id: str, day_of_week: int, on_date: date) -> List[WeeklyScheduleDto]:
        """Active rows for the weekday whose validity window covers ``on_date``, ordered by start."""
        ...

    def list_weekly(self, doctor_id: str, branch_id: str) -> List[WeeklyScheduleDto]:
        ...

    def replace_weekly(self, doctor_id: str, branch_id: str, rows: List[WeeklyScheduleDraft]) -> List[WeeklyScheduleDto]:
        ...

    def get_override(self, doctor_id: str, branch_id: str, on_date: date) -> Optional[ScheduleOverrideDto]:
        ...

    def list_overrides(self, doctor_id: str, branch_id: str, start_date: date, end_date: date) -> List[ScheduleOverrideDto]:
        ...

    def upsert_override(self, doctor_id: str, branch_id: str, override_date: date, is_available: bool, start_time: Optional[time], end_time: Optional[time], reason: Optional[str]) -> ScheduleOverrideDto:
        ...
