# medplus_booking/schemas/scheduling/schedule.py
from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import date, time

class WeeklyScheduleEntry(BaseModel):
    day_of_week: int  # 0-6 (Sunday-Saturday)
    start_time: time  # HH:MM:SS
    end_time: time
    slot_duration_minutes: int = 30
    is_active: bool = True
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None

class WeeklyScheduleReplace(BaseModel):
    rows: List[WeeklyScheduleEntry]

class WeeklyScheduleResponse(WeeklyScheduleEntry):
    model_config = ConfigDict(from_attributes=True)

    id: str
    doctor_id: str
    branch_id: str

class ScheduleOverrideUpsert(BaseModel):
    branch_id: str
    override_date: date
    is_available: bool = False
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = None

class ScheduleOverrideResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    doctor_id: str
    branch_id: str
    override_date: date
    is_available: bool
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = None

class IntervalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start: time
    end: time

class TimeSlotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start_time: time
    end_time: time
    is_available: bool
    appointment_id: Optional[str] = None
