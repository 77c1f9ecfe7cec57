# medplus_booking/db/models/scheduling/schedule.py
import uuid
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from datetime import datetime, date, time

OVERRIDE_DAY_CONSTRAINT = "uq_schedule_override_day"


class WeeklySchedule(SQLModel, table=True):
    __tablename__ = "doctor_schedules"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    doctor_id: str = Field(foreign_key="doctors.id", index=True)
    branch_id: str = Field(foreign_key="branches.id", index=True)
    day_of_week: int  # 0-6 (Sunday-Saturday)
    start_time: time
    end_time: time
    slot_duration_minutes: int = Field(default=30)
    is_active: bool = Field(default=True)
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ScheduleOverride(SQLModel, table=True):
    __tablename__ = "doctor_schedule_overrides"
    __table_args__ = (
        UniqueConstraint("doctor_id", "branch_id", "override_date", name=OVERRIDE_DAY_CONSTRAINT),
    )
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    doctor_id: str = Field(foreign_key="doctors.id", index=True)
    branch_id: str = Field(foreign_key="branches.id", index=True)
    override_date: date
    is_available: bool = Field(default=False)
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
