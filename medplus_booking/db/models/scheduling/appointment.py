# medplus_booking/db/models/scheduling/appointment.py
import uuid
from typing import Optional, Any, Dict
from sqlmodel import SQLModel, Field, Column, JSON
from sqlalchemy import Index, text
from datetime import datetime, date, time

# Live appointments only; cancelled and no-show rows free their slot again
LIVE_STATUS_PREDICATE = "status NOT IN ('cancelled', 'no_show')"
SLOT_UNIQUE_INDEX = "uq_appointments_doctor_slot"

class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            SLOT_UNIQUE_INDEX,
            "doctor_id",
            "scheduled_date",
            "start_time",
            unique=True,
            sqlite_where=text(LIVE_STATUS_PREDICATE),
            postgresql_where=text(LIVE_STATUS_PREDICATE),
        ),
    )
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    appointment_number: str = Field(index=True)
    patient_id: str = Field(index=True)
    doctor_id: str = Field(foreign_key="doctors.id", index=True)
    service_id: str = Field(foreign_key="services.id")
    branch_id: str = Field(foreign_key="branches.id", index=True)
    scheduled_date: date = Field(index=True)
    start_time: time
    end_time: time
    duration_minutes: int
    status: str = Field(default="pending")
    booking_type: str = Field(default="online")
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    checked_in_at: Optional[datetime] = None
    checked_in_by: Optional[str] = None
    completed_at: Optional[datetime] = None
    price: Optional[float] = None
    currency: str = Field(default="AZN")
    is_paid: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    created_by: Optional[str] = None


class AppointmentLog(SQLModel, table=True):
    __tablename__ = "appointment_logs"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    appointment_id: str = Field(foreign_key="appointments.id", index=True)
    action: str
    previous_data: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    new_data: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    performed_by: Optional[str] = None
    performed_at: datetime = Field(default_factory=datetime.utcnow)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class AppointmentNote(SQLModel, table=True):
    __tablename__ = "appointment_notes"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    appointment_id: str = Field(foreign_key="appointments.id", index=True)
    doctor_id: str = Field(foreign_key="doctors.id")
    note_type: str = Field(default="general")
    content: str
    is_private: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
