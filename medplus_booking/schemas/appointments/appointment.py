# medplus_booking/schemas/appointments/appointment.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from datetime import date, datetime, time

class AppointmentCreate(BaseModel):
    patient_id: Optional[str] = None  # defaults to the caller
    doctor_id: str
    service_id: str
    branch_id: str
    scheduled_date: date
    start_time: time
    end_time: time
    duration_minutes: int = Field(gt=0)
    notes: Optional[str] = None
    booking_type: str = "online"

class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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
    currency: str
    is_paid: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None

class StatusUpdate(BaseModel):
    status: str
    cancellation_reason: Optional[str] = None
    notes: Optional[str] = None
    price: Optional[float] = None
    is_paid: Optional[bool] = None

    def extra_fields(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"status"}, exclude_none=True)

class CancelRequest(BaseModel):
    reason: Optional[str] = None

class RescheduleRequest(BaseModel):
    scheduled_date: date
    start_time: time
    end_time: time

class AppointmentLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    appointment_id: str
    action: str
    previous_data: Optional[Dict[str, Any]] = None
    new_data: Optional[Dict[str, Any]] = None
    performed_by: Optional[str] = None
    performed_at: datetime

class AppointmentPageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    items: List[AppointmentResponse]
    count: int
    page: int
    limit: int
    total_pages: int

class NoteCreate(BaseModel):
    content: str
    note_type: str = "general"  # general, diagnosis, prescription, followup
    is_private: bool = False
    doctor_id: Optional[str] = None  # defaults to the appointment's doctor

class NoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    appointment_id: str
    doctor_id: str
    note_type: str
    content: str
    is_private: bool
    created_at: datetime
    updated_at: datetime
