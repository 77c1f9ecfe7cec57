from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from ..application.services.booking_service import BookingService, BookingRequest
from ..application.services.lifecycle_service import LifecycleService
from ..application.ports.appointments_repo import AppointmentFilter
from ..application.services.appointments_service import AppointmentsService
from ..dependencies import get_booking_service, get_lifecycle_service, get_appointments_service
from ..schemas.appointments.appointment import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentLogResponse,
    AppointmentPageResponse,
    NoteCreate,
    NoteResponse,
    StatusUpdate,
    CancelRequest,
    RescheduleRequest,
)
from ..security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.post("", response_model=AppointmentResponse, status_code=201)
def book_appointment(
    appointment_data: AppointmentCreate,
    current_user: str = Depends(get_current_user),
    booking: BookingService = Depends(get_booking_service),
):
    request = BookingRequest(
        patient_id=appointment_data.patient_id or current_user,
        doctor_id=appointment_data.doctor_id,
        service_id=appointment_data.service_id,
        branch_id=appointment_data.branch_id,
        scheduled_date=appointment_data.scheduled_date,
        start_time=appointment_data.start_time,
        end_time=appointment_data.end_time,
        duration_minutes=appointment_data.duration_minutes,
        notes=appointment_data.notes,
        booking_type=appointment_data.booking_type,
        created_by=current_user,
    )
    try:
        appt = booking.book_appointment(request)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error booking appointment: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to book appointment")
    return AppointmentResponse.model_validate(appt)


@router.get("", response_model=AppointmentPageResponse)
def list_appointments(
    branch_id: Optional[str] = Query(None),
    doctor_id: Optional[str] = Query(None),
    patient_id: Optional[str] = Query(None),
    status: Optional[List[str]] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: str = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    filters = AppointmentFilter(
        branch_id=branch_id,
        doctor_id=doctor_id,
        patient_id=patient_id,
        statuses=status,
        date_from=date_from,
        date_to=date_to,
    )
    return AppointmentPageResponse.model_validate(appt_service.list_appointments(filters, page, limit))


@router.get("/branch/{branch_id}", response_model=List[AppointmentResponse])
def get_branch_appointments(
    branch_id: str,
    on_date: date = Query(..., alias="date"),
    current_user: str = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appts = appt_service.list_branch_day(branch_id, on_date)
    return [AppointmentResponse.model_validate(a) for a in appts]


@router.get("/patient/{patient_id}/upcoming", response_model=List[AppointmentResponse])
def get_patient_upcoming(
    patient_id: str,
    current_user: str = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appts = appt_service.list_patient_upcoming(patient_id)
    return [AppointmentResponse.model_validate(a) for a in appts]


@router.get("/patient/{patient_id}/history", response_model=AppointmentPageResponse)
def get_patient_history(
    patient_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: str = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return AppointmentPageResponse.model_validate(appt_service.list_patient_history(patient_id, page, limit))


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: str,
    current_user: str = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return AppointmentResponse.model_validate(appt_service.get_appointment(appointment_id))


@router.get("/{appointment_id}/logs", response_model=List[AppointmentLogResponse])
def get_appointment_logs(
    appointment_id: str,
    current_user: str = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    logs = appt_service.list_logs(appointment_id)
    return [AppointmentLogResponse.model_validate(entry) for entry in logs]


@router.put("/{appointment_id}/status", response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: str,
    payload: StatusUpdate,
    current_user: str = Depends(get_current_user),
    lifecycle: LifecycleService = Depends(get_lifecycle_service),
):
    appt = lifecycle.update_status(appointment_id, payload.status, current_user, payload.extra_fields())
    return AppointmentResponse.model_validate(appt)


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: str,
    payload: CancelRequest,
    current_user: str = Depends(get_current_user),
    lifecycle: LifecycleService = Depends(get_lifecycle_service),
):
    appt = lifecycle.cancel_appointment(appointment_id, current_user, payload.reason)
    return AppointmentResponse.model_validate(appt)


@router.put("/{appointment_id}/reschedule", response_model=AppointmentResponse)
def reschedule_appointment(
    appointment_id: str,
    payload: RescheduleRequest,
    current_user: str = Depends(get_current_user),
    lifecycle: LifecycleService = Depends(get_lifecycle_service),
):
    appt = lifecycle.reschedule_appointment(
        appointment_id,
        payload.scheduled_date,
        payload.start_time,
        payload.end_time,
        current_user,
    )
    return AppointmentResponse.model_validate(appt)


@router.post("/{appointment_id}/notes", response_model=NoteResponse, status_code=201)
def add_appointment_note(
    appointment_id: str,
    payload: NoteCreate,
    current_user: str = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    note = appt_service.add_note(
        appointment_id,
        payload.content,
        doctor_id=payload.doctor_id,
        note_type=payload.note_type,
        is_private=payload.is_private,
    )
    return NoteResponse.model_validate(note)


@router.get("/{appointment_id}/notes", response_model=List[NoteResponse])
def get_appointment_notes(
    appointment_id: str,
    current_user: str = Depends(get_current_user),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return [NoteResponse.model_validate(n) for n in appt_service.list_notes(appointment_id)]
