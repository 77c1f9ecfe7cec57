from typing import List
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from ..application.ports.schedule_repo import WeeklyScheduleDraft
from ..application.services.schedule_service import ScheduleService
from ..application.services.availability_service import AvailabilityService
from ..dependencies import get_schedule_service, get_availability_service
from ..schemas.scheduling.schedule import (
    WeeklyScheduleReplace,
    WeeklyScheduleResponse,
    ScheduleOverrideUpsert,
    ScheduleOverrideResponse,
    IntervalResponse,
    TimeSlotResponse,
)
from ..security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/doctors", tags=["Schedules"])


@router.get("/{doctor_id}/schedule", response_model=List[WeeklyScheduleResponse])
def get_weekly_schedule(
    doctor_id: str,
    branch_id: str = Query(...),
    schedule_service: ScheduleService = Depends(get_schedule_service),
):
    rows = schedule_service.get_weekly_schedule(doctor_id, branch_id)
    return [WeeklyScheduleResponse.model_validate(r) for r in rows]


@router.put("/{doctor_id}/schedule", response_model=List[WeeklyScheduleResponse])
def replace_weekly_schedule(
    doctor_id: str,
    payload: WeeklyScheduleReplace,
    branch_id: str = Query(...),
    current_user: str = Depends(get_current_user),
    schedule_service: ScheduleService = Depends(get_schedule_service),
):
    drafts = [WeeklyScheduleDraft(**row.model_dump()) for row in payload.rows]
    try:
        rows = schedule_service.replace_weekly_schedule(doctor_id, branch_id, drafts)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error replacing schedule for doctor {doctor_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to update schedule")
    logger.info(f"Schedule for doctor {doctor_id} replaced by {current_user}")
    return [WeeklyScheduleResponse.model_validate(r) for r in rows]


@router.get("/{doctor_id}/overrides", response_model=List[ScheduleOverrideResponse])
def list_overrides(
    doctor_id: str,
    branch_id: str = Query(...),
    start_date: date = Query(...),
    end_date: date = Query(...),
    schedule_service: ScheduleService = Depends(get_schedule_service),
):
    rows = schedule_service.list_overrides(doctor_id, branch_id, start_date, end_date)
    return [ScheduleOverrideResponse.model_validate(r) for r in rows]


@router.put("/{doctor_id}/overrides", response_model=ScheduleOverrideResponse)
def upsert_override(
    doctor_id: str,
    payload: ScheduleOverrideUpsert,
    current_user: str = Depends(get_current_user),
    schedule_service: ScheduleService = Depends(get_schedule_service),
):
    override = schedule_service.upsert_override(
        doctor_id,
        payload.branch_id,
        payload.override_date,
        payload.is_available,
        payload.start_time,
        payload.end_time,
        payload.reason,
    )
    logger.info(f"Override for doctor {doctor_id} on {payload.override_date} saved by {current_user}")
    return ScheduleOverrideResponse.model_validate(override)


@router.get("/{doctor_id}/effective-schedule", response_model=List[IntervalResponse])
def get_effective_schedule(
    doctor_id: str,
    branch_id: str = Query(...),
    on_date: date = Query(..., alias="date"),
    schedule_service: ScheduleService = Depends(get_schedule_service),
):
    intervals = schedule_service.get_effective_schedule(doctor_id, branch_id, on_date)
    return [IntervalResponse.model_validate(i) for i in intervals]


@router.get("/{doctor_id}/available-slots", response_model=List[TimeSlotResponse])
def get_available_slots(
    doctor_id: str,
    branch_id: str = Query(...),
    service_id: str = Query(...),
    on_date: date = Query(..., alias="date"),
    availability: AvailabilityService = Depends(get_availability_service),
):
    """Every candidate slot of the day, tagged available or booked."""
    slots = availability.get_available_slots(doctor_id, branch_id, on_date, service_id)
    return [TimeSlotResponse.model_validate(s) for s in slots]
