from fastapi import Depends
from sqlmodel import Session

from .config import settings
from .database import get_session
from .application.services.schedule_service import ScheduleService
from .application.services.availability_service import AvailabilityService
from .application.services.booking_service import BookingService
from .application.services.lifecycle_service import LifecycleService
from .application.services.appointments_service import AppointmentsService
from .infrastructure.persistence.sqlalchemy.repositories.catalog_repository_sql import SqlCatalogRepository
from .infrastructure.persistence.sqlalchemy.repositories.schedule_repository_sql import SqlScheduleRepository
from .infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository


def get_schedule_service(session: Session = Depends(get_session)) -> ScheduleService:
    return ScheduleService(repo=SqlScheduleRepository(session), catalog=SqlCatalogRepository(session))


def get_availability_service(session: Session = Depends(get_session)) -> AvailabilityService:
    return AvailabilityService(
        schedule=get_schedule_service(session),
        appointments=SqlAppointmentsRepository(session),
        catalog=SqlCatalogRepository(session),
        default_slot_duration=settings.DEFAULT_SLOT_DURATION_MINUTES,
    )


def get_booking_service(session: Session = Depends(get_session)) -> BookingService:
    return BookingService(
        repo=SqlAppointmentsRepository(session),
        catalog=SqlCatalogRepository(session),
        availability=get_availability_service(session),
        number_prefix=settings.APPOINTMENT_NUMBER_PREFIX,
    )


def get_lifecycle_service(session: Session = Depends(get_session)) -> LifecycleService:
    return LifecycleService(
        repo=SqlAppointmentsRepository(session),
        availability=get_availability_service(session),
    )


def get_appointments_service(session: Session = Depends(get_session)) -> AppointmentsService:
    return AppointmentsService(
        repo=SqlAppointmentsRepository(session),
        upcoming_limit=settings.UPCOMING_APPOINTMENTS_LIMIT,
    )
