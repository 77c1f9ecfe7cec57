# Models package (re-export feature modules for stable imports)
from .catalog.doctor import Doctor
from .catalog.branch import Branch
from .catalog.service import Service
from .scheduling.schedule import WeeklySchedule, ScheduleOverride
from .scheduling.appointment import Appointment, AppointmentLog, AppointmentNote

__all__ = [
    "Doctor",
    "Branch",
    "Service",
    "WeeklySchedule",
    "ScheduleOverride",
    "Appointment",
    "AppointmentLog",
    "AppointmentNote",
]
