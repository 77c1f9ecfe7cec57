from enum import Enum
from typing import Dict, FrozenSet


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self]

    def can_become(self, target: "AppointmentStatus") -> bool:
        return target in ALLOWED_TRANSITIONS[self]


class BookingType(str, Enum):
    ONLINE = "online"
    PHONE = "phone"
    WALK_IN = "walk_in"


_EXITS = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW})

ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.PENDING: _EXITS | {AppointmentStatus.CONFIRMED},
    AppointmentStatus.CONFIRMED: _EXITS | {AppointmentStatus.CHECKED_IN},
    AppointmentStatus.CHECKED_IN: _EXITS | {AppointmentStatus.IN_PROGRESS},
    AppointmentStatus.IN_PROGRESS: _EXITS | {AppointmentStatus.COMPLETED},
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

# Statuses that no longer hold their slot
RELEASED_STATUSES = (AppointmentStatus.CANCELLED.value, AppointmentStatus.NO_SHOW.value)


class NoteType(str, Enum):
    GENERAL = "general"
    DIAGNOSIS = "diagnosis"
    PRESCRIPTION = "prescription"
    FOLLOWUP = "followup"
