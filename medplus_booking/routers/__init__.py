# Routers package
from . import schedules_router
from . import appointments_router

__all__ = [
    "schedules_router",
    "appointments_router",
]
