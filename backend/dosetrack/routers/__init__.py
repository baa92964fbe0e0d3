"""Routers package for DoseTrack API."""

from .medications import router as medications_router
from .patterns import router as patterns_router
from .schedule import router as schedule_router
from .logs import router as logs_router

__all__ = [
    "medications_router",
    "patterns_router",
    "schedule_router",
    "logs_router"
]
