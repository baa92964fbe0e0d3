"""Services package for DoseTrack."""

from .auth_service import AuthService
from .medication_service import MedicationService
from .pattern_service import PatternService
from .schedule_service import ScheduleService
from .log_service import LogService

__all__ = [
    "AuthService",
    "MedicationService",
    "PatternService",
    "ScheduleService",
    "LogService"
]
