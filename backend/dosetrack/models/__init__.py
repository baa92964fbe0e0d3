"""Pydantic models for DoseTrack."""

from .common import PagedList
from .user import User, TokenData
from .medication import Medication, MedicationCreate, MedicationType, Frequency, FrequencyKind
from .pattern import (
    DosagePattern,
    DosagePatternCreate,
    PatternCreateResult,
    PatternWarning,
    WarningCode,
    ExpectedDose
)
from .schedule import MedicationSchedule, ScheduleEntry, ScheduleSummary, PatternSummary
from .log import MedicationLog, MedicationLogCreate

__all__ = [
    "PagedList",
    # User
    "User", "TokenData",
    # Medication
    "Medication", "MedicationCreate", "MedicationType", "Frequency", "FrequencyKind",
    # Pattern
    "DosagePattern", "DosagePatternCreate", "PatternCreateResult",
    "PatternWarning", "WarningCode", "ExpectedDose",
    # Schedule
    "MedicationSchedule", "ScheduleEntry", "ScheduleSummary", "PatternSummary",
    # Log
    "MedicationLog", "MedicationLogCreate"
]
