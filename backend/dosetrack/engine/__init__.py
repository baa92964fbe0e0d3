"""Pure dosage pattern engine: no I/O, safe to call concurrently."""

from .calculator import ResolvedDose, dose_for_day, resolve_dose
from .frequency import count_scheduled, is_scheduled
from .resolver import (
    PatternClosure,
    find_active_pattern,
    find_overlapping,
    find_pattern_for_date,
    plan_pattern_write,
)
from .schedule import generate_schedule
from .validation import ValidationOutcome, validate_dose_entry, validate_pattern
from .variance import Variance, compute_variance

__all__ = [
    "ResolvedDose", "dose_for_day", "resolve_dose",
    "count_scheduled", "is_scheduled",
    "PatternClosure", "find_active_pattern", "find_overlapping",
    "find_pattern_for_date", "plan_pattern_write",
    "generate_schedule",
    "ValidationOutcome", "validate_dose_entry", "validate_pattern",
    "Variance", "compute_variance",
]
