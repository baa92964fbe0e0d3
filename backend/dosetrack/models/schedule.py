"""
Dosage schedule models.
"""

from pydantic import BaseModel
from typing import Optional, List
from datetime import date

from .common import Dose, OptionalDose


class ScheduleEntry(BaseModel):
    """One day of a projected schedule."""
    day: date
    day_of_week: str
    dosage: OptionalDose = None  # None on non-scheduled days
    is_scheduled: bool = True
    pattern_id: Optional[str] = None
    pattern_day: Optional[int] = None
    pattern_length: Optional[int] = None
    is_pattern_change: bool = False
    pattern_change_note: Optional[str] = None
    display_text: str


class ScheduleSummary(BaseModel):
    """Aggregates over the whole schedule range."""
    total_dosage: Dose
    average_dosage: OptionalDose = None
    min_dosage: OptionalDose = None
    max_dosage: OptionalDose = None
    pattern_cycles: Dose
    scheduled_days: int


class PatternSummary(BaseModel):
    """Pattern in effect on the first day of the schedule."""
    id: Optional[str] = None  # None for the fixed-dose fallback
    sequence: List[Dose]
    pattern_length: int
    start_date: date
    display_pattern: str


class MedicationSchedule(BaseModel):
    """Schedule response."""
    medication_id: str
    medication_name: str
    dosage_unit: str = "mg"
    start_date: date
    end_date: date
    total_days: int
    current_pattern: Optional[PatternSummary] = None
    summary: ScheduleSummary
    schedule: List[ScheduleEntry] = []
