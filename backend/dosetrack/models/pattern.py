"""
Dosage pattern models.

A pattern is a cyclic dose sequence with a validity window. Patterns are
append-only: a change is a new record plus closing the previous one, so the
"active" pattern is simply the one with no ``end_date``.
"""

from pydantic import BaseModel, Field, computed_field
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal
from enum import Enum

from .common import Dose, OptionalDose, format_dose


class DosagePatternBase(BaseModel):
    """Base pattern model."""
    sequence: List[Dose] = Field(..., description="Repeating doses, e.g. [4.0, 4.0, 3.0]")
    start_date: date
    end_date: Optional[date] = Field(None, description="Last day the pattern applies; null while active")
    notes: Optional[str] = None


class DosagePatternCreate(DosagePatternBase):
    """Pattern creation request."""
    close_previous_pattern: bool = True


class DosagePattern(DosagePatternBase):
    """Stored pattern with derived properties."""
    id: str = Field(..., alias="_id")
    medication_id: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def pattern_length(self) -> int:
        return len(self.sequence)

    @computed_field
    @property
    def is_active(self) -> bool:
        return self.end_date is None

    @computed_field
    @property
    def average_dosage(self) -> OptionalDose:
        if not self.sequence:
            return None
        return sum(self.sequence, Decimal(0)) / len(self.sequence)

    @computed_field
    @property
    def display_pattern(self) -> str:
        return display_pattern(self.sequence)

    def covers(self, day: date) -> bool:
        """True if ``day`` falls inside ``[start_date, end_date]``."""
        if day < self.start_date:
            return False
        return self.end_date is None or day <= self.end_date

    class Config:
        populate_by_name = True


def display_pattern(sequence: List[Decimal], unit: str = "mg") -> str:
    """Human-readable pattern, e.g. ``4mg, 4mg, 3mg (3-day cycle)``."""
    if not sequence:
        return "Empty pattern"
    values = ", ".join(f"{format_dose(d)}{unit}" for d in sequence)
    return f"{values} ({len(sequence)}-day cycle)"


class WarningCode(str, Enum):
    """Advisory warning identifiers; each can be suppressed by a client on its own."""
    SINGLE_VALUE_PATTERN = "single_value_pattern"
    LONG_PATTERN = "long_pattern"
    BACKDATED = "backdated"


class PatternWarning(BaseModel):
    """Informational flag returned with a successful validation."""
    code: WarningCode
    message: str


class PatternCreateResult(BaseModel):
    """Created pattern plus any advisory warnings."""
    pattern: DosagePattern
    closed_pattern_id: Optional[str] = None
    warnings: List[PatternWarning] = []


class ExpectedDose(BaseModel):
    """Expected dose for one medication on one date."""
    medication_id: str
    target_date: date
    dosage: OptionalDose = None
    dosage_unit: str = "mg"
    is_scheduled: bool = True
    source: str = Field(..., pattern="^(pattern|fixed|none)$")
    pattern_id: Optional[str] = None
    pattern_day: Optional[int] = None
    pattern_length: Optional[int] = None
