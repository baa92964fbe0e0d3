"""
Medication dose log models.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime, timezone

from .common import Dose, OptionalDose


class MedicationLogCreate(BaseModel):
    """Record of a dose actually taken."""
    medication_id: str
    dosage: Dose
    taken_at: Optional[datetime] = Field(None, description="Defaults to now (UTC)")
    notes: Optional[str] = None

    @field_validator("taken_at")
    @classmethod
    def to_naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Stored timestamps are naive UTC
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


class MedicationLog(BaseModel):
    """
    Stored dose log.

    ``expected_dosage`` and the variance fields are fixed when the log is
    written and are never recomputed from later pattern changes.
    """
    id: str = Field(..., alias="_id")
    user_id: str
    medication_id: str
    dosage: Dose
    taken_at: datetime
    expected_dosage: OptionalDose = None
    pattern_id: Optional[str] = None
    pattern_day_number: Optional[int] = None
    has_variance: bool = False
    variance_amount: OptionalDose = None
    variance_percentage: OptionalDose = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        populate_by_name = True
