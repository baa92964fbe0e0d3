"""
Medication record and dosing frequency models.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime, date
from decimal import Decimal
from enum import Enum

from .common import OptionalDose


class MedicationType(str, Enum):
    """Medication classes relevant to anticoagulation tracking."""
    VITAMIN_K_ANTAGONIST = "vitamin_k_antagonist"
    DOAC = "doac"
    HEPARIN = "heparin"
    LMWH = "lmwh"
    ANTIPLATELET = "antiplatelet"
    OTHER = "other"


class FrequencyKind(str, Enum):
    """Closed set of frequency rules."""
    DAILY = "daily"
    EVERY_OTHER_DAY = "every_other_day"
    WEEKLY = "weekly"
    CUSTOM = "custom"


class Frequency(BaseModel):
    """
    Which calendar dates are dose-scheduled.

    ``custom`` takes either ``interval_days`` (every N days from the anchor)
    or ``weekdays`` (ISO numbers, 1 = Monday). The other kinds ignore both.
    """
    kind: FrequencyKind = FrequencyKind.DAILY
    interval_days: Optional[int] = Field(None, ge=1, le=365)
    weekdays: Optional[List[int]] = None

    @model_validator(mode="after")
    def check_custom_rule(self):
        if self.weekdays is not None:
            if not self.weekdays:
                raise ValueError("weekdays must not be empty")
            if any(d < 1 or d > 7 for d in self.weekdays):
                raise ValueError("weekdays must be ISO weekday numbers 1-7")
            self.weekdays = sorted(set(self.weekdays))
        if self.kind == FrequencyKind.CUSTOM and not (self.interval_days or self.weekdays):
            raise ValueError("custom frequency needs interval_days or weekdays")
        return self


class MedicationBase(BaseModel):
    """Base medication model."""
    name: str = Field(..., min_length=1, max_length=100)
    medication_type: MedicationType = MedicationType.OTHER
    dosage: OptionalDose = Field(None, ge=Decimal("0.1"), le=Decimal("1000"), description="Fixed dose used when no pattern applies")
    dosage_unit: str = Field(default="mg", max_length=20)
    frequency: Frequency = Frequency()
    start_date: Optional[date] = Field(None, description="Anchor date for the frequency rule")


class MedicationCreate(MedicationBase):
    """Medication creation model."""
    pass


class Medication(MedicationBase):
    """Medication response model."""
    id: str = Field(..., alias="_id")
    user_id: str
    created_at: datetime

    class Config:
        populate_by_name = True
