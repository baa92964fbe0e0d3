"""
Schedule projection service.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from ..config import get_settings
from ..errors import ValidationError
from ..engine.resolver import find_pattern_for_date
from ..engine.schedule import generate_schedule
from ..models.common import utcnow
from ..models.medication import Medication
from ..models.pattern import display_pattern
from ..models.schedule import MedicationSchedule, PatternSummary
from .pattern_service import PatternService, frequency_anchor

settings = get_settings()
logger = logging.getLogger(__name__)


class ScheduleService:
    """Day-by-day dose schedules for a medication."""

    @classmethod
    async def generate_schedule(
        cls,
        medication: Medication,
        start_date: Optional[date] = None,
        days: Optional[int] = None,
        today: Optional[date] = None
    ) -> MedicationSchedule:
        """Project ``days`` days of expected doses starting at ``start_date``."""
        today = today or utcnow().date()
        start_date = start_date or today
        days = settings.DEFAULT_SCHEDULE_DAYS if days is None else days

        errors = []
        if days < 1 or days > settings.MAX_SCHEDULE_DAYS:
            errors.append(f"Days must be between 1 and {settings.MAX_SCHEDULE_DAYS}")
        if start_date < today - timedelta(days=settings.MAX_BACKDATE_DAYS):
            errors.append(
                f"Start date cannot be more than {settings.MAX_BACKDATE_DAYS} days in the past"
            )
        if errors:
            raise ValidationError("Invalid schedule request", errors=errors)

        patterns = await PatternService.list_patterns(medication.id)
        entries, summary = generate_schedule(
            patterns,
            start_date,
            days,
            frequency=medication.frequency,
            anchor=frequency_anchor(medication),
            fixed_dose=medication.dosage,
            dosage_unit=medication.dosage_unit
        )

        first_pattern = find_pattern_for_date(patterns, start_date)
        if first_pattern is not None:
            current_pattern = PatternSummary(
                id=first_pattern.id,
                sequence=first_pattern.sequence,
                pattern_length=first_pattern.pattern_length,
                start_date=first_pattern.start_date,
                display_pattern=display_pattern(first_pattern.sequence, medication.dosage_unit)
            )
        elif medication.dosage is not None:
            current_pattern = PatternSummary(
                sequence=[medication.dosage],
                pattern_length=1,
                start_date=start_date,
                display_pattern=display_pattern([medication.dosage], medication.dosage_unit)
            )
        else:
            current_pattern = None

        logger.info(
            "Generated %d-day schedule for medication %s, total dosage: %s",
            days, medication.id, summary.total_dosage
        )

        return MedicationSchedule(
            medication_id=medication.id,
            medication_name=medication.name,
            dosage_unit=medication.dosage_unit,
            start_date=start_date,
            end_date=start_date + timedelta(days=days - 1),
            total_days=days,
            current_pattern=current_pattern,
            summary=summary,
            schedule=entries
        )
