"""
Validation and safety rules for dosage patterns and dose logs.

Hard rules reject the write with a ValidationError listing every failure.
Advisory warnings never block; they are returned with a successful result
for the presenting client to confirm with the user.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from ..config import Settings, get_settings
from ..errors import ValidationError
from ..models.common import utcnow
from ..models.medication import Medication
from ..models.pattern import PatternWarning, WarningCode


@dataclass
class ValidationOutcome:
    errors: List[str] = field(default_factory=list)
    warnings: List[PatternWarning] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self, message: str = "Pattern validation failed") -> None:
        if self.errors:
            raise ValidationError(message, errors=self.errors)


def medication_dose_cap(
    medication: Medication, settings: Optional[Settings] = None
) -> Optional[Tuple[Decimal, str]]:
    """
    Strictest configured per-dose cap for a medication, with the rule name.

    Caps are looked up by medication type and by keywords in the name.
    """
    settings = settings or get_settings()
    caps = []
    type_cap = settings.MEDICATION_TYPE_DOSE_CAPS.get(medication.medication_type.value)
    if type_cap is not None:
        caps.append((Decimal(str(type_cap)), medication.medication_type.value))
    name = medication.name.lower()
    for keyword, limit in settings.MEDICATION_NAME_DOSE_CAPS.items():
        if keyword.lower() in name:
            caps.append((Decimal(str(limit)), keyword))
    if not caps:
        return None
    return min(caps, key=lambda c: c[0])


def validate_pattern(
    sequence: Sequence[Decimal],
    start_date: date,
    end_date: Optional[date] = None,
    notes: Optional[str] = None,
    *,
    medication: Optional[Medication] = None,
    today: Optional[date] = None,
    settings: Optional[Settings] = None,
) -> ValidationOutcome:
    """Check a new pattern against structural rules and collect warnings."""
    settings = settings or get_settings()
    today = today or utcnow().date()
    min_dose = Decimal(str(settings.MIN_DOSE))
    max_dose = Decimal(str(settings.MAX_DOSE))
    outcome = ValidationOutcome()

    # Structural rules
    if not sequence:
        outcome.errors.append("Pattern must contain at least one dosage value")
    elif len(sequence) > settings.MAX_PATTERN_LENGTH:
        outcome.errors.append(
            f"Pattern cannot exceed {settings.MAX_PATTERN_LENGTH} dosages (got {len(sequence)})"
        )

    for day_number, dose in enumerate(sequence, start=1):
        if dose < min_dose or dose > max_dose:
            outcome.errors.append(
                f"Each dosage must be between {settings.MIN_DOSE} and {settings.MAX_DOSE}; "
                f"day {day_number} is {dose}"
            )

    if start_date < today - timedelta(days=settings.MAX_BACKDATE_DAYS):
        outcome.errors.append(
            f"Start date cannot be more than {settings.MAX_BACKDATE_DAYS} days in the past"
        )

    if end_date is not None and end_date < start_date:
        outcome.errors.append("End date must be on or after the start date")

    if notes is not None and len(notes) > settings.MAX_NOTES_LENGTH:
        outcome.errors.append(f"Notes cannot exceed {settings.MAX_NOTES_LENGTH} characters")

    if medication is not None and sequence:
        cap = medication_dose_cap(medication, settings)
        if cap is not None:
            limit, rule = cap
            highest = max(sequence)
            if highest > limit:
                outcome.errors.append(
                    f"{medication.name} dosage should not exceed {limit}mg ({rule} limit). "
                    f"Pattern contains {highest}mg."
                )

    # Advisory warnings
    if len(sequence) == 1:
        outcome.warnings.append(PatternWarning(
            code=WarningCode.SINGLE_VALUE_PATTERN,
            message="Pattern contains only one dosage value. Consider using a fixed daily dose instead.",
        ))
    if len(sequence) > settings.LONG_PATTERN_WARNING_LENGTH:
        outcome.warnings.append(PatternWarning(
            code=WarningCode.LONG_PATTERN,
            message=f"Pattern is unusually long ({len(sequence)} days). Please verify this is correct.",
        ))
    if start_date < today - timedelta(days=settings.BACKDATE_WARNING_DAYS):
        outcome.warnings.append(PatternWarning(
            code=WarningCode.BACKDATED,
            message=(
                f"Pattern start date is more than {settings.BACKDATE_WARNING_DAYS} days in the past. "
                "Expected doses for historical logs will be affected."
            ),
        ))

    return outcome


def validate_dose_entry(
    dosage: Decimal,
    taken_at: datetime,
    notes: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
    settings: Optional[Settings] = None,
) -> ValidationOutcome:
    """Check a dose log before its variance is computed."""
    settings = settings or get_settings()
    now = now or utcnow()
    outcome = ValidationOutcome()

    if dosage < Decimal(str(settings.MIN_DOSE)) or dosage > Decimal(str(settings.MAX_DOSE)):
        outcome.errors.append(
            f"Dosage must be between {settings.MIN_DOSE} and {settings.MAX_DOSE}"
        )
    if taken_at > now + timedelta(minutes=settings.FUTURE_LOG_GRACE_MINUTES):
        outcome.errors.append("Cannot log medication doses in the future")
    if notes is not None and len(notes) > settings.MAX_LOG_NOTES_LENGTH:
        outcome.errors.append(f"Notes cannot exceed {settings.MAX_LOG_NOTES_LENGTH} characters")

    return outcome
