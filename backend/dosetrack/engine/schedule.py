"""
Schedule generation: projects a date range into day-by-day doses.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from ..errors import NotFoundError
from ..models.common import format_dose
from ..models.medication import Frequency
from ..models.pattern import DosagePattern
from ..models.schedule import ScheduleEntry, ScheduleSummary
from .calculator import resolve_dose
from .frequency import is_scheduled
from .resolver import find_pattern_for_date

TWO_PLACES = Decimal("0.01")
FIXED_DOSE_KEY = "__fixed__"


def _cycle_label(pattern: Optional[DosagePattern]) -> str:
    if pattern is None:
        return "a fixed daily dose"
    return f"a {pattern.pattern_length}-day cycle"


def _display_text(dose: Optional[Decimal], unit: str, day_number: Optional[int], length: Optional[int]) -> str:
    if dose is None:
        return "No dose scheduled"
    if day_number is not None and length and length > 1:
        return f"{format_dose(dose)}{unit} (Day {day_number}/{length})"
    return f"{format_dose(dose)}{unit}"


def generate_schedule(
    patterns: List[DosagePattern],
    start_date: date,
    days: int,
    *,
    frequency: Optional[Frequency] = None,
    anchor: Optional[date] = None,
    fixed_dose: Optional[Decimal] = None,
    dosage_unit: str = "mg",
) -> Tuple[List[ScheduleEntry], ScheduleSummary]:
    """
    Build the schedule for ``days`` consecutive days from ``start_date``.

    Days without a covering pattern use ``fixed_dose``; a day with neither
    raises NotFoundError. A day is marked as a pattern change when the
    pattern in effect differs from the previous day's.

    ``anchor`` is the reference date of the frequency rule for every day of
    the range; without one the earliest pattern start is used.
    """
    if anchor is None:
        anchor = min((p.start_date for p in patterns), default=start_date)

    entries: List[ScheduleEntry] = []
    covered_days: Dict[str, int] = {}
    cycle_lengths: Dict[str, int] = {}
    previous_key: Optional[str] = None
    previous_pattern: Optional[DosagePattern] = None

    for offset in range(days):
        day = start_date + timedelta(days=offset)
        pattern = find_pattern_for_date(patterns, day)

        if pattern is not None:
            key = pattern.id
            length = pattern.pattern_length
            resolved = resolve_dose(pattern, day, frequency, anchor)
            scheduled = resolved is not None
            dose = resolved.dose if resolved else None
            pattern_day = resolved.cycle_day if resolved else None
        elif fixed_dose is not None:
            key = FIXED_DOSE_KEY
            length = 1
            scheduled = is_scheduled(frequency, day, anchor)
            dose = fixed_dose if scheduled else None
            pattern_day = 1 if scheduled else None
        else:
            raise NotFoundError(
                f"No dosage pattern or fixed dose found for {day.isoformat()}",
                details={"date": day.isoformat()},
            )

        covered_days[key] = covered_days.get(key, 0) + 1
        cycle_lengths[key] = length

        is_change = offset > 0 and key != previous_key
        note = None
        if is_change:
            note = f"Pattern changed from {_cycle_label(previous_pattern)} to {_cycle_label(pattern)}"

        entries.append(ScheduleEntry(
            day=day,
            day_of_week=day.strftime("%A"),
            dosage=dose,
            is_scheduled=scheduled,
            pattern_id=pattern.id if pattern is not None else None,
            pattern_day=pattern_day,
            pattern_length=length,
            is_pattern_change=is_change,
            pattern_change_note=note,
            display_text=_display_text(dose, dosage_unit, pattern_day, length),
        ))
        previous_key = key
        previous_pattern = pattern

    return entries, summarize(entries, covered_days, cycle_lengths)


def summarize(
    entries: List[ScheduleEntry],
    covered_days: Dict[str, int],
    cycle_lengths: Dict[str, int],
) -> ScheduleSummary:
    """Totals over dosed days; cycles are counted per pattern encountered."""
    doses = [e.dosage for e in entries if e.dosage is not None]
    cycles = sum(
        (Decimal(count) / cycle_lengths[key] for key, count in covered_days.items()),
        Decimal(0),
    )
    total = sum(doses, Decimal(0))
    return ScheduleSummary(
        total_dosage=total,
        average_dosage=(total / len(doses)).quantize(TWO_PLACES) if doses else None,
        min_dosage=min(doses) if doses else None,
        max_dosage=max(doses) if doses else None,
        pattern_cycles=cycles.quantize(TWO_PLACES),
        scheduled_days=len(doses),
    )
