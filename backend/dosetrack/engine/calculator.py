"""
Pattern day calculator.

Maps a calendar date onto a position in a pattern's repeating sequence.
Day numbers are 1-based. For daily medications every calendar day advances
the cycle; for other frequencies only scheduled days do, and unscheduled
days resolve to ``None``.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..models.medication import Frequency
from ..models.pattern import DosagePattern
from .frequency import count_scheduled, is_daily, is_scheduled


@dataclass(frozen=True)
class ResolvedDose:
    dose: Decimal
    cycle_day: int
    pattern_length: int


def dose_for_day(sequence: Sequence[Decimal], day_number: int) -> Decimal:
    """Dose for a 1-based cycle day; day numbers past the end wrap around."""
    if not sequence:
        raise ValueError("Pattern sequence is empty")
    if day_number < 1:
        raise ValueError("Day number must be >= 1")
    return sequence[(day_number - 1) % len(sequence)]


def resolve_dose(
    pattern: DosagePattern,
    target_date: date,
    frequency: Optional[Frequency] = None,
    anchor: Optional[date] = None,
) -> Optional[ResolvedDose]:
    """
    Dose and cycle day for ``target_date`` under ``pattern``.

    The caller is responsible for choosing the pattern that covers the
    date. ``anchor`` is the reference date of the frequency rule and
    defaults to the pattern's start date.

    Raises:
        ValueError: if ``target_date`` is before the pattern starts.
    """
    if target_date < pattern.start_date:
        raise ValueError(
            f"{target_date.isoformat()} is before pattern start {pattern.start_date.isoformat()}"
        )
    length = len(pattern.sequence)
    if length == 0:
        raise ValueError("Pattern sequence is empty")

    if is_daily(frequency):
        position = (target_date - pattern.start_date).days
    else:
        anchor = anchor or pattern.start_date
        if not is_scheduled(frequency, target_date, anchor):
            return None
        position = count_scheduled(frequency, pattern.start_date, target_date, anchor)

    cycle_day = position % length + 1
    return ResolvedDose(
        dose=dose_for_day(pattern.sequence, cycle_day),
        cycle_day=cycle_day,
        pattern_length=length,
    )
