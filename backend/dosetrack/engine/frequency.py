"""
Frequency rules: which calendar dates are dose-scheduled.

Each ``FrequencyKind`` maps to one pure predicate. Interval-based rules
(daily, every other day, weekly, custom every-N-days) are counted in closed
form; custom weekday sets are counted per week.
"""

from datetime import date, timedelta
from typing import Callable, Dict, Optional

from ..models.medication import Frequency, FrequencyKind


def _daily(frequency: Frequency, day: date, anchor: date) -> bool:
    return True


def _every_other_day(frequency: Frequency, day: date, anchor: date) -> bool:
    return (day - anchor).days % 2 == 0


def _weekly(frequency: Frequency, day: date, anchor: date) -> bool:
    return day.weekday() == anchor.weekday()


def _custom(frequency: Frequency, day: date, anchor: date) -> bool:
    if frequency.weekdays:
        return day.isoweekday() in frequency.weekdays
    return (day - anchor).days % frequency.interval_days == 0


_PREDICATES: Dict[FrequencyKind, Callable[[Frequency, date, date], bool]] = {
    FrequencyKind.DAILY: _daily,
    FrequencyKind.EVERY_OTHER_DAY: _every_other_day,
    FrequencyKind.WEEKLY: _weekly,
    FrequencyKind.CUSTOM: _custom,
}


def is_daily(frequency: Optional[Frequency]) -> bool:
    return frequency is None or frequency.kind == FrequencyKind.DAILY


def interval_days(frequency: Frequency) -> Optional[int]:
    """Fixed spacing between scheduled days, or None for weekday sets."""
    if frequency.kind == FrequencyKind.DAILY:
        return 1
    if frequency.kind == FrequencyKind.EVERY_OTHER_DAY:
        return 2
    if frequency.kind == FrequencyKind.WEEKLY:
        return 7
    if frequency.weekdays:
        return None
    return frequency.interval_days


def is_scheduled(frequency: Optional[Frequency], day: date, anchor: date) -> bool:
    """True if a dose is scheduled on ``day`` for a rule anchored at ``anchor``."""
    if frequency is None:
        return True
    return _PREDICATES[frequency.kind](frequency, day, anchor)


def count_scheduled(frequency: Optional[Frequency], start: date, end: date, anchor: date) -> int:
    """Number of scheduled days in ``[start, end)``."""
    if end <= start:
        return 0
    if frequency is None:
        return (end - start).days

    step = interval_days(frequency)
    if step is not None:
        first = (start - anchor).days
        stop = (end - anchor).days
        # multiples of step in [first, stop)
        return (stop - 1) // step - (first - 1) // step

    total = (end - start).days
    weeks, remainder = divmod(total, 7)
    count = weeks * len(frequency.weekdays)
    tail = start + timedelta(days=weeks * 7)
    for offset in range(remainder):
        if is_scheduled(frequency, tail + timedelta(days=offset), anchor):
            count += 1
    return count
