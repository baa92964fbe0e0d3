"""
Temporal pattern resolution over a snapshot of a medication's patterns.

The same lookup serves "today" and any historical date, so past logs always
resolve against the pattern that was in effect at the time. Intervals are
closed: ``end_date`` is the last day a pattern applies.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional

from ..errors import ConflictError
from ..models.pattern import DosagePattern


@dataclass(frozen=True)
class PatternClosure:
    """Previous pattern to close, and the end date it will get."""
    pattern: DosagePattern
    end_date: date


def intervals_overlap(
    a_start: date, a_end: Optional[date], b_start: date, b_end: Optional[date]
) -> bool:
    """Closed-interval overlap; a missing end date means open-ended."""
    if a_end is not None and a_end < b_start:
        return False
    if b_end is not None and b_end < a_start:
        return False
    return True


def find_pattern_for_date(patterns: Iterable[DosagePattern], day: date) -> Optional[DosagePattern]:
    """Pattern whose window contains ``day``, latest start first."""
    matches = [p for p in patterns if p.covers(day)]
    if not matches:
        return None
    return max(matches, key=lambda p: p.start_date)


def find_active_pattern(patterns: Iterable[DosagePattern]) -> Optional[DosagePattern]:
    """The open-ended pattern, if any."""
    active = [p for p in patterns if p.end_date is None]
    if not active:
        return None
    return max(active, key=lambda p: p.start_date)


def find_overlapping(
    patterns: Iterable[DosagePattern], start_date: date, end_date: Optional[date] = None
) -> List[DosagePattern]:
    return [
        p for p in patterns
        if intervals_overlap(p.start_date, p.end_date, start_date, end_date)
    ]


def plan_pattern_write(
    patterns: List[DosagePattern],
    start_date: date,
    end_date: Optional[date] = None,
    close_previous: bool = True,
) -> Optional[PatternClosure]:
    """
    Decide how a new pattern fits into the existing history.

    Returns the previous pattern to close (or None if nothing needs
    closing). Raises ConflictError if the new window would still overlap
    any pattern after that close.
    """
    closure = None
    if close_previous:
        candidates = [p for p in patterns if p.end_date is None or p.end_date >= start_date]
        if candidates:
            previous = max(candidates, key=lambda p: p.start_date)
            if previous.start_date >= start_date:
                raise ConflictError(
                    f"Pattern {previous.id} starts on {previous.start_date.isoformat()}, "
                    f"which is not before the new start date {start_date.isoformat()}; "
                    "it cannot be closed in favour of this pattern.",
                    details={"pattern_id": previous.id},
                )
            closure = PatternClosure(pattern=previous, end_date=start_date - timedelta(days=1))

    remaining = [p for p in patterns if closure is None or p.id != closure.pattern.id]
    overlapping = find_overlapping(remaining, start_date, end_date)
    if overlapping:
        if close_previous:
            detail = "The new pattern overlaps earlier pattern history that cannot be closed automatically."
        else:
            detail = (
                "A pattern already exists for the specified date range. "
                "Set close_previous_pattern=true to close the previous pattern automatically."
            )
        raise ConflictError(
            detail,
            details={"overlapping_pattern_ids": [p.id for p in overlapping]},
        )
    return closure
