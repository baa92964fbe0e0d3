"""
Tests for engine.calculator: mapping dates onto pattern cycle days.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from dosetrack.engine.calculator import dose_for_day, resolve_dose
from dosetrack.models.medication import Frequency, FrequencyKind

from .factories import doses, make_pattern


# ── Daily cycles ─────────────────────────────────────────────────────

class TestDailyCycle:
    def test_wraparound_scenario(self):
        pattern = make_pattern([4.0, 4.0, 3.0, 4.0, 3.0, 3.0], date(2025, 1, 15))

        first = resolve_dose(pattern, date(2025, 1, 15))
        assert first.dose == Decimal("4.0")
        assert first.cycle_day == 1

        last = resolve_dose(pattern, date(2025, 1, 20))
        assert last.dose == Decimal("3.0")
        assert last.cycle_day == 6

        wrapped = resolve_dose(pattern, date(2025, 1, 21))
        assert wrapped.dose == Decimal("4.0")
        assert wrapped.cycle_day == 1

    def test_cycle_day_follows_offset(self):
        sequence = [4.0, 4.0, 3.0, 4.0, 3.0, 3.0]
        pattern = make_pattern(sequence, date(2025, 1, 15))
        for n in range(40):
            resolved = resolve_dose(pattern, date(2025, 1, 15) + timedelta(days=n))
            assert resolved.cycle_day == n % 6 + 1
            assert resolved.dose == doses(*sequence)[n % 6]
            assert resolved.pattern_length == 6

    def test_resolution_is_repeatable(self):
        pattern = make_pattern([5, 2.5], date(2025, 1, 1))
        day = date(2025, 6, 30)
        assert resolve_dose(pattern, day) == resolve_dose(pattern, day)

    def test_date_before_start_is_rejected(self):
        pattern = make_pattern([4, 3], date(2025, 1, 15))
        with pytest.raises(ValueError, match="before pattern start"):
            resolve_dose(pattern, date(2025, 1, 14))


# ── Non-daily frequencies ────────────────────────────────────────────

class TestFrequencyInteraction:
    def test_every_other_day_scenario(self):
        start = date(2025, 1, 1)
        pattern = make_pattern([4, 3, 3], start)
        freq = Frequency(kind=FrequencyKind.EVERY_OTHER_DAY)

        results = [resolve_dose(pattern, start + timedelta(days=n), freq, start) for n in range(12)]

        assert [r.dose for r in results[0::2]] == doses(4, 3, 3, 4, 3, 3)
        assert [r.cycle_day for r in results[0::2]] == [1, 2, 3, 1, 2, 3]
        assert all(r is None for r in results[1::2])

    def test_first_scheduled_day_after_start_is_day_one(self):
        pattern = make_pattern([4, 3, 3], date(2025, 1, 1))
        freq = Frequency(kind=FrequencyKind.EVERY_OTHER_DAY)
        anchor = date(2024, 12, 31)

        assert resolve_dose(pattern, date(2025, 1, 1), freq, anchor) is None
        resolved = resolve_dose(pattern, date(2025, 1, 2), freq, anchor)
        assert resolved.cycle_day == 1
        assert resolved.dose == Decimal("4")

    def test_weekday_schedule_advances_on_scheduled_days_only(self):
        pattern = make_pattern([4, 3], date(2025, 1, 6))  # Monday
        freq = Frequency(kind=FrequencyKind.CUSTOM, weekdays=[1, 4])

        assert resolve_dose(pattern, date(2025, 1, 6), freq).cycle_day == 1
        assert resolve_dose(pattern, date(2025, 1, 7), freq) is None
        assert resolve_dose(pattern, date(2025, 1, 9), freq).cycle_day == 2
        assert resolve_dose(pattern, date(2025, 1, 13), freq).cycle_day == 1


# ── dose_for_day ─────────────────────────────────────────────────────

class TestDoseForDay:
    def test_wraps_past_end(self):
        assert dose_for_day(doses(4, 3, 3), 4) == Decimal("4")
        assert dose_for_day(doses(4, 3, 3), 6) == Decimal("3")

    def test_day_zero_rejected(self):
        with pytest.raises(ValueError):
            dose_for_day(doses(4), 0)

    def test_empty_sequence_rejected(self):
        with pytest.raises(ValueError):
            dose_for_day([], 1)
