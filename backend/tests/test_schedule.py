"""
Tests for engine.schedule: day-by-day projection and summaries.
"""

from datetime import date
from decimal import Decimal

import pytest

from dosetrack.engine.schedule import generate_schedule
from dosetrack.errors import NotFoundError
from dosetrack.models.medication import Frequency, FrequencyKind

from .factories import doses, make_pattern


@pytest.fixture
def transition():
    return [
        make_pattern([4, 3, 3], date(2024, 12, 1), date(2025, 1, 14), pattern_id="a"),
        make_pattern([4, 4, 3, 4, 3, 3], date(2025, 1, 15), pattern_id="b"),
    ]


# ── Pattern transitions ──────────────────────────────────────────────

class TestTransitions:
    def test_transition_day_is_flagged(self, transition):
        entries, _ = generate_schedule(transition, date(2025, 1, 10), 11)

        changes = [e for e in entries if e.is_pattern_change]
        assert [e.day for e in changes] == [date(2025, 1, 15)]
        change = changes[0]
        assert change.pattern_change_note == "Pattern changed from a 3-day cycle to a 6-day cycle"
        assert change.pattern_id == "b"
        assert change.pattern_day == 1
        assert change.dosage == Decimal("4")

    def test_first_day_is_never_a_transition(self, transition):
        entries, _ = generate_schedule(transition, date(2025, 1, 15), 3)
        assert not entries[0].is_pattern_change

    def test_closed_pattern_days(self, transition):
        entries, _ = generate_schedule(transition, date(2025, 1, 10), 5)
        assert [e.pattern_day for e in entries] == [2, 3, 1, 2, 3]
        assert [e.dosage for e in entries] == doses(3, 3, 4, 3, 3)
        assert entries[0].day_of_week == "Friday"
        assert entries[0].display_text == "3mg (Day 2/3)"

    def test_summary(self, transition):
        entries, summary = generate_schedule(transition, date(2025, 1, 10), 11)
        assert len(entries) == 11
        assert summary.total_dosage == Decimal("37")
        assert summary.average_dosage == Decimal("3.36")
        assert summary.min_dosage == Decimal("3")
        assert summary.max_dosage == Decimal("4")
        assert summary.pattern_cycles == Decimal("2.67")
        assert summary.scheduled_days == 11


# ── Fixed-dose fallback ──────────────────────────────────────────────

class TestFixedDose:
    def test_fixed_dose_days(self):
        entries, summary = generate_schedule([], date(2025, 1, 1), 3, fixed_dose=Decimal("5"))
        assert [e.dosage for e in entries] == doses(5, 5, 5)
        assert all(e.pattern_day == 1 and e.pattern_length == 1 for e in entries)
        assert not any(e.is_pattern_change for e in entries)
        assert entries[0].display_text == "5mg"
        assert summary.pattern_cycles == Decimal("3.00")

    def test_fixed_dose_to_pattern(self):
        patterns = [make_pattern([4, 3, 3], date(2025, 1, 3), pattern_id="a")]
        entries, _ = generate_schedule(patterns, date(2025, 1, 1), 4, fixed_dose=Decimal("5"))
        assert entries[2].is_pattern_change
        assert entries[2].pattern_change_note == "Pattern changed from a fixed daily dose to a 3-day cycle"

    def test_no_pattern_no_fixed_dose(self):
        with pytest.raises(NotFoundError, match="2025-01-01"):
            generate_schedule([], date(2025, 1, 1), 3)


# ── Frequencies ──────────────────────────────────────────────────────

class TestScheduleFrequency:
    def test_every_other_day(self):
        start = date(2025, 1, 1)
        patterns = [make_pattern([4, 3, 3], start)]
        freq = Frequency(kind=FrequencyKind.EVERY_OTHER_DAY)

        entries, summary = generate_schedule(patterns, start, 6, frequency=freq, anchor=start)

        assert [e.dosage for e in entries] == [Decimal("4"), None, Decimal("3"), None, Decimal("3"), None]
        assert [e.is_scheduled for e in entries] == [True, False] * 3
        assert entries[1].display_text == "No dose scheduled"
        assert summary.scheduled_days == 3
        assert summary.total_dosage == Decimal("10")
        assert summary.average_dosage == Decimal("3.33")

    def test_unit_in_display_text(self):
        patterns = [make_pattern([2.5, 5], date(2025, 1, 1))]
        entries, _ = generate_schedule(patterns, date(2025, 1, 1), 1, dosage_unit="ml")
        assert entries[0].display_text == "2.5ml (Day 1/2)"

    def test_every_other_day_spacing_survives_transition(self):
        patterns = [
            make_pattern([4, 3, 3], date(2024, 12, 1), date(2025, 1, 14), pattern_id="a"),
            make_pattern([5, 5], date(2025, 1, 15), pattern_id="b"),
        ]
        freq = Frequency(kind=FrequencyKind.EVERY_OTHER_DAY)

        entries, _ = generate_schedule(patterns, date(2025, 1, 13), 4, frequency=freq)

        assert [e.is_scheduled for e in entries] == [False, True, False, True]
        assert entries[2].is_pattern_change
        assert entries[3].dosage == Decimal("5")
        assert entries[3].pattern_day == 1
