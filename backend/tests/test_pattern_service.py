"""
Tests for PatternService against an in-memory MongoDB.
"""

import gc
from datetime import date, timedelta
from decimal import Decimal

import pytest
from pymongo.errors import DuplicateKeyError, PyMongoError

from dosetrack.database import Database, DOSAGE_PATTERNS
from dosetrack.engine.resolver import intervals_overlap
from dosetrack.errors import ConflictError, NotFoundError, ValidationError
from dosetrack.models.medication import Frequency, FrequencyKind
from dosetrack.models.pattern import DosagePatternCreate, WarningCode
from dosetrack.services.pattern_service import PatternService

from .factories import doses, make_medication

TODAY = date(2025, 1, 20)


def pattern_request(sequence, start, end=None, close=True):
    return DosagePatternCreate(
        sequence=doses(*sequence),
        start_date=start,
        end_date=end,
        close_previous_pattern=close,
    )


async def create(medication, sequence, start, **kwargs):
    return await PatternService.create_pattern(
        medication, pattern_request(sequence, start, **kwargs), today=TODAY
    )


class FailingInsert:
    """Collection proxy whose inserts fail."""

    def __init__(self, collection, exc):
        self._collection = collection
        self._exc = exc

    def __getattr__(self, name):
        return getattr(self._collection, name)

    async def insert_one(self, document):
        raise self._exc


class FailingRevert(FailingInsert):
    """Collection proxy whose inserts fail and whose second update fails too."""

    def __init__(self, collection, exc):
        super().__init__(collection, exc)
        self._updates = 0

    async def update_one(self, *args, **kwargs):
        self._updates += 1
        if self._updates > 1:
            raise PyMongoError("connection lost")
        return await self._collection.update_one(*args, **kwargs)


# ── Create and resolve ───────────────────────────────────────────────

class TestCreatePattern:
    @pytest.mark.asyncio
    async def test_create_then_resolve_start_date(self, db):
        medication = make_medication()
        result = await create(medication, [4, 4, 3], date(2025, 1, 15))

        found = await PatternService.get_pattern_for_date(medication.id, date(2025, 1, 15))
        assert found.id == result.pattern.id
        assert found.sequence == doses(4, 4, 3)
        assert found.end_date is None
        assert result.closed_pattern_id is None

    @pytest.mark.asyncio
    async def test_doses_keep_exact_values(self, db):
        medication = make_medication()
        await create(medication, ["2.5", "0.1", "7.25"], date(2025, 1, 15))

        stored = await db[DOSAGE_PATTERNS].find_one({"medication_id": medication.id})
        assert stored["sequence"] == ["2.5", "0.1", "7.25"]
        assert stored["is_open"] is True

    @pytest.mark.asyncio
    async def test_transition_closes_previous(self, db):
        medication = make_medication()
        first = await create(medication, [4, 3, 3], date(2024, 12, 1))
        second = await create(medication, [4, 4, 3, 4, 3, 3], date(2025, 1, 15))

        assert second.closed_pattern_id == first.pattern.id
        history = await PatternService.list_patterns(medication.id)
        assert [p.end_date for p in history] == [date(2025, 1, 14), None]

        active = await PatternService.get_active_pattern(medication.id)
        assert active.id == second.pattern.id

    @pytest.mark.asyncio
    async def test_warnings_returned_with_pattern(self, db):
        result = await create(make_medication(), [5], date(2024, 12, 1))
        assert [w.code for w in result.warnings] == [
            WarningCode.SINGLE_VALUE_PATTERN, WarningCode.BACKDATED
        ]

    @pytest.mark.asyncio
    async def test_no_overlap_after_repeated_changes(self, db):
        medication = make_medication()
        for start in [date(2024, 12, 1), date(2024, 12, 20), date(2025, 1, 2), date(2025, 1, 3), date(2025, 2, 1)]:
            await create(medication, [4, 3], start)

        patterns = await PatternService.list_patterns(medication.id)
        assert len(patterns) == 5
        assert sum(1 for p in patterns if p.is_active) == 1
        for i, a in enumerate(patterns):
            for b in patterns[i + 1:]:
                assert not intervals_overlap(a.start_date, a.end_date, b.start_date, b.end_date)


# ── Rejections ───────────────────────────────────────────────────────

class TestRejectedWrites:
    @pytest.mark.asyncio
    async def test_invalid_pattern_not_persisted(self, db):
        with pytest.raises(ValidationError) as exc_info:
            await create(make_medication(), [1500.0], date(2025, 1, 15))

        assert "0.1" in exc_info.value.errors[0]
        assert "1000.0" in exc_info.value.errors[0]
        assert await db[DOSAGE_PATTERNS].count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_overlap_without_close_is_conflict(self, db):
        medication = make_medication()
        await create(medication, [4, 3, 3], date(2024, 12, 1))

        with pytest.raises(ConflictError):
            await create(medication, [4], date(2025, 1, 15), close=False)

        patterns = await PatternService.list_patterns(medication.id)
        assert len(patterns) == 1
        assert patterns[0].end_date is None

    @pytest.mark.asyncio
    async def test_duplicate_open_pattern_reverts_close(self, db, monkeypatch):
        medication = make_medication()
        first = await create(medication, [4, 3, 3], date(2024, 12, 1))

        monkeypatch.setattr(
            Database, "get_collection",
            lambda name: FailingInsert(db[name], DuplicateKeyError("E11000 duplicate key"))
        )
        with pytest.raises(ConflictError):
            await create(medication, [4], date(2025, 1, 15))
        monkeypatch.undo()

        patterns = await PatternService.list_patterns(medication.id)
        assert [p.id for p in patterns] == [first.pattern.id]
        assert patterns[0].end_date is None
        stored = await db[DOSAGE_PATTERNS].find_one({})
        assert stored["is_open"] is True

    @pytest.mark.asyncio
    async def test_storage_failure_propagates_after_revert(self, db, monkeypatch):
        medication = make_medication()
        await create(medication, [4, 3, 3], date(2024, 12, 1))

        monkeypatch.setattr(
            Database, "get_collection",
            lambda name: FailingInsert(db[name], PyMongoError("connection lost"))
        )
        with pytest.raises(PyMongoError):
            await create(medication, [4], date(2025, 1, 15))
        monkeypatch.undo()

        active = await PatternService.get_active_pattern(medication.id)
        assert active.start_date == date(2024, 12, 1)

    @pytest.mark.asyncio
    async def test_stale_snapshot_does_not_overwrite_newer_close(self, db, monkeypatch):
        medication = make_medication()
        first = await create(medication, [4, 3, 3], date(2024, 12, 1))
        snapshot = await PatternService.list_patterns(medication.id)
        second = await create(medication, [5], date(2025, 1, 10))

        async def stale_patterns(medication_id):
            return snapshot

        monkeypatch.setattr(PatternService, "list_patterns", stale_patterns)
        with pytest.raises(ConflictError) as exc_info:
            await create(medication, [4], date(2025, 1, 18))
        monkeypatch.undo()

        assert exc_info.value.details["pattern_id"] == first.pattern.id
        patterns = await PatternService.list_patterns(medication.id)
        assert [(p.id, p.end_date) for p in patterns] == [
            (first.pattern.id, date(2025, 1, 9)),
            (second.pattern.id, None),
        ]

    @pytest.mark.asyncio
    async def test_failed_revert_still_reports_conflict(self, db, monkeypatch):
        medication = make_medication()
        await create(medication, [4, 3, 3], date(2024, 12, 1))

        collection = FailingRevert(db[DOSAGE_PATTERNS], DuplicateKeyError("E11000 duplicate key"))
        monkeypatch.setattr(Database, "get_collection", lambda name: collection)
        with pytest.raises(ConflictError):
            await create(medication, [4], date(2025, 1, 15))
        monkeypatch.undo()

        patterns = await PatternService.list_patterns(medication.id)
        assert len(patterns) == 1
        assert patterns[0].end_date == date(2025, 1, 14)


# ── Write locks ──────────────────────────────────────────────────────

class TestWriteLocks:
    @pytest.mark.asyncio
    async def test_lock_dropped_after_write(self, db):
        await create(make_medication(), [4, 3], date(2025, 1, 15))
        gc.collect()
        assert "m1" not in PatternService._locks

    @pytest.mark.asyncio
    async def test_lock_shared_while_held(self, db):
        lock = PatternService._lock_for("m1")
        assert PatternService._lock_for("m1") is lock
        assert PatternService._lock_for("m2") is not lock


# ── Queries ──────────────────────────────────────────────────────────

class TestPatternQueries:
    @pytest.mark.asyncio
    async def test_no_active_pattern(self, db):
        with pytest.raises(NotFoundError, match="fixed dosage"):
            await PatternService.get_active_pattern("m1")

    @pytest.mark.asyncio
    async def test_history_paging(self, db):
        medication = make_medication()
        for start in [date(2024, 12, 1), date(2025, 1, 1), date(2025, 1, 15)]:
            await create(medication, [4, 3], start)

        page = await PatternService.get_pattern_history(medication.id, page=1, page_size=2)
        assert page.total_count == 3
        assert page.total_pages == 2
        assert [p.start_date for p in page.items] == [date(2025, 1, 15), date(2025, 1, 1)]

        page2 = await PatternService.get_pattern_history(medication.id, page=2, page_size=2)
        assert [p.start_date for p in page2.items] == [date(2024, 12, 1)]

        active = await PatternService.get_pattern_history(medication.id, active_only=True)
        assert active.total_count == 1

    @pytest.mark.asyncio
    async def test_historical_date_uses_pattern_in_effect(self, db):
        medication = make_medication()
        await create(medication, [4, 3, 3], date(2024, 12, 1))
        await create(medication, [5], date(2025, 1, 15))

        expected = await PatternService.get_expected_dose(medication, date(2025, 1, 10))
        assert expected.source == "pattern"
        assert expected.dosage == Decimal("3")
        assert expected.pattern_day == 2
        assert expected.pattern_length == 3

    @pytest.mark.asyncio
    async def test_fixed_dose_fallback(self, db):
        medication = make_medication(dosage=5)
        expected = await PatternService.get_expected_dose(medication, TODAY)
        assert expected.source == "fixed"
        assert expected.dosage == Decimal("5")
        assert expected.pattern_id is None

    @pytest.mark.asyncio
    async def test_nothing_to_expect(self, db):
        expected = await PatternService.get_expected_dose(make_medication(), TODAY)
        assert expected.source == "none"
        assert expected.dosage is None
        assert not expected.is_scheduled

    @pytest.mark.asyncio
    async def test_patterns_scoped_to_medication(self, db):
        await create(make_medication(), [4, 3], date(2025, 1, 1))
        other = make_medication(medication_id="m2")
        assert await PatternService.get_pattern_for_date(other.id, TODAY) is None
        await create(other, [2], TODAY - timedelta(days=1))
        assert (await PatternService.get_active_pattern("m2")).sequence == doses(2)

    @pytest.mark.asyncio
    async def test_every_other_day_keeps_spacing_across_patterns(self, db):
        # No start date: the rule is anchored at created_at (2024-11-01)
        medication = make_medication(frequency=Frequency(kind=FrequencyKind.EVERY_OTHER_DAY))
        await create(medication, [4, 3, 3], date(2024, 12, 1))
        await create(medication, [5, 5], date(2025, 1, 15))

        results = [
            await PatternService.get_expected_dose(medication, date(2025, 1, 13) + timedelta(days=n))
            for n in range(4)
        ]

        assert [r.is_scheduled for r in results] == [False, True, False, True]
        assert results[1].dosage == Decimal("3")
        assert results[1].pattern_day == 2
        assert results[2].dosage is None
        assert results[3].dosage == Decimal("5")
        assert results[3].pattern_day == 1
