"""
Dosage pattern service: temporal lookups and the pattern write path.
"""

import asyncio
import logging
import weakref
from datetime import date
from typing import List, Optional

from pymongo.errors import DuplicateKeyError, PyMongoError

from ..database import Database, DOSAGE_PATTERNS
from ..errors import ConflictError, NotFoundError
from ..engine.calculator import resolve_dose
from ..engine.frequency import is_scheduled
from ..engine.resolver import PatternClosure, find_pattern_for_date, plan_pattern_write
from ..engine.validation import validate_pattern
from ..models.common import PagedList, utcnow
from ..models.medication import Medication
from ..models.pattern import DosagePattern, DosagePatternCreate, ExpectedDose, PatternCreateResult
from .documents import date_to_db, dose_to_db, from_db, parse_object_id

logger = logging.getLogger(__name__)


class PatternService:
    """Dosage pattern management service."""

    # Serializes read-close-insert per medication within this process. Other
    # processes are held off by the conditional close and the unique partial
    # index on open patterns. Entries disappear once no writer holds the lock.
    _locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    @classmethod
    def _lock_for(cls, medication_id: str) -> asyncio.Lock:
        lock = cls._locks.get(medication_id)
        if lock is None:
            lock = asyncio.Lock()
            cls._locks[medication_id] = lock
        return lock

    @classmethod
    async def list_patterns(cls, medication_id: str) -> List[DosagePattern]:
        """All patterns of a medication, oldest start first."""
        patterns = Database.get_collection(DOSAGE_PATTERNS)

        cursor = patterns.find({"medication_id": medication_id}).sort("start_date", 1)

        results = []
        async for pattern in cursor:
            results.append(DosagePattern(**from_db(pattern)))

        return results

    @classmethod
    async def create_pattern(
        cls,
        medication: Medication,
        data: DosagePatternCreate,
        today: Optional[date] = None
    ) -> PatternCreateResult:
        """
        Validate and store a new pattern, closing the previous one if asked.

        The previous pattern gets ``end_date = start_date - 1 day``. Either
        both writes happen or neither does.
        """
        outcome = validate_pattern(
            data.sequence,
            data.start_date,
            data.end_date,
            data.notes,
            medication=medication,
            today=today
        )
        outcome.raise_for_errors()

        patterns = Database.get_collection(DOSAGE_PATTERNS)

        async with cls._lock_for(medication.id):
            existing = await cls.list_patterns(medication.id)
            closure = plan_pattern_write(
                existing,
                data.start_date,
                data.end_date,
                data.close_previous_pattern
            )

            now = utcnow()
            if closure is not None:
                previous = closure.pattern
                # Only close the row as it was read; another writer may have
                # changed it since.
                closed = await patterns.update_one(
                    {
                        "_id": parse_object_id(previous.id),
                        "end_date": date_to_db(previous.end_date),
                        "is_open": previous.end_date is None
                    },
                    {"$set": {
                        "end_date": date_to_db(closure.end_date),
                        "is_open": False,
                        "updated_at": now
                    }}
                )
                if closed.modified_count == 0:
                    raise ConflictError(
                        "The pattern history of this medication changed while the new pattern "
                        "was being created. Reload and try again.",
                        details={"medication_id": medication.id, "pattern_id": previous.id},
                    )
                logger.info(
                    "Closed previous pattern %s for medication %s, end date set to %s",
                    closure.pattern.id, medication.id, closure.end_date.isoformat()
                )

            pattern_doc = {
                "medication_id": medication.id,
                "sequence": [dose_to_db(d) for d in data.sequence],
                "start_date": date_to_db(data.start_date),
                "end_date": date_to_db(data.end_date),
                "is_open": data.end_date is None,
                "notes": data.notes,
                "created_at": now,
                "updated_at": None
            }

            try:
                result = await patterns.insert_one(pattern_doc)
            except PyMongoError as exc:
                if closure is not None:
                    await cls._reopen(closure)
                if isinstance(exc, DuplicateKeyError):
                    raise ConflictError(
                        "Another active pattern was created for this medication at the same time.",
                        details={"medication_id": medication.id},
                    ) from exc
                raise

        pattern_doc["_id"] = str(result.inserted_id)
        pattern = DosagePattern(**pattern_doc)
        logger.info(
            "Created dosage pattern %s for medication %s, pattern length %d, start date %s",
            pattern.id, medication.id, pattern.pattern_length, pattern.start_date.isoformat()
        )

        return PatternCreateResult(
            pattern=pattern,
            closed_pattern_id=closure.pattern.id if closure else None,
            warnings=outcome.warnings
        )

    @classmethod
    async def _reopen(cls, closure: PatternClosure) -> None:
        """Undo a close after the new pattern failed to insert."""
        patterns = Database.get_collection(DOSAGE_PATTERNS)
        previous = closure.pattern
        try:
            await patterns.update_one(
                {
                    "_id": parse_object_id(previous.id),
                    "end_date": date_to_db(closure.end_date),
                    "is_open": False
                },
                {"$set": {
                    "end_date": date_to_db(previous.end_date),
                    "is_open": previous.end_date is None,
                    "updated_at": previous.updated_at
                }}
            )
        except PyMongoError:
            # Left closed: an earlier end date never overlaps another pattern
            logger.exception("Could not revert close of pattern %s", previous.id)
            return
        logger.warning("Reverted close of pattern %s after failed insert", previous.id)

    @classmethod
    async def get_active_pattern(cls, medication_id: str) -> DosagePattern:
        """The open-ended pattern of a medication."""
        patterns = Database.get_collection(DOSAGE_PATTERNS)

        pattern = await patterns.find_one(
            {"medication_id": medication_id, "end_date": None},
            sort=[("start_date", -1)]
        )
        if not pattern:
            raise NotFoundError(
                f"No active dosage pattern found for medication {medication_id}. "
                "The medication may be using a fixed dosage.",
                details={"medication_id": medication_id},
            )

        return DosagePattern(**from_db(pattern))

    @classmethod
    async def get_pattern_history(
        cls,
        medication_id: str,
        page: int = 1,
        page_size: int = 10,
        active_only: bool = False
    ) -> PagedList[DosagePattern]:
        """Patterns of a medication, newest start first."""
        patterns = Database.get_collection(DOSAGE_PATTERNS)

        filter_query = {"medication_id": medication_id}
        if active_only:
            filter_query["end_date"] = None

        total_count = await patterns.count_documents(filter_query)
        cursor = (
            patterns.find(filter_query)
            .sort("start_date", -1)
            .skip((page - 1) * page_size)
            .limit(page_size)
        )

        items = []
        async for pattern in cursor:
            items.append(DosagePattern(**from_db(pattern)))

        return PagedList[DosagePattern](
            items=items,
            total_count=total_count,
            page=page,
            page_size=page_size
        )

    @classmethod
    async def get_pattern_for_date(cls, medication_id: str, day: date) -> Optional[DosagePattern]:
        """Pattern in effect on ``day`` (past, present or future)."""
        return find_pattern_for_date(await cls.list_patterns(medication_id), day)

    @classmethod
    async def get_expected_dose(cls, medication: Medication, day: date) -> ExpectedDose:
        """Expected dose on ``day``, from a pattern or the fixed-dose fallback."""
        pattern = await cls.get_pattern_for_date(medication.id, day)
        return expected_dose_for(medication, pattern, day)


def expected_dose_for(medication: Medication, pattern: Optional[DosagePattern], day: date) -> ExpectedDose:
    """Resolve the expected dose given the pattern already chosen for ``day``."""
    frequency = medication.frequency
    if pattern is not None:
        resolved = resolve_dose(pattern, day, frequency, frequency_anchor(medication))
        return ExpectedDose(
            medication_id=medication.id,
            target_date=day,
            dosage=resolved.dose if resolved else None,
            dosage_unit=medication.dosage_unit,
            is_scheduled=resolved is not None,
            source="pattern",
            pattern_id=pattern.id,
            pattern_day=resolved.cycle_day if resolved else None,
            pattern_length=pattern.pattern_length
        )

    if medication.dosage is not None:
        scheduled = is_scheduled(frequency, day, frequency_anchor(medication))
        return ExpectedDose(
            medication_id=medication.id,
            target_date=day,
            dosage=medication.dosage if scheduled else None,
            dosage_unit=medication.dosage_unit,
            is_scheduled=scheduled,
            source="fixed"
        )

    return ExpectedDose(
        medication_id=medication.id,
        target_date=day,
        dosage_unit=medication.dosage_unit,
        is_scheduled=False,
        source="none"
    )


def frequency_anchor(medication: Medication) -> date:
    """
    Reference date of the medication's frequency rule.

    Shared by every pattern and the fixed dose so that scheduled days keep
    their spacing across pattern changes.
    """
    return medication.start_date or medication.created_at.date()
