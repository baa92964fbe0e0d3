"""
Medication dose logging service.
"""

import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional

from ..config import get_settings
from ..database import Database, MEDICATION_LOGS
from ..errors import NotFoundError
from ..engine.validation import validate_dose_entry
from ..engine.variance import compute_variance
from ..models.common import PagedList, utcnow
from ..models.log import MedicationLog, MedicationLogCreate
from ..models.medication import Medication
from .documents import dose_to_db, from_db, parse_object_id
from .pattern_service import PatternService

settings = get_settings()
logger = logging.getLogger(__name__)


class LogService:
    """Dose log recording and retrieval."""

    @classmethod
    async def record_dose(
        cls,
        medication: Medication,
        data: MedicationLogCreate,
        user_id: str,
        now: Optional[datetime] = None
    ) -> MedicationLog:
        """
        Record a dose and freeze its expected dose and variance.

        The expectation comes from the pattern in effect on the date the dose
        was taken, falling back to the medication's fixed dose.
        """
        now = now or utcnow()
        taken_at = data.taken_at or now

        outcome = validate_dose_entry(data.dosage, taken_at, data.notes, now=now)
        outcome.raise_for_errors("Dose log validation failed")

        expected = await PatternService.get_expected_dose(medication, taken_at.date())
        variance = compute_variance(data.dosage, expected.dosage, settings.VARIANCE_TOLERANCE)

        log_doc = {
            "user_id": user_id,
            "medication_id": medication.id,
            "dosage": dose_to_db(data.dosage),
            "taken_at": taken_at,
            "expected_dosage": dose_to_db(expected.dosage),
            "pattern_id": expected.pattern_id if expected.dosage is not None else None,
            "pattern_day_number": expected.pattern_day,
            "has_variance": variance.has_variance,
            "variance_amount": dose_to_db(variance.amount),
            "variance_percentage": dose_to_db(variance.percentage),
            # Query-only copy of |variance| for threshold filtering
            "variance_magnitude": float(abs(variance.amount)) if variance.amount is not None else None,
            "notes": data.notes,
            "created_at": now
        }

        logs = Database.get_collection(MEDICATION_LOGS)
        result = await logs.insert_one(log_doc)
        log_doc["_id"] = str(result.inserted_id)

        log = MedicationLog(**log_doc)
        if log.has_variance:
            logger.info(
                "Logged dose %s for medication %s: %s vs expected %s (variance %s)",
                log.id, medication.id, log.dosage, log.expected_dosage, log.variance_amount
            )
        else:
            logger.info("Logged dose %s for medication %s", log.id, medication.id)

        return log

    @classmethod
    async def get_log(cls, log_id: str, user_id: str) -> MedicationLog:
        """Get one log owned by ``user_id``."""
        object_id = parse_object_id(log_id)
        log = None
        if object_id is not None:
            logs = Database.get_collection(MEDICATION_LOGS)
            log = await logs.find_one({"_id": object_id, "user_id": user_id})

        if not log:
            raise NotFoundError("Medication log not found", details={"log_id": log_id})

        return MedicationLog(**from_db(log))

    @classmethod
    async def get_logs(
        cls,
        user_id: str,
        medication_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        variance_only: bool = False,
        variance_threshold: Decimal = Decimal("0.01"),
        page: int = 1,
        page_size: int = 20
    ) -> PagedList[MedicationLog]:
        """
        Filtered logs, newest first. Date bounds are inclusive calendar days.

        ``variance_only`` keeps logs whose |variance| is strictly above
        ``variance_threshold``, the same rule as ``has_variance``.
        """
        logs = Database.get_collection(MEDICATION_LOGS)

        filter_query = {"user_id": user_id}
        if medication_id:
            filter_query["medication_id"] = medication_id

        taken_range = {}
        if start_date:
            taken_range["$gte"] = datetime.combine(start_date, time.min)
        if end_date:
            taken_range["$lt"] = datetime.combine(end_date + timedelta(days=1), time.min)
        if taken_range:
            filter_query["taken_at"] = taken_range

        if variance_only:
            filter_query["variance_magnitude"] = {"$gt": float(variance_threshold)}

        total_count = await logs.count_documents(filter_query)
        cursor = (
            logs.find(filter_query)
            .sort("taken_at", -1)
            .skip((page - 1) * page_size)
            .limit(page_size)
        )

        items = []
        async for log in cursor:
            items.append(MedicationLog(**from_db(log)))

        return PagedList[MedicationLog](
            items=items,
            total_count=total_count,
            page=page,
            page_size=page_size
        )
