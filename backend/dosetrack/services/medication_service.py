"""
Medication record service.

The engine only needs a medication's owner, fixed-dose fallback and
frequency rule; these records are the minimal source of that data.
"""

import logging
from typing import List, Optional

from ..database import Database, MEDICATIONS
from ..errors import NotFoundError
from ..models.common import utcnow
from ..models.medication import Medication, MedicationCreate
from .documents import date_to_db, dose_to_db, from_db, parse_object_id

logger = logging.getLogger(__name__)


class MedicationService:
    """Medication lookup scoped to the owning user."""

    @classmethod
    async def create_medication(cls, data: MedicationCreate, user_id: str) -> Medication:
        """Create a medication record for ``user_id``."""
        medications = Database.get_collection(MEDICATIONS)

        medication_doc = {
            "user_id": user_id,
            "name": data.name,
            "medication_type": data.medication_type.value,
            "dosage": dose_to_db(data.dosage),
            "dosage_unit": data.dosage_unit,
            "frequency": data.frequency.model_dump(mode="json"),
            "start_date": date_to_db(data.start_date),
            "created_at": utcnow()
        }

        result = await medications.insert_one(medication_doc)
        medication_doc["_id"] = str(result.inserted_id)
        logger.info("Created medication %s for user %s", medication_doc["_id"], user_id)

        return Medication(**medication_doc)

    @classmethod
    async def get_medication(cls, medication_id: str, user_id: str) -> Optional[Medication]:
        """Get a medication by ID if it belongs to ``user_id``."""
        object_id = parse_object_id(medication_id)
        if object_id is None:
            return None

        medications = Database.get_collection(MEDICATIONS)
        medication = await medications.find_one({"_id": object_id, "user_id": user_id})
        if not medication:
            return None

        return Medication(**from_db(medication))

    @classmethod
    async def require_medication(cls, medication_id: str, user_id: str) -> Medication:
        """Like get_medication, but raise NotFoundError when missing."""
        medication = await cls.get_medication(medication_id, user_id)
        if medication is None:
            raise NotFoundError(
                f"Medication with ID {medication_id} does not exist or you don't have access.",
                details={"medication_id": medication_id},
            )
        return medication

    @classmethod
    async def list_medications(cls, user_id: str, limit: int = 100) -> List[Medication]:
        """List a user's medications, newest first."""
        medications = Database.get_collection(MEDICATIONS)

        cursor = medications.find({"user_id": user_id}).sort("created_at", -1).limit(limit)

        results = []
        async for medication in cursor:
            results.append(Medication(**from_db(medication)))

        return results
