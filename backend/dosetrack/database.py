"""
MongoDB async database connection using Motor.
Provides database instance and collection access.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from typing import Optional
from .config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

MEDICATIONS = "medications"
DOSAGE_PATTERNS = "dosage_patterns"
MEDICATION_LOGS = "medication_logs"


class Database:
    """MongoDB database connection manager."""

    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None

    @classmethod
    async def connect(cls):
        """Connect to MongoDB."""
        cls.client = AsyncIOMotorClient(settings.MONGODB_URL, tz_aware=False)
        cls.db = cls.client[settings.DATABASE_NAME]

        # Verify connection
        await cls.client.admin.command('ping')
        logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)

        await cls._create_indexes()

    @classmethod
    async def disconnect(cls):
        """Disconnect from MongoDB."""
        if cls.client:
            cls.client.close()
            logger.info("Disconnected from MongoDB")
        cls.client = None
        cls.db = None

    @classmethod
    async def _create_indexes(cls):
        """Create database indexes for lookups and pattern invariants."""
        if cls.db is None:
            return

        await cls.db[MEDICATIONS].create_index("user_id")

        patterns = cls.db[DOSAGE_PATTERNS]
        await patterns.create_index([("medication_id", ASCENDING), ("start_date", DESCENDING)])
        # At most one open-ended pattern per medication
        await patterns.create_index(
            "medication_id",
            name="one_open_pattern_per_medication",
            unique=True,
            partialFilterExpression={"is_open": True},
        )

        logs = cls.db[MEDICATION_LOGS]
        await logs.create_index([("user_id", ASCENDING), ("medication_id", ASCENDING), ("taken_at", DESCENDING)])
        await logs.create_index("variance_magnitude")

        logger.info("Database indexes created")

    @classmethod
    def get_collection(cls, name: str):
        """Get a collection by name."""
        if cls.db is None:
            raise RuntimeError("Database not connected")
        return cls.db[name]

