"""
Application configuration using Pydantic Settings.
Loads from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Dict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "DoseTrack Dosage Pattern Engine"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # MongoDB
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "dosetrack"

    # JWT identity context
    SECRET_KEY: str = "dosetrack-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Dose bounds (dose-unit agnostic, mg by convention)
    MIN_DOSE: float = 0.1
    MAX_DOSE: float = 1000.0

    # Pattern rules
    MAX_PATTERN_LENGTH: int = 365
    LONG_PATTERN_WARNING_LENGTH: int = 20
    BACKDATE_WARNING_DAYS: int = 7
    MAX_BACKDATE_DAYS: int = 365
    MAX_NOTES_LENGTH: int = 500

    # Schedule generation
    MAX_SCHEDULE_DAYS: int = 365
    DEFAULT_SCHEDULE_DAYS: int = 14

    # Dose logging
    VARIANCE_TOLERANCE: float = 0.01
    FUTURE_LOG_GRACE_MINUTES: int = 5
    MAX_LOG_NOTES_LENGTH: int = 1000

    # Medication-specific per-dose caps, keyed by medication type or by
    # a case-insensitive keyword matched against the medication name
    MEDICATION_TYPE_DOSE_CAPS: Dict[str, float] = {"vitamin_k_antagonist": 20.0}
    MEDICATION_NAME_DOSE_CAPS: Dict[str, float] = {"warfarin": 20.0}

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
