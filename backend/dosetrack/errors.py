"""
Error hierarchy for the dosage pattern engine.

Every failure the engine can report is one of three kinds, so the HTTP
layer can map them to status codes without parsing message strings.

Hierarchy:
    DoseTrackError              (base)
    ├── ValidationError         (structural rule violation, never coerced)
    ├── ConflictError           (overlapping pattern without explicit close)
    └── NotFoundError           (no medication, pattern or log)

Advisory warnings are not errors; see ``engine.validation``.
"""

from typing import Any, Dict, List, Optional


class DoseTrackError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Structured representation for responses and logging."""
        d = {
            "error_type": type(self).__name__,
            "message": self.message,
        }
        if self.details:
            d["details"] = self.details
        return d


class ValidationError(DoseTrackError):
    """One or more hard validation rules failed."""

    def __init__(self, message: str = "Validation failed", *,
                 errors: Optional[List[str]] = None, **kwargs):
        self.errors = list(errors) if errors else [message]
        super().__init__(message, **kwargs)

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["errors"] = self.errors
        return d


class ConflictError(DoseTrackError):
    """The write would violate the non-overlap invariant."""
    pass


class NotFoundError(DoseTrackError):
    """Requested medication, pattern or log does not exist for this user."""
    pass
