"""
Identity context models.

Users are managed by an external identity provider; the engine only needs
the owning user id carried in the bearer token.
"""

from pydantic import BaseModel
from typing import Optional


class User(BaseModel):
    """Authenticated caller."""
    id: str


class TokenData(BaseModel):
    """JWT token payload data."""
    user_id: Optional[str] = None
