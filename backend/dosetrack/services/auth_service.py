"""
Bearer token handling for the identity context.

Tokens are issued by the surrounding application; this service only signs
(for tooling and tests) and verifies them to recover the owning user id.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt

from ..config import get_settings
from ..models.user import TokenData, User

settings = get_settings()


class AuthService:
    """JWT encode/decode."""

    @staticmethod
    def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Create JWT access token."""
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> Optional[TokenData]:
        """Decode and validate JWT token."""
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            return None
        user_id = payload.get("sub")
        if user_id is None:
            return None
        return TokenData(user_id=str(user_id))

    @classmethod
    def get_current_user(cls, token: str) -> Optional[User]:
        """Get current user from token."""
        token_data = cls.decode_token(token)
        if not token_data:
            return None
        return User(id=token_data.user_id)
