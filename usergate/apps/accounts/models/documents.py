"""Beanie Document models for the accounts MongoDB collections."""

from datetime import datetime, timezone
from typing import Optional

from beanie import Indexed
from pydantic import Field
from pymongo import ASCENDING, IndexModel

from usergate.database import UserGateDocument


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UserDocument(UserGateDocument):
    """User account."""

    email: Indexed(str, unique=True)
    password: str
    is_admin: bool = False
    device_token: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    image: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    class Settings:
        name = "users"
        use_cache = False
        indexes = ["is_admin"]


class VerificationCodeDocument(UserGateDocument):
    """One-time code proving ownership of an email address."""

    email: Indexed(str)
    otp: str
    is_active: bool = True
    expires_at: datetime
    created_at: datetime = Field(default_factory=utc_now)

    class Settings:
        name = "verification_codes"
        use_cache = False
        indexes = [
            [("email", ASCENDING), ("is_active", ASCENDING)],
        ]


class RefreshTokenDocument(UserGateDocument):
    """Hashed refresh token of one (user, device) session."""

    user_id: str
    device_name: str
    refresh_token: str
    updated_at: datetime = Field(default_factory=utc_now)

    class Settings:
        name = "refresh_tokens"
        use_cache = False
        indexes = [
            IndexModel([("user_id", ASCENDING), ("device_name", ASCENDING)], unique=True),
        ]
