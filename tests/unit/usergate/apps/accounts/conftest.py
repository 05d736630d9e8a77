"""In-memory stand-ins for the accounts repositories (no Mongo)."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId

from usergate.apps.accounts.core import HashService, reset_accounts_config
from usergate.apps.accounts.repositories import generate_otp
from usergate.database import DuplicateInsertError, Page, PaginateParams


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class FakeUser:
    email: str
    password: str
    is_admin: bool = False
    device_token: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    image: Optional[str] = None
    id: str = field(default_factory=lambda: str(ObjectId()))
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


@dataclass
class FakeCode:
    email: str
    otp: str
    expires_at: datetime
    is_active: bool = True
    id: str = field(default_factory=lambda: str(ObjectId()))
    created_at: datetime = field(default_factory=_now)


@dataclass
class FakeRefreshToken:
    user_id: str
    device_name: str
    refresh_token: str


class FakeUsersRepository:
    def __init__(self) -> None:
        self.users: Dict[str, FakeUser] = {}

    async def find_by_email(self, email: str) -> Optional[FakeUser]:
        return next((u for u in self.users.values() if u.email == email), None)

    async def find_by_id(self, user_id: str) -> Optional[FakeUser]:
        return self.users.get(user_id)

    async def create(self, data: Dict[str, Any]) -> FakeUser:
        if await self.find_by_email(data["email"]) is not None:
            raise DuplicateInsertError("Duplicate key error. Document already exists!")
        user = FakeUser(**data)
        self.users[user.id] = user
        return user

    async def update_by_id(self, user_id: str, fields: Dict[str, Any]) -> Optional[FakeUser]:
        user = self.users.get(user_id)
        if user is None:
            return None
        if "email" in fields:
            other = await self.find_by_email(fields["email"])
            if other is not None and other.id != user_id:
                raise DuplicateInsertError("Duplicate key error. Document already exists!")
        for key, value in fields.items():
            setattr(user, key, value)
        user.updated_at = _now()
        return user

    async def list_users(
        self,
        email: Optional[str] = None,
        is_admin: Optional[bool] = None,
        paginate: Optional[PaginateParams] = None,
    ) -> Page:
        matches: List[FakeUser] = [
            u
            for u in self.users.values()
            if (email is None or u.email == email) and (is_admin is None or u.is_admin == is_admin)
        ]
        data = matches
        if paginate is not None and paginate.is_requested:
            skip, limit = paginate.bounds()
            data = matches[skip : skip + limit]
        return Page(data=data, count=len(matches))


class FakeCodeRepository:
    def __init__(self) -> None:
        self.codes: List[FakeCode] = []

    def add_active_code(self, email: str, otp: str = "123456") -> FakeCode:
        code = FakeCode(email=email, otp=otp, expires_at=_now() + timedelta(minutes=10))
        self.codes.append(code)
        return code

    def _active(self, email: str) -> List[FakeCode]:
        return [c for c in self.codes if c.email == email and c.is_active and c.expires_at > _now()]

    async def find_active_code(self, email: str) -> Optional[FakeCode]:
        active = self._active(email)
        return active[-1] if active else None

    async def find_code_by_email_and_otp(self, email: str, otp: str) -> Optional[FakeCode]:
        return next((c for c in reversed(self._active(email)) if c.otp == otp), None)

    async def issue_code(self, email: str, ttl_seconds: int) -> FakeCode:
        for code in self._active(email):
            code.is_active = False
        code = FakeCode(email=email, otp=generate_otp(), expires_at=_now() + timedelta(seconds=ttl_seconds))
        self.codes.append(code)
        return code

    async def deactivate(self, code: FakeCode) -> None:
        code.is_active = False


class FakeRefreshTokenRepository:
    def __init__(self) -> None:
        self.tokens: Dict[tuple, FakeRefreshToken] = {}

    async def get_refresh_token(self, user_id: str, device_name: str) -> Optional[FakeRefreshToken]:
        return self.tokens.get((user_id, device_name))

    async def update_refresh_token(self, user_id: str, device_name: str, refresh_token: str) -> FakeRefreshToken:
        record = FakeRefreshToken(user_id=user_id, device_name=device_name, refresh_token=refresh_token)
        self.tokens[(user_id, device_name)] = record
        return record

    async def delete_refresh_token(self, user_id: str, device_name: str) -> bool:
        return self.tokens.pop((user_id, device_name), None) is not None


@pytest.fixture(autouse=True)
def accounts_config(monkeypatch, tmp_path):
    """Fresh accounts config per test, with media written to a temporary directory."""
    monkeypatch.setenv("ACCOUNTS__MEDIA_DIR", str(tmp_path / "media"))
    reset_accounts_config()
    yield
    reset_accounts_config()


@pytest.fixture
def users_repo() -> FakeUsersRepository:
    return FakeUsersRepository()


@pytest.fixture
def codes_repo() -> FakeCodeRepository:
    return FakeCodeRepository()


@pytest.fixture
def refresh_repo() -> FakeRefreshTokenRepository:
    return FakeRefreshTokenRepository()


@pytest.fixture(scope="session")
def hasher() -> HashService:
    return HashService()
