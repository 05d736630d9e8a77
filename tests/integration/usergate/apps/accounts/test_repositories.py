import asyncio

import pytest
import pytest_asyncio

from usergate.apps.accounts.db import close_db, initialize_db, reset_db
from usergate.apps.accounts.repositories import RefreshTokenRepository, UsersRepository
from usergate.database import DuplicateInsertError

pytestmark = pytest.mark.integration


@pytest_asyncio.fixture
async def db(mongo):
    reset_db()
    await initialize_db()
    yield mongo
    await close_db()


@pytest.mark.asyncio
async def test_create_with_taken_email_raises_duplicate_insert_error(db):
    users = UsersRepository()
    await users.create({"email": "dup@x.com", "password": "hash"})

    with pytest.raises(DuplicateInsertError):
        await users.create({"email": "dup@x.com", "password": "other-hash"})

    assert len(await users.find({"email": "dup@x.com"})) == 1


@pytest.mark.asyncio
async def test_concurrent_first_sessions_for_a_device_keep_one_record(db):
    tokens = RefreshTokenRepository()

    results = await asyncio.gather(
        *(tokens.update_refresh_token("507f1f77bcf86cd799439011", "phone", f"hash-{i}") for i in range(10))
    )

    assert all(result is not None for result in results)
    records = await tokens.find({"user_id": "507f1f77bcf86cd799439011", "device_name": "phone"})
    assert len(records) == 1
    assert records[0].refresh_token in {f"hash-{i}" for i in range(10)}


@pytest.mark.asyncio
async def test_update_refresh_token_overwrites_existing_record(db):
    tokens = RefreshTokenRepository()
    await tokens.update_refresh_token("u1", "phone", "first")
    await tokens.update_refresh_token("u1", "phone", "second")

    stored = await tokens.get_refresh_token("u1", "phone")
    assert stored.refresh_token == "second"
    assert await tokens.delete_refresh_token("u1", "phone") is True
    assert await tokens.get_refresh_token("u1", "phone") is None
