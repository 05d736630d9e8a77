import os
from typing import Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from pymongo import MongoClient
from pymongo.errors import ServerSelectionTimeoutError

from usergate.apps.accounts import AccountsService, reset_accounts_config
from usergate.apps.accounts.db import reset_db

TEST_MONGO_URI = os.environ.get("USERGATE_TEST_MONGO_URI", "mongodb://localhost:27017")
TEST_DB_NAME = "usergate_test"
TEST_COLLECTIONS: List[str] = ["users", "verification_codes", "refresh_tokens"]

ADMIN_EMAIL = "admin@usergate.io"
ADMIN_PASSWORD = "integration-admin"


@pytest.fixture(autouse=True)
def _set_accounts_test_env(monkeypatch) -> Generator[None, None, None]:
    """
    Point the accounts service at the test MongoDB instance.

    DEBUG is on so that issued codes are echoed back.
    """
    monkeypatch.setenv("ACCOUNTS__MONGO_URI", TEST_MONGO_URI)
    monkeypatch.setenv("ACCOUNTS__MONGO_DB", TEST_DB_NAME)
    monkeypatch.setenv("ACCOUNTS__DEBUG", "true")
    monkeypatch.setenv("ACCOUNTS__SEED_ADMIN", "true")
    monkeypatch.setenv("ACCOUNTS__ADMIN_EMAIL", ADMIN_EMAIL)
    monkeypatch.setenv("ACCOUNTS__ADMIN_PASSWORD", ADMIN_PASSWORD)
    reset_accounts_config()
    yield
    reset_accounts_config()


def _get_test_db() -> Optional[MongoClient]:
    """Return a client for the test MongoDB, or None if it is not reachable."""
    client = MongoClient(TEST_MONGO_URI, serverSelectionTimeoutMS=2000)
    try:
        client[TEST_DB_NAME].list_collection_names()
    except ServerSelectionTimeoutError:
        client.close()
        return None
    return client


def _wipe_test_collections(client: MongoClient) -> None:
    db = client[TEST_DB_NAME]
    collections = set(db.list_collection_names())
    for name in TEST_COLLECTIONS:
        if name in collections:
            db[name].delete_many({})


@pytest.fixture
def mongo() -> Generator[MongoClient, None, None]:
    """Clean test database around each test. Skips the test when MongoDB is down."""
    client = _get_test_db()
    if client is None:
        pytest.skip(f"MongoDB not reachable on {TEST_MONGO_URI}")
    _wipe_test_collections(client)
    try:
        yield client
    finally:
        _wipe_test_collections(client)
        client.close()


@pytest.fixture
def client(mongo) -> Generator[TestClient, None, None]:
    """In-process client for a fully wired AccountsService, with startup and shutdown run around each test."""
    reset_db()
    with TestClient(AccountsService().app) as client:
        yield client
    reset_db()
