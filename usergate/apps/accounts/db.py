"""Database module for the accounts app.

A single `MongoODM` instance registers every accounts document model. It is created on first use and initialized
during service startup.
"""

from typing import Optional

from usergate.apps.accounts.core import get_accounts_config
from usergate.apps.accounts.models.documents import RefreshTokenDocument, UserDocument, VerificationCodeDocument
from usergate.database import MongoODM

_db: Optional[MongoODM] = None


def get_db() -> MongoODM:
    """
    Get the global MongoODM instance.

    Creates the instance on first call but does NOT initialize Beanie; that happens in `initialize_db()`.

    Returns:
        MongoODM: The ODM with the accounts models registered as ``user``, ``code`` and ``refresh_token``.
    """
    global _db
    if _db is None:
        cfg = get_accounts_config().ACCOUNTS
        _db = MongoODM(
            models={
                "user": UserDocument,
                "code": VerificationCodeDocument,
                "refresh_token": RefreshTokenDocument,
            },
            db_uri=cfg.MONGO_URI,
            db_name=cfg.MONGO_DB,
        )
    return _db


async def initialize_db() -> None:
    """Connect to MongoDB, register the models with Beanie and create their indexes."""
    await get_db().initialize()


async def close_db() -> None:
    """Close the database connection and drop the global instance."""
    global _db
    if _db is not None:
        _db.close()
        _db = None


def reset_db() -> None:
    """
    Reset the global ODM instance.

    Useful in tests. Does NOT close the connection; use close_db() first if needed.
    """
    global _db
    _db = None
