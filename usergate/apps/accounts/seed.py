"""Creates the initial admin account. Running it more than once changes nothing."""

from typing import Optional

from usergate.apps.accounts.core import HashService, get_accounts_config
from usergate.apps.accounts.models import UserDocument
from usergate.apps.accounts.repositories import UsersRepository
from usergate.core import get_logger

logger = get_logger("apps.accounts.seed")


async def seed_admin_user(
    users: Optional[UsersRepository] = None,
    hasher: Optional[HashService] = None,
) -> Optional[UserDocument]:
    """Create the configured admin user unless a user with that email exists.

    Returns:
        The created admin, or None if it already existed.
    """
    config = get_accounts_config()
    email = config.ACCOUNTS.ADMIN_EMAIL
    password = config.get_secret("ACCOUNTS", "ADMIN_PASSWORD")
    users = users if users is not None else UsersRepository()
    hasher = hasher if hasher is not None else HashService()

    if await users.find_by_email(email) is not None:
        logger.debug(f"Admin user {email} already exists")
        return None

    admin = await users.create({"email": email, "password": await hasher.hash_data(password), "is_admin": True})
    logger.info(f"Created admin user {email}")
    return admin
