"""Utility methods relating to password hashing and verification."""

from pwdlib import PasswordHash
from pwdlib.exceptions import UnknownHashError


def _get_password_hasher() -> PasswordHash:
    """Get or create the password hasher instance.

    Returns:
        PasswordHash instance with recommended settings
    """
    if not hasattr(_get_password_hasher, "cached_instance"):
        _get_password_hasher.cached_instance = PasswordHash.recommended()
    return _get_password_hasher.cached_instance


def get_password_hasher() -> PasswordHash:
    """Get the underlying PasswordHash instance for advanced usage.

    Returns:
        PasswordHash instance with recommended settings
    """
    return _get_password_hasher()


def hash_password(password: str) -> str:
    """Hash a password (or any secret string) using Argon2.

    Args:
        password: Plain text value to hash

    Returns:
        Hashed string that can be safely stored in a database

    Example:

            hashed = hash_password("my_secure_password")
            user.password = hashed

    """
    return _get_password_hasher().hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain value against its hash.

    Hashes produced by an unknown scheme never match.

    Args:
        plain_password: Plain text value to verify
        hashed_password: Hashed value from the database

    Returns:
        True if the value matches, False otherwise
    """
    try:
        return _get_password_hasher().verify(plain_password, hashed_password)
    except UnknownHashError:
        return False


__all__ = [
    "hash_password",
    "verify_password",
    "get_password_hasher",
]
