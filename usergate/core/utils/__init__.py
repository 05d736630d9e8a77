"""Utility functions shared across the usergate packages."""

from .checks import ifnone
from .password import get_password_hasher, hash_password, verify_password

__all__ = [
    "get_password_hasher",
    "hash_password",
    "ifnone",
    "verify_password",
]
