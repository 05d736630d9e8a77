from .hashing import HashService
from .security import (
    RefreshPrincipal,
    TokenPair,
    TokenPayload,
    create_token,
    decode_access_token,
    decode_refresh_token,
    get_tokens,
    require_refresh_token,
    verify_access_token,
)
from .settings import AccountsSettings, get_accounts_config, reset_accounts_config

__all__ = [
    "AccountsSettings",
    "create_token",
    "decode_access_token",
    "decode_refresh_token",
    "get_accounts_config",
    "get_tokens",
    "HashService",
    "RefreshPrincipal",
    "require_refresh_token",
    "reset_accounts_config",
    "TokenPair",
    "TokenPayload",
    "verify_access_token",
]
