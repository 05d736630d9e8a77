from typing import Optional

from pydantic import BaseModel, SecretStr

from usergate.core import Config


class AccountsSettings(BaseModel):
    """Accounts service configuration settings."""

    # Service URL
    URL: str = "http://localhost:8080"

    # Database
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "usergate"

    # Tokens
    ACCESS_TOKEN_SECRET: SecretStr = SecretStr("dev-access-secret")
    ACCESS_TOKEN_EXP: int = 15 * 60  # seconds
    REFRESH_TOKEN_SECRET: SecretStr = SecretStr("dev-refresh-secret")
    REFRESH_TOKEN_EXP: int = 7 * 24 * 60 * 60  # seconds
    JWT_ALGORITHM: str = "HS256"

    # Verification codes
    CODE_TTL: int = 10 * 60  # seconds

    # Uploads
    MEDIA_DIR: str = "~/.cache/usergate/media"
    MAX_IMAGE_BYTES: int = 5 * 1024 * 1024

    # Admin seeding
    SEED_ADMIN: bool = False
    ADMIN_EMAIL: str = "admin@usergate.io"
    ADMIN_PASSWORD: SecretStr = SecretStr("change-me")

    DEBUG: bool = False


_config: Optional[Config] = None


def get_accounts_config() -> Config:
    """Load cached Config with ACCOUNTS__ env override support."""
    global _config
    if _config is None:
        _config = Config.load(defaults={"ACCOUNTS": AccountsSettings().model_dump()})
    return _config


def reset_accounts_config() -> None:
    """Reset config cache (useful in tests)."""
    global _config
    _config = None
