"""JWT issuance and verification for the accounts service."""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel

from usergate.apps.accounts.core.settings import get_accounts_config
from usergate.services.core.auth import bearer_scheme


class TokenPayload(BaseModel):
    """Claims shared by access and refresh tokens."""

    user_id: str
    is_admin: bool = False
    device_name: str


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str


class RefreshPrincipal(BaseModel):
    """Caller identified by a valid refresh token."""

    user_id: str
    device_name: str
    refresh_token: str


def _token_settings(kind: str) -> tuple[str, int, str]:
    config = get_accounts_config()
    accounts = config.ACCOUNTS
    secret = config.get_secret("ACCOUNTS", f"{kind}_TOKEN_SECRET")
    return secret, int(accounts[f"{kind}_TOKEN_EXP"]), accounts.JWT_ALGORITHM


def create_token(payload: TokenPayload, secret: str, expires_in: int, algorithm: str = "HS256") -> str:
    """Sign a JWT carrying the payload claims.

    Every token gets its own `jti`, so two tokens for the same payload never compare equal.
    """
    now = datetime.now(timezone.utc)
    claims: Dict[str, Any] = {
        **payload.model_dump(),
        "sub": payload.user_id,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=expires_in)).timestamp()),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, secret, algorithm=algorithm)


async def get_tokens(payload: TokenPayload) -> TokenPair:
    """Sign the access and refresh tokens concurrently."""
    access_secret, access_exp, algorithm = _token_settings("ACCESS")
    refresh_secret, refresh_exp, _ = _token_settings("REFRESH")
    access_token, refresh_token = await asyncio.gather(
        asyncio.to_thread(create_token, payload, access_secret, access_exp, algorithm),
        asyncio.to_thread(create_token, payload, refresh_secret, refresh_exp, algorithm),
    )
    return TokenPair(access_token=access_token, refresh_token=refresh_token)


def _decode(token: str, kind: str) -> TokenPayload:
    secret, _, algorithm = _token_settings(kind)
    try:
        claims = jwt.decode(token, secret, algorithms=[algorithm])
        return TokenPayload(**claims)
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except (jwt.InvalidTokenError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )


def decode_access_token(token: str) -> TokenPayload:
    return _decode(token, "ACCESS")


def decode_refresh_token(token: str) -> TokenPayload:
    return _decode(token, "REFRESH")


def verify_access_token(token: str) -> dict:
    """Token verifier for `set_token_verifier`: access token in, principal dict out."""
    return decode_access_token(token).model_dump()


async def require_refresh_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> RefreshPrincipal:
    """FastAPI dependency reading a refresh token from the Bearer header."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_refresh_token(credentials.credentials)
    return RefreshPrincipal(
        user_id=payload.user_id,
        device_name=payload.device_name,
        refresh_token=credentials.credentials,
    )
