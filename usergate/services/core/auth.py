"""Authentication module for usergate services.

Provides stateless Bearer token authentication. Applications register their own verifier, which turns a token into
a principal dict, and attach a `Scope` to each endpoint.
"""

import inspect
from typing import Awaitable, Callable, List, Optional, Union

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from usergate.services.core.types import Scope

TokenVerifier = Union[Callable[[str], dict], Callable[[str], Awaitable[dict]]]


class _TokenVerifierState:
    """Module-level state for token verifier."""

    verifier: Optional[TokenVerifier] = None


_state = _TokenVerifierState()


def set_token_verifier(verifier: Optional[TokenVerifier]):
    """Set the token verification function.

    The verifier can be synchronous or asynchronous. It accepts the raw token string, returns a dict describing the
    caller and raises HTTPException if the token is not valid.

    Example:
        .. code-block:: python

            def verify(token: str) -> dict:
                claims = jwt.decode(token, secret, algorithms=["HS256"])
                return {"user_id": claims["user_id"], "is_admin": claims["is_admin"]}

            set_token_verifier(verify)
    """
    _state.verifier = verifier


def get_token_verifier() -> Optional[TokenVerifier]:
    """Get the current token verification function."""
    return _state.verifier


bearer_scheme = HTTPBearer(
    auto_error=False,
    scheme_name="Bearer",
    description="JWT Bearer token authentication. Format: Bearer <token>",
)


async def verify_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> dict:
    """Verify the Bearer token and return the principal.

    Raises:
        HTTPException: 401 if the token is missing, rejected by the verifier, or no verifier is configured.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    verifier = get_token_verifier()
    if verifier is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        if inspect.iscoroutinefunction(verifier):
            return await verifier(credentials.credentials)
        return verifier(credentials.credentials)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def require_admin(principal: dict = Depends(verify_token)) -> dict:
    """Allow the request only for principals flagged as admins."""
    if principal.get("is_admin") is not True:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Can't access this route.")
    return principal


def get_auth_dependencies(scope: Scope) -> List:
    """Route dependencies enforcing the given scope. PUBLIC endpoints get none."""
    if scope == Scope.ADMIN:
        return [Depends(require_admin)]
    if scope == Scope.AUTHENTICATED:
        return [Security(verify_token)]
    return []


__all__ = [
    "bearer_scheme",
    "get_auth_dependencies",
    "get_token_verifier",
    "require_admin",
    "set_token_verifier",
    "verify_token",
]
