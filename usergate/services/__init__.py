from usergate.services.core.auth import (
    bearer_scheme,
    get_auth_dependencies,
    get_token_verifier,
    require_admin,
    set_token_verifier,
    verify_token,
)
from usergate.services.core.middleware import RequestLoggingMiddleware
from usergate.services.core.service import Service
from usergate.services.core.types import EndpointMetadata, EndpointsOutput, Scope, ServerStatus, StatusOutput

__all__ = [
    "bearer_scheme",
    "EndpointMetadata",
    "EndpointsOutput",
    "get_auth_dependencies",
    "get_token_verifier",
    "RequestLoggingMiddleware",
    "require_admin",
    "Scope",
    "ServerStatus",
    "Service",
    "set_token_verifier",
    "StatusOutput",
    "verify_token",
]
