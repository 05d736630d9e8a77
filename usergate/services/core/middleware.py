"""Request logging middleware for usergate services."""

import time
import uuid
from typing import Optional, Set

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from usergate.core.utils import ifnone


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log one record per request with method, path, status and duration.

    Example:
        .. code-block:: python

            service.app.add_middleware(RequestLoggingMiddleware, service_name="accounts", logger=service.logger)
    """

    default_ignored_paths = {"/favicon.ico", "/docs", "/openapi.json"}

    def __init__(
        self,
        app,
        service_name: str = "usergate",
        logger=None,
        add_request_id_header: bool = True,
        ignored_paths: Optional[Set[str]] = None,
    ):
        super().__init__(app)
        self.service_name = service_name
        self.logger = logger
        self.add_request_id_header = add_request_id_header
        self.ignored_paths = ifnone(ignored_paths, default=RequestLoggingMiddleware.default_ignored_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        started_at = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self._log(request, request_id, 500, started_at, failed=True)
            raise

        if self.add_request_id_header:
            response.headers["X-Request-ID"] = request_id
        self._log(request, request_id, response.status_code, started_at)
        return response

    def _log(self, request: Request, request_id: str, status_code: int, started_at: float, failed: bool = False):
        if self.logger is None or request.url.path in self.ignored_paths:
            return
        duration_ms = round((time.perf_counter() - started_at) * 1000, 2)
        fields = {
            "service": self.service_name,
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": duration_ms,
        }
        event = "request_failed" if failed else "request_completed"
        if hasattr(self.logger, "bind"):
            self.logger.info(event, **fields)
        else:
            self.logger.info(f"{event} {request.method} {request.url.path} {status_code} ({duration_ms} ms)")
