from contextlib import asynccontextmanager
from typing import Callable, Dict, List, Optional
from urllib.parse import urlparse

import uvicorn
from fastapi import FastAPI, HTTPException

from usergate.core import UserGate, ifnone
from usergate.services.core.auth import get_auth_dependencies
from usergate.services.core.types import EndpointMetadata, EndpointsOutput, Scope, ServerStatus, StatusOutput


class Service(UserGate):
    """Base class for usergate HTTP services.

    A Service owns a FastAPI app. Endpoints are registered with `add_endpoint`, which wraps them with `autolog` and
    attaches the auth dependencies matching the endpoint's `Scope`. Subclasses hook into the app lifespan by
    overriding `startup_initialize` and `shutdown_cleanup`.

    Example:
        .. code-block:: python

            class EchoService(Service):
                def __init__(self, **kwargs):
                    super().__init__(**kwargs)
                    self.add_endpoint("echo", self.echo, methods=["POST"])

                async def echo(self, payload: dict) -> dict:
                    return payload

            EchoService.launch("http://localhost:8080")
    """

    default_url = "http://localhost:8000"
    expected_exceptions: tuple[type[BaseException], ...] = (HTTPException,)

    def __init__(
        self,
        *,
        url: str | None = None,
        summary: str | None = None,
        description: str | None = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.url = ifnone(url, default=self.default_url)
        self._status = ServerStatus.Launching
        self._endpoints: Dict[str, List[EndpointMetadata]] = {}

        self.app = FastAPI(
            title=self.name,
            summary=summary,
            description=ifnone(description, default=f"{self.name} server."),
            lifespan=self._lifespan,
        )
        self.add_endpoint("status", self.status, methods=["GET"])
        self.add_endpoint("endpoints", self.endpoints, methods=["GET"])

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        await self.startup_initialize()
        self._status = ServerStatus.Available
        self.logger.info(f"{self.name} is available at {self.url}")
        try:
            yield
        finally:
            self._status = ServerStatus.Stopping
            await self.shutdown_cleanup()
            self._status = ServerStatus.Down

    async def startup_initialize(self):
        """Called once when the app starts. Override to open connections."""

    async def shutdown_cleanup(self):
        """Called once when the app stops. Override to release resources."""

    async def status(self) -> StatusOutput:
        return StatusOutput(status=self._status)

    async def endpoints(self) -> EndpointsOutput:
        return EndpointsOutput(endpoints=self._endpoints)

    def add_endpoint(
        self,
        path: str,
        func: Callable,
        methods: Optional[List[str]] = None,
        scope: Scope = Scope.PUBLIC,
        api_route_kwargs: Optional[dict] = None,
        autolog_kwargs: Optional[dict] = None,
    ):
        """Register a new endpoint.

        Args:
            path: Route path, with or without the leading slash.
            func: The endpoint callable. Its signature is what FastAPI inspects for parameters.
            methods: HTTP methods, POST by default.
            scope: Who may call the endpoint. AUTHENTICATED and ADMIN add bearer-token dependencies.
            api_route_kwargs: Extra keyword arguments for `FastAPI.add_api_route`.
            autolog_kwargs: Extra keyword arguments for `UserGate.autolog`.
        """
        path = path.removeprefix("/")
        methods = ifnone(methods, default=["POST"])
        api_route_kwargs = dict(ifnone(api_route_kwargs, default={}))
        autolog_kwargs = {
            "prefix_formatter": lambda function, args, kwargs: f"Endpoint {function.__name__} called",
            "suffix_formatter": lambda function, result: f"Endpoint {function.__name__} completed",
            "expected_exceptions": self.expected_exceptions,
            **ifnone(autolog_kwargs, default={}),
        }

        dependencies = get_auth_dependencies(scope) + list(api_route_kwargs.pop("dependencies", []))
        self._endpoints.setdefault(path, []).append(EndpointMetadata(methods=methods, scope=scope))
        self.app.add_api_route(
            "/" + path,
            endpoint=UserGate.autolog(self=self, **autolog_kwargs)(func),
            methods=methods,
            dependencies=dependencies,
            **api_route_kwargs,
        )

    @classmethod
    def launch(cls, url: str | None = None, **kwargs):
        """Create the service and serve it with uvicorn until interrupted."""
        service = cls(url=url, **kwargs)
        parsed = urlparse(service.url)
        cls.logger.info(f"Launching {cls.__name__} on {service.url}")
        uvicorn.run(service.app, host=parsed.hostname or "localhost", port=parsed.port or 8000)
