from enum import Enum
from typing import Dict, List

from pydantic import BaseModel


class Scope(str, Enum):
    """Authorization scope attached to every registered endpoint."""

    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"


class ServerStatus(str, Enum):
    Down = "Down"
    Launching = "Launching"
    Available = "Available"
    Stopping = "Stopping"


class StatusOutput(BaseModel):
    status: ServerStatus


class EndpointMetadata(BaseModel):
    methods: List[str]
    scope: Scope


class EndpointsOutput(BaseModel):
    endpoints: Dict[str, List[EndpointMetadata]]
