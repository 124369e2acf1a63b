"""Data Transfer Objects for application layer."""

from .webhook import (
    RecordEventRequest,
    RegisterEndpointRequest,
    UpdateEndpointRequest,
    dedupe_events,
)
from .action import CreateActionRequest
from .api_key import CreateApiKeyRequest, CreatedApiKey

__all__ = [
    "RecordEventRequest",
    "RegisterEndpointRequest",
    "UpdateEndpointRequest",
    "dedupe_events",
    "CreateActionRequest",
    "CreateApiKeyRequest",
    "CreatedApiKey",
]
