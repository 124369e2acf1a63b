"""Domain Exceptions - Business rule violations and domain errors."""

from .base import ConflictError, DomainException, NotFoundError, ValidationError
from .webhook import (
    DeliveryAlreadyFinalError,
    DeliveryFailure,
    DeliveryNotFoundError,
    DeliveryTimeoutError,
    EndpointNotFoundError,
    EventNotFoundError,
    InvalidEndpointStateError,
)
from .incoming import IncomingLogAlreadyProcessedError, IncomingLogNotFoundError
from .action import ActionNotFoundError, InvalidActionTransitionError
from .auth import ApiKeyNotFoundError, AuthError, PermissionDeniedError

__all__ = [
    "DomainException",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "EndpointNotFoundError",
    "EventNotFoundError",
    "DeliveryNotFoundError",
    "InvalidEndpointStateError",
    "DeliveryAlreadyFinalError",
    "DeliveryFailure",
    "DeliveryTimeoutError",
    "IncomingLogNotFoundError",
    "IncomingLogAlreadyProcessedError",
    "ActionNotFoundError",
    "InvalidActionTransitionError",
    "AuthError",
    "PermissionDeniedError",
    "ApiKeyNotFoundError",
]
