"""Domain Entities - Core business objects."""

from .webhook import (
    AuthType,
    DeliveryOutcome,
    DeliveryStatus,
    EndpointStatus,
    WebhookDelivery,
    WebhookEndpoint,
    WebhookEvent,
)
from .incoming import IncomingWebhookLog
from .action import (
    ActionSeverity,
    ActionStatus,
    RemedialAction,
    allowed_transitions,
    can_advance,
    next_status,
)
from .role import Capability, Role, ROLE_CAPABILITIES, has_capability
from .api_key import ApiKey, Principal

__all__ = [
    "AuthType",
    "DeliveryOutcome",
    "DeliveryStatus",
    "EndpointStatus",
    "WebhookDelivery",
    "WebhookEndpoint",
    "WebhookEvent",
    "IncomingWebhookLog",
    "ActionSeverity",
    "ActionStatus",
    "RemedialAction",
    "allowed_transitions",
    "can_advance",
    "next_status",
    "Capability",
    "Role",
    "ROLE_CAPABILITIES",
    "has_capability",
    "ApiKey",
    "Principal",
]
