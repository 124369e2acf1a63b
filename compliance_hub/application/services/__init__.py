"""Application services (use cases)."""

from .endpoint_registry import EndpointRegistry
from .event_log import EventLog
from .delivery_tracker import DeliveryTracker
from .incoming_webhooks import IncomingWebhookService
from .remedial_actions import RemedialActionService
from .hms_integration import HmsIntegration
from .api_keys import ApiKeyService

__all__ = [
    "EndpointRegistry",
    "EventLog",
    "DeliveryTracker",
    "IncomingWebhookService",
    "RemedialActionService",
    "HmsIntegration",
    "ApiKeyService",
]
