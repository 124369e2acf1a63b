"""Repository implementations."""

from .endpoint_repository import PostgresWebhookEndpointRepository
from .event_repository import PostgresWebhookEventRepository
from .delivery_repository import PostgresWebhookDeliveryRepository
from .incoming_repository import PostgresIncomingWebhookRepository
from .action_repository import PostgresRemedialActionRepository
from .api_key_repository import PostgresApiKeyRepository

__all__ = [
    "PostgresWebhookEndpointRepository",
    "PostgresWebhookEventRepository",
    "PostgresWebhookDeliveryRepository",
    "PostgresIncomingWebhookRepository",
    "PostgresRemedialActionRepository",
    "PostgresApiKeyRepository",
]
