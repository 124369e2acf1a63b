"""Database infrastructure."""

from .models import (
    ApiKeyModel,
    Base,
    IncomingWebhookLogModel,
    RemedialActionModel,
    WebhookDeliveryModel,
    WebhookEndpointModel,
    WebhookEventModel,
)
from .connection import DatabaseSessionManager, normalize_database_url

__all__ = [
    "DatabaseSessionManager",
    "normalize_database_url",
    "Base",
    "ApiKeyModel",
    "IncomingWebhookLogModel",
    "RemedialActionModel",
    "WebhookDeliveryModel",
    "WebhookEndpointModel",
    "WebhookEventModel",
]
