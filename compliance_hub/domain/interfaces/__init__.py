"""
Domain Interfaces (Ports)
"""

from .repositories import (
    ApiKeyRepository,
    IncomingWebhookRepository,
    RemedialActionRepository,
    WebhookDeliveryRepository,
    WebhookEndpointRepository,
    WebhookEventRepository,
)
from .clients import WebhookSender

__all__ = [
    "ApiKeyRepository",
    "IncomingWebhookRepository",
    "RemedialActionRepository",
    "WebhookDeliveryRepository",
    "WebhookEndpointRepository",
    "WebhookEventRepository",
    "WebhookSender",
]
