"""
Delivery Policy Module for outbound webhooks
"""

from .settings import DeliverySettings, delivery_settings, get_delivery_settings
from .backoff import backoff_seconds, next_retry_at
from .signing import SIGNATURE_HEADER, auth_headers, sign_body, verify_signature

__all__ = [
    # Settings
    "DeliverySettings",
    "delivery_settings",
    "get_delivery_settings",
    # Backoff
    "backoff_seconds",
    "next_retry_at",
    # Signing
    "SIGNATURE_HEADER",
    "auth_headers",
    "sign_body",
    "verify_signature",
]
