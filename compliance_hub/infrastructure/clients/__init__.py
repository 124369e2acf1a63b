"""External API client implementations."""

from .webhook_sender import HttpWebhookSender, build_payload, encode_body

__all__ = [
    "HttpWebhookSender",
    "build_payload",
    "encode_body",
]
