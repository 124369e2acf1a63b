"""Background workers."""

from .dispatcher import DispatchReport, WebhookDispatcher

__all__ = [
    "DispatchReport",
    "WebhookDispatcher",
]
