"""Inbound webhook log entity."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from compliance_hub.domain.clock import isoformat, utcnow


@dataclass
class IncomingWebhookLog:
    """
    Raw record of an inbound call from an external system.

    The entry is kept whatever happens downstream; ``processed_at`` is set
    exactly when ``processed`` becomes true.
    """

    source: str
    payload: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)
    event_type: str | None = None
    processed: bool = False
    processed_at: datetime | None = None
    error_message: str | None = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)

    def mark_processed(self) -> None:
        now = utcnow()
        self.processed = True
        # Clock skew between writers must not put processed_at before created_at
        self.processed_at = max(now, self.created_at)
        self.error_message = None

    def mark_failed(self, error_message: str) -> None:
        self.processed = False
        self.processed_at = None
        self.error_message = error_message

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "source": self.source,
            "event_type": self.event_type,
            "payload": self.payload,
            "headers": self.headers,
            "processed": self.processed,
            "processed_at": isoformat(self.processed_at),
            "error_message": self.error_message,
            "created_at": isoformat(self.created_at),
        }
