"""Outbound webhook entities: endpoints, events and deliveries."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from compliance_hub.domain.clock import isoformat, utcnow


class AuthType(str, Enum):
    """How an endpoint authenticates our outbound requests."""

    NONE = "NONE"
    API_KEY = "API_KEY"
    BEARER = "BEARER"
    HMAC_SHA256 = "HMAC_SHA256"


class EndpointStatus(str, Enum):
    """Lifecycle status of a webhook endpoint."""

    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    FAILED = "FAILED"
    DISABLED = "DISABLED"


class DeliveryStatus(str, Enum):
    """Status of one delivery of one event to one endpoint."""

    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"
    RETRYING = "RETRYING"

    @property
    def is_terminal(self) -> bool:
        return self in (DeliveryStatus.SENT, DeliveryStatus.FAILED)


@dataclass
class WebhookEndpoint:
    """
    A registered destination for outbound notifications.

    Endpoints are never hard-deleted; revocation is a status change so
    that delivery history stays attached to them.
    """

    organisation_id: str
    url: str
    events: list[str]
    name: str = ""
    auth_type: AuthType = AuthType.NONE
    auth_value: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    status: EndpointStatus = EndpointStatus.ACTIVE
    retry_count: int = 3
    timeout_ms: int = 30000
    failure_count: int = 0
    last_delivery_at: datetime | None = None
    last_delivery_status: str | None = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == EndpointStatus.ACTIVE

    def subscribes_to(self, event_type: str) -> bool:
        return event_type in self.events

    def record_success(self) -> None:
        """A delivery succeeded: clear the consecutive failure count."""
        self.failure_count = 0
        self.last_delivery_at = utcnow()
        self.last_delivery_status = "success"
        self.updated_at = self.last_delivery_at

    def record_exhausted_delivery(self) -> None:
        """A delivery used its whole retry budget."""
        self.failure_count += 1
        self.last_delivery_at = utcnow()
        self.last_delivery_status = "failed"
        self.updated_at = self.last_delivery_at

    def reset_failures(self) -> None:
        self.failure_count = 0
        self.updated_at = utcnow()

    def set_status(self, status: EndpointStatus) -> None:
        self.status = status
        self.updated_at = utcnow()

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization. The auth secret is never included."""
        return {
            "id": str(self.id),
            "organisation_id": self.organisation_id,
            "name": self.name,
            "url": self.url,
            "auth_type": self.auth_type.value,
            "has_auth_value": bool(self.auth_value),
            "headers": dict(self.headers),
            "events": list(self.events),
            "status": self.status.value,
            "retry_count": self.retry_count,
            "timeout_ms": self.timeout_ms,
            "failure_count": self.failure_count,
            "last_delivery_at": isoformat(self.last_delivery_at),
            "last_delivery_status": self.last_delivery_status,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


@dataclass
class WebhookEvent:
    """An immutable fact that something happened in an organisation."""

    organisation_id: str
    event_type: str
    entity_type: str
    entity_id: str
    payload: dict[str, Any]
    processed: bool = False
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "organisation_id": self.organisation_id,
            "event_type": self.event_type,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "payload": self.payload,
            "processed": self.processed,
            "created_at": isoformat(self.created_at),
        }


@dataclass
class WebhookDelivery:
    """
    One notification of one event to one endpoint.

    Created PENDING at fan-out time and mutated once per attempt until it
    reaches SENT or FAILED.
    """

    webhook_endpoint_id: UUID
    event_id: UUID
    status: DeliveryStatus = DeliveryStatus.PENDING
    attempt_count: int = 0
    last_attempt_at: datetime | None = None
    next_retry_at: datetime | None = None
    response_status: int | None = None
    response_body: str | None = None
    duration_ms: int | None = None
    error_message: str | None = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def _record_attempt(self, response_status: int | None, response_body: str | None,
                        duration_ms: int | None) -> None:
        self.attempt_count += 1
        self.last_attempt_at = utcnow()
        self.updated_at = self.last_attempt_at
        self.response_status = response_status
        self.response_body = response_body
        self.duration_ms = duration_ms

    def mark_sent(self, response_status: int | None = None, response_body: str | None = None,
                  duration_ms: int | None = None) -> None:
        """Mark the delivery as successfully sent."""
        self._record_attempt(response_status, response_body, duration_ms)
        self.status = DeliveryStatus.SENT
        self.next_retry_at = None
        self.error_message = None

    def mark_retrying(self, next_retry_at: datetime, error_message: str | None = None,
                      response_status: int | None = None, response_body: str | None = None,
                      duration_ms: int | None = None) -> None:
        """Mark the delivery as waiting for another attempt."""
        self._record_attempt(response_status, response_body, duration_ms)
        self.status = DeliveryStatus.RETRYING
        self.next_retry_at = next_retry_at
        self.error_message = error_message

    def mark_failed(self, error_message: str | None = None, response_status: int | None = None,
                    response_body: str | None = None, duration_ms: int | None = None) -> None:
        """Mark the delivery as failed after all retries exhausted."""
        self._record_attempt(response_status, response_body, duration_ms)
        self.status = DeliveryStatus.FAILED
        self.next_retry_at = None
        self.error_message = error_message

    def close_exhausted(self, error_message: str) -> None:
        """Fail a waiting delivery whose budget shrank below its attempts, without another attempt."""
        self.status = DeliveryStatus.FAILED
        self.next_retry_at = None
        self.error_message = error_message
        self.updated_at = utcnow()

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": str(self.id),
            "webhook_endpoint_id": str(self.webhook_endpoint_id),
            "event_id": str(self.event_id),
            "status": self.status.value,
            "attempt_count": self.attempt_count,
            "last_attempt_at": isoformat(self.last_attempt_at),
            "next_retry_at": isoformat(self.next_retry_at),
            "response_status": self.response_status,
            "response_body": self.response_body,
            "duration_ms": self.duration_ms,
            "error_message": self.error_message,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of a single HTTP attempt for a delivery."""

    success: bool
    status_code: int | None = None
    response_body: str | None = None
    duration_ms: int | None = None
    error_message: str | None = None

    @classmethod
    def succeeded(cls, status_code: int, response_body: str | None = None,
                  duration_ms: int | None = None) -> "DeliveryOutcome":
        return cls(True, status_code, response_body, duration_ms)

    @classmethod
    def failed(cls, error_message: str, status_code: int | None = None,
               response_body: str | None = None, duration_ms: int | None = None) -> "DeliveryOutcome":
        return cls(False, status_code, response_body, duration_ms, error_message)
