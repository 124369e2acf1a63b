"""Repository interfaces for data persistence."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, AsyncContextManager, List, Optional
from uuid import UUID

from compliance_hub.domain.entities import (
    ActionStatus,
    ApiKey,
    DeliveryStatus,
    IncomingWebhookLog,
    RemedialAction,
    WebhookDelivery,
    WebhookEndpoint,
    WebhookEvent,
)


class WebhookEndpointRepository(ABC):
    """
    Abstract repository for WebhookEndpoint persistence.

    Implementations may use PostgreSQL, in-memory storage, etc.
    """

    @abstractmethod
    async def save(self, endpoint: WebhookEndpoint) -> WebhookEndpoint:
        """Persist a new endpoint."""
        ...

    @abstractmethod
    async def update(self, endpoint: WebhookEndpoint) -> WebhookEndpoint:
        """
        Write the mutable fields of an existing endpoint.

        Raises:
            EndpointNotFoundError: If the endpoint row is gone
        """
        ...

    @abstractmethod
    async def get_by_id(self, endpoint_id: UUID) -> Optional[WebhookEndpoint]:
        """
        Retrieve an endpoint by ID.

        Returns:
            The endpoint if found, None otherwise
        """
        ...

    @abstractmethod
    async def list_by_organisation(self, organisation_id: str) -> List[WebhookEndpoint]:
        """Retrieve all endpoints of an organisation, newest first."""
        ...

    @abstractmethod
    async def list_subscribed(
        self,
        organisation_id: str,
        event_type: str,
    ) -> List[WebhookEndpoint]:
        """
        Retrieve ACTIVE endpoints of an organisation subscribed to an event type.

        Args:
            organisation_id: The owning organisation
            event_type: The event type being fanned out

        Returns:
            Matching endpoints
        """
        ...


class WebhookEventRepository(ABC):
    """Abstract repository for the append-only event log."""

    @abstractmethod
    async def save(self, event: WebhookEvent) -> WebhookEvent:
        """Append an event."""
        ...

    @abstractmethod
    async def get_by_id(self, event_id: UUID) -> Optional[WebhookEvent]:
        ...

    @abstractmethod
    async def mark_processed(self, event_id: UUID) -> None:
        """Set the processed flag. Setting it twice is harmless."""
        ...

    @abstractmethod
    async def list_by_organisation(
        self,
        organisation_id: str,
        limit: int = 100,
    ) -> List[WebhookEvent]:
        ...

    @abstractmethod
    async def list_unprocessed(self, limit: int = 100) -> List[WebhookEvent]:
        """Retrieve events awaiting fan-out, oldest first."""
        ...


class WebhookDeliveryRepository(ABC):
    """
    Abstract repository for WebhookDelivery persistence.

    Deliveries are persisted to enable:
    - Delivery tracking and auditing
    - Retry logic for failed deliveries
    - Monitoring of endpoint health
    """

    @abstractmethod
    async def save(self, delivery: WebhookDelivery) -> WebhookDelivery:
        """Persist a new delivery."""
        ...

    @abstractmethod
    async def update(self, delivery: WebhookDelivery) -> WebhookDelivery:
        """Write the attempt bookkeeping of an existing delivery."""
        ...

    @abstractmethod
    async def get_by_id(self, delivery_id: UUID) -> Optional[WebhookDelivery]:
        ...

    @abstractmethod
    async def endpoint_ids_for_event(self, event_id: UUID) -> set[UUID]:
        """Endpoint ids that already have a delivery for the event."""
        ...

    @abstractmethod
    async def list_for_organisation(
        self,
        organisation_id: str,
        endpoint_id: UUID | None = None,
        status: DeliveryStatus | None = None,
        limit: int = 100,
    ) -> List[WebhookDelivery]:
        ...

    @abstractmethod
    async def list_retrying(self, endpoint_id: UUID) -> List[WebhookDelivery]:
        """RETRYING deliveries of one endpoint."""
        ...

    @abstractmethod
    async def get_due(self, now: datetime, limit: int = 100) -> List[WebhookDelivery]:
        """
        Retrieve deliveries ready to be attempted.

        A delivery is due when it is PENDING, or RETRYING with
        ``next_retry_at <= now`` and fewer attempts than its endpoint's
        ``retry_count``, and its endpoint is ACTIVE. Rows are
        locked for the rest of the transaction; rows locked by another
        worker are skipped.
        """
        ...


class IncomingWebhookRepository(ABC):
    """Abstract repository for inbound webhook logs."""

    @abstractmethod
    async def save(self, log: IncomingWebhookLog) -> IncomingWebhookLog:
        ...

    @abstractmethod
    async def update(self, log: IncomingWebhookLog) -> IncomingWebhookLog:
        """Write the processing status of an existing entry."""
        ...

    @abstractmethod
    async def get_by_id(self, log_id: UUID) -> Optional[IncomingWebhookLog]:
        ...

    @abstractmethod
    async def list_recent(
        self,
        limit: int = 100,
        source: str | None = None,
        processed: bool | None = None,
    ) -> List[IncomingWebhookLog]:
        ...

    @abstractmethod
    def savepoint(self) -> AsyncContextManager[Any]:
        """
        Scope for handler side effects.

        Writes made inside are undone if the block raises. Entries saved
        before it are kept.
        """
        ...


class RemedialActionRepository(ABC):
    """Abstract repository for remedial actions."""

    @abstractmethod
    async def save(self, action: RemedialAction) -> RemedialAction:
        ...

    @abstractmethod
    async def update(self, action: RemedialAction) -> RemedialAction:
        ...

    @abstractmethod
    async def get_by_id(self, action_id: UUID) -> Optional[RemedialAction]:
        ...

    @abstractmethod
    async def list_by_organisation(
        self,
        organisation_id: str,
        status: ActionStatus | None = None,
        limit: int = 100,
    ) -> List[RemedialAction]:
        ...


class ApiKeyRepository(ABC):
    """Abstract repository for hashed API keys."""

    @abstractmethod
    async def save(self, api_key: ApiKey) -> ApiKey:
        ...

    @abstractmethod
    async def update(self, api_key: ApiKey) -> ApiKey:
        ...

    @abstractmethod
    async def get_by_id(self, key_id: UUID) -> Optional[ApiKey]:
        ...

    @abstractmethod
    async def get_by_prefix(self, key_prefix: str) -> List[ApiKey]:
        """Candidates for authentication; prefixes are not guaranteed unique."""
        ...

    @abstractmethod
    async def list_by_organisation(self, organisation_id: str) -> List[ApiKey]:
        ...
