"""PostgreSQL implementation of WebhookEndpointRepository."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_hub.domain.clock import as_utc
from compliance_hub.domain.entities import AuthType, EndpointStatus, WebhookEndpoint
from compliance_hub.domain.exceptions import EndpointNotFoundError
from compliance_hub.domain.interfaces import WebhookEndpointRepository
from compliance_hub.infrastructure.database.models import WebhookEndpointModel


class PostgresWebhookEndpointRepository(WebhookEndpointRepository):
    """
    PostgreSQL implementation of the WebhookEndpoint repository.

    Uses SQLAlchemy async session for database operations.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, endpoint: WebhookEndpoint) -> WebhookEndpoint:
        """Persist an endpoint record to the database."""
        model = WebhookEndpointModel(
            id=str(endpoint.id),
            organisation_id=endpoint.organisation_id,
            name=endpoint.name,
            url=endpoint.url,
            auth_type=endpoint.auth_type.value,
            auth_value=endpoint.auth_value,
            headers=dict(endpoint.headers),
            events=list(endpoint.events),
            status=endpoint.status.value,
            retry_count=endpoint.retry_count,
            timeout_ms=endpoint.timeout_ms,
            failure_count=endpoint.failure_count,
            last_delivery_at=endpoint.last_delivery_at,
            last_delivery_status=endpoint.last_delivery_status,
            created_at=endpoint.created_at,
            updated_at=endpoint.updated_at,
        )

        self._session.add(model)
        await self._session.flush()

        return endpoint

    async def update(self, endpoint: WebhookEndpoint) -> WebhookEndpoint:
        """Update an existing endpoint record."""
        model = await self._session.get(WebhookEndpointModel, str(endpoint.id))

        if model is None:
            raise EndpointNotFoundError(str(endpoint.id))

        model.name = endpoint.name
        model.url = endpoint.url
        model.auth_type = endpoint.auth_type.value
        model.auth_value = endpoint.auth_value
        model.headers = dict(endpoint.headers)
        model.events = list(endpoint.events)
        model.status = endpoint.status.value
        model.retry_count = endpoint.retry_count
        model.timeout_ms = endpoint.timeout_ms
        model.failure_count = endpoint.failure_count
        model.last_delivery_at = endpoint.last_delivery_at
        model.last_delivery_status = endpoint.last_delivery_status
        model.updated_at = endpoint.updated_at

        await self._session.flush()

        return endpoint

    async def get_by_id(self, endpoint_id: UUID) -> Optional[WebhookEndpoint]:
        """Retrieve an endpoint by ID."""
        model = await self._session.get(WebhookEndpointModel, str(endpoint_id))

        if model is None:
            return None

        return self._to_entity(model)

    async def list_by_organisation(self, organisation_id: str) -> List[WebhookEndpoint]:
        """Retrieve all endpoints of an organisation, newest first."""
        stmt = (
            select(WebhookEndpointModel)
            .where(WebhookEndpointModel.organisation_id == organisation_id)
            .order_by(WebhookEndpointModel.created_at.desc())
        )
        result = await self._session.execute(stmt)

        return [self._to_entity(model) for model in result.scalars().all()]

    async def list_subscribed(
        self,
        organisation_id: str,
        event_type: str,
    ) -> List[WebhookEndpoint]:
        """Retrieve ACTIVE endpoints of an organisation subscribed to an event type."""
        stmt = (
            select(WebhookEndpointModel)
            .where(
                WebhookEndpointModel.organisation_id == organisation_id,
                WebhookEndpointModel.status == EndpointStatus.ACTIVE.value,
            )
            .order_by(WebhookEndpointModel.created_at.asc())
        )
        result = await self._session.execute(stmt)

        # events is a JSON list; membership is checked here to stay portable
        return [
            self._to_entity(model)
            for model in result.scalars().all()
            if event_type in (model.events or [])
        ]

    def _to_entity(self, model: WebhookEndpointModel) -> WebhookEndpoint:
        """Convert database model to domain entity."""
        return WebhookEndpoint(
            id=UUID(model.id),
            organisation_id=model.organisation_id,
            name=model.name,
            url=model.url,
            auth_type=AuthType(model.auth_type),
            auth_value=model.auth_value,
            headers=dict(model.headers or {}),
            events=list(model.events or []),
            status=EndpointStatus(model.status),
            retry_count=model.retry_count,
            timeout_ms=model.timeout_ms,
            failure_count=model.failure_count,
            last_delivery_at=as_utc(model.last_delivery_at),
            last_delivery_status=model.last_delivery_status,
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
        )
