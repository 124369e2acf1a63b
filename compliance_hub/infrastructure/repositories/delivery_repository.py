"""PostgreSQL implementation of WebhookDeliveryRepository."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_hub.domain.clock import as_utc
from compliance_hub.domain.entities import DeliveryStatus, EndpointStatus, WebhookDelivery
from compliance_hub.domain.exceptions import DeliveryNotFoundError
from compliance_hub.domain.interfaces import WebhookDeliveryRepository
from compliance_hub.infrastructure.database.models import (
    WebhookDeliveryModel,
    WebhookEndpointModel,
)


class PostgresWebhookDeliveryRepository(WebhookDeliveryRepository):
    """
    PostgreSQL implementation of the WebhookDelivery repository.

    Uses SQLAlchemy async session for database operations.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, delivery: WebhookDelivery) -> WebhookDelivery:
        """Persist a delivery record to the database."""
        model = WebhookDeliveryModel(
            id=str(delivery.id),
            webhook_endpoint_id=str(delivery.webhook_endpoint_id),
            event_id=str(delivery.event_id),
            status=delivery.status.value,
            attempt_count=delivery.attempt_count,
            last_attempt_at=delivery.last_attempt_at,
            next_retry_at=delivery.next_retry_at,
            response_status=delivery.response_status,
            response_body=delivery.response_body,
            duration_ms=delivery.duration_ms,
            error_message=delivery.error_message,
            created_at=delivery.created_at,
            updated_at=delivery.updated_at,
        )

        self._session.add(model)
        await self._session.flush()

        return delivery

    async def update(self, delivery: WebhookDelivery) -> WebhookDelivery:
        """Update an existing delivery record."""
        model = await self._session.get(WebhookDeliveryModel, str(delivery.id))

        if model is None:
            raise DeliveryNotFoundError(str(delivery.id))

        model.status = delivery.status.value
        model.attempt_count = delivery.attempt_count
        model.last_attempt_at = delivery.last_attempt_at
        model.next_retry_at = delivery.next_retry_at
        model.response_status = delivery.response_status
        model.response_body = delivery.response_body
        model.duration_ms = delivery.duration_ms
        model.error_message = delivery.error_message
        model.updated_at = delivery.updated_at

        await self._session.flush()

        return delivery

    async def get_by_id(self, delivery_id: UUID) -> Optional[WebhookDelivery]:
        """Retrieve a delivery by ID."""
        model = await self._session.get(WebhookDeliveryModel, str(delivery_id))

        if model is None:
            return None

        return self._to_entity(model)

    async def endpoint_ids_for_event(self, event_id: UUID) -> set[UUID]:
        stmt = select(WebhookDeliveryModel.webhook_endpoint_id).where(
            WebhookDeliveryModel.event_id == str(event_id)
        )
        result = await self._session.execute(stmt)

        return {UUID(endpoint_id) for endpoint_id in result.scalars().all()}

    async def list_for_organisation(
        self,
        organisation_id: str,
        endpoint_id: UUID | None = None,
        status: DeliveryStatus | None = None,
        limit: int = 100,
    ) -> List[WebhookDelivery]:
        stmt = (
            select(WebhookDeliveryModel)
            .join(
                WebhookEndpointModel,
                WebhookDeliveryModel.webhook_endpoint_id == WebhookEndpointModel.id,
            )
            .where(WebhookEndpointModel.organisation_id == organisation_id)
        )
        if endpoint_id is not None:
            stmt = stmt.where(WebhookDeliveryModel.webhook_endpoint_id == str(endpoint_id))
        if status is not None:
            stmt = stmt.where(WebhookDeliveryModel.status == status.value)

        stmt = stmt.order_by(WebhookDeliveryModel.created_at.desc()).limit(limit)
        result = await self._session.execute(stmt)

        return [self._to_entity(model) for model in result.scalars().all()]

    async def list_retrying(self, endpoint_id: UUID) -> List[WebhookDelivery]:
        stmt = (
            select(WebhookDeliveryModel)
            .where(
                WebhookDeliveryModel.webhook_endpoint_id == str(endpoint_id),
                WebhookDeliveryModel.status == DeliveryStatus.RETRYING.value,
            )
            .order_by(WebhookDeliveryModel.created_at.asc())
        )
        result = await self._session.execute(stmt)

        return [self._to_entity(model) for model in result.scalars().all()]

    async def get_due(self, now: datetime, limit: int = 100) -> List[WebhookDelivery]:
        """Retrieve and lock deliveries ready to be attempted."""
        stmt = (
            select(WebhookDeliveryModel)
            .join(
                WebhookEndpointModel,
                WebhookDeliveryModel.webhook_endpoint_id == WebhookEndpointModel.id,
            )
            .where(
                WebhookEndpointModel.status == EndpointStatus.ACTIVE.value,
                or_(
                    WebhookDeliveryModel.status == DeliveryStatus.PENDING.value,
                    and_(
                        WebhookDeliveryModel.status == DeliveryStatus.RETRYING.value,
                        WebhookDeliveryModel.next_retry_at <= now,
                        WebhookDeliveryModel.attempt_count < WebhookEndpointModel.retry_count,
                    ),
                ),
            )
            .order_by(WebhookDeliveryModel.created_at.asc())
            .limit(limit)
            .with_for_update(skip_locked=True, of=WebhookDeliveryModel)
        )
        result = await self._session.execute(stmt)

        return [self._to_entity(model) for model in result.scalars().all()]

    def _to_entity(self, model: WebhookDeliveryModel) -> WebhookDelivery:
        """Convert database model to domain entity."""
        return WebhookDelivery(
            id=UUID(model.id),
            webhook_endpoint_id=UUID(model.webhook_endpoint_id),
            event_id=UUID(model.event_id),
            status=DeliveryStatus(model.status),
            attempt_count=model.attempt_count,
            last_attempt_at=as_utc(model.last_attempt_at),
            next_retry_at=as_utc(model.next_retry_at),
            response_status=model.response_status,
            response_body=model.response_body,
            duration_ms=model.duration_ms,
            error_message=model.error_message,
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
        )
