"""PostgreSQL implementation of WebhookEventRepository."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_hub.domain.clock import as_utc
from compliance_hub.domain.entities import WebhookEvent
from compliance_hub.domain.interfaces import WebhookEventRepository
from compliance_hub.infrastructure.database.models import WebhookEventModel


class PostgresWebhookEventRepository(WebhookEventRepository):
    """PostgreSQL implementation of the append-only event log."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, event: WebhookEvent) -> WebhookEvent:
        model = WebhookEventModel(
            id=str(event.id),
            organisation_id=event.organisation_id,
            event_type=event.event_type,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            payload=event.payload,
            processed=event.processed,
            created_at=event.created_at,
        )

        self._session.add(model)
        await self._session.flush()

        return event

    async def get_by_id(self, event_id: UUID) -> Optional[WebhookEvent]:
        model = await self._session.get(WebhookEventModel, str(event_id))

        if model is None:
            return None

        return self._to_entity(model)

    async def mark_processed(self, event_id: UUID) -> None:
        # Only the flag is written; the payload column is never touched after insert
        stmt = (
            update(WebhookEventModel)
            .where(
                WebhookEventModel.id == str(event_id),
                WebhookEventModel.processed.is_(False),
            )
            .values(processed=True)
            .execution_options(synchronize_session="fetch")
        )
        await self._session.execute(stmt)
        await self._session.flush()

    async def list_by_organisation(
        self,
        organisation_id: str,
        limit: int = 100,
    ) -> List[WebhookEvent]:
        stmt = (
            select(WebhookEventModel)
            .where(WebhookEventModel.organisation_id == organisation_id)
            .order_by(WebhookEventModel.created_at.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)

        return [self._to_entity(model) for model in result.scalars().all()]

    async def list_unprocessed(self, limit: int = 100) -> List[WebhookEvent]:
        stmt = (
            select(WebhookEventModel)
            .where(WebhookEventModel.processed.is_(False))
            .order_by(WebhookEventModel.created_at.asc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)

        return [self._to_entity(model) for model in result.scalars().all()]

    def _to_entity(self, model: WebhookEventModel) -> WebhookEvent:
        """Convert database model to domain entity."""
        return WebhookEvent(
            id=UUID(model.id),
            organisation_id=model.organisation_id,
            event_type=model.event_type,
            entity_type=model.entity_type,
            entity_id=model.entity_id,
            payload=model.payload,
            processed=model.processed,
            created_at=as_utc(model.created_at),
        )
