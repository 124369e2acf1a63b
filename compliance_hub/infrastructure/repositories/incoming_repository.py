"""PostgreSQL implementation of IncomingWebhookRepository."""

from typing import Any, AsyncContextManager, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_hub.domain.clock import as_utc
from compliance_hub.domain.entities import IncomingWebhookLog
from compliance_hub.domain.exceptions import IncomingLogNotFoundError
from compliance_hub.domain.interfaces import IncomingWebhookRepository
from compliance_hub.infrastructure.database.models import IncomingWebhookLogModel


class PostgresIncomingWebhookRepository(IncomingWebhookRepository):
    """PostgreSQL implementation of the inbound webhook log."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, log: IncomingWebhookLog) -> IncomingWebhookLog:
        model = IncomingWebhookLogModel(
            id=str(log.id),
            source=log.source,
            event_type=log.event_type,
            payload=log.payload,
            headers=dict(log.headers),
            processed=log.processed,
            processed_at=log.processed_at,
            error_message=log.error_message,
            created_at=log.created_at,
        )

        self._session.add(model)
        await self._session.flush()

        return log

    async def update(self, log: IncomingWebhookLog) -> IncomingWebhookLog:
        model = await self._session.get(IncomingWebhookLogModel, str(log.id))

        if model is None:
            raise IncomingLogNotFoundError(str(log.id))

        model.processed = log.processed
        model.processed_at = log.processed_at
        model.error_message = log.error_message

        await self._session.flush()

        return log

    async def get_by_id(self, log_id: UUID) -> Optional[IncomingWebhookLog]:
        model = await self._session.get(IncomingWebhookLogModel, str(log_id))

        if model is None:
            return None

        return self._to_entity(model)

    async def list_recent(
        self,
        limit: int = 100,
        source: str | None = None,
        processed: bool | None = None,
    ) -> List[IncomingWebhookLog]:
        stmt = select(IncomingWebhookLogModel)
        if source is not None:
            stmt = stmt.where(IncomingWebhookLogModel.source == source)
        if processed is not None:
            stmt = stmt.where(IncomingWebhookLogModel.processed.is_(processed))

        stmt = stmt.order_by(IncomingWebhookLogModel.created_at.desc()).limit(limit)
        result = await self._session.execute(stmt)

        return [self._to_entity(model) for model in result.scalars().all()]

    def savepoint(self) -> AsyncContextManager[Any]:
        return self._session.begin_nested()

    def _to_entity(self, model: IncomingWebhookLogModel) -> IncomingWebhookLog:
        """Convert database model to domain entity."""
        return IncomingWebhookLog(
            id=UUID(model.id),
            source=model.source,
            event_type=model.event_type,
            payload=model.payload,
            headers=dict(model.headers or {}),
            processed=model.processed,
            processed_at=as_utc(model.processed_at),
            error_message=model.error_message,
            created_at=as_utc(model.created_at),
        )
