"""PostgreSQL implementation of RemedialActionRepository."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_hub.domain.clock import as_utc
from compliance_hub.domain.entities import ActionSeverity, ActionStatus, RemedialAction
from compliance_hub.domain.exceptions import ActionNotFoundError
from compliance_hub.domain.interfaces import RemedialActionRepository
from compliance_hub.infrastructure.database.models import RemedialActionModel


class PostgresRemedialActionRepository(RemedialActionRepository):
    """PostgreSQL implementation of the RemedialAction repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, action: RemedialAction) -> RemedialAction:
        model = RemedialActionModel(
            id=str(action.id),
            organisation_id=action.organisation_id,
            code=action.code,
            description=action.description,
            severity=action.severity.value,
            status=action.status.value,
            resolved_at=action.resolved_at,
            created_at=action.created_at,
            updated_at=action.updated_at,
        )

        self._session.add(model)
        await self._session.flush()

        return action

    async def update(self, action: RemedialAction) -> RemedialAction:
        model = await self._session.get(RemedialActionModel, str(action.id))

        if model is None:
            raise ActionNotFoundError(str(action.id))

        model.status = action.status.value
        model.resolved_at = action.resolved_at
        model.updated_at = action.updated_at

        await self._session.flush()

        return action

    async def get_by_id(self, action_id: UUID) -> Optional[RemedialAction]:
        model = await self._session.get(RemedialActionModel, str(action_id))

        if model is None:
            return None

        return self._to_entity(model)

    async def list_by_organisation(
        self,
        organisation_id: str,
        status: ActionStatus | None = None,
        limit: int = 100,
    ) -> List[RemedialAction]:
        stmt = select(RemedialActionModel).where(
            RemedialActionModel.organisation_id == organisation_id
        )
        if status is not None:
            stmt = stmt.where(RemedialActionModel.status == status.value)

        stmt = stmt.order_by(RemedialActionModel.created_at.desc()).limit(limit)
        result = await self._session.execute(stmt)

        return [self._to_entity(model) for model in result.scalars().all()]

    def _to_entity(self, model: RemedialActionModel) -> RemedialAction:
        """Convert database model to domain entity."""
        return RemedialAction(
            id=UUID(model.id),
            organisation_id=model.organisation_id,
            code=model.code,
            description=model.description,
            severity=ActionSeverity(model.severity),
            status=ActionStatus(model.status),
            resolved_at=as_utc(model.resolved_at),
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
        )
