"""PostgreSQL implementation of ApiKeyRepository."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_hub.domain.clock import as_utc
from compliance_hub.domain.entities import ApiKey, Role
from compliance_hub.domain.exceptions import ApiKeyNotFoundError
from compliance_hub.domain.interfaces import ApiKeyRepository
from compliance_hub.infrastructure.database.models import ApiKeyModel


class PostgresApiKeyRepository(ApiKeyRepository):
    """PostgreSQL implementation of the ApiKey repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, api_key: ApiKey) -> ApiKey:
        model = ApiKeyModel(
            id=str(api_key.id),
            organisation_id=api_key.organisation_id,
            name=api_key.name,
            key_hash=api_key.key_hash,
            key_prefix=api_key.key_prefix,
            role=api_key.role.value,
            is_active=api_key.is_active,
            expires_at=api_key.expires_at,
            last_used_at=api_key.last_used_at,
            created_at=api_key.created_at,
        )

        self._session.add(model)
        await self._session.flush()

        return api_key

    async def update(self, api_key: ApiKey) -> ApiKey:
        model = await self._session.get(ApiKeyModel, str(api_key.id))

        if model is None:
            raise ApiKeyNotFoundError(str(api_key.id))

        model.name = api_key.name
        model.is_active = api_key.is_active
        model.expires_at = api_key.expires_at
        model.last_used_at = api_key.last_used_at

        await self._session.flush()

        return api_key

    async def get_by_id(self, key_id: UUID) -> Optional[ApiKey]:
        model = await self._session.get(ApiKeyModel, str(key_id))

        if model is None:
            return None

        return self._to_entity(model)

    async def get_by_prefix(self, key_prefix: str) -> List[ApiKey]:
        stmt = select(ApiKeyModel).where(ApiKeyModel.key_prefix == key_prefix)
        result = await self._session.execute(stmt)

        return [self._to_entity(model) for model in result.scalars().all()]

    async def list_by_organisation(self, organisation_id: str) -> List[ApiKey]:
        stmt = (
            select(ApiKeyModel)
            .where(ApiKeyModel.organisation_id == organisation_id)
            .order_by(ApiKeyModel.created_at.desc())
        )
        result = await self._session.execute(stmt)

        return [self._to_entity(model) for model in result.scalars().all()]

    def _to_entity(self, model: ApiKeyModel) -> ApiKey:
        """Convert database model to domain entity."""
        return ApiKey(
            id=UUID(model.id),
            organisation_id=model.organisation_id,
            name=model.name,
            key_hash=model.key_hash,
            key_prefix=model.key_prefix,
            role=Role(model.role),
            is_active=model.is_active,
            expires_at=as_utc(model.expires_at),
            last_used_at=as_utc(model.last_used_at),
            created_at=as_utc(model.created_at),
        )
