"""API key service - issues, revokes and authenticates machine credentials."""

import hashlib
import hmac
import secrets
from typing import List
from uuid import UUID

import structlog

from compliance_hub.domain.clock import utcnow
from compliance_hub.domain.entities import ApiKey, Principal
from compliance_hub.domain.exceptions import ApiKeyNotFoundError, AuthError, ValidationError
from compliance_hub.domain.interfaces import ApiKeyRepository
from compliance_hub.application.dto import CreateApiKeyRequest, CreatedApiKey

logger = structlog.get_logger(__name__)

KEY_PREFIX = "chk_"
PREFIX_LENGTH = 12


def hash_key(raw_key: str) -> str:
    return hashlib.sha256(raw_key.encode("utf-8")).hexdigest()


def generate_key() -> str:
    return KEY_PREFIX + secrets.token_hex(16)


class ApiKeyService:
    """
    Application service for API keys.

    Only a SHA-256 hash and the first 12 characters of each key are
    stored. The raw key is returned once, from ``create``.
    """

    def __init__(self, api_key_repository: ApiKeyRepository):
        self._api_key_repo = api_key_repository

    async def create(self, request: CreateApiKeyRequest) -> CreatedApiKey:
        errors = request.validate()
        if errors:
            raise ValidationError("; ".join(errors))

        raw_key = generate_key()
        api_key = ApiKey(
            organisation_id=request.organisation_id,
            name=request.name.strip(),
            key_hash=hash_key(raw_key),
            key_prefix=raw_key[:PREFIX_LENGTH],
            role=request.role,
            expires_at=request.expires_at,
        )
        await self._api_key_repo.save(api_key)

        logger.info(
            "api_key_created",
            api_key_id=str(api_key.id),
            organisation_id=api_key.organisation_id,
            role=api_key.role.value,
        )

        return CreatedApiKey(api_key=api_key, raw_key=raw_key)

    async def list(self, organisation_id: str) -> List[ApiKey]:
        return await self._api_key_repo.list_by_organisation(organisation_id)

    async def revoke(self, key_id: UUID, organisation_id: str | None = None) -> ApiKey:
        api_key = await self._api_key_repo.get_by_id(key_id)
        if api_key is None or (
            organisation_id is not None and api_key.organisation_id != organisation_id
        ):
            raise ApiKeyNotFoundError(str(key_id))

        if api_key.is_active:
            api_key.is_active = False
            await self._api_key_repo.update(api_key)
            logger.info("api_key_revoked", api_key_id=str(api_key.id))

        return api_key

    async def authenticate(self, raw_key: str) -> Principal:
        """
        Resolve a raw key to the principal it acts as.

        Raises:
            AuthError: If the key is malformed, unknown, revoked or expired
        """
        if not raw_key or len(raw_key) < PREFIX_LENGTH:
            raise AuthError("Invalid API key format")

        digest = hash_key(raw_key)
        candidates = await self._api_key_repo.get_by_prefix(raw_key[:PREFIX_LENGTH])
        api_key = next(
            (c for c in candidates if hmac.compare_digest(c.key_hash, digest)),
            None,
        )

        if api_key is None:
            raise AuthError("Invalid API key")
        if not api_key.is_usable():
            logger.warning("api_key_rejected", api_key_id=str(api_key.id))
            raise AuthError("API key is revoked or expired")

        api_key.last_used_at = utcnow()
        await self._api_key_repo.update(api_key)

        return Principal(
            organisation_id=api_key.organisation_id,
            role=api_key.role,
            api_key_id=api_key.id,
        )
