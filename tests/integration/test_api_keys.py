"""
Integration tests for API key issue, authentication and revocation.
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from compliance_hub.application.dto import CreateApiKeyRequest
from compliance_hub.application.services import ApiKeyService
from compliance_hub.application.services.api_keys import KEY_PREFIX, PREFIX_LENGTH, hash_key
from compliance_hub.domain.clock import utcnow
from compliance_hub.domain.entities import Role
from compliance_hub.domain.exceptions import ApiKeyNotFoundError, AuthError, ValidationError
from compliance_hub.infrastructure.repositories import PostgresApiKeyRepository


@pytest.fixture
def service(test_session) -> ApiKeyService:
    return ApiKeyService(PostgresApiKeyRepository(test_session))


class TestCreate:

    @pytest.mark.asyncio
    async def test_raw_key_is_returned_once_and_stored_hashed(self, service):
        created = await service.create(
            CreateApiKeyRequest(organisation_id="org-1", name="HMS", role=Role.OFFICER)
        )

        assert created.raw_key.startswith(KEY_PREFIX)
        assert len(created.raw_key) == len(KEY_PREFIX) + 32
        assert created.api_key.key_prefix == created.raw_key[:PREFIX_LENGTH]
        assert created.api_key.key_hash == hash_key(created.raw_key)
        assert "key_hash" not in created.api_key.to_dict()

    @pytest.mark.asyncio
    async def test_expiry_must_be_in_the_future(self, service):
        with pytest.raises(ValidationError):
            await service.create(
                CreateApiKeyRequest(
                    organisation_id="org-1",
                    name="Old",
                    expires_at=utcnow() - timedelta(days=1),
                )
            )


class TestAuthenticate:

    @pytest.mark.asyncio
    async def test_valid_key_resolves_principal(self, service):
        created = await service.create(
            CreateApiKeyRequest(organisation_id="org-1", name="HMS", role=Role.MANAGER)
        )

        principal = await service.authenticate(created.raw_key)

        assert principal.organisation_id == "org-1"
        assert principal.role == Role.MANAGER
        assert principal.api_key_id == created.api_key.id

    @pytest.mark.asyncio
    async def test_wrong_key_with_known_prefix_is_rejected(self, service):
        created = await service.create(CreateApiKeyRequest(organisation_id="org-1", name="HMS"))
        forged = created.raw_key[:PREFIX_LENGTH] + "0" * (len(created.raw_key) - PREFIX_LENGTH)

        with pytest.raises(AuthError):
            await service.authenticate(forged)

    @pytest.mark.asyncio
    async def test_short_key_is_rejected(self, service):
        with pytest.raises(AuthError):
            await service.authenticate("chk_1")

    @pytest.mark.asyncio
    async def test_revoked_key_is_rejected(self, service):
        created = await service.create(CreateApiKeyRequest(organisation_id="org-1", name="HMS"))
        await service.revoke(created.api_key.id)

        with pytest.raises(AuthError):
            await service.authenticate(created.raw_key)


class TestRevoke:

    @pytest.mark.asyncio
    async def test_revoke_is_scoped_to_organisation(self, service):
        created = await service.create(CreateApiKeyRequest(organisation_id="org-1", name="HMS"))

        with pytest.raises(ApiKeyNotFoundError):
            await service.revoke(created.api_key.id, organisation_id="org-2")

    @pytest.mark.asyncio
    async def test_unknown_key(self, service):
        with pytest.raises(ApiKeyNotFoundError):
            await service.revoke(uuid4())
