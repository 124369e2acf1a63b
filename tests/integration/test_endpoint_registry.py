"""
Integration tests for the endpoint registry.

These tests verify:
1. Registration validation and persistence
2. Suspend / resume / disable status rules
3. Organisation scoping of lookups
4. Test sends through the HTTP sender
"""

from uuid import uuid4

import pytest

from compliance_hub.application.dto import RegisterEndpointRequest, UpdateEndpointRequest
from compliance_hub.application.services import EndpointRegistry
from compliance_hub.domain.entities import AuthType, EndpointStatus
from compliance_hub.domain.exceptions import (
    EndpointNotFoundError,
    InvalidEndpointStateError,
    ValidationError,
)
from compliance_hub.infrastructure.repositories import PostgresWebhookEndpointRepository


@pytest.fixture
def registry(test_session, http_sender) -> EndpointRegistry:
    return EndpointRegistry(PostgresWebhookEndpointRepository(test_session), sender=http_sender)


def register_request(**overrides) -> RegisterEndpointRequest:
    data = {
        "organisation_id": "org-1",
        "url": "https://example.org/hook",
        "events": ["action.created"],
    }
    data.update(overrides)
    return RegisterEndpointRequest(**data)


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_persists_active_endpoint(self, registry: EndpointRegistry):
        endpoint = await registry.register(
            register_request(events=["action.created", "action.created", "action.completed"])
        )

        stored = await registry.get(endpoint.id)
        assert stored.status == EndpointStatus.ACTIVE
        assert stored.events == ["action.created", "action.completed"]
        assert stored.failure_count == 0

    @pytest.mark.asyncio
    async def test_register_rejects_empty_events(self, registry: EndpointRegistry):
        with pytest.raises(ValidationError):
            await registry.register(register_request(events=[]))

    @pytest.mark.asyncio
    async def test_update_changes_only_given_fields(self, registry: EndpointRegistry):
        endpoint = await registry.register(register_request(name="Old"))

        updated = await registry.update(
            endpoint.id,
            UpdateEndpointRequest(url="https://example.org/new", retry_count=5),
        )

        assert updated.url == "https://example.org/new"
        assert updated.retry_count == 5
        assert updated.name == "Old"

    @pytest.mark.asyncio
    async def test_update_validates_auth(self, registry: EndpointRegistry):
        endpoint = await registry.register(register_request())

        with pytest.raises(ValidationError):
            await registry.update(endpoint.id, UpdateEndpointRequest(auth_type=AuthType.BEARER))


class TestStatusChanges:

    @pytest.mark.asyncio
    async def test_suspend_and_resume(self, registry: EndpointRegistry):
        endpoint = await registry.register(register_request())

        paused = await registry.suspend(endpoint.id)
        assert paused.status == EndpointStatus.PAUSED

        resumed = await registry.resume(endpoint.id)
        assert resumed.status == EndpointStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_resume_failed_endpoint_resets_failure_count(
        self,
        registry: EndpointRegistry,
        test_session,
    ):
        endpoint = await registry.register(register_request())
        endpoint.failure_count = 10
        endpoint.set_status(EndpointStatus.FAILED)
        await PostgresWebhookEndpointRepository(test_session).update(endpoint)

        resumed = await registry.resume(endpoint.id)

        assert resumed.status == EndpointStatus.ACTIVE
        assert resumed.failure_count == 0

    @pytest.mark.asyncio
    async def test_disabled_is_terminal(self, registry: EndpointRegistry):
        endpoint = await registry.register(register_request())
        await registry.disable(endpoint.id)

        with pytest.raises(InvalidEndpointStateError):
            await registry.resume(endpoint.id)
        with pytest.raises(InvalidEndpointStateError):
            await registry.suspend(endpoint.id)

    @pytest.mark.asyncio
    async def test_reset_failures(self, registry: EndpointRegistry, test_session):
        endpoint = await registry.register(register_request())
        endpoint.failure_count = 4
        await PostgresWebhookEndpointRepository(test_session).update(endpoint)

        reset = await registry.reset_failures(endpoint.id)

        assert reset.failure_count == 0


class TestLookup:

    @pytest.mark.asyncio
    async def test_unknown_endpoint(self, registry: EndpointRegistry):
        with pytest.raises(EndpointNotFoundError):
            await registry.get(uuid4())

    @pytest.mark.asyncio
    async def test_other_organisation_cannot_see_endpoint(self, registry: EndpointRegistry):
        endpoint = await registry.register(register_request(organisation_id="org-1"))

        with pytest.raises(EndpointNotFoundError):
            await registry.get(endpoint.id, organisation_id="org-2")

    @pytest.mark.asyncio
    async def test_list_is_per_organisation(self, registry: EndpointRegistry):
        await registry.register(register_request(organisation_id="org-1"))
        await registry.register(register_request(organisation_id="org-2"))

        endpoints = await registry.list("org-1")

        assert [e.organisation_id for e in endpoints] == ["org-1"]


class TestSendTest:

    @pytest.mark.asyncio
    async def test_send_test_posts_test_event(self, registry: EndpointRegistry, subscriber):
        endpoint = await registry.register(register_request())

        outcome = await registry.send_test(endpoint.id)

        assert outcome.success
        assert subscriber.requests[0].headers["X-Webhook-Event"] == "webhook.test"
