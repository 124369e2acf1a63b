"""
Integration tests for inbound webhooks and the HMS handlers.

These tests verify:
1. Every inbound call is persisted with credentials redacted
2. Failed processing is recorded and can be replayed
3. HMS updates move remedial actions forward only
"""

from uuid import uuid4

import pytest

from compliance_hub.application.dto import CreateActionRequest
from compliance_hub.application.services import (
    EventLog,
    HmsIntegration,
    IncomingWebhookService,
    RemedialActionService,
)
from compliance_hub.application.services.hms_integration import (
    ACTION_UPDATE,
    HMS_SOURCE,
    WORK_ORDER_UPDATE,
)
from compliance_hub.domain.entities import ActionStatus, RemedialAction
from compliance_hub.domain.exceptions import (
    IncomingLogAlreadyProcessedError,
    IncomingLogNotFoundError,
)
from compliance_hub.infrastructure.repositories import (
    PostgresIncomingWebhookRepository,
    PostgresRemedialActionRepository,
    PostgresWebhookEventRepository,
)


@pytest.fixture
def action_service(test_session) -> RemedialActionService:
    return RemedialActionService(
        PostgresRemedialActionRepository(test_session),
        EventLog(PostgresWebhookEventRepository(test_session)),
    )


@pytest.fixture
def incoming(test_session, action_service) -> IncomingWebhookService:
    hms = HmsIntegration(action_service, organisation_id="org-1")
    return IncomingWebhookService(
        PostgresIncomingWebhookRepository(test_session),
        handlers=hms.handlers(),
    )


async def create_action(action_service, organisation_id="org-1"):
    return await action_service.create(
        CreateActionRequest(organisation_id=organisation_id, description="Repair fire door")
    )


class TestIngest:

    @pytest.mark.asyncio
    async def test_ingest_persists_with_redacted_credentials(self, incoming):
        entry = await incoming.ingest(
            "hms",
            {"actionId": "x"},
            headers={"X-API-Key": "chk_secret", "Content-Type": "application/json"},
            event_type=ACTION_UPDATE,
        )

        stored = await incoming.get(entry.id)
        assert stored.source == "HMS"
        assert stored.processed is False
        assert stored.headers["x-api-key"] == "[redacted]"
        assert stored.headers["content-type"] == "application/json"

    @pytest.mark.asyncio
    async def test_unknown_entry(self, incoming):
        with pytest.raises(IncomingLogNotFoundError):
            await incoming.get(uuid4())

    @pytest.mark.asyncio
    async def test_list_filters(self, incoming):
        await incoming.ingest("HMS", {}, event_type=ACTION_UPDATE)
        await incoming.ingest("CRM", {}, event_type="contact_update")

        entries = await incoming.list(source="hms")

        assert [e.source for e in entries] == ["HMS"]


class TestProcess:

    @pytest.mark.asyncio
    async def test_action_update_is_applied(self, incoming, action_service):
        action = await create_action(action_service)
        entry = await incoming.ingest(
            HMS_SOURCE,
            {"actionId": str(action.id), "status": "in-progress"},
            event_type=ACTION_UPDATE,
        )

        processed = await incoming.process(entry.id)

        assert processed.processed
        assert processed.processed_at >= processed.created_at
        assert processed.error_message is None
        assert (await action_service.get(action.id)).status == ActionStatus.IN_PROGRESS

    @pytest.mark.asyncio
    async def test_work_order_completion_skips_forward(self, incoming, action_service):
        action = await create_action(action_service)
        entry = await incoming.ingest(
            HMS_SOURCE,
            {"actionId": str(action.id), "workOrderId": "WO-1", "status": "completed"},
            event_type=WORK_ORDER_UPDATE,
        )

        await incoming.process(entry.id)

        stored = await action_service.get(action.id)
        assert stored.status == ActionStatus.COMPLETED
        assert stored.resolved_at is not None

    @pytest.mark.asyncio
    async def test_backwards_update_fails_the_entry(self, incoming, action_service):
        action = await create_action(action_service)
        await action_service.advance(action.id, ActionStatus.SCHEDULED)
        entry = await incoming.ingest(
            HMS_SOURCE,
            {"actionId": str(action.id), "status": "in_progress"},
            event_type=WORK_ORDER_UPDATE,
        )

        result = await incoming.process(entry.id)

        assert not result.processed
        assert "SCHEDULED" in result.error_message
        assert (await action_service.get(action.id)).status == ActionStatus.SCHEDULED

    @pytest.mark.asyncio
    async def test_missing_handler_is_recorded(self, incoming):
        entry = await incoming.ingest("CRM", {"a": 1}, event_type="contact_update")

        result = await incoming.process(entry.id)

        assert not result.processed
        assert result.processed_at is None
        assert result.error_message == "No handler registered for CRM/contact_update"

    @pytest.mark.asyncio
    async def test_action_of_other_organisation_is_not_found(self, incoming, action_service):
        action = await create_action(action_service, organisation_id="org-2")
        entry = await incoming.ingest(
            HMS_SOURCE,
            {"actionId": str(action.id), "status": "IN_PROGRESS"},
            event_type=ACTION_UPDATE,
        )

        result = await incoming.process(entry.id)

        assert not result.processed
        assert "not found" in result.error_message

    @pytest.mark.asyncio
    async def test_numeric_status_fails_the_entry(self, incoming, action_service):
        action = await create_action(action_service)
        entry = await incoming.ingest(
            HMS_SOURCE,
            {"actionId": str(action.id), "status": 5},
            event_type=ACTION_UPDATE,
        )

        result = await incoming.process(entry.id)

        assert not result.processed
        assert result.error_message == "status must be a string, got int"
        assert (await action_service.get(action.id)).status == ActionStatus.OPEN

    @pytest.mark.asyncio
    async def test_handler_crash_rolls_back_its_writes(self, test_session, action_service):
        created = []

        async def flaky_handler(payload):
            action = await create_action(action_service)
            created.append(action.id)
            raise RuntimeError("downstream offline")

        incoming = IncomingWebhookService(
            PostgresIncomingWebhookRepository(test_session),
            handlers={("CRM", "contact_update"): flaky_handler},
        )
        entry = await incoming.ingest("crm", {"contactId": "c-1"}, event_type="contact_update")

        result = await incoming.process(entry.id)

        assert not result.processed
        assert result.error_message == "RuntimeError: downstream offline"
        assert (await incoming.get(entry.id)).error_message == "RuntimeError: downstream offline"
        assert await PostgresRemedialActionRepository(test_session).get_by_id(created[0]) is None


class TestReplay:

    @pytest.mark.asyncio
    async def test_replay_after_cause_is_fixed(self, incoming, action_service, test_session):
        action_id = uuid4()
        entry = await incoming.ingest(
            HMS_SOURCE,
            {"actionId": str(action_id), "status": "IN_PROGRESS"},
            event_type=ACTION_UPDATE,
        )
        failed = await incoming.process(entry.id)
        assert failed.error_message is not None

        # The action the HMS referred to now exists
        await PostgresRemedialActionRepository(test_session).save(
            RemedialAction(id=action_id, organisation_id="org-1", description="Repair fire door")
        )

        replayed = await incoming.replay(entry.id)

        assert replayed.processed
        assert replayed.error_message is None

    @pytest.mark.asyncio
    async def test_replay_of_processed_entry_conflicts(self, incoming, action_service):
        action = await create_action(action_service)
        entry = await incoming.ingest(
            HMS_SOURCE,
            {"actionId": str(action.id), "status": "IN_PROGRESS"},
            event_type=ACTION_UPDATE,
        )
        await incoming.process(entry.id)

        with pytest.raises(IncomingLogAlreadyProcessedError):
            await incoming.replay(entry.id)
