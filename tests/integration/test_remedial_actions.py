"""
Integration tests for the remedial action service.

These tests verify:
1. Board moves follow the forward path one step at a time
2. Terminal statuses cannot be left
3. Every change records a domain event for subscribers
"""

import pytest

from compliance_hub.application.dto import CreateActionRequest
from compliance_hub.application.services import EventLog, RemedialActionService
from compliance_hub.domain.entities import ActionStatus
from compliance_hub.domain.exceptions import (
    ActionNotFoundError,
    InvalidActionTransitionError,
    ValidationError,
)
from compliance_hub.infrastructure.repositories import (
    PostgresRemedialActionRepository,
    PostgresWebhookEventRepository,
)


@pytest.fixture
def event_log(test_session) -> EventLog:
    return EventLog(PostgresWebhookEventRepository(test_session))


@pytest.fixture
def service(test_session, event_log) -> RemedialActionService:
    return RemedialActionService(PostgresRemedialActionRepository(test_session), event_log)


async def create(service, organisation_id="org-1"):
    return await service.create(
        CreateActionRequest(
            organisation_id=organisation_id,
            description="Install smoke alarm in flat 3",
            code="FRA-7",
        )
    )


class TestCreate:

    @pytest.mark.asyncio
    async def test_create_opens_action_and_records_event(self, service, event_log):
        action = await create(service)

        assert action.status == ActionStatus.OPEN
        events = await event_log.list("org-1")
        assert [e.event_type for e in events] == ["action.created"]
        assert events[0].entity_id == str(action.id)

    @pytest.mark.asyncio
    async def test_create_requires_description(self, service):
        with pytest.raises(ValidationError):
            await service.create(CreateActionRequest(organisation_id="org-1", description="  "))


class TestTransition:

    @pytest.mark.asyncio
    async def test_walks_the_forward_path(self, service, event_log):
        action = await create(service)

        for target in ("in-progress", "SCHEDULED", "completed"):
            action = await service.transition(action.id, target)

        assert action.status == ActionStatus.COMPLETED
        assert action.resolved_at is not None
        event_types = {e.event_type for e in await event_log.list("org-1")}
        assert {"action.updated", "action.completed"} <= event_types

    @pytest.mark.asyncio
    async def test_cannot_skip_steps(self, service):
        action = await create(service)

        with pytest.raises(InvalidActionTransitionError):
            await service.transition(action.id, ActionStatus.COMPLETED)

    @pytest.mark.asyncio
    async def test_cancelled_is_terminal(self, service):
        action = await create(service)
        await service.transition(action.id, "canceled")

        with pytest.raises(InvalidActionTransitionError):
            await service.transition(action.id, ActionStatus.IN_PROGRESS)

    @pytest.mark.asyncio
    async def test_unknown_status(self, service):
        action = await create(service)

        with pytest.raises(ValidationError):
            await service.transition(action.id, "DONE")

    @pytest.mark.asyncio
    async def test_other_organisation(self, service):
        action = await create(service, organisation_id="org-1")

        with pytest.raises(ActionNotFoundError):
            await service.transition(action.id, "IN_PROGRESS", organisation_id="org-2")


class TestAdvance:

    @pytest.mark.asyncio
    async def test_advance_can_skip_forward(self, service):
        action = await create(service)

        advanced = await service.advance(action.id, ActionStatus.SCHEDULED)

        assert advanced.status == ActionStatus.SCHEDULED

    @pytest.mark.asyncio
    async def test_advance_cannot_repeat_status(self, service):
        action = await create(service)
        await service.advance(action.id, ActionStatus.IN_PROGRESS)

        with pytest.raises(InvalidActionTransitionError):
            await service.advance(action.id, ActionStatus.IN_PROGRESS)

    @pytest.mark.asyncio
    async def test_list_filters_by_status(self, service):
        first = await create(service)
        await create(service)
        await service.advance(first.id, ActionStatus.IN_PROGRESS)

        in_progress = await service.list("org-1", status=ActionStatus.IN_PROGRESS)

        assert [a.id for a in in_progress] == [first.id]
