"""
Integration tests for fan-out and delivery bookkeeping.

These tests verify:
1. Fan-out creates one delivery per subscribed ACTIVE endpoint, once
2. Fan-out is organisation-scoped
3. Retry scheduling, exhaustion and the failure threshold
4. Attempts are never recorded against final deliveries
5. Lowering an endpoint's retry_count closes deliveries that used the new budget
"""

from datetime import timedelta

import pytest

from compliance_hub.application.dto import (
    RecordEventRequest,
    RegisterEndpointRequest,
    UpdateEndpointRequest,
)
from compliance_hub.application.services import DeliveryTracker, EndpointRegistry, EventLog
from compliance_hub.domain.entities import DeliveryOutcome, DeliveryStatus, EndpointStatus
from compliance_hub.domain.exceptions import DeliveryAlreadyFinalError
from compliance_hub.infrastructure.repositories import (
    PostgresWebhookDeliveryRepository,
    PostgresWebhookEndpointRepository,
    PostgresWebhookEventRepository,
)
from compliance_hub.service.delivery import DeliverySettings


@pytest.fixture
def registry(test_session) -> EndpointRegistry:
    return EndpointRegistry(PostgresWebhookEndpointRepository(test_session))


@pytest.fixture
def event_log(test_session) -> EventLog:
    return EventLog(PostgresWebhookEventRepository(test_session))


def make_tracker(session, settings: DeliverySettings | None = None) -> DeliveryTracker:
    return DeliveryTracker(
        endpoint_repository=PostgresWebhookEndpointRepository(session),
        event_repository=PostgresWebhookEventRepository(session),
        delivery_repository=PostgresWebhookDeliveryRepository(session),
        settings=settings or DeliverySettings(_env_file=None),
    )


@pytest.fixture
def tracker(test_session) -> DeliveryTracker:
    return make_tracker(test_session)


async def register(registry, organisation_id="org-1", events=("action.created",), retry_count=3):
    return await registry.register(
        RegisterEndpointRequest(
            organisation_id=organisation_id,
            url="https://example.org/hook",
            events=list(events),
            retry_count=retry_count,
        )
    )


async def record(event_log, organisation_id="org-1", event_type="action.created"):
    return await event_log.record(
        RecordEventRequest(
            organisation_id=organisation_id,
            event_type=event_type,
            entity_type="remedial_action",
            entity_id="a-1",
            payload={"status": "OPEN"},
        )
    )


def failure(status_code: int = 500) -> DeliveryOutcome:
    return DeliveryOutcome.failed(f"HTTP {status_code}", status_code=status_code, duration_ms=10)


# =============================================================================
# Fan-out
# =============================================================================

class TestScheduleDeliveries:

    @pytest.mark.asyncio
    async def test_one_delivery_per_subscribed_endpoint(self, registry, event_log, tracker):
        subscribed = await register(registry)
        await register(registry, events=["action.completed"])
        event = await record(event_log)

        created = await tracker.schedule_deliveries(event.id)

        assert [d.webhook_endpoint_id for d in created] == [subscribed.id]
        assert created[0].status == DeliveryStatus.PENDING
        assert (await event_log.get(event.id)).processed

    @pytest.mark.asyncio
    async def test_fan_out_is_idempotent(self, registry, event_log, tracker):
        await register(registry)
        await register(registry)
        event = await record(event_log)

        first = await tracker.schedule_deliveries(event.id)
        second = await tracker.schedule_deliveries(event.id)

        assert len(first) == 2
        assert second == []
        assert len(await tracker.list("org-1")) == 2

    @pytest.mark.asyncio
    async def test_fan_out_is_organisation_scoped(self, registry, event_log, tracker):
        await register(registry, organisation_id="org-2")
        event = await record(event_log, organisation_id="org-1")

        assert await tracker.schedule_deliveries(event.id) == []

    @pytest.mark.asyncio
    async def test_paused_endpoint_gets_no_deliveries(self, registry, event_log, tracker):
        endpoint = await register(registry)
        await registry.suspend(endpoint.id)
        event = await record(event_log)

        assert await tracker.schedule_deliveries(event.id) == []


# =============================================================================
# Attempts
# =============================================================================

class TestRecordAttempt:

    @pytest.mark.asyncio
    async def test_retries_then_fails_after_retry_count(self, registry, event_log, tracker):
        endpoint = await register(registry, retry_count=3)
        event = await record(event_log)
        [delivery] = await tracker.schedule_deliveries(event.id)

        first = await tracker.record_attempt(delivery.id, failure())
        assert first.status == DeliveryStatus.RETRYING
        assert first.attempt_count == 1
        assert first.next_retry_at is not None

        second = await tracker.record_attempt(delivery.id, failure())
        assert second.status == DeliveryStatus.RETRYING
        assert second.next_retry_at > first.next_retry_at

        third = await tracker.record_attempt(delivery.id, failure())
        assert third.status == DeliveryStatus.FAILED
        assert third.attempt_count == 3
        assert third.next_retry_at is None

        stored = await registry.get(endpoint.id)
        assert stored.failure_count == 1

    @pytest.mark.asyncio
    async def test_success_after_retries_resets_failure_count(self, registry, event_log, tracker, test_session):
        endpoint = await register(registry)
        endpoint.failure_count = 2
        await PostgresWebhookEndpointRepository(test_session).update(endpoint)
        event = await record(event_log)
        [delivery] = await tracker.schedule_deliveries(event.id)

        await tracker.record_attempt(delivery.id, failure(503))
        sent = await tracker.record_attempt(
            delivery.id,
            DeliveryOutcome.succeeded(status_code=200, response_body="ok", duration_ms=8),
        )

        assert sent.status == DeliveryStatus.SENT
        assert sent.attempt_count == 2
        assert sent.response_status == 200
        assert (await registry.get(endpoint.id)).failure_count == 0

    @pytest.mark.asyncio
    async def test_final_delivery_rejects_more_attempts(self, registry, event_log, tracker):
        await register(registry)
        event = await record(event_log)
        [delivery] = await tracker.schedule_deliveries(event.id)
        await tracker.record_attempt(delivery.id, DeliveryOutcome.succeeded(status_code=204))

        with pytest.raises(DeliveryAlreadyFinalError):
            await tracker.record_attempt(delivery.id, failure())

    @pytest.mark.asyncio
    async def test_zero_retry_budget_fails_on_first_error(self, registry, event_log, tracker):
        await register(registry, retry_count=0)
        event = await record(event_log)
        [delivery] = await tracker.schedule_deliveries(event.id)

        result = await tracker.record_attempt(delivery.id, failure())

        assert result.status == DeliveryStatus.FAILED
        assert result.attempt_count == 1

    @pytest.mark.asyncio
    async def test_response_body_is_truncated(self, registry, event_log, test_session):
        tracker = make_tracker(test_session, DeliverySettings(_env_file=None, response_body_limit=10))
        await register(registry)
        event = await record(event_log)
        [delivery] = await tracker.schedule_deliveries(event.id)

        result = await tracker.record_attempt(
            delivery.id,
            DeliveryOutcome.succeeded(status_code=200, response_body="x" * 50),
        )

        assert result.response_body == "x" * 10

    @pytest.mark.asyncio
    async def test_threshold_moves_endpoint_out_of_rotation(self, registry, event_log, test_session):
        tracker = make_tracker(test_session, DeliverySettings(_env_file=None, failure_threshold=2))
        endpoint = await register(registry, retry_count=1)

        for _ in range(2):
            event = await record(event_log)
            [delivery] = await tracker.schedule_deliveries(event.id)
            await tracker.record_attempt(delivery.id, failure())

        stored = await registry.get(endpoint.id)
        assert stored.failure_count == 2
        assert stored.status == EndpointStatus.FAILED


# =============================================================================
# Due deliveries
# =============================================================================

class TestDue:

    @pytest.mark.asyncio
    async def test_retrying_delivery_is_due_after_backoff(self, registry, event_log, tracker):
        await register(registry)
        event = await record(event_log)
        [delivery] = await tracker.schedule_deliveries(event.id)
        retrying = await tracker.record_attempt(delivery.id, failure())

        assert await tracker.due(now=retrying.next_retry_at - timedelta(seconds=1)) == []
        due = await tracker.due(now=retrying.next_retry_at)
        assert [d.id for d in due] == [delivery.id]

    @pytest.mark.asyncio
    async def test_paused_endpoint_deliveries_are_not_due(self, registry, event_log, tracker):
        endpoint = await register(registry)
        event = await record(event_log)
        await tracker.schedule_deliveries(event.id)

        await registry.suspend(endpoint.id)
        assert await tracker.due() == []

        await registry.resume(endpoint.id)
        assert len(await tracker.due()) == 1

    @pytest.mark.asyncio
    async def test_delivery_over_lowered_budget_is_not_due(self, registry, event_log, tracker):
        endpoint = await register(registry, retry_count=5)
        event = await record(event_log)
        [delivery] = await tracker.schedule_deliveries(event.id)
        for _ in range(2):
            retrying = await tracker.record_attempt(delivery.id, failure())

        # Registry without a tracker leaves the row RETRYING
        await registry.update(endpoint.id, UpdateEndpointRequest(retry_count=2))

        assert (await tracker.get(delivery.id)).status == DeliveryStatus.RETRYING
        assert await tracker.due(now=retrying.next_retry_at) == []


# =============================================================================
# Retry budget changes
# =============================================================================

class TestLoweredRetryBudget:

    @pytest.fixture
    def budget_registry(self, test_session, tracker) -> EndpointRegistry:
        return EndpointRegistry(PostgresWebhookEndpointRepository(test_session), delivery_tracker=tracker)

    @pytest.mark.asyncio
    async def test_exhausted_retrying_delivery_is_closed(self, budget_registry, event_log, tracker):
        endpoint = await register(budget_registry, retry_count=5)
        event = await record(event_log)
        [delivery] = await tracker.schedule_deliveries(event.id)
        for _ in range(3):
            await tracker.record_attempt(delivery.id, failure())

        updated = await budget_registry.update(endpoint.id, UpdateEndpointRequest(retry_count=0))

        closed = await tracker.get(delivery.id)
        assert closed.status == DeliveryStatus.FAILED
        assert closed.attempt_count == 3
        assert closed.next_retry_at is None
        assert "Retry budget lowered to 0" in closed.error_message
        assert updated.failure_count == 1
        assert (await budget_registry.get(endpoint.id)).failure_count == 1

        with pytest.raises(DeliveryAlreadyFinalError):
            await tracker.record_attempt(delivery.id, failure())
        assert (await tracker.get(delivery.id)).attempt_count == 3

    @pytest.mark.asyncio
    async def test_delivery_within_new_budget_keeps_retrying(self, budget_registry, event_log, tracker):
        endpoint = await register(budget_registry, retry_count=5)
        event = await record(event_log)
        [delivery] = await tracker.schedule_deliveries(event.id)
        await tracker.record_attempt(delivery.id, failure())

        updated = await budget_registry.update(endpoint.id, UpdateEndpointRequest(retry_count=3))

        assert (await tracker.get(delivery.id)).status == DeliveryStatus.RETRYING
        assert updated.failure_count == 0

    @pytest.mark.asyncio
    async def test_raising_budget_closes_nothing(self, budget_registry, event_log, tracker):
        endpoint = await register(budget_registry, retry_count=2)
        event = await record(event_log)
        [delivery] = await tracker.schedule_deliveries(event.id)
        await tracker.record_attempt(delivery.id, failure())

        await budget_registry.update(endpoint.id, UpdateEndpointRequest(retry_count=6))

        assert (await tracker.get(delivery.id)).status == DeliveryStatus.RETRYING
