"""Endpoint registry - manages webhook destinations and their status."""

from typing import List
from uuid import UUID, uuid4

import structlog

from compliance_hub.domain.clock import utcnow
from compliance_hub.domain.entities import (
    DeliveryOutcome,
    EndpointStatus,
    WebhookEndpoint,
    WebhookEvent,
)
from compliance_hub.domain.exceptions import (
    EndpointNotFoundError,
    InvalidEndpointStateError,
    ValidationError,
)
from compliance_hub.domain.interfaces import WebhookEndpointRepository, WebhookSender
from compliance_hub.application.dto import (
    RegisterEndpointRequest,
    UpdateEndpointRequest,
    dedupe_events,
)
from .delivery_tracker import DeliveryTracker

logger = structlog.get_logger(__name__)

TEST_EVENT_TYPE = "webhook.test"


class EndpointRegistry:
    """
    Application service for webhook endpoint use cases.

    Endpoints are never deleted: suspend, resume and disable are status
    changes so delivery history stays attached. Concurrent edits are last
    writer wins.
    """

    def __init__(
        self,
        endpoint_repository: WebhookEndpointRepository,
        sender: WebhookSender | None = None,
        delivery_tracker: DeliveryTracker | None = None,
    ):
        self._endpoint_repo = endpoint_repository
        self._sender = sender
        self._delivery_tracker = delivery_tracker

    async def register(self, request: RegisterEndpointRequest) -> WebhookEndpoint:
        """
        Register a new endpoint in ACTIVE status.

        Raises:
            ValidationError: If events is empty, the URL is not absolute
                http(s), or the auth settings are incomplete
        """
        errors = request.validate()
        if errors:
            raise ValidationError("; ".join(errors))

        endpoint = WebhookEndpoint(
            organisation_id=request.organisation_id,
            name=request.name,
            url=request.url.strip(),
            events=dedupe_events(request.events),
            auth_type=request.auth_type,
            auth_value=request.auth_value,
            headers=dict(request.headers),
            retry_count=request.retry_count,
            timeout_ms=request.timeout_ms,
        )
        await self._endpoint_repo.save(endpoint)

        logger.info(
            "webhook_endpoint_registered",
            endpoint_id=str(endpoint.id),
            organisation_id=endpoint.organisation_id,
            events=endpoint.events,
            auth_type=endpoint.auth_type.value,
        )

        return endpoint

    async def update(
        self,
        endpoint_id: UUID,
        request: UpdateEndpointRequest,
        organisation_id: str | None = None,
    ) -> WebhookEndpoint:
        """
        Apply a partial update.

        Lowering ``retry_count`` fails RETRYING deliveries that already
        made that many attempts.
        """
        endpoint = await self.get(endpoint_id, organisation_id)
        previous_retry_count = endpoint.retry_count

        errors = request.validate(endpoint.auth_type, endpoint.auth_value)
        if errors:
            raise ValidationError("; ".join(errors))

        if request.name is not None:
            endpoint.name = request.name
        if request.url is not None:
            endpoint.url = request.url.strip()
        if request.events is not None:
            endpoint.events = dedupe_events(request.events)
        if request.auth_type is not None:
            endpoint.auth_type = request.auth_type
        if request.auth_value is not None:
            endpoint.auth_value = request.auth_value
        if request.headers is not None:
            endpoint.headers = dict(request.headers)
        if request.retry_count is not None:
            endpoint.retry_count = request.retry_count
        if request.timeout_ms is not None:
            endpoint.timeout_ms = request.timeout_ms

        endpoint.updated_at = utcnow()
        await self._endpoint_repo.update(endpoint)

        if self._delivery_tracker is not None and endpoint.retry_count < previous_retry_count:
            await self._delivery_tracker.enforce_retry_budget(endpoint)

        logger.info("webhook_endpoint_updated", endpoint_id=str(endpoint.id))

        return endpoint

    async def suspend(self, endpoint_id: UUID, organisation_id: str | None = None) -> WebhookEndpoint:
        """ACTIVE -> PAUSED. Suspending a paused endpoint is a no-op."""
        endpoint = await self.get(endpoint_id, organisation_id)

        if endpoint.status == EndpointStatus.PAUSED:
            return endpoint
        if endpoint.status != EndpointStatus.ACTIVE:
            raise InvalidEndpointStateError(str(endpoint_id), endpoint.status.value, "suspend")

        return await self._change_status(endpoint, EndpointStatus.PAUSED)

    async def resume(self, endpoint_id: UUID, organisation_id: str | None = None) -> WebhookEndpoint:
        """
        PAUSED or FAILED -> ACTIVE.

        Resuming a FAILED endpoint is the manual reset: its failure count
        goes back to zero.
        """
        endpoint = await self.get(endpoint_id, organisation_id)

        if endpoint.status == EndpointStatus.ACTIVE:
            return endpoint
        if endpoint.status == EndpointStatus.DISABLED:
            raise InvalidEndpointStateError(str(endpoint_id), endpoint.status.value, "resume")

        if endpoint.status == EndpointStatus.FAILED:
            endpoint.reset_failures()

        return await self._change_status(endpoint, EndpointStatus.ACTIVE)

    async def disable(self, endpoint_id: UUID, organisation_id: str | None = None) -> WebhookEndpoint:
        """Revoke an endpoint. DISABLED is terminal; history is kept."""
        endpoint = await self.get(endpoint_id, organisation_id)

        if endpoint.status == EndpointStatus.DISABLED:
            return endpoint

        return await self._change_status(endpoint, EndpointStatus.DISABLED)

    async def reset_failures(
        self,
        endpoint_id: UUID,
        organisation_id: str | None = None,
    ) -> WebhookEndpoint:
        endpoint = await self.get(endpoint_id, organisation_id)
        endpoint.reset_failures()
        await self._endpoint_repo.update(endpoint)

        logger.info("webhook_endpoint_failures_reset", endpoint_id=str(endpoint.id))

        return endpoint

    async def get(self, endpoint_id: UUID, organisation_id: str | None = None) -> WebhookEndpoint:
        """
        Retrieve an endpoint.

        Raises:
            EndpointNotFoundError: If it does not exist or belongs to
                another organisation
        """
        endpoint = await self._endpoint_repo.get_by_id(endpoint_id)

        if endpoint is None or (
            organisation_id is not None and endpoint.organisation_id != organisation_id
        ):
            logger.warning("webhook_endpoint_not_found", endpoint_id=str(endpoint_id))
            raise EndpointNotFoundError(str(endpoint_id))

        return endpoint

    async def list(self, organisation_id: str) -> List[WebhookEndpoint]:
        return await self._endpoint_repo.list_by_organisation(organisation_id)

    async def send_test(
        self,
        endpoint_id: UUID,
        organisation_id: str | None = None,
    ) -> DeliveryOutcome:
        """Post a test event straight away. No delivery row is written."""
        if self._sender is None:
            raise RuntimeError("EndpointRegistry was built without a sender")

        endpoint = await self.get(endpoint_id, organisation_id)
        event = WebhookEvent(
            organisation_id=endpoint.organisation_id,
            event_type=TEST_EVENT_TYPE,
            entity_type="webhook_endpoint",
            entity_id=str(endpoint.id),
            payload={"message": "Test webhook delivery", "endpointId": str(endpoint.id)},
        )

        outcome = await self._sender.send(endpoint, event, delivery_id=uuid4())

        logger.info(
            "webhook_endpoint_tested",
            endpoint_id=str(endpoint.id),
            success=outcome.success,
            status_code=outcome.status_code,
        )

        return outcome

    async def _change_status(
        self,
        endpoint: WebhookEndpoint,
        status: EndpointStatus,
    ) -> WebhookEndpoint:
        previous = endpoint.status
        endpoint.set_status(status)
        await self._endpoint_repo.update(endpoint)

        logger.info(
            "webhook_endpoint_status_changed",
            endpoint_id=str(endpoint.id),
            from_status=previous.value,
            to_status=status.value,
        )

        return endpoint
