"""Delivery tracker - fan-out and per-attempt retry bookkeeping."""

from datetime import datetime
from typing import List
from uuid import UUID

import structlog

from compliance_hub.core.metrics import (
    record_deliveries_scheduled,
    record_delivery_exhausted,
    record_delivery_retry,
    record_delivery_success,
    record_endpoint_auto_failed,
)
from compliance_hub.domain.clock import utcnow
from compliance_hub.domain.entities import (
    DeliveryOutcome,
    DeliveryStatus,
    WebhookDelivery,
    WebhookEndpoint,
)
from compliance_hub.domain.exceptions import (
    DeliveryAlreadyFinalError,
    DeliveryNotFoundError,
    EndpointNotFoundError,
    EventNotFoundError,
)
from compliance_hub.domain.interfaces import (
    WebhookDeliveryRepository,
    WebhookEndpointRepository,
    WebhookEventRepository,
)
from compliance_hub.service.delivery import DeliverySettings, delivery_settings, next_retry_at

logger = structlog.get_logger(__name__)


class DeliveryTracker:
    """
    Application service for webhook deliveries.

    State machine per delivery:
        PENDING  -> SENT | RETRYING | FAILED
        RETRYING -> SENT | RETRYING | FAILED
    SENT and FAILED are terminal.
    """

    def __init__(
        self,
        endpoint_repository: WebhookEndpointRepository,
        event_repository: WebhookEventRepository,
        delivery_repository: WebhookDeliveryRepository,
        settings: DeliverySettings = delivery_settings,
    ):
        self._endpoint_repo = endpoint_repository
        self._event_repo = event_repository
        self._delivery_repo = delivery_repository
        self._settings = settings

    async def schedule_deliveries(self, event_id: UUID) -> List[WebhookDelivery]:
        """
        Fan an event out to every ACTIVE subscribed endpoint of its organisation.

        Endpoints that already have a delivery for this event are skipped,
        so calling this twice never duplicates rows. The event is marked
        processed afterwards.

        Returns:
            Only the deliveries created by this call

        Raises:
            EventNotFoundError: If the event does not exist
        """
        event = await self._event_repo.get_by_id(event_id)
        if event is None:
            raise EventNotFoundError(str(event_id))

        log = logger.bind(event_id=str(event.id), event_type=event.event_type)

        endpoints = await self._endpoint_repo.list_subscribed(
            event.organisation_id,
            event.event_type,
        )
        already_scheduled = await self._delivery_repo.endpoint_ids_for_event(event.id)

        created = []
        for endpoint in endpoints:
            if endpoint.id in already_scheduled:
                continue
            delivery = WebhookDelivery(webhook_endpoint_id=endpoint.id, event_id=event.id)
            await self._delivery_repo.save(delivery)
            created.append(delivery)

        if not event.processed:
            await self._event_repo.mark_processed(event.id)

        record_deliveries_scheduled(len(created))
        log.info(
            "webhook_deliveries_scheduled",
            subscribed_endpoints=len(endpoints),
            created=len(created),
        )

        return created

    async def record_attempt(
        self,
        delivery_id: UUID,
        outcome: DeliveryOutcome,
    ) -> WebhookDelivery:
        """
        Apply the outcome of one attempt.

        On success the delivery is SENT and the endpoint's failure count
        resets. On failure the delivery is RETRYING with a backoff-based
        ``next_retry_at`` while attempts remain below the endpoint's
        ``retry_count``; otherwise it is FAILED and the endpoint's failure
        count goes up by one, tripping the endpoint once it reaches the
        configured threshold.

        Raises:
            DeliveryNotFoundError: If the delivery does not exist
            DeliveryAlreadyFinalError: If it is already SENT or FAILED
        """
        delivery = await self.get(delivery_id)
        if delivery.status.is_terminal:
            raise DeliveryAlreadyFinalError(str(delivery.id), delivery.status.value)

        endpoint = await self._endpoint_repo.get_by_id(delivery.webhook_endpoint_id)
        if endpoint is None:
            raise EndpointNotFoundError(str(delivery.webhook_endpoint_id))

        log = logger.bind(
            delivery_id=str(delivery.id),
            endpoint_id=str(endpoint.id),
            event_id=str(delivery.event_id),
        )
        body = self._truncate(outcome.response_body)

        if outcome.success:
            delivery.mark_sent(
                response_status=outcome.status_code,
                response_body=body,
                duration_ms=outcome.duration_ms,
            )
            endpoint.record_success()
            await self._delivery_repo.update(delivery)
            await self._endpoint_repo.update(endpoint)

            record_delivery_success()
            log.info(
                "webhook_delivery_sent",
                attempt=delivery.attempt_count,
                status_code=outcome.status_code,
                duration_ms=outcome.duration_ms,
            )
            return delivery

        attempts_after = delivery.attempt_count + 1
        if attempts_after < endpoint.retry_count:
            delivery.mark_retrying(
                next_retry_at=next_retry_at(attempts_after, settings=self._settings),
                error_message=outcome.error_message,
                response_status=outcome.status_code,
                response_body=body,
                duration_ms=outcome.duration_ms,
            )
            await self._delivery_repo.update(delivery)

            record_delivery_retry()
            log.warning(
                "webhook_delivery_retry_scheduled",
                attempt=delivery.attempt_count,
                retry_count=endpoint.retry_count,
                next_retry_at=delivery.next_retry_at.isoformat(),
                error=outcome.error_message,
            )
            return delivery

        delivery.mark_failed(
            error_message=outcome.error_message,
            response_status=outcome.status_code,
            response_body=body,
            duration_ms=outcome.duration_ms,
        )
        endpoint.record_exhausted_delivery()
        self._apply_failure_threshold(endpoint)
        await self._delivery_repo.update(delivery)
        await self._endpoint_repo.update(endpoint)

        record_delivery_exhausted()
        log.error(
            "webhook_delivery_failed",
            attempt=delivery.attempt_count,
            failure_count=endpoint.failure_count,
            endpoint_status=endpoint.status.value,
            error=outcome.error_message,
        )
        return delivery

    async def enforce_retry_budget(self, endpoint: WebhookEndpoint) -> List[WebhookDelivery]:
        """
        Fail RETRYING deliveries that already used the endpoint's current budget.

        Needed after ``retry_count`` is lowered. Each closed delivery counts
        as one exhausted delivery against the endpoint.

        Returns:
            The deliveries that were closed
        """
        closed = []
        for delivery in await self._delivery_repo.list_retrying(endpoint.id):
            if delivery.attempt_count < endpoint.retry_count:
                continue
            delivery.close_exhausted(
                f"Retry budget lowered to {endpoint.retry_count} after {delivery.attempt_count} attempts"
            )
            endpoint.record_exhausted_delivery()
            await self._delivery_repo.update(delivery)
            record_delivery_exhausted()
            closed.append(delivery)

        if closed:
            self._apply_failure_threshold(endpoint)
            await self._endpoint_repo.update(endpoint)
            logger.warning(
                "webhook_deliveries_closed_by_budget",
                endpoint_id=str(endpoint.id),
                retry_count=endpoint.retry_count,
                closed=len(closed),
                failure_count=endpoint.failure_count,
            )

        return closed

    async def get(self, delivery_id: UUID, organisation_id: str | None = None) -> WebhookDelivery:
        delivery = await self._delivery_repo.get_by_id(delivery_id)
        if delivery is None:
            raise DeliveryNotFoundError(str(delivery_id))

        if organisation_id is not None:
            endpoint = await self._endpoint_repo.get_by_id(delivery.webhook_endpoint_id)
            if endpoint is None or endpoint.organisation_id != organisation_id:
                raise DeliveryNotFoundError(str(delivery_id))

        return delivery

    async def list(
        self,
        organisation_id: str,
        endpoint_id: UUID | None = None,
        status: DeliveryStatus | None = None,
        limit: int = 100,
    ) -> List[WebhookDelivery]:
        return await self._delivery_repo.list_for_organisation(
            organisation_id,
            endpoint_id=endpoint_id,
            status=status,
            limit=limit,
        )

    async def due(self, now: datetime | None = None, limit: int = 100) -> List[WebhookDelivery]:
        """Deliveries ready for an attempt, locked for the current transaction."""
        return await self._delivery_repo.get_due(now or utcnow(), limit=limit)

    def _apply_failure_threshold(self, endpoint: WebhookEndpoint) -> None:
        if not endpoint.is_active:
            return
        if endpoint.failure_count < self._settings.failure_threshold:
            return

        endpoint.set_status(self._settings.failure_status)
        record_endpoint_auto_failed()
        logger.warning(
            "webhook_endpoint_tripped",
            endpoint_id=str(endpoint.id),
            failure_count=endpoint.failure_count,
            threshold=self._settings.failure_threshold,
            status=endpoint.status.value,
        )

    def _truncate(self, body: str | None) -> str | None:
        if body is None:
            return None
        return body[: self._settings.response_body_limit]
