"""Event log - append-only record of domain events."""

from typing import List
from uuid import UUID

import structlog

from compliance_hub.core.metrics import record_event
from compliance_hub.domain.entities import WebhookEvent
from compliance_hub.domain.exceptions import EventNotFoundError, ValidationError
from compliance_hub.domain.interfaces import WebhookEventRepository
from compliance_hub.application.dto import RecordEventRequest

logger = structlog.get_logger(__name__)


class EventLog:
    """
    Application service for the event log.

    Recording an event does not deliver it; fan-out is the delivery
    tracker's job.
    """

    def __init__(self, event_repository: WebhookEventRepository):
        self._event_repo = event_repository

    async def record(self, request: RecordEventRequest) -> WebhookEvent:
        """
        Append an immutable event.

        Raises:
            ValidationError: If a required field is blank
        """
        errors = request.validate()
        if errors:
            raise ValidationError("; ".join(errors))

        event = WebhookEvent(
            organisation_id=request.organisation_id,
            event_type=request.event_type.strip(),
            entity_type=request.entity_type.strip(),
            entity_id=str(request.entity_id).strip(),
            payload=dict(request.payload),
        )
        await self._event_repo.save(event)
        record_event(event.event_type)

        logger.info(
            "webhook_event_recorded",
            event_id=str(event.id),
            event_type=event.event_type,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
        )

        return event

    async def mark_processed(self, event_id: UUID) -> None:
        """Idempotent: marking an already processed event does nothing."""
        event = await self.get(event_id)
        if event.processed:
            return

        await self._event_repo.mark_processed(event_id)
        logger.info("webhook_event_processed", event_id=str(event_id))

    async def get(self, event_id: UUID, organisation_id: str | None = None) -> WebhookEvent:
        event = await self._event_repo.get_by_id(event_id)

        if event is None or (
            organisation_id is not None and event.organisation_id != organisation_id
        ):
            raise EventNotFoundError(str(event_id))

        return event

    async def list(self, organisation_id: str, limit: int = 100) -> List[WebhookEvent]:
        return await self._event_repo.list_by_organisation(organisation_id, limit=limit)

    async def list_unprocessed(self, limit: int = 100) -> List[WebhookEvent]:
        return await self._event_repo.list_unprocessed(limit=limit)
