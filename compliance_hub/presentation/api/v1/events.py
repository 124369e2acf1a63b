"""Admin API for domain events and fan-out."""

from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from compliance_hub.application.dto import RecordEventRequest
from compliance_hub.application.services import DeliveryTracker, EventLog
from compliance_hub.core.dependencies import get_delivery_tracker, get_event_log, require
from compliance_hub.domain.entities import Capability, Principal
from compliance_hub.presentation.schemas import (
    DeliveryResponseSchema,
    ErrorResponseSchema,
    EventResponseSchema,
    FanOutResponseSchema,
    RecordEventSchema,
)

events_router = APIRouter(
    prefix="/admin/webhook-events",
    responses={
        401: {"model": ErrorResponseSchema, "description": "Missing or invalid API key"},
        403: {"model": ErrorResponseSchema, "description": "Missing capability"},
    },
)

EventId = Annotated[UUID, Path(description="UUID of the event")]


@events_router.get(
    "",
    response_model=List[EventResponseSchema],
    summary="List Events",
    description="Most recent events of the caller's organisation, newest first.",
)
async def list_events(
    principal: Annotated[Principal, Depends(require(Capability.VIEW_WEBHOOKS))],
    event_log: Annotated[EventLog, Depends(get_event_log)],
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> List[EventResponseSchema]:
    events = await event_log.list(principal.organisation_id, limit=limit)
    return [EventResponseSchema.model_validate(e.to_dict()) for e in events]


@events_router.post(
    "",
    response_model=EventResponseSchema,
    status_code=201,
    summary="Record Event",
    description="""
    Append a domain event. The dispatcher fans it out to subscribed
    endpoints on its next cycle.
    """,
    responses={400: {"model": ErrorResponseSchema, "description": "Invalid event"}},
)
async def record_event(
    request: RecordEventSchema,
    principal: Annotated[Principal, Depends(require(Capability.RECORD_EVENTS))],
    event_log: Annotated[EventLog, Depends(get_event_log)],
) -> EventResponseSchema:
    dto = RecordEventRequest(
        organisation_id=principal.organisation_id,
        event_type=request.event_type,
        entity_type=request.entity_type,
        entity_id=request.entity_id,
        payload=request.payload,
    )
    event = await event_log.record(dto)
    return EventResponseSchema.model_validate(event.to_dict())


@events_router.get(
    "/{event_id}",
    response_model=EventResponseSchema,
    summary="Get Event",
    responses={404: {"model": ErrorResponseSchema, "description": "Event not found"}},
)
async def get_event(
    event_id: EventId,
    principal: Annotated[Principal, Depends(require(Capability.VIEW_WEBHOOKS))],
    event_log: Annotated[EventLog, Depends(get_event_log)],
) -> EventResponseSchema:
    event = await event_log.get(event_id, principal.organisation_id)
    return EventResponseSchema.model_validate(event.to_dict())


@events_router.post(
    "/{event_id}/fan-out",
    response_model=FanOutResponseSchema,
    summary="Fan Out Event",
    description="""
    Create deliveries for the event now instead of waiting for the
    dispatcher. Safe to repeat: endpoints that already have a delivery
    for the event are skipped.
    """,
    responses={404: {"model": ErrorResponseSchema, "description": "Event not found"}},
)
async def fan_out_event(
    event_id: EventId,
    principal: Annotated[Principal, Depends(require(Capability.DISPATCH_WEBHOOKS))],
    event_log: Annotated[EventLog, Depends(get_event_log)],
    tracker: Annotated[DeliveryTracker, Depends(get_delivery_tracker)],
) -> FanOutResponseSchema:
    event = await event_log.get(event_id, principal.organisation_id)
    created = await tracker.schedule_deliveries(event.id)

    return FanOutResponseSchema(
        event_id=str(event.id),
        deliveries_created=len(created),
        deliveries=[DeliveryResponseSchema.model_validate(d.to_dict()) for d in created],
    )
