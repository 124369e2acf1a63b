"""Inbound integration endpoints called by external systems."""

from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, Request

from compliance_hub.application.services import IncomingWebhookService
from compliance_hub.application.services.hms_integration import (
    ACTION_UPDATE,
    HMS_SOURCE,
    WORK_ORDER_UPDATE,
)
from compliance_hub.core.dependencies import get_incoming_service, require
from compliance_hub.domain.entities import Capability, Principal
from compliance_hub.presentation.schemas import (
    ErrorResponseSchema,
    HmsActionUpdateSchema,
    HmsWorkOrderUpdateSchema,
    IncomingWebhookResponseSchema,
)

integrations_router = APIRouter(
    prefix="/integrations",
    responses={
        401: {"model": ErrorResponseSchema, "description": "Missing or invalid API key"},
        403: {"model": ErrorResponseSchema, "description": "Missing capability"},
    },
)

Ingestor = Annotated[Principal, Depends(require(Capability.INGEST_WEBHOOKS))]
Service = Annotated[IncomingWebhookService, Depends(get_incoming_service)]


async def _ingest_and_process(
    service: IncomingWebhookService,
    request: Request,
    source: str,
    event_type: Optional[str],
    payload: Dict[str, Any],
) -> IncomingWebhookResponseSchema:
    entry = await service.ingest(
        source,
        payload,
        headers=dict(request.headers),
        event_type=event_type,
    )
    entry = await service.process(entry.id)
    return IncomingWebhookResponseSchema.model_validate(entry.to_dict())


@integrations_router.post(
    "/{source}/webhooks",
    response_model=IncomingWebhookResponseSchema,
    status_code=202,
    summary="Receive Webhook",
    description="""
    Accept a webhook from an external system. The call is always logged;
    if processing fails the entry carries the error and can be replayed.
    The event type comes from the `event_type` query parameter or the
    payload's `eventType` field.
    """,
)
async def receive_webhook(
    request: Request,
    source: Annotated[str, Path(min_length=1, max_length=50, description="Sending system, e.g. HMS")],
    principal: Ingestor,
    service: Service,
    payload: Annotated[Dict[str, Any], Body()],
    event_type: Annotated[Optional[str], Query(max_length=100)] = None,
) -> IncomingWebhookResponseSchema:
    resolved_type = event_type or payload.get("eventType")
    return await _ingest_and_process(service, request, source, resolved_type, payload)


@integrations_router.post(
    "/hms/actions",
    response_model=IncomingWebhookResponseSchema,
    status_code=202,
    summary="HMS Action Update",
    description="Apply a status update from the housing management system to a remedial action.",
)
async def hms_action_update(
    request: Request,
    body: HmsActionUpdateSchema,
    principal: Ingestor,
    service: Service,
) -> IncomingWebhookResponseSchema:
    return await _ingest_and_process(
        service, request, HMS_SOURCE, ACTION_UPDATE, body.model_dump(exclude_none=True)
    )


@integrations_router.post(
    "/hms/work-orders",
    response_model=IncomingWebhookResponseSchema,
    status_code=202,
    summary="HMS Work Order Update",
    description="Map a work order state change from the housing management system onto its remedial action.",
)
async def hms_work_order_update(
    request: Request,
    body: HmsWorkOrderUpdateSchema,
    principal: Ingestor,
    service: Service,
) -> IncomingWebhookResponseSchema:
    return await _ingest_and_process(
        service, request, HMS_SOURCE, WORK_ORDER_UPDATE, body.model_dump(exclude_none=True)
    )
