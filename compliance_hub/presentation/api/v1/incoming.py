"""Admin API for the inbound webhook log."""

from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from compliance_hub.application.services import IncomingWebhookService
from compliance_hub.core.dependencies import get_incoming_service, require
from compliance_hub.domain.entities import Capability, Principal
from compliance_hub.presentation.schemas import ErrorResponseSchema, IncomingWebhookResponseSchema

incoming_router = APIRouter(
    prefix="/admin/incoming-webhooks",
    responses={
        401: {"model": ErrorResponseSchema, "description": "Missing or invalid API key"},
        403: {"model": ErrorResponseSchema, "description": "Missing capability"},
    },
)


@incoming_router.get(
    "",
    response_model=List[IncomingWebhookResponseSchema],
    summary="List Incoming Webhooks",
)
async def list_incoming_webhooks(
    principal: Annotated[Principal, Depends(require(Capability.VIEW_INCOMING))],
    service: Annotated[IncomingWebhookService, Depends(get_incoming_service)],
    source: Annotated[Optional[str], Query(description="Only this source, e.g. HMS")] = None,
    processed: Annotated[Optional[bool], Query(description="Filter on processing status")] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> List[IncomingWebhookResponseSchema]:
    entries = await service.list(limit=limit, source=source, processed=processed)
    return [IncomingWebhookResponseSchema.model_validate(e.to_dict()) for e in entries]


@incoming_router.post(
    "/{log_id}/replay",
    response_model=IncomingWebhookResponseSchema,
    summary="Replay Incoming Webhook",
    description="""
    Run the handler again for an entry that failed. The entry comes back
    processed, or with the new error message.
    """,
    responses={
        404: {"model": ErrorResponseSchema, "description": "Entry not found"},
        409: {"model": ErrorResponseSchema, "description": "Entry already processed"},
    },
)
async def replay_incoming_webhook(
    log_id: Annotated[UUID, Path(description="UUID of the log entry")],
    principal: Annotated[Principal, Depends(require(Capability.REPLAY_INCOMING))],
    service: Annotated[IncomingWebhookService, Depends(get_incoming_service)],
) -> IncomingWebhookResponseSchema:
    entry = await service.replay(log_id)
    return IncomingWebhookResponseSchema.model_validate(entry.to_dict())
