"""Admin API to trigger a dispatch cycle on demand."""

from typing import Annotated

from fastapi import APIRouter, Depends

from compliance_hub.core.dependencies import get_dispatcher, require
from compliance_hub.domain.entities import Capability, Principal
from compliance_hub.infrastructure.workers import WebhookDispatcher
from compliance_hub.presentation.schemas import DispatchReportSchema, ErrorResponseSchema

dispatcher_router = APIRouter(prefix="/admin/webhook-dispatcher")


@dispatcher_router.post(
    "/run",
    response_model=DispatchReportSchema,
    summary="Run Dispatch Cycle",
    description="""
    Run one fan-out and delivery cycle immediately, in addition to the
    background polling loop. Deliveries another worker holds are skipped.
    """,
    responses={
        401: {"model": ErrorResponseSchema, "description": "Missing or invalid API key"},
        403: {"model": ErrorResponseSchema, "description": "Missing capability"},
    },
)
async def run_dispatcher(
    principal: Annotated[Principal, Depends(require(Capability.DISPATCH_WEBHOOKS))],
    dispatcher: Annotated[WebhookDispatcher, Depends(get_dispatcher)],
) -> DispatchReportSchema:
    report = await dispatcher.run_once()
    return DispatchReportSchema.model_validate(report.to_dict())
