"""Admin API for webhook delivery history."""

from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from compliance_hub.application.services import DeliveryTracker
from compliance_hub.core.dependencies import get_delivery_tracker, require
from compliance_hub.domain.entities import Capability, DeliveryStatus, Principal
from compliance_hub.presentation.schemas import DeliveryResponseSchema, ErrorResponseSchema

deliveries_router = APIRouter(
    prefix="/admin/webhook-deliveries",
    responses={
        401: {"model": ErrorResponseSchema, "description": "Missing or invalid API key"},
        403: {"model": ErrorResponseSchema, "description": "Missing capability"},
    },
)


@deliveries_router.get(
    "",
    response_model=List[DeliveryResponseSchema],
    summary="List Deliveries",
    description="Deliveries to the caller's endpoints, newest first, optionally filtered.",
)
async def list_deliveries(
    principal: Annotated[Principal, Depends(require(Capability.VIEW_WEBHOOKS))],
    tracker: Annotated[DeliveryTracker, Depends(get_delivery_tracker)],
    endpoint_id: Annotated[Optional[UUID], Query(description="Only this endpoint")] = None,
    status: Annotated[Optional[DeliveryStatus], Query(description="Only this status")] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> List[DeliveryResponseSchema]:
    deliveries = await tracker.list(
        principal.organisation_id,
        endpoint_id=endpoint_id,
        status=status,
        limit=limit,
    )
    return [DeliveryResponseSchema.model_validate(d.to_dict()) for d in deliveries]


@deliveries_router.get(
    "/{delivery_id}",
    response_model=DeliveryResponseSchema,
    summary="Get Delivery",
    responses={404: {"model": ErrorResponseSchema, "description": "Delivery not found"}},
)
async def get_delivery(
    delivery_id: Annotated[UUID, Path(description="UUID of the delivery")],
    principal: Annotated[Principal, Depends(require(Capability.VIEW_WEBHOOKS))],
    tracker: Annotated[DeliveryTracker, Depends(get_delivery_tracker)],
) -> DeliveryResponseSchema:
    delivery = await tracker.get(delivery_id, principal.organisation_id)
    return DeliveryResponseSchema.model_validate(delivery.to_dict())
