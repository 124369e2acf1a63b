"""Admin API for webhook endpoints."""

from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from compliance_hub.application.dto import RegisterEndpointRequest, UpdateEndpointRequest
from compliance_hub.application.services import EndpointRegistry
from compliance_hub.core.dependencies import get_delivery_policy, get_endpoint_registry, require
from compliance_hub.domain.entities import Capability, Principal
from compliance_hub.domain.exceptions import DeliveryFailure
from compliance_hub.service.delivery import DeliverySettings
from compliance_hub.presentation.schemas import (
    EndpointResponseSchema,
    EndpointTestResultSchema,
    ErrorResponseSchema,
    RegisterEndpointSchema,
    UpdateEndpointSchema,
)

webhooks_router = APIRouter(
    prefix="/admin/webhooks",
    responses={
        401: {"model": ErrorResponseSchema, "description": "Missing or invalid API key"},
        403: {"model": ErrorResponseSchema, "description": "Missing capability"},
    },
)

EndpointId = Annotated[UUID, Path(description="UUID of the webhook endpoint")]
Viewer = Annotated[Principal, Depends(require(Capability.VIEW_WEBHOOKS))]
Manager = Annotated[Principal, Depends(require(Capability.MANAGE_WEBHOOKS))]
Registry = Annotated[EndpointRegistry, Depends(get_endpoint_registry)]
Policy = Annotated[DeliverySettings, Depends(get_delivery_policy)]


def _to_schema(endpoint) -> EndpointResponseSchema:
    return EndpointResponseSchema.model_validate(endpoint.to_dict())


@webhooks_router.get(
    "",
    response_model=List[EndpointResponseSchema],
    summary="List Webhook Endpoints",
)
async def list_endpoints(principal: Viewer, registry: Registry) -> List[EndpointResponseSchema]:
    endpoints = await registry.list(principal.organisation_id)
    return [_to_schema(e) for e in endpoints]


@webhooks_router.post(
    "",
    response_model=EndpointResponseSchema,
    status_code=201,
    summary="Register Webhook Endpoint",
    description="""
    Register a destination for outbound notifications.

    The endpoint starts ACTIVE and receives every subscribed event type
    recorded for the caller's organisation from now on.
    """,
    responses={400: {"model": ErrorResponseSchema, "description": "Invalid endpoint"}},
)
async def register_endpoint(
    request: RegisterEndpointSchema,
    principal: Manager,
    registry: Registry,
    policy: Policy,
) -> EndpointResponseSchema:
    dto = RegisterEndpointRequest(
        organisation_id=principal.organisation_id,
        name=request.name,
        url=request.url,
        events=request.events,
        auth_type=request.auth_type,
        auth_value=request.auth_value,
        headers=request.headers,
        retry_count=(
            policy.default_retry_count if request.retry_count is None else request.retry_count
        ),
        timeout_ms=request.timeout_ms or policy.default_timeout_ms,
    )
    endpoint = await registry.register(dto)
    return _to_schema(endpoint)


@webhooks_router.get(
    "/{endpoint_id}",
    response_model=EndpointResponseSchema,
    summary="Get Webhook Endpoint",
    responses={404: {"model": ErrorResponseSchema, "description": "Endpoint not found"}},
)
async def get_endpoint(
    endpoint_id: EndpointId,
    principal: Viewer,
    registry: Registry,
) -> EndpointResponseSchema:
    endpoint = await registry.get(endpoint_id, principal.organisation_id)
    return _to_schema(endpoint)


@webhooks_router.patch(
    "/{endpoint_id}",
    response_model=EndpointResponseSchema,
    summary="Update Webhook Endpoint",
    responses={
        400: {"model": ErrorResponseSchema, "description": "Invalid update"},
        404: {"model": ErrorResponseSchema, "description": "Endpoint not found"},
    },
)
async def update_endpoint(
    endpoint_id: EndpointId,
    request: UpdateEndpointSchema,
    principal: Manager,
    registry: Registry,
) -> EndpointResponseSchema:
    dto = UpdateEndpointRequest(**request.model_dump(exclude_unset=True))
    endpoint = await registry.update(endpoint_id, dto, principal.organisation_id)
    return _to_schema(endpoint)


@webhooks_router.post(
    "/{endpoint_id}/suspend",
    response_model=EndpointResponseSchema,
    summary="Suspend Webhook Endpoint",
    responses={409: {"model": ErrorResponseSchema, "description": "Endpoint is not ACTIVE"}},
)
async def suspend_endpoint(
    endpoint_id: EndpointId,
    principal: Manager,
    registry: Registry,
) -> EndpointResponseSchema:
    endpoint = await registry.suspend(endpoint_id, principal.organisation_id)
    return _to_schema(endpoint)


@webhooks_router.post(
    "/{endpoint_id}/resume",
    response_model=EndpointResponseSchema,
    summary="Resume Webhook Endpoint",
    description="Reactivate a PAUSED or FAILED endpoint. Resuming a FAILED endpoint clears its failure count.",
    responses={409: {"model": ErrorResponseSchema, "description": "Endpoint is DISABLED"}},
)
async def resume_endpoint(
    endpoint_id: EndpointId,
    principal: Manager,
    registry: Registry,
) -> EndpointResponseSchema:
    endpoint = await registry.resume(endpoint_id, principal.organisation_id)
    return _to_schema(endpoint)


@webhooks_router.post(
    "/{endpoint_id}/disable",
    response_model=EndpointResponseSchema,
    summary="Disable Webhook Endpoint",
    description="Revoke the endpoint permanently. Its delivery history is kept.",
)
async def disable_endpoint(
    endpoint_id: EndpointId,
    principal: Manager,
    registry: Registry,
) -> EndpointResponseSchema:
    endpoint = await registry.disable(endpoint_id, principal.organisation_id)
    return _to_schema(endpoint)


@webhooks_router.post(
    "/{endpoint_id}/reset",
    response_model=EndpointResponseSchema,
    summary="Reset Failure Count",
)
async def reset_endpoint_failures(
    endpoint_id: EndpointId,
    principal: Manager,
    registry: Registry,
) -> EndpointResponseSchema:
    endpoint = await registry.reset_failures(endpoint_id, principal.organisation_id)
    return _to_schema(endpoint)


@webhooks_router.post(
    "/{endpoint_id}/test",
    response_model=EndpointTestResultSchema,
    summary="Send Test Webhook",
    description="Post a `webhook.test` event to the endpoint immediately. No delivery is recorded.",
    responses={502: {"model": ErrorResponseSchema, "description": "Endpoint did not accept the test"}},
)
async def test_endpoint(
    endpoint_id: EndpointId,
    principal: Manager,
    registry: Registry,
) -> EndpointTestResultSchema:
    outcome = await registry.send_test(endpoint_id, principal.organisation_id)

    if not outcome.success:
        raise DeliveryFailure(
            outcome.error_message or "Test delivery failed",
            status_code=outcome.status_code,
            response_body=outcome.response_body,
        )

    return EndpointTestResultSchema(
        success=outcome.success,
        status_code=outcome.status_code,
        duration_ms=outcome.duration_ms,
        response_body=outcome.response_body,
    )
