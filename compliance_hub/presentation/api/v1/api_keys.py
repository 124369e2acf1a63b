"""Admin API for machine API keys."""

from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from compliance_hub.application.dto import CreateApiKeyRequest
from compliance_hub.application.services import ApiKeyService
from compliance_hub.core.dependencies import get_api_key_service, require
from compliance_hub.domain.entities import Capability, Principal
from compliance_hub.presentation.schemas import (
    ApiKeyResponseSchema,
    CreateApiKeySchema,
    CreatedApiKeyResponseSchema,
    ErrorResponseSchema,
)

api_keys_router = APIRouter(
    prefix="/admin/api-keys",
    responses={
        401: {"model": ErrorResponseSchema, "description": "Missing or invalid API key"},
        403: {"model": ErrorResponseSchema, "description": "Missing capability"},
    },
)

KeyAdmin = Annotated[Principal, Depends(require(Capability.MANAGE_API_KEYS))]
Service = Annotated[ApiKeyService, Depends(get_api_key_service)]


@api_keys_router.get(
    "",
    response_model=List[ApiKeyResponseSchema],
    summary="List API Keys",
)
async def list_api_keys(principal: KeyAdmin, service: Service) -> List[ApiKeyResponseSchema]:
    keys = await service.list(principal.organisation_id)
    return [ApiKeyResponseSchema.model_validate(k.to_dict()) for k in keys]


@api_keys_router.post(
    "",
    response_model=CreatedApiKeyResponseSchema,
    status_code=201,
    summary="Create API Key",
    description="Issue a key for the caller's organisation. The raw key is only returned here.",
    responses={400: {"model": ErrorResponseSchema, "description": "Invalid key request"}},
)
async def create_api_key(
    request: CreateApiKeySchema,
    principal: KeyAdmin,
    service: Service,
) -> CreatedApiKeyResponseSchema:
    created = await service.create(
        CreateApiKeyRequest(
            organisation_id=principal.organisation_id,
            name=request.name,
            role=request.role,
            expires_at=request.expires_at,
        )
    )
    return CreatedApiKeyResponseSchema(**created.api_key.to_dict(), key=created.raw_key)


@api_keys_router.delete(
    "/{key_id}",
    response_model=ApiKeyResponseSchema,
    summary="Revoke API Key",
    responses={404: {"model": ErrorResponseSchema, "description": "Key not found"}},
)
async def revoke_api_key(
    key_id: Annotated[UUID, Path(description="UUID of the API key")],
    principal: KeyAdmin,
    service: Service,
) -> ApiKeyResponseSchema:
    api_key = await service.revoke(key_id, principal.organisation_id)
    return ApiKeyResponseSchema.model_validate(api_key.to_dict())
