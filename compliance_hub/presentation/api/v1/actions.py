"""API endpoints for remedial actions."""

from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from compliance_hub.application.dto import CreateActionRequest
from compliance_hub.application.services import RemedialActionService
from compliance_hub.core.dependencies import get_action_service, require
from compliance_hub.domain.entities import ActionStatus, Capability, Principal
from compliance_hub.domain.exceptions import ValidationError
from compliance_hub.presentation.schemas import (
    ActionResponseSchema,
    CreateActionSchema,
    ErrorResponseSchema,
    TransitionActionSchema,
)

actions_router = APIRouter(
    prefix="/actions",
    responses={
        401: {"model": ErrorResponseSchema, "description": "Missing or invalid API key"},
        403: {"model": ErrorResponseSchema, "description": "Missing capability"},
    },
)

ActionId = Annotated[UUID, Path(description="UUID of the remedial action")]
Viewer = Annotated[Principal, Depends(require(Capability.VIEW_ACTIONS))]
Editor = Annotated[Principal, Depends(require(Capability.MANAGE_ACTIONS))]
Service = Annotated[RemedialActionService, Depends(get_action_service)]


@actions_router.get(
    "",
    response_model=List[ActionResponseSchema],
    summary="List Remedial Actions",
)
async def list_actions(
    principal: Viewer,
    service: Service,
    status: Annotated[Optional[str], Query(description="Only actions in this status")] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> List[ActionResponseSchema]:
    status_filter = None
    if status:
        try:
            status_filter = ActionStatus.parse(status)
        except ValueError:
            raise ValidationError(f"Unknown action status: {status}")

    actions = await service.list(principal.organisation_id, status=status_filter, limit=limit)
    return [ActionResponseSchema.model_validate(a.to_dict()) for a in actions]


@actions_router.post(
    "",
    response_model=ActionResponseSchema,
    status_code=201,
    summary="Create Remedial Action",
    responses={400: {"model": ErrorResponseSchema, "description": "Invalid action"}},
)
async def create_action(
    request: CreateActionSchema,
    principal: Editor,
    service: Service,
) -> ActionResponseSchema:
    action = await service.create(
        CreateActionRequest(
            organisation_id=principal.organisation_id,
            description=request.description,
            code=request.code,
            severity=request.severity,
        )
    )
    return ActionResponseSchema.model_validate(action.to_dict())


@actions_router.get(
    "/{action_id}",
    response_model=ActionResponseSchema,
    summary="Get Remedial Action",
    responses={404: {"model": ErrorResponseSchema, "description": "Action not found"}},
)
async def get_action(
    action_id: ActionId,
    principal: Viewer,
    service: Service,
) -> ActionResponseSchema:
    action = await service.get(action_id, principal.organisation_id)
    return ActionResponseSchema.model_validate(action.to_dict())


@actions_router.patch(
    "/{action_id}",
    response_model=ActionResponseSchema,
    summary="Move Remedial Action",
    description="""
    Move the action one step along OPEN, IN_PROGRESS, SCHEDULED,
    COMPLETED, or cancel it. COMPLETED and CANCELLED are final.
    """,
    responses={
        400: {"model": ErrorResponseSchema, "description": "Unknown status"},
        404: {"model": ErrorResponseSchema, "description": "Action not found"},
        409: {"model": ErrorResponseSchema, "description": "Move not allowed"},
    },
)
async def transition_action(
    action_id: ActionId,
    request: TransitionActionSchema,
    principal: Editor,
    service: Service,
) -> ActionResponseSchema:
    action = await service.transition(action_id, request.status, principal.organisation_id)
    return ActionResponseSchema.model_validate(action.to_dict())
