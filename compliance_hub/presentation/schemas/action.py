"""Remedial action Pydantic schemas."""

from typing import Optional

from pydantic import BaseModel, Field

from compliance_hub.domain.entities import ActionSeverity, ActionStatus


class CreateActionSchema(BaseModel):
    """Schema for POST /api/actions request body."""

    description: str = Field(
        ...,
        min_length=1,
        description="What has to be fixed",
        examples=["Replace missing fire door closer on stairwell B"],
    )
    code: Optional[str] = Field(
        None,
        max_length=50,
        description="Assessment reference",
        examples=["FRA-12"],
    )
    severity: ActionSeverity = Field(ActionSeverity.ROUTINE)


class TransitionActionSchema(BaseModel):
    """Schema for PATCH /api/actions/{id}."""

    status: str = Field(
        ...,
        description="Target status; case-insensitive, `in-progress` and `canceled` accepted",
        examples=["IN_PROGRESS"],
    )


class ActionResponseSchema(BaseModel):
    """A remedial action."""

    id: str
    organisation_id: str
    code: Optional[str] = None
    description: str
    severity: ActionSeverity
    status: ActionStatus
    next_status: Optional[ActionStatus] = Field(
        None,
        description="The single forward step offered by the board; null when terminal",
    )
    resolved_at: Optional[str] = None
    created_at: str
    updated_at: str
