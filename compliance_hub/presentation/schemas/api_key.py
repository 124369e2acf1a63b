"""API key Pydantic schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from compliance_hub.domain.entities import Role


class CreateApiKeySchema(BaseModel):
    """Schema for POST /api/admin/api-keys request body."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        examples=["HMS integration"],
    )
    role: Role = Field(Role.VIEWER, description="Role the key acts as")
    expires_at: Optional[datetime] = Field(
        None,
        description="Optional expiry (ISO 8601, timezone-aware)",
    )


class ApiKeyResponseSchema(BaseModel):
    """An API key. Only the prefix of the key is ever shown after creation."""

    id: str
    organisation_id: str
    name: str
    key_prefix: str = Field(..., examples=["chk_1a2b3c4d"])
    role: Role
    is_active: bool
    expires_at: Optional[str] = None
    last_used_at: Optional[str] = None
    created_at: str


class CreatedApiKeyResponseSchema(ApiKeyResponseSchema):
    """Response of key creation, carrying the raw key exactly once."""

    key: str = Field(
        ...,
        description="The raw API key. Store it now; it cannot be retrieved again.",
    )
