"""Incoming webhook Pydantic schemas."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class IncomingWebhookResponseSchema(BaseModel):
    """A logged inbound webhook call."""

    id: str
    source: str = Field(..., examples=["HMS"])
    event_type: Optional[str] = Field(None, examples=["work_order_update"])
    payload: Dict[str, Any]
    headers: Dict[str, str] = Field(
        ...,
        description="Request headers with credentials redacted",
    )
    processed: bool
    processed_at: Optional[str] = None
    error_message: Optional[str] = Field(
        None,
        description="Why processing failed; the entry can be replayed",
    )
    created_at: str


class HmsActionUpdateSchema(BaseModel):
    """Schema for POST /api/integrations/hms/actions."""

    actionId: str = Field(..., description="UUID of the remedial action")
    status: str = Field(..., examples=["IN_PROGRESS"])


class HmsWorkOrderUpdateSchema(BaseModel):
    """Schema for POST /api/integrations/hms/work-orders."""

    actionId: str = Field(..., description="UUID of the remedial action")
    workOrderId: Optional[str] = Field(None, examples=["WO-10442"])
    status: str = Field(
        ...,
        description="Work order state: scheduled, in_progress, completed or cancelled",
        examples=["scheduled"],
    )
