"""Error body shared by every failing API response."""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponseSchema(BaseModel):
    error: str = Field(
        ...,
        description="Machine-readable code from the domain exception",
        examples=["WEBHOOK_ENDPOINT_NOT_FOUND", "INVALID_ACTION_TRANSITION", "FORBIDDEN"],
    )
    message: str = Field(..., examples=["Webhook endpoint not found: 3f2c0b7e-0d7a-4a53-9a4e-5b1f7f0c2a11"])
    request_id: Optional[str] = Field(
        None,
        description="Value of the X-Request-ID response header; quote it when reporting a problem",
    )
