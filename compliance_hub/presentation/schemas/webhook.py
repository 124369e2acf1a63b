"""Outbound webhook Pydantic schemas: endpoints, events, deliveries."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from compliance_hub.domain.entities import AuthType, DeliveryStatus, EndpointStatus


class RegisterEndpointSchema(BaseModel):
    """Schema for POST /api/admin/webhooks request body."""

    name: str = Field(
        "",
        max_length=255,
        description="Display name of the endpoint",
        examples=["HMS production"],
    )
    url: str = Field(
        ...,
        max_length=2048,
        description="Absolute http(s) URL notifications are POSTed to",
        examples=["https://hms.example.org/hooks/compliance"],
    )
    events: List[str] = Field(
        ...,
        description="Event types this endpoint subscribes to (at least one)",
        examples=[["action.created", "action.completed"]],
    )
    auth_type: AuthType = Field(
        AuthType.NONE,
        description="How outbound requests authenticate to the endpoint",
    )
    auth_value: Optional[str] = Field(
        None,
        description="API key, bearer token or HMAC secret, depending on auth_type",
    )
    headers: Dict[str, str] = Field(
        default_factory=dict,
        description="Static headers added to every request",
    )
    retry_count: Optional[int] = Field(
        None,
        ge=0,
        le=20,
        description="Maximum attempts per delivery; the configured default when omitted",
    )
    timeout_ms: Optional[int] = Field(
        None,
        gt=0,
        le=120000,
        description="Per-attempt timeout in milliseconds; the configured default when omitted",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "HMS production",
                    "url": "https://hms.example.org/hooks/compliance",
                    "events": ["action.created", "action.completed"],
                    "auth_type": "HMAC_SHA256",
                    "auth_value": "whsec_0123456789",
                    "retry_count": 3,
                    "timeout_ms": 10000,
                }
            ]
        }
    }


class UpdateEndpointSchema(BaseModel):
    """Schema for PATCH /api/admin/webhooks/{id}. Omitted fields are unchanged."""

    name: Optional[str] = Field(None, max_length=255)
    url: Optional[str] = Field(None, max_length=2048)
    events: Optional[List[str]] = None
    auth_type: Optional[AuthType] = None
    auth_value: Optional[str] = None
    headers: Optional[Dict[str, str]] = None
    retry_count: Optional[int] = Field(None, ge=0, le=20)
    timeout_ms: Optional[int] = Field(None, gt=0, le=120000)


class EndpointResponseSchema(BaseModel):
    """A webhook endpoint. The auth secret is never returned."""

    id: str = Field(..., description="UUID of the endpoint")
    organisation_id: str
    name: str
    url: str
    auth_type: AuthType
    has_auth_value: bool = Field(
        ...,
        description="Whether an auth secret is configured",
    )
    headers: Dict[str, str]
    events: List[str]
    status: EndpointStatus
    retry_count: int
    timeout_ms: int
    failure_count: int = Field(
        ...,
        description="Consecutive deliveries that exhausted their retries",
    )
    last_delivery_at: Optional[str] = None
    last_delivery_status: Optional[str] = None
    created_at: str
    updated_at: str


class EndpointTestResultSchema(BaseModel):
    """Result of POST /api/admin/webhooks/{id}/test."""

    success: bool
    status_code: Optional[int] = Field(
        None,
        description="HTTP status returned by the endpoint (0 when no response)",
    )
    duration_ms: Optional[int] = None
    response_body: Optional[str] = None


class RecordEventSchema(BaseModel):
    """Schema for POST /api/admin/webhook-events request body."""

    event_type: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Dotted event type",
        examples=["action.completed"],
    )
    entity_type: str = Field(
        ...,
        min_length=1,
        max_length=100,
        examples=["remedial_action"],
    )
    entity_id: str = Field(
        ...,
        min_length=1,
        max_length=255,
        examples=["9b2f6a8e-3c4d-4e5f-8a9b-0c1d2e3f4a5b"],
    )
    payload: Dict[str, Any] = Field(
        default_factory=dict,
        description="Arbitrary event data, sent to subscribers as `data`",
    )


class EventResponseSchema(BaseModel):
    """A recorded domain event."""

    id: str
    organisation_id: str
    event_type: str
    entity_type: str
    entity_id: str
    payload: Dict[str, Any]
    processed: bool = Field(
        ...,
        description="Whether the event has been fanned out",
    )
    created_at: str


class DeliveryResponseSchema(BaseModel):
    """One delivery of one event to one endpoint."""

    id: str
    webhook_endpoint_id: str
    event_id: str
    status: DeliveryStatus
    attempt_count: int
    last_attempt_at: Optional[str] = None
    next_retry_at: Optional[str] = Field(
        None,
        description="Set only while the delivery is RETRYING",
    )
    response_status: Optional[int] = None
    response_body: Optional[str] = None
    duration_ms: Optional[int] = None
    error_message: Optional[str] = None
    created_at: str
    updated_at: str


class FanOutResponseSchema(BaseModel):
    """Result of POST /api/admin/webhook-events/{id}/fan-out."""

    event_id: str
    deliveries_created: int = Field(
        ...,
        description="Deliveries created by this call (0 when already fanned out)",
    )
    deliveries: List[DeliveryResponseSchema]


class DispatchReportSchema(BaseModel):
    """Result of one dispatch cycle."""

    events_fanned_out: int
    deliveries_scheduled: int
    deliveries_attempted: int
    sent: int
    retrying: int
    failed: int
