"""API request/response schemas."""

from .error import ErrorResponseSchema
from .webhook import (
    DeliveryResponseSchema,
    DispatchReportSchema,
    EndpointResponseSchema,
    EndpointTestResultSchema,
    EventResponseSchema,
    FanOutResponseSchema,
    RecordEventSchema,
    RegisterEndpointSchema,
    UpdateEndpointSchema,
)
from .incoming import (
    HmsActionUpdateSchema,
    HmsWorkOrderUpdateSchema,
    IncomingWebhookResponseSchema,
)
from .action import ActionResponseSchema, CreateActionSchema, TransitionActionSchema
from .api_key import ApiKeyResponseSchema, CreateApiKeySchema, CreatedApiKeyResponseSchema

__all__ = [
    "ErrorResponseSchema",
    "DeliveryResponseSchema",
    "DispatchReportSchema",
    "EndpointResponseSchema",
    "EndpointTestResultSchema",
    "EventResponseSchema",
    "FanOutResponseSchema",
    "RecordEventSchema",
    "RegisterEndpointSchema",
    "UpdateEndpointSchema",
    "HmsActionUpdateSchema",
    "HmsWorkOrderUpdateSchema",
    "IncomingWebhookResponseSchema",
    "ActionResponseSchema",
    "CreateActionSchema",
    "TransitionActionSchema",
    "ApiKeyResponseSchema",
    "CreateApiKeySchema",
    "CreatedApiKeyResponseSchema",
]
