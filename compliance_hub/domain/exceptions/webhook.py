"""Outbound webhook domain exceptions."""

from .base import ConflictError, DomainException, NotFoundError


class EndpointNotFoundError(NotFoundError):
    """Raised when a webhook endpoint cannot be found."""

    def __init__(self, endpoint_id: str):
        super().__init__("Webhook endpoint", endpoint_id, code="WEBHOOK_ENDPOINT_NOT_FOUND")
        self.endpoint_id = endpoint_id


class EventNotFoundError(NotFoundError):
    """Raised when a webhook event cannot be found."""

    def __init__(self, event_id: str):
        super().__init__("Webhook event", event_id, code="WEBHOOK_EVENT_NOT_FOUND")
        self.event_id = event_id


class DeliveryNotFoundError(NotFoundError):
    """Raised when a webhook delivery cannot be found."""

    def __init__(self, delivery_id: str):
        super().__init__("Webhook delivery", delivery_id, code="WEBHOOK_DELIVERY_NOT_FOUND")
        self.delivery_id = delivery_id


class InvalidEndpointStateError(ConflictError):
    """Raised when a status change is not allowed from the endpoint's status."""

    def __init__(self, endpoint_id: str, status: str, operation: str):
        super().__init__(
            message=f"Cannot {operation} webhook endpoint {endpoint_id} in status {status}",
            code="INVALID_ENDPOINT_STATE",
        )
        self.endpoint_id = endpoint_id
        self.status = status


class DeliveryAlreadyFinalError(ConflictError):
    """Raised when an attempt is recorded against a SENT or FAILED delivery."""

    def __init__(self, delivery_id: str, status: str):
        super().__init__(
            message=f"Webhook delivery {delivery_id} is already {status}",
            code="DELIVERY_ALREADY_FINAL",
        )
        self.delivery_id = delivery_id


class DeliveryFailure(DomainException):
    """Raised when a destination cannot be reached or answers with a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(
            message=message,
            code="DELIVERY_FAILURE",
        )
        self.status_code = status_code
        self.response_body = response_body


class DeliveryTimeoutError(DeliveryFailure):
    """Raised when a destination does not answer within the endpoint timeout."""

    def __init__(self, timeout_ms: int):
        super().__init__(
            message=f"Request timed out after {timeout_ms}ms",
            status_code=None,
        )
        self.code = "DELIVERY_TIMEOUT"
