"""HTTP implementation of WebhookSender."""

import json
import time
from typing import Any, Dict
from uuid import UUID

import httpx
import structlog

from compliance_hub.core.metrics import track_delivery_latency
from compliance_hub.domain.clock import isoformat, utcnow
from compliance_hub.domain.entities import DeliveryOutcome, WebhookEndpoint, WebhookEvent
from compliance_hub.domain.exceptions import DeliveryFailure, DeliveryTimeoutError
from compliance_hub.domain.interfaces import WebhookSender
from compliance_hub.service.delivery import DeliverySettings, auth_headers, delivery_settings

logger = structlog.get_logger(__name__)


def build_payload(event: WebhookEvent, delivery_id: UUID) -> Dict[str, Any]:
    """Envelope posted to every endpoint."""
    return {
        "event": event.event_type,
        "timestamp": isoformat(utcnow()),
        "deliveryId": str(delivery_id),
        "data": event.payload,
    }


def encode_body(payload: Dict[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":"), default=str).encode("utf-8")


class HttpWebhookSender(WebhookSender):
    """
    HTTP client for outbound webhook deliveries.

    Makes exactly one POST per call; retry scheduling belongs to the
    delivery tracker. The signature header, when configured, covers the
    exact bytes sent as the body.
    """

    def __init__(
        self,
        settings: DeliverySettings = delivery_settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._settings = settings
        self._client = httpx.AsyncClient(transport=transport, follow_redirects=False)

    async def aclose(self) -> None:
        await self._client.aclose()

    def build_headers(
        self,
        endpoint: WebhookEndpoint,
        event: WebhookEvent,
        delivery_id: UUID,
        attempt: int,
        body: bytes,
    ) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "X-Webhook-Source": self._settings.source_name,
            "X-Webhook-Event": event.event_type,
            "X-Webhook-Delivery": str(delivery_id),
        }
        if attempt > 1:
            headers["X-Webhook-Retry"] = str(attempt)
        headers.update(endpoint.headers)
        # Auth last so static headers cannot overwrite it
        headers.update(auth_headers(endpoint, body))
        return headers

    async def send(
        self,
        endpoint: WebhookEndpoint,
        event: WebhookEvent,
        delivery_id: UUID,
        attempt: int = 1,
    ) -> DeliveryOutcome:
        """POST one event to one endpoint and report the outcome."""
        body = encode_body(build_payload(event, delivery_id))
        headers = self.build_headers(endpoint, event, delivery_id, attempt, body)
        log = logger.bind(
            delivery_id=str(delivery_id),
            endpoint_id=str(endpoint.id),
            event_type=event.event_type,
            attempt=attempt,
        )

        start = time.perf_counter()
        try:
            with track_delivery_latency():
                response = await self._post(endpoint, body, headers)
        except DeliveryFailure as e:
            duration_ms = int((time.perf_counter() - start) * 1000)
            log.warning(
                "webhook_send_failed",
                error=e.message,
                code=e.code,
                status_code=e.status_code,
                duration_ms=duration_ms,
            )
            return DeliveryOutcome.failed(
                error_message=e.message,
                status_code=e.status_code or 0,
                response_body=e.response_body,
                duration_ms=duration_ms,
            )

        duration_ms = int((time.perf_counter() - start) * 1000)
        log.info("webhook_sent", status_code=response.status_code, duration_ms=duration_ms)

        return DeliveryOutcome.succeeded(
            status_code=response.status_code,
            response_body=response.text,
            duration_ms=duration_ms,
        )

    async def _post(
        self,
        endpoint: WebhookEndpoint,
        body: bytes,
        headers: Dict[str, str],
    ) -> httpx.Response:
        """
        Perform the request.

        Raises:
            DeliveryTimeoutError: If the endpoint does not answer in time
            DeliveryFailure: On transport errors and non-2xx responses
        """
        try:
            response = await self._client.post(
                endpoint.url,
                content=body,
                headers=headers,
                timeout=endpoint.timeout_ms / 1000,
            )
        except httpx.TimeoutException:
            raise DeliveryTimeoutError(endpoint.timeout_ms)
        except httpx.HTTPError as e:
            raise DeliveryFailure(f"{type(e).__name__}: {e}")

        if not response.is_success:
            raise DeliveryFailure(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
                response_body=response.text,
            )

        return response
