"""
Unit tests for webhook domain entities and request validation.

These tests verify:
1. Delivery attempt bookkeeping
2. Endpoint failure counting
3. Incoming log processing timestamps
4. Request DTO validation
"""

from datetime import timedelta
from uuid import uuid4

from compliance_hub.application.dto import (
    RecordEventRequest,
    RegisterEndpointRequest,
    UpdateEndpointRequest,
    dedupe_events,
)
from compliance_hub.domain.clock import isoformat, utcnow
from compliance_hub.domain.entities import (
    AuthType,
    DeliveryStatus,
    IncomingWebhookLog,
    WebhookDelivery,
    WebhookEndpoint,
)


def make_endpoint(**overrides) -> WebhookEndpoint:
    data = {
        "organisation_id": "org-1",
        "url": "https://example.org/hook",
        "events": ["action.created"],
    }
    data.update(overrides)
    return WebhookEndpoint(**data)


# =============================================================================
# Deliveries
# =============================================================================

class TestWebhookDelivery:

    def test_every_mark_counts_an_attempt(self):
        delivery = WebhookDelivery(webhook_endpoint_id=uuid4(), event_id=uuid4())

        delivery.mark_retrying(utcnow() + timedelta(seconds=2), error_message="HTTP 500")
        delivery.mark_retrying(utcnow() + timedelta(seconds=4), error_message="HTTP 500")
        delivery.mark_failed(error_message="HTTP 500")

        assert delivery.attempt_count == 3
        assert delivery.status == DeliveryStatus.FAILED
        assert delivery.next_retry_at is None

    def test_sent_clears_retry_state(self):
        delivery = WebhookDelivery(webhook_endpoint_id=uuid4(), event_id=uuid4())
        delivery.mark_retrying(utcnow(), error_message="timeout")

        delivery.mark_sent(response_status=200, response_body="ok", duration_ms=12)

        assert delivery.status == DeliveryStatus.SENT
        assert delivery.next_retry_at is None
        assert delivery.error_message is None
        assert delivery.status.is_terminal

    def test_pending_and_retrying_are_not_terminal(self):
        assert not DeliveryStatus.PENDING.is_terminal
        assert not DeliveryStatus.RETRYING.is_terminal


# =============================================================================
# Endpoints
# =============================================================================

class TestWebhookEndpoint:

    def test_success_resets_failure_count(self):
        endpoint = make_endpoint(failure_count=4)

        endpoint.record_success()

        assert endpoint.failure_count == 0
        assert endpoint.last_delivery_status == "success"

    def test_exhausted_delivery_increments_failure_count(self):
        endpoint = make_endpoint()

        endpoint.record_exhausted_delivery()

        assert endpoint.failure_count == 1
        assert endpoint.last_delivery_status == "failed"

    def test_to_dict_hides_secret(self):
        endpoint = make_endpoint(auth_type=AuthType.BEARER, auth_value="tok")

        data = endpoint.to_dict()

        assert "auth_value" not in data
        assert data["has_auth_value"] is True


# =============================================================================
# Incoming log
# =============================================================================

class TestIncomingWebhookLog:

    def test_processed_at_is_never_before_created_at(self):
        entry = IncomingWebhookLog(source="HMS", payload={})
        entry.created_at = utcnow() + timedelta(minutes=5)

        entry.mark_processed()

        assert entry.processed
        assert entry.processed_at >= entry.created_at

    def test_failure_keeps_entry_unprocessed(self):
        entry = IncomingWebhookLog(source="HMS", payload={})

        entry.mark_failed("Remedial action not found")

        assert not entry.processed
        assert entry.processed_at is None
        assert entry.error_message == "Remedial action not found"

    def test_isoformat_uses_z_suffix(self):
        entry = IncomingWebhookLog(source="HMS", payload={})

        assert isoformat(entry.created_at).endswith("Z")


# =============================================================================
# Request validation
# =============================================================================

class TestRequestValidation:

    def test_register_requires_events(self):
        request = RegisterEndpointRequest(
            organisation_id="org-1",
            url="https://example.org/hook",
            events=[],
        )

        assert "events must contain at least one event type" in request.validate()

    def test_register_requires_absolute_http_url(self):
        request = RegisterEndpointRequest(
            organisation_id="org-1",
            url="ftp://example.org/hook",
            events=["a"],
        )

        assert "url must be an absolute http(s) URL" in request.validate()

    def test_register_requires_secret_for_auth(self):
        request = RegisterEndpointRequest(
            organisation_id="org-1",
            url="https://example.org/hook",
            events=["a"],
            auth_type=AuthType.HMAC_SHA256,
        )

        assert request.validate() == ["auth_value is required for auth_type HMAC_SHA256"]

    def test_update_checks_against_current_auth(self):
        request = UpdateEndpointRequest(auth_type=AuthType.BEARER)

        assert request.validate(AuthType.NONE, None)
        assert request.validate(AuthType.API_KEY, "existing") == []

    def test_record_event_requires_identifiers(self):
        request = RecordEventRequest(
            organisation_id="org-1",
            event_type="",
            entity_type="remedial_action",
            entity_id="1",
        )

        assert request.validate() == ["event_type is required"]

    def test_dedupe_events_keeps_order(self):
        assert dedupe_events([" b", "a", "b "]) == ["b", "a"]
