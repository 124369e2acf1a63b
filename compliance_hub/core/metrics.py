"""Prometheus metrics for the Compliance Hub service.

Metrics are organized into two categories:

Webhook Metrics (for Integrations/Support):
- compliance_hub_events_recorded_total: Domain events recorded by type
- compliance_hub_deliveries_scheduled_total: Deliveries created by fan-out
- compliance_hub_delivery_attempts_total: Delivery attempts by outcome
- compliance_hub_delivery_retries_total: Deliveries scheduled for retry
- compliance_hub_deliveries_exhausted_total: Deliveries failed after all retries
- compliance_hub_endpoints_auto_failed_total: Endpoints tripped by the failure threshold
- compliance_hub_incoming_webhooks_total: Inbound webhooks by source and outcome
- compliance_hub_action_transitions_total: Remedial action status changes

Technical Metrics (for Engineering/SRE):
- compliance_hub_delivery_latency_seconds: Outbound HTTP latency
- compliance_hub_dispatch_batch_size: Deliveries handled in the last cycle
- compliance_hub_http_requests_total: HTTP requests by endpoint/status
"""

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Histogram, Gauge, REGISTRY, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST


# =============================================================================
# Webhook Metrics
# =============================================================================

events_recorded = Counter(
    "compliance_hub_events_recorded_total",
    "Total number of domain events recorded",
    ["event_type"],
)

deliveries_scheduled = Counter(
    "compliance_hub_deliveries_scheduled_total",
    "Total number of deliveries created by fan-out",
)

delivery_attempts = Counter(
    "compliance_hub_delivery_attempts_total",
    "Total number of delivery attempts",
    ["outcome"],  # success, failure
)

delivery_retries = Counter(
    "compliance_hub_delivery_retries_total",
    "Total number of deliveries scheduled for retry",
)

deliveries_exhausted = Counter(
    "compliance_hub_deliveries_exhausted_total",
    "Total number of deliveries failed after all retries",
)

endpoints_auto_failed = Counter(
    "compliance_hub_endpoints_auto_failed_total",
    "Total number of endpoints moved out of ACTIVE by the failure threshold",
)

incoming_webhooks = Counter(
    "compliance_hub_incoming_webhooks_total",
    "Total number of inbound webhooks",
    ["source", "outcome"],  # received, processed, failed
)

action_transitions = Counter(
    "compliance_hub_action_transitions_total",
    "Total number of remedial action status changes",
    ["status"],
)


# =============================================================================
# Technical Metrics
# =============================================================================

delivery_latency = Histogram(
    "compliance_hub_delivery_latency_seconds",
    "Outbound webhook delivery latency in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

dispatch_batch_size = Gauge(
    "compliance_hub_dispatch_batch_size",
    "Number of deliveries dispatched in the last cycle",
)

http_requests_total = Counter(
    "compliance_hub_http_requests_total",
    "Total HTTP requests by endpoint and status",
    ["method", "endpoint", "status"],
)

http_request_latency = Histogram(
    "compliance_hub_http_request_latency_seconds",
    "HTTP request latency by endpoint",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_event(event_type: str) -> None:
    """Record a domain event being appended to the event log."""
    events_recorded.labels(event_type=event_type).inc()


def record_deliveries_scheduled(count: int) -> None:
    """Record deliveries created by a fan-out."""
    if count:
        deliveries_scheduled.inc(count)


def record_delivery_success() -> None:
    """Record a successful delivery attempt."""
    delivery_attempts.labels(outcome="success").inc()


def record_delivery_retry() -> None:
    """Record a failed attempt that will be retried."""
    delivery_attempts.labels(outcome="failure").inc()
    delivery_retries.inc()


def record_delivery_exhausted() -> None:
    """Record a failed attempt that exhausted the retry budget."""
    delivery_attempts.labels(outcome="failure").inc()
    deliveries_exhausted.inc()


def record_endpoint_auto_failed() -> None:
    """Record an endpoint tripped by the failure threshold."""
    endpoints_auto_failed.inc()


def record_incoming_webhook(source: str, outcome: str) -> None:
    """Record an inbound webhook outcome."""
    incoming_webhooks.labels(source=source, outcome=outcome).inc()


def record_action_transition(status: str) -> None:
    """Record a remedial action status change."""
    action_transitions.labels(status=status).inc()


@contextmanager
def track_delivery_latency() -> Generator[None, None, None]:
    """Context manager to track outbound delivery latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        delivery_latency.observe(duration)


def record_http_request(method: str, endpoint: str, status: int, duration: float) -> None:
    """Record an HTTP request."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=str(status)).inc()
    http_request_latency.labels(method=method, endpoint=endpoint).observe(duration)


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST
