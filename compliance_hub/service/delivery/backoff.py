"""Retry delay calculation for failed deliveries."""

from datetime import datetime, timedelta

from compliance_hub.domain.clock import utcnow

from .settings import DeliverySettings, delivery_settings


def backoff_seconds(
    attempt_count: int,
    settings: DeliverySettings = delivery_settings,
) -> float:
    """
    Delay before the next attempt after ``attempt_count`` failed attempts.

    ``base * 2 ** attempt_count``, capped at ``backoff_max_seconds``.
    With the defaults: 2s, 4s, 8s, ... up to 300s.

    Args:
        attempt_count: Attempts made so far (>= 0)
        settings: Delivery settings (uses defaults if not provided)

    Returns:
        Delay in seconds
    """
    if attempt_count < 0:
        attempt_count = 0
    # Stop doubling once past the cap so huge counts don't overflow floats
    if attempt_count > 62:
        return settings.backoff_max_seconds
    delay = settings.backoff_base_seconds * (2 ** attempt_count)
    return min(delay, settings.backoff_max_seconds)


def next_retry_at(
    attempt_count: int,
    now: datetime | None = None,
    settings: DeliverySettings = delivery_settings,
) -> datetime:
    """Absolute time of the next attempt."""
    return (now or utcnow()) + timedelta(seconds=backoff_seconds(attempt_count, settings))
