"""
Delivery Policy Settings for outbound webhooks.

The backoff formula, the failure threshold and the status an endpoint
falls into when it trips are policy, not constants. They are loaded from
environment variables with the WEBHOOK_ prefix:
    WEBHOOK_BACKOFF_BASE_SECONDS=1
    WEBHOOK_FAILURE_THRESHOLD=10
    WEBHOOK_FAILURE_STATUS=DISABLED

Usage:
    from compliance_hub.service.delivery.settings import delivery_settings

    # Use default settings (loaded from env)
    threshold = delivery_settings.failure_threshold

    # Or create custom settings for testing
    custom = DeliverySettings(failure_threshold=2)
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from compliance_hub.domain.entities import EndpointStatus


class DeliverySettings(BaseSettings):
    """
    Configurable parameters for webhook delivery and retry.

    All settings can be overridden via environment variables with WEBHOOK_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="WEBHOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Backoff ===
    backoff_base_seconds: float = Field(
        default=1.0,
        gt=0.0,
        description="Delay before the first retry; doubles with every failed attempt",
    )
    backoff_max_seconds: float = Field(
        default=300.0,
        gt=0.0,
        description="Upper bound for a single retry delay",
    )

    # === Endpoint health ===
    failure_threshold: int = Field(
        default=10,
        ge=1,
        description="Exhausted deliveries in a row before an endpoint is taken out of rotation",
    )
    failure_status: EndpointStatus = Field(
        default=EndpointStatus.FAILED,
        description="Status an ACTIVE endpoint moves to when the threshold is reached",
    )

    # === Endpoint defaults ===
    default_retry_count: int = Field(
        default=3,
        ge=0,
        description="Attempt budget for endpoints registered without one",
    )
    default_timeout_ms: int = Field(
        default=30000,
        gt=0,
        description="Request timeout for endpoints registered without one",
    )

    # === Wire format ===
    source_name: str = Field(
        default="ComplianceHub",
        description="Value of the X-Webhook-Source header",
    )
    response_body_limit: int = Field(
        default=1000,
        ge=0,
        description="Characters of the destination's response body kept on the delivery",
    )

    @field_validator("failure_status")
    @classmethod
    def validate_failure_status(cls, v: EndpointStatus) -> EndpointStatus:
        """Only FAILED and DISABLED take an endpoint out of rotation."""
        if v not in (EndpointStatus.FAILED, EndpointStatus.DISABLED):
            raise ValueError("failure_status must be FAILED or DISABLED")
        return v


@lru_cache
def get_delivery_settings() -> DeliverySettings:
    """Get cached delivery settings instance."""
    return DeliverySettings()


delivery_settings = get_delivery_settings()
