"""Data transfer objects for webhook endpoint and event operations."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from compliance_hub.domain.entities import AuthType


def _url_errors(url: Optional[str]) -> List[str]:
    if not url or not url.strip():
        return ["url is required"]
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return ["url must be an absolute http(s) URL"]
    return []


def _events_errors(events: Optional[List[str]]) -> List[str]:
    if not events:
        return ["events must contain at least one event type"]
    if any(not e or not e.strip() for e in events):
        return ["event types cannot be blank"]
    return []


def _auth_errors(auth_type: AuthType, auth_value: Optional[str]) -> List[str]:
    if auth_type != AuthType.NONE and not auth_value:
        return [f"auth_value is required for auth_type {auth_type.value}"]
    return []


def dedupe_events(events: List[str]) -> List[str]:
    """Strip and de-duplicate event types, keeping first-seen order."""
    return list(dict.fromkeys(e.strip() for e in events))


@dataclass(frozen=True)
class RegisterEndpointRequest:
    """Input data for registering a webhook endpoint."""

    organisation_id: str
    url: str
    events: List[str]
    name: str = ""
    auth_type: AuthType = AuthType.NONE
    auth_value: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    retry_count: int = 3
    timeout_ms: int = 30000

    def validate(self) -> List[str]:
        errors = []

        if not self.organisation_id:
            errors.append("organisation_id is required")

        errors.extend(_url_errors(self.url))
        errors.extend(_events_errors(self.events))
        errors.extend(_auth_errors(self.auth_type, self.auth_value))

        if self.retry_count < 0:
            errors.append("retry_count cannot be negative")

        if self.timeout_ms <= 0:
            errors.append("timeout_ms must be positive")

        return errors


@dataclass(frozen=True)
class UpdateEndpointRequest:
    """Partial update of a webhook endpoint. None means unchanged."""

    name: Optional[str] = None
    url: Optional[str] = None
    events: Optional[List[str]] = None
    auth_type: Optional[AuthType] = None
    auth_value: Optional[str] = None
    headers: Optional[Dict[str, str]] = None
    retry_count: Optional[int] = None
    timeout_ms: Optional[int] = None

    def validate(self, current_auth_type: AuthType, current_auth_value: Optional[str]) -> List[str]:
        errors = []

        if self.url is not None:
            errors.extend(_url_errors(self.url))

        if self.events is not None:
            errors.extend(_events_errors(self.events))

        auth_type = self.auth_type or current_auth_type
        auth_value = self.auth_value if self.auth_value is not None else current_auth_value
        errors.extend(_auth_errors(auth_type, auth_value))

        if self.retry_count is not None and self.retry_count < 0:
            errors.append("retry_count cannot be negative")

        if self.timeout_ms is not None and self.timeout_ms <= 0:
            errors.append("timeout_ms must be positive")

        return errors


@dataclass(frozen=True)
class RecordEventRequest:
    """Input data for appending a domain event."""

    organisation_id: str
    event_type: str
    entity_type: str
    entity_id: str
    payload: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> List[str]:
        errors = []

        for name in ("organisation_id", "event_type", "entity_type", "entity_id"):
            value = getattr(self, name)
            if not value or not str(value).strip():
                errors.append(f"{name} is required")

        if not isinstance(self.payload, dict):
            errors.append("payload must be an object")

        return errors
