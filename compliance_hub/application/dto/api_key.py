"""Data transfer objects for API key management."""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from compliance_hub.domain.clock import utcnow
from compliance_hub.domain.entities import ApiKey, Role


@dataclass(frozen=True)
class CreateApiKeyRequest:
    """Input data for issuing an API key."""

    organisation_id: str
    name: str
    role: Role = Role.VIEWER
    expires_at: Optional[datetime] = None

    def validate(self) -> List[str]:
        errors = []

        if not self.name or not self.name.strip():
            errors.append("name is required")

        if self.expires_at is not None and self.expires_at <= utcnow():
            errors.append("expires_at must be in the future")

        return errors


@dataclass(frozen=True)
class CreatedApiKey:
    """A new key together with its raw value, which is never shown again."""

    api_key: ApiKey
    raw_key: str
