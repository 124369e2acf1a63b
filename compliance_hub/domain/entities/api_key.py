"""API key and authenticated principal entities."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from compliance_hub.domain.clock import isoformat, utcnow
from compliance_hub.domain.entities.role import Capability, Role, has_capability


@dataclass
class ApiKey:
    """
    A hashed credential for machine access.

    Only the SHA-256 hash and a short lookup prefix are stored; the raw
    key is shown once, when it is created.
    """

    organisation_id: str
    name: str
    key_hash: str
    key_prefix: str
    role: Role = Role.VIEWER
    is_active: bool = True
    expires_at: datetime | None = None
    last_used_at: datetime | None = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)

    def is_usable(self, now: datetime | None = None) -> bool:
        if not self.is_active:
            return False
        if self.expires_at is None:
            return True
        return self.expires_at > (now or utcnow())

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "organisation_id": self.organisation_id,
            "name": self.name,
            "key_prefix": self.key_prefix,
            "role": self.role.value,
            "is_active": self.is_active,
            "expires_at": isoformat(self.expires_at),
            "last_used_at": isoformat(self.last_used_at),
            "created_at": isoformat(self.created_at),
        }


@dataclass(frozen=True)
class Principal:
    """The authenticated caller of an API request."""

    organisation_id: str
    role: Role
    api_key_id: UUID | None = None

    def can(self, capability: Capability) -> bool:
        return has_capability(self.role, capability)
