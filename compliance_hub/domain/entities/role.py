"""Closed role set and the capabilities each role grants."""

from enum import Enum


class Role(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    OFFICER = "OFFICER"
    VIEWER = "VIEWER"


class Capability(str, Enum):
    VIEW_WEBHOOKS = "webhooks:view"
    MANAGE_WEBHOOKS = "webhooks:manage"
    RECORD_EVENTS = "events:record"
    DISPATCH_WEBHOOKS = "webhooks:dispatch"
    VIEW_INCOMING = "incoming:view"
    REPLAY_INCOMING = "incoming:replay"
    INGEST_WEBHOOKS = "integrations:ingest"
    VIEW_ACTIONS = "actions:view"
    MANAGE_ACTIONS = "actions:manage"
    MANAGE_API_KEYS = "api_keys:manage"


_VIEWER = frozenset({
    Capability.VIEW_ACTIONS,
})

_OFFICER = _VIEWER | {
    Capability.MANAGE_ACTIONS,
    Capability.INGEST_WEBHOOKS,
}

_MANAGER = _OFFICER | {
    Capability.VIEW_WEBHOOKS,
    Capability.VIEW_INCOMING,
    Capability.RECORD_EVENTS,
}

_ADMIN = _MANAGER | {
    Capability.MANAGE_WEBHOOKS,
    Capability.DISPATCH_WEBHOOKS,
    Capability.REPLAY_INCOMING,
    Capability.MANAGE_API_KEYS,
}

ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.VIEWER: _VIEWER,
    Role.OFFICER: frozenset(_OFFICER),
    Role.MANAGER: frozenset(_MANAGER),
    Role.ADMIN: frozenset(_ADMIN),
    Role.SUPER_ADMIN: frozenset(Capability),
}


def has_capability(role: Role, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES[role]
