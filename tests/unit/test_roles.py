"""
Unit tests for roles and capabilities.

These tests verify:
1. Each role grants the capabilities of the roles below it
2. Principals check capabilities by membership
"""

import pytest

from compliance_hub.domain.entities import (
    ROLE_CAPABILITIES,
    Capability,
    Principal,
    Role,
    has_capability,
)


class TestRoleCapabilities:

    def test_super_admin_has_everything(self):
        assert ROLE_CAPABILITIES[Role.SUPER_ADMIN] == frozenset(Capability)

    @pytest.mark.parametrize(
        "lower,higher",
        [
            (Role.VIEWER, Role.OFFICER),
            (Role.OFFICER, Role.MANAGER),
            (Role.MANAGER, Role.ADMIN),
            (Role.ADMIN, Role.SUPER_ADMIN),
        ],
    )
    def test_roles_are_cumulative(self, lower, higher):
        assert ROLE_CAPABILITIES[lower] < ROLE_CAPABILITIES[higher]

    def test_viewer_cannot_manage_webhooks(self):
        assert not has_capability(Role.VIEWER, Capability.MANAGE_WEBHOOKS)
        assert has_capability(Role.VIEWER, Capability.VIEW_ACTIONS)

    def test_officer_can_ingest_but_not_replay(self):
        assert has_capability(Role.OFFICER, Capability.INGEST_WEBHOOKS)
        assert not has_capability(Role.OFFICER, Capability.REPLAY_INCOMING)


class TestPrincipal:

    def test_can(self):
        principal = Principal(organisation_id="org-1", role=Role.MANAGER)

        assert principal.can(Capability.RECORD_EVENTS)
        assert not principal.can(Capability.MANAGE_API_KEYS)
