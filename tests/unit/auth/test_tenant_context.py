"""Unit tests for tenant context resolution."""

from uuid import uuid4

import pytest

from tenantcore.core.auth.context import (
    current_tenant_id,
    is_super_admin,
    resolve_tenant_context,
)
from tenantcore.core.auth.dependencies import resolve_target_tenant
from tenantcore.core.auth.principal import AuthenticationType, Principal, Role
from tenantcore.core.errors import BadRequestError, ForbiddenError


def make_principal(tenant_id: str | None = None, roles: tuple[str, ...] = ()) -> Principal:
    return Principal(
        subject=str(uuid4()),
        authentication_type=AuthenticationType.BEARER,
        tenant_id=tenant_id,
        roles=roles,
    )


class TestCurrentTenantId:
    """Tests for current_tenant_id."""

    def test_parses_claim(self):
        tenant_id = uuid4()

        assert current_tenant_id(make_principal(str(tenant_id))) == tenant_id

    @pytest.mark.parametrize("claim", [None, "", "not-a-uuid"])
    def test_missing_or_unparseable_claim(self, claim):
        assert current_tenant_id(make_principal(claim)) is None

    def test_anonymous(self):
        assert current_tenant_id(None) is None


class TestIsSuperAdmin:
    """Tests for is_super_admin."""

    def test_super_admin_role(self):
        principal = make_principal(str(uuid4()), roles=(Role.SUPER_ADMIN.value,))

        assert is_super_admin(principal) is True

    def test_no_tenant_claim_is_privileged(self):
        assert is_super_admin(make_principal(None, roles=(Role.TENANT_USER.value,))) is True

    def test_tenant_user(self):
        principal = make_principal(str(uuid4()), roles=(Role.TENANT_USER.value,))

        assert is_super_admin(principal) is False

    def test_anonymous(self):
        assert is_super_admin(None) is False


class TestResolveTenantContext:
    """Tests for resolve_tenant_context."""

    def test_tenant_principal(self):
        tenant_id = uuid4()

        context = resolve_tenant_context(make_principal(str(tenant_id)))

        assert context.tenant_id == tenant_id
        assert context.is_super_admin is False

    def test_super_admin(self):
        context = resolve_tenant_context(make_principal(None, (Role.SUPER_ADMIN.value,)))

        assert context.tenant_id is None
        assert context.is_super_admin is True

    def test_anonymous_gets_empty_unprivileged_context(self):
        context = resolve_tenant_context(None)

        assert context.tenant_id is None
        assert context.is_super_admin is False


class TestResolveTargetTenant:
    """Tests for resolve_target_tenant."""

    def test_super_admin_must_name_tenant(self):
        with pytest.raises(BadRequestError) as exc_info:
            resolve_target_tenant(make_principal(None, (Role.SUPER_ADMIN.value,)), None)

        assert exc_info.value.error_code == "tenant_id_required"

    def test_super_admin_any_tenant(self):
        target = uuid4()

        assert resolve_target_tenant(make_principal(None), target) == target

    def test_tenant_principal_defaults_to_own(self):
        own = uuid4()

        assert resolve_target_tenant(make_principal(str(own)), None) == own
        assert resolve_target_tenant(make_principal(str(own)), own) == own

    def test_tenant_principal_cannot_name_other(self):
        with pytest.raises(ForbiddenError) as exc_info:
            resolve_target_tenant(make_principal(str(uuid4())), uuid4())

        assert exc_info.value.error_code == "cross_tenant_access"
