"""Integration tests for user management endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tenantcore.modules.tenants.models import Tenant
from tenantcore.modules.users.models import User, UserTenant
from tests.factories.models import auth_headers, create_user
from tests.factories.user import UserCreateFactory


pytestmark = pytest.mark.integration


class TestUserListing:
    """Tests for listing and reading users."""

    async def test_tenant_admin_sees_own_tenant_only(
        self,
        client: AsyncClient,
        tenant_admin: User,
        tenant_user: User,
        other_tenant_admin: User,
    ):
        response = await client.get("/api/v1/users", headers=auth_headers(tenant_admin))

        assert response.status_code == 200
        assert {u["id"] for u in response.json()} == {str(tenant_admin.id), str(tenant_user.id)}

    async def test_tenant_filter_ignored_for_tenant_admin(
        self,
        client: AsyncClient,
        tenant_admin: User,
        other_tenant: Tenant,
        other_tenant_admin: User,
    ):
        response = await client.get(
            "/api/v1/users",
            params={"tenant_id": str(other_tenant.id)},
            headers=auth_headers(tenant_admin),
        )

        assert [u["id"] for u in response.json()] == [str(tenant_admin.id)]

    async def test_super_admin_filters_by_tenant(
        self,
        client: AsyncClient,
        superadmin: User,
        tenant_admin: User,
        other_tenant: Tenant,
        other_tenant_admin: User,
    ):
        response = await client.get(
            "/api/v1/users",
            params={"tenant_id": str(other_tenant.id)},
            headers=auth_headers(superadmin),
        )

        assert [u["id"] for u in response.json()] == [str(other_tenant_admin.id)]

    async def test_get_foreign_user_is_not_found(
        self, client: AsyncClient, tenant_admin: User, other_tenant_admin: User
    ):
        response = await client.get(
            f"/api/v1/users/{other_tenant_admin.id}", headers=auth_headers(tenant_admin)
        )

        assert response.status_code == 404

    async def test_tenant_user_cannot_list(self, client: AsyncClient, tenant_user: User):
        response = await client.get("/api/v1/users", headers=auth_headers(tenant_user))

        assert response.status_code == 403


class TestUserManagement:
    """Tests for creating and deleting users."""

    async def test_create_in_own_tenant(
        self,
        client: AsyncClient,
        db: AsyncSession,
        tenant: Tenant,
        tenant_admin: User,
    ):
        payload = UserCreateFactory.build().model_dump(mode="json")

        response = await client.post(
            "/api/v1/users", json=payload, headers=auth_headers(tenant_admin)
        )

        assert response.status_code == 201
        body = response.json()
        assert body["tenant_id"] == str(tenant.id)
        assert body["role"] == "TenantUser"
        assert "password_hash" not in body

        membership = await db.scalar(
            select(UserTenant).where(UserTenant.user_id == User.id, User.email == payload["email"])
        )
        assert membership.tenant_id == tenant.id
        assert membership.is_default is True

    async def test_create_duplicate_email(
        self, client: AsyncClient, tenant_admin: User, other_tenant_admin: User
    ):
        payload = UserCreateFactory.build(email=other_tenant_admin.email).model_dump(
            mode="json"
        )

        response = await client.post(
            "/api/v1/users", json=payload, headers=auth_headers(tenant_admin)
        )

        assert response.status_code == 409
        assert response.json()["type"].endswith("/email_exists")

    async def test_create_in_other_tenant_forbidden(
        self, client: AsyncClient, tenant_admin: User, other_tenant: Tenant
    ):
        payload = UserCreateFactory.build(tenant_id=other_tenant.id).model_dump(mode="json")

        response = await client.post(
            "/api/v1/users", json=payload, headers=auth_headers(tenant_admin)
        )

        assert response.status_code == 403

    async def test_super_admin_must_name_tenant(
        self, client: AsyncClient, superadmin: User
    ):
        payload = UserCreateFactory.build().model_dump(mode="json")

        response = await client.post(
            "/api/v1/users", json=payload, headers=auth_headers(superadmin)
        )

        assert response.status_code == 400

    async def test_delete_user(
        self, client: AsyncClient, tenant_admin: User, tenant_user: User
    ):
        response = await client.delete(
            f"/api/v1/users/{tenant_user.id}", headers=auth_headers(tenant_admin)
        )
        lookup = await client.get(
            f"/api/v1/users/{tenant_user.id}", headers=auth_headers(tenant_admin)
        )

        assert response.status_code == 204
        assert tenant_user.is_deleted is True
        assert tenant_user.is_active is False
        assert lookup.status_code == 404

    async def test_cannot_delete_self(self, client: AsyncClient, tenant_admin: User):
        response = await client.delete(
            f"/api/v1/users/{tenant_admin.id}", headers=auth_headers(tenant_admin)
        )

        assert response.status_code == 400
        assert response.json()["type"].endswith("/cannot_delete_self")


class TestMemberships:
    """Tests for GET /users/{id}/tenants."""

    async def test_memberships_limited_to_visible_tenants(
        self,
        client: AsyncClient,
        db: AsyncSession,
        tenant: Tenant,
        tenant_admin: User,
        superadmin: User,
        other_tenant: Tenant,
    ):
        member = await create_user(db, tenant)
        db.add(
            UserTenant(
                user_id=member.id,
                tenant_id=other_tenant.id,
                tenant=other_tenant,
            )
        )
        await db.flush()

        as_admin = await client.get(
            f"/api/v1/users/{member.id}/tenants", headers=auth_headers(tenant_admin)
        )
        as_superadmin = await client.get(
            f"/api/v1/users/{member.id}/tenants", headers=auth_headers(superadmin)
        )

        assert [m["tenant_domain"] for m in as_admin.json()] == [tenant.domain]
        assert as_admin.json()[0]["is_default"] is True
        assert {m["tenant_id"] for m in as_superadmin.json()} == {
            str(tenant.id),
            str(other_tenant.id),
        }
