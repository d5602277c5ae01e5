"""Factories for tenant provisioning payloads."""

from uuid import uuid4

from polyfactory.factories.pydantic_factory import ModelFactory

from tenantcore.modules.tenants.schemas import TenantCreate, TenantRegister


TEST_ADMIN_PASSWORD = "Password123"


class TenantCreateFactory(ModelFactory[TenantCreate]):
    """Factory for generating TenantCreate test data."""

    __model__ = TenantCreate

    @classmethod
    def name(cls) -> str:
        """Generate a company name."""
        return cls.__faker__.company()[:100]

    @classmethod
    def domain(cls) -> str:
        """Generate a unique lowercase slug."""
        return f"tenant-{uuid4().hex[:10]}"

    @classmethod
    def billing_email(cls) -> str:
        return f"billing-{uuid4().hex[:8]}@example.com"

    @classmethod
    def billing_address(cls) -> str:
        return cls.__faker__.address()[:500]

    @classmethod
    def admin_email(cls) -> str:
        return f"admin-{uuid4().hex[:8]}@example.com"

    @classmethod
    def admin_first_name(cls) -> str:
        return cls.__faker__.first_name()[:50]

    @classmethod
    def admin_last_name(cls) -> str:
        return cls.__faker__.last_name()[:50]

    admin_password = TEST_ADMIN_PASSWORD
    plan_id = None


class TenantRegisterFactory(TenantCreateFactory):
    """Self-service signup payloads. Pass ``plan_id`` explicitly."""

    __model__ = TenantRegister  # type: ignore[assignment]

    confirm_password = TEST_ADMIN_PASSWORD
