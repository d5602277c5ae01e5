"""TenantCore - multi-tenant SaaS management service."""

__version__ = "0.1.0"
