"""Tenants module - provisioning, administration and API keys."""

# Module metadata
__module_info__ = {
    "name": "tenants",
    "version": "1.0.0",
    "description": "Tenant provisioning, administration and API keys",
    "dependencies": ["users", "plans", "subscriptions", "billing"],
}
