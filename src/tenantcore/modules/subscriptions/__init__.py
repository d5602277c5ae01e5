"""Subscriptions module - lifecycle state machine and renewal sweep."""

# Module metadata
__module_info__ = {
    "name": "subscriptions",
    "version": "1.0.0",
    "description": "Subscription lifecycle and renewal",
    "dependencies": ["plans", "tenants", "billing"],
}
