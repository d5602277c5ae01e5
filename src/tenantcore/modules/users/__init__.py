"""Users module - tenant users and memberships."""

# Module metadata
__module_info__ = {
    "name": "users",
    "version": "1.0.0",
    "description": "Tenant users and memberships",
    "dependencies": ["tenants"],
}
