"""Authentication: API keys, credential strategies and tenant context.

Submodules are imported directly (``tenantcore.core.auth.dependencies``
and so on); this package does not re-export them because the
dependencies reach into the tenants module.
"""
