"""Database layer - session management, base models, isolation and hooks."""

from tenantcore.core.database.base import (
    Base,
    SoftDeleteMixin,
    TenantMixin,
    TimestampMixin,
    TZDateTime,
    UUIDMixin,
    utcnow,
)
from tenantcore.core.database.hooks import (
    acting_as,
    get_current_actor,
    install_hooks,
    set_current_actor,
)
from tenantcore.core.database.session import (
    async_engine,
    async_session_factory,
    get_db,
    get_session_factory,
)
from tenantcore.core.database.tenant import (
    TenantContext,
    TenantScopedSession,
    isolation_criteria,
)


install_hooks()


__all__ = [
    "Base",
    "SoftDeleteMixin",
    "TZDateTime",
    "TenantContext",
    "TenantMixin",
    "TenantScopedSession",
    "TimestampMixin",
    "UUIDMixin",
    "acting_as",
    "async_engine",
    "async_session_factory",
    "get_current_actor",
    "get_db",
    "get_session_factory",
    "install_hooks",
    "isolation_criteria",
    "set_current_actor",
    "utcnow",
]
