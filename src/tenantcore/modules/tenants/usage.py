"""Best-effort API key "last used" tracking.

Updates run as background tasks on their own session, separate from
the request that authenticated, so they can neither delay nor fail it.
"""

import asyncio
from uuid import UUID

import structlog
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tenantcore.core.database.base import utcnow
from tenantcore.modules.tenants.models import Tenant


logger = structlog.get_logger()


class ApiKeyUsageRecorder:
    """Schedules last-used timestamp updates for tenants."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory
        self._tasks: set[asyncio.Task[None]] = set()

    def record(self, tenant_id: UUID) -> None:
        """Schedule the update and return immediately."""
        task = asyncio.create_task(self.touch(tenant_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def touch(self, tenant_id: UUID) -> None:
        """Write the timestamp. Errors are logged and swallowed."""
        try:
            async with self.session_factory() as session:
                await session.execute(
                    update(Tenant)
                    .where(Tenant.id == tenant_id)
                    .values(api_key_last_used_at=utcnow())
                )
                await session.commit()
        except Exception:
            logger.exception("api_key_last_used_update_failed", tenant_id=str(tenant_id))

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for scheduled updates, e.g. on shutdown."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
