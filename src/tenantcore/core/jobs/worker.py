"""ARQ worker configuration.

Defines the worker settings including registered jobs,
cron schedules, and startup/shutdown hooks.
"""

from typing import Any, ClassVar

import structlog
from arq import cron
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tenantcore.config import settings
from tenantcore.core.jobs.registry import get_redis_settings
from tenantcore.core.jobs.tasks import run_subscription_renewal


def renewal_hours(interval_hours: int) -> set[int]:
    """Hours of the day on which the renewal cron fires.

    >>> sorted(renewal_hours(6))
    [0, 6, 12, 18]
    """
    step = max(1, min(interval_hours, 24))
    return set(range(0, 24, step))


async def startup(ctx: dict[str, Any]) -> None:
    """Create the database engine and session factory shared by jobs."""
    log = structlog.get_logger()
    log.info("worker_startup", environment=settings.environment)

    engine = create_async_engine(
        settings.async_database_url,
        pool_size=5,
        max_overflow=10,
        echo=settings.database_echo,
    )
    ctx["db_engine"] = engine
    ctx["db_session_factory"] = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    log.info("worker_startup_complete")


async def shutdown(ctx: dict[str, Any]) -> None:
    log = structlog.get_logger()
    log.info("worker_shutdown")

    engine = ctx.get("db_engine")
    if engine:
        await engine.dispose()
        log.info("database_engine_disposed")

    log.info("worker_shutdown_complete")


class WorkerSettings:
    """ARQ worker settings.

    Run the worker with:
        arq tenantcore.core.jobs.worker.WorkerSettings

    Disable ``RENEWAL_IN_PROCESS`` on the web process when the worker
    runs, so only one sweep is active per deployment.
    """

    functions: ClassVar[list[Any]] = [
        run_subscription_renewal,
    ]

    cron_jobs: ClassVar[list[Any]] = [
        cron(
            run_subscription_renewal,
            hour=renewal_hours(settings.renewal_interval_hours),
            minute=0,
            unique=True,
        ),
    ]

    on_startup = startup
    on_shutdown = shutdown

    redis_settings = get_redis_settings()

    max_jobs = 10
    job_timeout = 1800
    keep_result = 3600
    # A pass is not idempotent across retries: it may have charged already
    retry_jobs = False
