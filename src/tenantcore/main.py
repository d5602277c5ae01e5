"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tenantcore import __version__
from tenantcore.api.router import api_router
from tenantcore.config import settings
from tenantcore.core.auth.dependencies import get_api_key_usage_recorder
from tenantcore.core.auth.middleware import RequestIdMiddleware
from tenantcore.core.database import get_session_factory
from tenantcore.core.errors import register_exception_handlers
from tenantcore.core.jobs.registry import close_arq_pool, init_arq_pool
from tenantcore.core.logging import RequestLoggingMiddleware
from tenantcore.modules.billing.gateway import get_payment_gateway
from tenantcore.modules.billing.notifications import get_notifier
from tenantcore.modules.subscriptions.renewal import RenewalSweep


# Seconds to let an in-flight renewal item finish on shutdown
SWEEP_SHUTDOWN_GRACE_SECONDS = 30


def configure_logging() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            (
                structlog.processors.JSONRenderer()
                if settings.environment == "production"
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping().get(settings.log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Starts the in-process renewal sweep when enabled and stops it
    cleanly on shutdown, letting the current subscription finish.
    """
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
    )

    try:
        await init_arq_pool()
        logger.info("arq_pool_initialized")
    except Exception as e:
        logger.warning("arq_pool_init_failed", error=str(e))

    stop = asyncio.Event()
    sweep_task: asyncio.Task[None] | None = None
    if settings.renewal_in_process:
        sweep = RenewalSweep(
            session_factory=get_session_factory(),
            gateway=get_payment_gateway(),
            notifier=get_notifier(),
        )
        sweep_task = asyncio.create_task(sweep.run_forever(stop))

    yield

    logger.info("application_shutdown")

    if sweep_task is not None:
        stop.set()
        try:
            await asyncio.wait_for(sweep_task, timeout=SWEEP_SHUTDOWN_GRACE_SECONDS)
        except TimeoutError:
            logger.warning("renewal_sweep_shutdown_timeout")

    await get_api_key_usage_recorder().drain()

    await close_arq_pool()
    logger.info("arq_pool_closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    is_production = settings.is_production
    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant SaaS core: tenants, users, plans and subscriptions",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
        openapi_url=None if is_production else "/openapi.json",
    )

    cors_origins = settings.cors_origins
    if settings.is_development and not cors_origins:
        cors_origins = ["http://localhost:3000", "http://localhost:5173"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=[
            "Authorization",
            "Content-Type",
            "X-Request-ID",
            settings.api_key_header,
        ],
    )

    # Added last, so it runs first and the request id is bound for logging
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(api_router)

    return app


app = create_app()
