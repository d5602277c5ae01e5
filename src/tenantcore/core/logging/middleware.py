"""Request logging middleware.

Logs one line when a request starts and one when it completes, with the
identity that authentication attached to ``request.state``. Headers are
never logged, so credentials (bearer tokens, API keys, cookies) cannot
leak into the log stream.
"""

import time
from typing import Any

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint


logger = structlog.get_logger()

DEFAULT_EXCLUDE_PATHS = (
    "/api/v1/health/live",
    "/api/v1/health/ready",
    "/docs",
    "/redoc",
    "/openapi.json",
)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware that logs HTTP requests with duration and outcome.

    Completion is logged at ERROR for 5xx, WARNING for 4xx and INFO
    otherwise.
    """

    def __init__(self, app: Any, exclude_paths: list[str] | None = None) -> None:
        super().__init__(app)
        self.exclude_paths = tuple(exclude_paths or DEFAULT_EXCLUDE_PATHS)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        path = request.url.path
        if path.startswith(self.exclude_paths):
            return await call_next(request)

        start_time = time.perf_counter()
        method = request.method

        started: dict[str, Any] = {
            "method": method,
            "path": path,
            "client_ip": get_client_ip(request),
        }
        if request.url.query:
            started["query"] = str(request.url.query)
        logger.info("request_started", **started)

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request_failed",
                method=method,
                path=path,
                duration_ms=_elapsed_ms(start_time),
            )
            raise

        completed: dict[str, Any] = {
            "method": method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": _elapsed_ms(start_time),
        }
        # Set by the authentication dependency
        for attr in ("user_id", "tenant_id"):
            value = getattr(request.state, attr, None)
            if value:
                completed[attr] = str(value)

        if response.status_code >= 500:
            logger.error("request_completed", **completed)
        elif response.status_code >= 400:
            logger.warning("request_completed", **completed)
        else:
            logger.info("request_completed", **completed)

        return response


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)


def get_client_ip(request: Request) -> str | None:
    """Client address, honouring X-Forwarded-For from proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None
