"""Logging module with structured logging and request tracking."""

from tenantcore.core.logging.middleware import RequestLoggingMiddleware


__all__ = [
    "RequestLoggingMiddleware",
]
