"""Outbound tenant notifications.

Delivery is console-only: each notification is a structured log line.
Callers never depend on a result, so failures are logged and dropped.
"""

from functools import lru_cache
from typing import Annotated

import structlog
from fastapi import Depends


logger = structlog.get_logger()


class EmailNotifier:
    """Fire-and-forget tenant emails."""

    async def _send(self, template: str, to: str, **context: object) -> None:
        try:
            logger.info("email_sent", template=template, to=to, **context)
        except Exception:
            logger.exception("email_send_failed", template=template, to=to)

    async def send_welcome(self, to: str, tenant_name: str) -> None:
        await self._send("welcome", to, tenant_name=tenant_name)

    async def send_subscription_expiring(
        self, to: str, tenant_name: str, days_remaining: int
    ) -> None:
        await self._send(
            "subscription_expiring",
            to,
            tenant_name=tenant_name,
            days_remaining=days_remaining,
        )

    async def send_subscription_expired(self, to: str, tenant_name: str) -> None:
        await self._send("subscription_expired", to, tenant_name=tenant_name)

    async def send_payment_failed(self, to: str, tenant_name: str) -> None:
        await self._send("payment_failed", to, tenant_name=tenant_name)


@lru_cache
def get_notifier() -> EmailNotifier:
    return EmailNotifier()


Notifier = Annotated[EmailNotifier, Depends(get_notifier)]
