"""Scheduled subscription renewal."""

from typing import Any

import structlog

from tenantcore.modules.billing.gateway import get_payment_gateway
from tenantcore.modules.billing.notifications import get_notifier
from tenantcore.modules.subscriptions.renewal import RenewalSweep


log = structlog.get_logger()


async def run_subscription_renewal(ctx: dict[str, Any]) -> dict[str, int]:
    """Run one renewal sweep pass.

    Args:
        ctx: Worker context containing the database session factory

    Returns:
        Counts of renewed, past-due, expired and failed subscriptions
    """
    sweep = RenewalSweep(
        session_factory=ctx["db_session_factory"],
        gateway=get_payment_gateway(),
        notifier=get_notifier(),
    )
    report = await sweep.run_once()

    log.info("run_subscription_renewal_complete", **report.as_dict())
    return report.as_dict()
