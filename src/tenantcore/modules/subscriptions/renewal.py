"""Recurring renewal sweep over ended subscriptions.

Each pass walks the expired ACTIVE/TRIAL subscriptions one at a time:

- auto-renew on: charge the plan price; renew on success, PAST_DUE on failure
- auto-renew off: EXPIRED

Every subscription is handled in its own session and transaction, so one
failing item neither rolls back nor stops the rest of the pass. Each item
locks its tenant row and re-reads the subscription first; rows cancelled
or superseded since the pass started are skipped. Passes never raise; the
loop logs and waits for the next interval.
"""

import asyncio
from dataclasses import dataclass, field
from enum import StrEnum
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tenantcore.config import settings
from tenantcore.core.database import (
    TenantContext,
    TenantScopedSession,
    acting_as,
    utcnow,
)
from tenantcore.modules.billing.gateway import PaymentGateway
from tenantcore.modules.billing.notifications import EmailNotifier
from tenantcore.modules.plans.repos import PlanRepository
from tenantcore.modules.subscriptions.models import (
    SWEEPABLE_STATUSES,
    SubscriptionStatus,
    TenantSubscription,
)
from tenantcore.modules.subscriptions.repos import SubscriptionRepository
from tenantcore.modules.subscriptions.services import SubscriptionService
from tenantcore.modules.tenants.repos import TenantRepository


logger = structlog.get_logger()

SWEEP_ACTOR = "RenewalSweep"


class RenewalOutcome(StrEnum):
    RENEWED = "renewed"
    PAST_DUE = "past_due"
    EXPIRED = "expired"
    SKIPPED = "skipped"


@dataclass
class RenewalReport:
    """Counts for one sweep pass."""

    renewed: int = 0
    past_due: int = 0
    expired: int = 0
    skipped: int = 0
    failed: int = 0
    failed_ids: list[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.renewed + self.past_due + self.expired + self.skipped + self.failed

    def record(self, outcome: RenewalOutcome) -> None:
        if outcome == RenewalOutcome.RENEWED:
            self.renewed += 1
        elif outcome == RenewalOutcome.PAST_DUE:
            self.past_due += 1
        elif outcome == RenewalOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.expired += 1

    def as_dict(self) -> dict[str, int]:
        return {
            "renewed": self.renewed,
            "past_due": self.past_due,
            "expired": self.expired,
            "skipped": self.skipped,
            "failed": self.failed,
        }


class RenewalSweep:
    """Drives ended subscriptions through the state machine."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        gateway: PaymentGateway,
        notifier: EmailNotifier | None = None,
        interval_seconds: float | None = None,
        currency: str | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.gateway = gateway
        self.notifier = notifier
        self.interval_seconds = (
            interval_seconds
            if interval_seconds is not None
            else settings.renewal_interval_seconds
        )
        self.currency = currency or settings.renewal_currency

    async def _expired_ids(self) -> list[UUID]:
        async with self.session_factory() as session:
            repo = SubscriptionRepository(
                TenantScopedSession(session, TenantContext.system())
            )
            return [subscription.id for subscription in await repo.list_expired()]

    async def run_once(self, stop: asyncio.Event | None = None) -> RenewalReport:
        """Process every expired subscription once, sequentially.

        Args:
            stop: Checked between subscriptions; the current one always
                finishes

        Returns:
            Counts of renewed, past-due, expired and failed subscriptions
        """
        report = RenewalReport()
        with acting_as(SWEEP_ACTOR):
            subscription_ids = await self._expired_ids()
            logger.info("renewal_pass_started", expired=len(subscription_ids))

            for subscription_id in subscription_ids:
                if stop is not None and stop.is_set():
                    logger.info("renewal_pass_interrupted")
                    break
                try:
                    report.record(await self.process(subscription_id))
                except Exception:
                    report.failed += 1
                    report.failed_ids.append(str(subscription_id))
                    logger.exception(
                        "renewal_item_failed",
                        subscription_id=str(subscription_id),
                    )

        logger.info("renewal_pass_completed", **report.as_dict())
        return report

    async def process(self, subscription_id: UUID) -> RenewalOutcome:
        """Handle one subscription in its own transaction.

        The tenant row stays locked until commit, which serializes this
        item against upgrades and cancellations of the same tenant.
        """
        async with self.session_factory() as session:
            scoped = TenantScopedSession(session, TenantContext.system())
            tenants = TenantRepository(scoped)
            service = SubscriptionService(
                SubscriptionRepository(scoped),
                PlanRepository(scoped),
                tenants,
            )

            subscription = await service.get_by_id(subscription_id)
            tenant = await tenants.get_by_id_for_update(subscription.tenant_id)
            await session.refresh(subscription)

            if not self._still_expired(subscription):
                logger.info(
                    "renewal_item_skipped",
                    subscription_id=str(subscription.id),
                    status=subscription.status,
                )
                return RenewalOutcome.SKIPPED

            billing_email = tenant.billing_email if tenant else None
            tenant_name = tenant.name if tenant else str(subscription.tenant_id)

            if subscription.auto_renew:
                logger.info(
                    "renewal_charge_attempt",
                    subscription_id=str(subscription.id),
                    tenant_id=str(subscription.tenant_id),
                )
                customer_id = subscription.stripe_customer_id
                if customer_id is None and tenant is not None:
                    customer_id = await self.gateway.create_customer(
                        tenant.billing_email, tenant.name
                    )
                    subscription.stripe_customer_id = customer_id

                charged = customer_id is not None and await self.gateway.charge(
                    customer_id,
                    subscription.plan.price_per_month,
                    self.currency,
                )
                if charged:
                    await service.renew(subscription.id)
                    outcome = RenewalOutcome.RENEWED
                else:
                    await service.update_status(subscription.id, SubscriptionStatus.PAST_DUE)
                    outcome = RenewalOutcome.PAST_DUE
            else:
                await service.update_status(subscription.id, SubscriptionStatus.EXPIRED)
                outcome = RenewalOutcome.EXPIRED

            await session.commit()

        if billing_email:
            await self._notify(outcome, billing_email, tenant_name, subscription_id)
        return outcome

    @staticmethod
    def _still_expired(subscription: TenantSubscription) -> bool:
        return (
            subscription.status in SWEEPABLE_STATUSES
            and subscription.end_date < utcnow()
        )

    async def _notify(
        self,
        outcome: RenewalOutcome,
        billing_email: str,
        tenant_name: str,
        subscription_id: UUID,
    ) -> None:
        # Runs after commit; errors are logged, never counted as failures
        if self.notifier is None:
            return
        try:
            if outcome == RenewalOutcome.PAST_DUE:
                await self.notifier.send_payment_failed(billing_email, tenant_name)
            elif outcome == RenewalOutcome.EXPIRED:
                await self.notifier.send_subscription_expired(billing_email, tenant_name)
        except Exception:
            logger.exception(
                "renewal_notification_failed",
                subscription_id=str(subscription_id),
                outcome=outcome,
            )

    async def run_forever(self, stop: asyncio.Event) -> None:
        """Run passes until ``stop`` is set.

        The wait between passes returns as soon as ``stop`` is set, and the
        task may also be cancelled outright during that wait.
        """
        logger.info("renewal_sweep_started", interval_seconds=self.interval_seconds)
        while not stop.is_set():
            try:
                await self.run_once(stop)
            except Exception:
                logger.exception("renewal_pass_failed")

            try:
                await asyncio.wait_for(stop.wait(), timeout=self.interval_seconds)
            except TimeoutError:
                continue
        logger.info("renewal_sweep_stopped")
