"""Payment gateway capability.

The renewal sweep only needs :meth:`PaymentGateway.charge`; provisioning
and upgrades may create customers and checkout sessions. Two
implementations are provided: an in-process mock for development and a
Stripe-backed gateway whose blocking SDK calls run in a worker thread.
"""

import asyncio
import uuid
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Annotated, Protocol

import stripe
import structlog
from fastapi import Depends

from tenantcore.config import settings


logger = structlog.get_logger()


class PaymentGateway(Protocol):
    """Outbound payment operations."""

    async def charge(self, customer_id: str, amount: Decimal, currency: str) -> bool: ...

    async def create_customer(self, email: str, name: str) -> str: ...

    async def create_checkout_session(
        self, customer_id: str, amount: Decimal, currency: str
    ) -> str: ...


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount (e.g. dollars) to cents."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class MockPaymentGateway:
    """Gateway that never leaves the process.

    Charges succeed unless ``charge_succeeds`` is False.
    """

    def __init__(self, charge_succeeds: bool = True) -> None:
        self.charge_succeeds = charge_succeeds

    async def charge(self, customer_id: str, amount: Decimal, currency: str) -> bool:
        logger.info(
            "mock_payment_charge",
            customer_id=customer_id,
            amount=str(amount),
            currency=currency,
            succeeded=self.charge_succeeds,
        )
        return self.charge_succeeds

    async def create_customer(self, email: str, name: str) -> str:
        customer_id = f"cus_mock_{uuid.uuid4().hex}"
        logger.info("mock_customer_created", customer_id=customer_id, email=email, name=name)
        return customer_id

    async def create_checkout_session(
        self, customer_id: str, amount: Decimal, currency: str
    ) -> str:
        session_id = f"cs_mock_{uuid.uuid4().hex}"
        logger.info(
            "mock_checkout_session_created",
            session_id=session_id,
            customer_id=customer_id,
            amount=str(amount),
            currency=currency,
        )
        return session_id


class StripePaymentGateway:
    """Stripe-backed gateway."""

    def __init__(self, api_key: str, success_url: str, cancel_url: str) -> None:
        stripe.api_key = api_key
        self.success_url = success_url
        self.cancel_url = cancel_url

    async def charge(self, customer_id: str, amount: Decimal, currency: str) -> bool:
        """Charge the customer's default payment method off-session.

        Provider errors are reported as a failed charge.
        """
        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.create,
                amount=to_minor_units(amount),
                currency=currency,
                customer=customer_id,
                confirm=True,
                off_session=True,
            )
        except stripe.StripeError as e:
            logger.warning(
                "stripe_charge_failed",
                customer_id=customer_id,
                error=str(e),
            )
            return False
        return intent.status == "succeeded"

    async def create_customer(self, email: str, name: str) -> str:
        customer = await asyncio.to_thread(
            stripe.Customer.create,
            email=email,
            name=name,
        )
        return customer.id

    async def create_checkout_session(
        self, customer_id: str, amount: Decimal, currency: str
    ) -> str:
        session = await asyncio.to_thread(
            stripe.checkout.Session.create,
            customer=customer_id,
            mode="payment",
            line_items=[
                {
                    "price_data": {
                        "currency": currency,
                        "unit_amount": to_minor_units(amount),
                        "product_data": {"name": "Subscription"},
                    },
                    "quantity": 1,
                }
            ],
            success_url=self.success_url,
            cancel_url=self.cancel_url,
        )
        return session.id


@lru_cache
def get_payment_gateway() -> PaymentGateway:
    """Gateway selected by ``settings.payment_provider``."""
    if settings.payment_provider == "stripe":
        if not settings.stripe_secret_key:
            raise RuntimeError("STRIPE_SECRET_KEY is required when PAYMENT_PROVIDER=stripe")
        return StripePaymentGateway(
            api_key=settings.stripe_secret_key,
            success_url=settings.checkout_success_url,
            cancel_url=settings.checkout_cancel_url,
        )
    return MockPaymentGateway()


# Type alias for dependency injection
Gateway = Annotated[PaymentGateway, Depends(get_payment_gateway)]
