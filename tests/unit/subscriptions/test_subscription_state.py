"""Unit tests for derived subscription state and period arithmetic."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from tenantcore.core.utils.dates import add_months
from tenantcore.modules.subscriptions.models import SubscriptionStatus, TenantSubscription


NOW = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)


def make_subscription(status: SubscriptionStatus, end_date: datetime) -> TenantSubscription:
    return TenantSubscription(
        tenant_id=uuid4(),
        plan_id=uuid4(),
        start_date=end_date - timedelta(days=30),
        end_date=end_date,
        status=status,
    )


class TestIsExpired:
    """Tests for TenantSubscription.is_expired."""

    @pytest.mark.parametrize(
        "status",
        [
            SubscriptionStatus.ACTIVE,
            SubscriptionStatus.TRIAL,
            SubscriptionStatus.PAST_DUE,
            SubscriptionStatus.EXPIRED,
        ],
    )
    def test_past_end_date(self, status: SubscriptionStatus):
        subscription = make_subscription(status, NOW - timedelta(seconds=1))

        assert subscription.is_expired(NOW) is True

    def test_cancelled_never_expired(self):
        subscription = make_subscription(SubscriptionStatus.CANCELLED, NOW - timedelta(days=5))

        assert subscription.is_expired(NOW) is False

    def test_future_end_date(self):
        subscription = make_subscription(SubscriptionStatus.ACTIVE, NOW + timedelta(days=1))

        assert subscription.is_expired(NOW) is False


class TestIsCurrentlyActive:
    """Tests for TenantSubscription.is_currently_active."""

    def test_active_in_period(self):
        subscription = make_subscription(SubscriptionStatus.ACTIVE, NOW + timedelta(days=1))

        assert subscription.is_currently_active(NOW) is True

    def test_active_past_end(self):
        subscription = make_subscription(SubscriptionStatus.ACTIVE, NOW - timedelta(days=1))

        assert subscription.is_currently_active(NOW) is False

    def test_trial_is_not_active(self):
        subscription = make_subscription(SubscriptionStatus.TRIAL, NOW + timedelta(days=10))

        assert subscription.is_currently_active(NOW) is False


class TestDaysUntilExpiration:
    """Tests for TenantSubscription.days_until_expiration."""

    def test_whole_days_truncated(self):
        subscription = make_subscription(
            SubscriptionStatus.ACTIVE, NOW + timedelta(days=3, hours=23)
        )

        assert subscription.days_until_expiration(NOW) == 3

    def test_negative_once_past(self):
        subscription = make_subscription(SubscriptionStatus.ACTIVE, NOW - timedelta(days=2))

        assert subscription.days_until_expiration(NOW) == -2

    def test_less_than_a_day(self):
        subscription = make_subscription(SubscriptionStatus.ACTIVE, NOW + timedelta(hours=5))

        assert subscription.days_until_expiration(NOW) == 0


class TestAddMonths:
    """Tests for add_months."""

    @pytest.mark.parametrize(
        ("start", "months", "expected"),
        [
            (datetime(2025, 1, 15), 1, datetime(2025, 2, 15)),
            (datetime(2025, 1, 31), 1, datetime(2025, 2, 28)),
            (datetime(2024, 1, 31), 1, datetime(2024, 2, 29)),
            (datetime(2025, 3, 31), 1, datetime(2025, 4, 30)),
            (datetime(2025, 12, 10), 1, datetime(2026, 1, 10)),
            (datetime(2025, 5, 20), 12, datetime(2026, 5, 20)),
        ],
    )
    def test_calendar_months(self, start: datetime, months: int, expected: datetime):
        assert add_months(start, months) == expected

    def test_keeps_time_and_zone(self):
        result = add_months(NOW, 1)

        assert result == datetime(2025, 7, 15, 12, 0, tzinfo=UTC)
