from datetime import timedelta
from decimal import Decimal

import pytest
from django.test import override_settings
from django.utils import timezone

from marketplace.models import Order
from marketplace.ordering.domain.services.order_service import calculate_order_amounts


@pytest.mark.unit
class TestCalculateOrderAmounts:
    def test_platform_fee_taken_from_subtotal_only(self):
        amounts = calculate_order_amounts(Decimal("250.00"), Decimal("95.00"))

        assert amounts["platform_fee"] == Decimal("25.00")
        assert amounts["seller_amount"] == Decimal("225.00")
        assert amounts["total_amount"] == Decimal("345.00")

    def test_fee_rounds_half_up(self):
        amounts = calculate_order_amounts(Decimal("99.95"), Decimal("0"))

        # 10% of 99.95 = 9.995
        assert amounts["platform_fee"] == Decimal("10.00")
        assert amounts["seller_amount"] == Decimal("89.95")

    @override_settings(PLATFORM_FEE_PERCENT=15)
    def test_fee_percent_is_configurable(self):
        amounts = calculate_order_amounts(Decimal("200.00"), Decimal("50.00"))
        assert amounts["platform_fee"] == Decimal("30.00")
        assert amounts["seller_amount"] == Decimal("170.00")


@pytest.mark.unit
class TestOrderTransitions:
    def make_order(self, status, **kwargs):
        return Order(status=status, subtotal=Decimal("100"), total_amount=Decimal("100"), **kwargs)

    @pytest.mark.parametrize(
        "current,target",
        [
            ("pending", "paid"),
            ("pending", "cancelled"),
            ("paid", "committed"),
            ("paid", "cancelled"),
            ("committed", "collected"),
            ("collected", "completed"),
            ("cancelled", "refunded"),
        ],
    )
    def test_allowed_moves(self, current, target):
        assert self.make_order(current).can_transition_to(target)

    @pytest.mark.parametrize(
        "current,target",
        [
            ("pending", "committed"),
            ("paid", "completed"),
            ("collected", "cancelled"),
            ("completed", "cancelled"),
            ("refunded", "paid"),
        ],
    )
    def test_rejected_moves(self, current, target):
        assert not self.make_order(current).can_transition_to(target)

    def test_commit_window(self):
        now = timezone.now()
        order = self.make_order("paid", commit_deadline=now + timedelta(hours=1))

        assert order.commit_window_open(now)
        assert not order.commit_window_open(now + timedelta(hours=2))
        assert order.time_until_commit_deadline(now) == timedelta(hours=1)
        assert order.time_until_commit_deadline(now + timedelta(hours=3)) == timedelta(0)

    def test_no_deadline_means_window_closed(self):
        order = self.make_order("pending")
        assert not order.commit_window_open()
        assert order.time_until_commit_deadline() == timedelta(0)
