"""
Tests for PaymentService

Initialization with the seller split, verification and the late payment refund.
"""

from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase

from infrastructure.container import container
from infrastructure.events import get_event_bus
from infrastructure.payments import PaymentStatus
from marketplace.models import Order
from marketplace.services.base import ErrorCodes
from marketplace.tests.factories import (
    BankingDetailsFactory,
    OrderFactory,
    OrderItemFactory,
    PaidOrderFactory,
    UserFactory,
)
from payment_system.models import Payment


class InitializePaymentTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.provider = container.payment()
        self.service = container.payment_service()
        self.order = OrderFactory()
        OrderItemFactory(order=self.order, book__status="reserved", book__sold=False)

    def test_initialize_payment(self):
        result = self.service.initialize_payment(self.order.id, self.order.buyer)

        self.assertTrue(result.ok, result.error_detail)
        self.assertEqual(result.value["amount"], 29500)
        self.assertEqual(result.value["currency"], "ZAR")
        self.assertTrue(result.value["authorization_url"].startswith("https://checkout.paystack.com/test/"))

        payment = Payment.objects.get(reference=result.value["reference"])
        self.assertEqual(payment.status, "pending")
        self.assertEqual(payment.amount, Decimal("295.00"))
        self.assertEqual(Order.objects.get(id=self.order.id).payment_reference, payment.reference)
        self.assertIsNone(self.provider.transactions[payment.reference]["subaccount"])

    def test_initialize_splits_to_seller_subaccount(self):
        banking = BankingDetailsFactory(seller=self.order.seller)

        result = self.service.initialize_payment(self.order.id, self.order.buyer)

        sent = self.provider.transactions[result.value["reference"]]
        self.assertEqual(sent["subaccount"], banking.subaccount_code)
        # platform fee 20.00 + delivery 95.00 stays with the platform
        self.assertEqual(sent["transaction_charge"], 11500)
        self.assertEqual(sent["bearer"], "subaccount")
        self.assertEqual(Payment.objects.get(reference=result.value["reference"]).platform_share, Decimal("115.00"))

    def test_only_the_buyer_can_pay(self):
        result = self.service.initialize_payment(self.order.id, UserFactory())
        self.assertEqual(result.error, ErrorCodes.NOT_ORDER_OWNER)

    def test_cannot_pay_twice(self):
        order = PaidOrderFactory()
        result = self.service.initialize_payment(order.id, order.buyer)
        self.assertEqual(result.error, ErrorCodes.INVALID_ORDER_STATE)

    def test_unknown_order(self):
        result = self.service.initialize_payment("not-a-uuid", self.order.buyer)
        self.assertEqual(result.error, ErrorCodes.ORDER_NOT_FOUND)


class VerifyPaymentTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        get_event_bus().clear()
        self.provider = container.payment()
        self.service = container.payment_service()
        self.order = OrderFactory()
        OrderItemFactory(order=self.order, book__status="reserved", book__sold=False)
        self.reference = self.service.initialize_payment(self.order.id, self.order.buyer).value["reference"]

    def test_verify_marks_order_paid(self):
        with self.captureOnCommitCallbacks(execute=True):
            result = self.service.verify_payment(self.reference, self.order.buyer)

        self.assertTrue(result.ok, result.error_detail)
        self.assertEqual(result.value["status"], "completed")
        self.assertEqual(result.value["order_status"], "paid")
        self.assertIsNotNone(result.value["commit_deadline"])
        self.assertFalse(result.value["already_verified"])

        payment = Payment.objects.get(reference=self.reference)
        self.assertEqual(payment.channel, "card")
        self.assertIsNotNone(payment.paid_at)
        self.assertEqual(len(get_event_bus().events_of_type("payment.succeeded")), 1)

    def test_second_verification_uses_stored_result(self):
        self.service.verify_payment(self.reference, self.order.buyer)
        self.provider.set_transaction_status(self.reference, PaymentStatus.FAILED)

        result = self.service.verify_payment(self.reference, self.order.buyer)

        self.assertTrue(result.ok)
        self.assertTrue(result.value["already_verified"])
        self.assertEqual(result.value["status"], "completed")

    def test_underpayment_is_rejected(self):
        self.provider.set_transaction_status(self.reference, PaymentStatus.SUCCESS, amount=1000)

        result = self.service.verify_payment(self.reference, self.order.buyer)

        self.assertEqual(result.error, ErrorCodes.AMOUNT_MISMATCH)
        self.assertEqual(Payment.objects.get(reference=self.reference).status, "failed")
        self.assertEqual(Order.objects.get(id=self.order.id).status, "pending")

    def test_failed_transaction(self):
        self.provider.set_transaction_status(self.reference, PaymentStatus.FAILED)

        result = self.service.verify_payment(self.reference, self.order.buyer)

        self.assertEqual(result.error, ErrorCodes.PAYMENT_FAILED)
        self.assertEqual(Payment.objects.get(reference=self.reference).status, "failed")

    def test_pending_transaction_stays_pending(self):
        self.provider.set_transaction_status(self.reference, PaymentStatus.PENDING)

        result = self.service.verify_payment(self.reference, self.order.buyer)

        self.assertTrue(result.ok)
        self.assertEqual(result.value["status"], "pending")
        self.assertEqual(Order.objects.get(id=self.order.id).status, "pending")

    def test_payment_after_cancellation_is_refunded(self):
        Order.objects.filter(id=self.order.id).update(status="cancelled")

        with patch("payment_system.Tasks.payment_tasks.process_refund_task.delay") as mock_refund:
            with self.captureOnCommitCallbacks(execute=True):
                result = self.service.verify_payment(self.reference)

        self.assertTrue(result.ok)
        mock_refund.assert_called_once_with(str(self.order.id), "payment_after_cancellation", None)
        self.assertEqual(Order.objects.get(id=self.order.id).payment_status, "paid")

    def test_other_users_cannot_verify(self):
        result = self.service.verify_payment(self.reference, UserFactory())
        self.assertEqual(result.error, ErrorCodes.NOT_ORDER_OWNER)

    def test_unknown_reference(self):
        result = self.service.verify_payment("payment_missing")
        self.assertEqual(result.error, ErrorCodes.PAYMENT_NOT_FOUND)
