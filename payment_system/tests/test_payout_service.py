"""
Tests for PayoutService

Exactly-once transfers, gateway failures and the retry sweep.
"""

from decimal import Decimal
from unittest.mock import MagicMock, patch

from django.test import TestCase

from infrastructure.container import container
from infrastructure.events import get_event_bus
from infrastructure.payments import MockPaymentProvider, PaymentException
from marketplace.models import Notification, Order, OrderAuditLog
from marketplace.services.base import ErrorCodes
from marketplace.tests.factories import (
    BankingDetailsFactory,
    CollectedOrderFactory,
    CommittedOrderFactory,
    SellerPayoutFactory,
)
from payment_system.domain.services.payout_service import PayoutService
from payment_system.models import SellerPayout


class PayoutServiceTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        get_event_bus().clear()
        self.provider = MockPaymentProvider()
        self.notifications = MagicMock()
        self.service = PayoutService(provider=self.provider, notification_service=self.notifications)
        self.order = CollectedOrderFactory()
        self.banking = BankingDetailsFactory(seller=self.order.seller)

    def test_pay_seller(self):
        with self.captureOnCommitCallbacks(execute=True):
            result = self.service.pay_seller(self.order.id)

        self.assertTrue(result.ok, result.error_detail)
        self.assertEqual(result.value["status"], "completed")

        payout = SellerPayout.objects.get(order=self.order)
        self.assertEqual(payout.gross_amount, Decimal("200.00"))
        self.assertEqual(payout.platform_fee, Decimal("20.00"))
        self.assertEqual(payout.net_amount, Decimal("180.00"))
        self.assertEqual(payout.recipient_code, self.banking.recipient_code)
        self.assertTrue(payout.reference.startswith(f"PAYOUT_{self.order.id}_"))

        transfer = self.provider.transfers[0]
        self.assertEqual(transfer.amount, 18000)
        self.assertEqual(Order.objects.get(id=self.order.id).payout_status, "completed")
        self.assertTrue(OrderAuditLog.objects.filter(order=self.order, action="payout_completed").exists())
        self.assertEqual(len(get_event_bus().events_of_type("payout.completed")), 1)
        self.notifications.notify.assert_called_once()
        self.assertEqual(len(container.email().messages_for_template("payout_completed")), 1)

    def test_payout_happens_once(self):
        self.service.pay_seller(self.order.id)

        second = self.service.pay_seller(self.order.id)

        self.assertTrue(second.ok)
        self.assertEqual(second.value["status"], "already_processed")
        self.assertEqual(len(self.provider.transfers), 1)
        self.assertEqual(SellerPayout.objects.filter(order=self.order).count(), 1)

    def test_uncollected_order_is_not_paid_out(self):
        order = CommittedOrderFactory()
        result = self.service.pay_seller(order.id)
        self.assertEqual(result.error, ErrorCodes.PAYOUT_NOT_ALLOWED)
        self.assertEqual(self.provider.transfers, [])

    def test_seller_without_banking(self):
        order = CollectedOrderFactory()
        result = self.service.pay_seller(order.id)
        self.assertEqual(result.error, ErrorCodes.PAYOUT_NOT_ALLOWED)

    def test_recipient_created_when_missing(self):
        self.banking.recipient_code = ""
        self.banking.save()

        result = self.service.pay_seller(self.order.id)

        self.assertTrue(result.ok)
        self.banking.refresh_from_db()
        self.assertTrue(self.banking.recipient_code.startswith("RCP_test_"))

    def test_transfer_failure(self):
        self.provider.fail_transfers = True

        with self.captureOnCommitCallbacks(execute=True):
            result = self.service.pay_seller(self.order.id)

        self.assertEqual(result.error, ErrorCodes.PAYMENT_PROVIDER_ERROR)
        payout = SellerPayout.objects.get(order=self.order)
        self.assertEqual(payout.status, "failed")
        self.assertEqual(payout.retry_count, 1)
        self.assertIn("rejected", payout.failure_reason)
        self.assertEqual(Order.objects.get(id=self.order.id).payout_status, "failed")
        self.assertEqual(len(get_event_bus().events_of_type("payout.failed")), 1)

    def test_failed_payout_notifies_seller(self):
        self.provider.fail_transfers = True

        with self.captureOnCommitCallbacks(execute=True):
            self.service.pay_seller(self.order.id)

        self.assertTrue(Notification.objects.filter(user=self.order.seller, type="payout_failed").exists())

    def test_retry_failed_payouts(self):
        self.provider.fail_transfers = True
        self.service.pay_seller(self.order.id)
        self.provider.fail_transfers = False
        orphan = CollectedOrderFactory()
        BankingDetailsFactory(seller=orphan.seller)

        summary = self.service.retry_failed_payouts().value

        self.assertEqual(summary, {"retried": 2, "completed": 2, "failed": 0})
        self.assertEqual(SellerPayout.objects.get(order=self.order).status, "completed")
        self.assertEqual(SellerPayout.objects.get(order=orphan).status, "completed")

    def test_retry_after_lost_response_reuses_reference(self):
        provider = self.provider
        book_transfer = provider.create_transfer

        def booked_then_timed_out(**kwargs):
            book_transfer(**kwargs)
            raise PaymentException("read timed out")

        with patch("payment_system.domain.services.payout_service.time.time", return_value=1700000000):
            with patch.object(provider, "create_transfer", side_effect=booked_then_timed_out):
                self.assertFalse(self.service.pay_seller(self.order.id).ok)

        with patch("payment_system.domain.services.payout_service.time.time", return_value=1700003600):
            self.service.retry_failed_payouts()

        references = {transfer.reference for transfer in provider.transfers}
        self.assertEqual(len(references), 1)
        self.assertEqual(references, {SellerPayout.objects.get(order=self.order).reference})

    def test_retry_skips_exhausted_payouts(self):
        SellerPayoutFactory(order=self.order, status="failed", retry_count=3)

        summary = self.service.retry_failed_payouts().value

        self.assertEqual(summary["retried"], 0)


class TransferWebhookTest(TestCase):
    def setUp(self):
        container.configure_for_testing()
        self.service = PayoutService(provider=MockPaymentProvider(), notification_service=MagicMock())
        self.payout = SellerPayoutFactory(status="processing")

    def test_transfer_success(self):
        result = self.service.apply_transfer_event(self.payout.reference, "success")

        self.assertTrue(result.ok)
        self.payout.refresh_from_db()
        self.assertEqual(self.payout.status, "completed")
        self.assertIsNotNone(self.payout.completed_at)
        self.assertEqual(Order.objects.get(id=self.payout.order_id).payout_status, "completed")

    def test_transfer_success_twice(self):
        self.service.apply_transfer_event(self.payout.reference, "success")
        self.service.apply_transfer_event(self.payout.reference, "success")

        self.assertEqual(
            OrderAuditLog.objects.filter(order_id=self.payout.order_id, action="payout_completed").count(), 1
        )

    def test_transfer_reversed(self):
        self.service.apply_transfer_event(self.payout.reference, "reversed", "account closed")

        self.payout.refresh_from_db()
        self.assertEqual(self.payout.status, "reversed")
        self.assertEqual(self.payout.failure_reason, "account closed")
        self.assertEqual(Order.objects.get(id=self.payout.order_id).payout_status, "failed")

    def test_failed_transfer_gets_new_reference_for_retry(self):
        old_reference = self.payout.reference

        self.service.apply_transfer_event(old_reference, "failed", "invalid account")

        self.payout.refresh_from_db()
        self.assertEqual(self.payout.status, "failed")
        self.assertNotEqual(self.payout.reference, old_reference)
        self.assertTrue(self.payout.reference.endswith("_1"))
        audit = OrderAuditLog.objects.get(order_id=self.payout.order_id, action="payout_failed")
        self.assertEqual(audit.details["reference"], old_reference)

    def test_unknown_transfer(self):
        result = self.service.apply_transfer_event("PAYOUT_missing", "success")
        self.assertEqual(result.error, ErrorCodes.PAYMENT_NOT_FOUND)

    def test_list_payouts(self):
        SellerPayoutFactory(status="failed")

        self.assertEqual(self.service.list_payouts(seller=self.payout.seller).count(), 1)
        self.assertEqual(self.service.list_payouts(status="failed").count(), 1)
        self.assertEqual(self.service.list_payouts().count(), 2)
