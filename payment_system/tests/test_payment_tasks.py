from unittest.mock import patch

from django.test import TestCase

from infrastructure.container import container
from marketplace.models import Order
from marketplace.services.base import ErrorCodes
from marketplace.tests.factories import (
    BankingDetailsFactory,
    CollectedOrderFactory,
    CompletedPaymentFactory,
    OrderFactory,
    RefundFactory,
)
from payment_system.infra.events.listeners import handle_order_collected
from payment_system.Tasks.payment_tasks import (
    process_refund_task,
    process_seller_payout_task,
    retry_failed_payouts_task,
    retry_failed_refunds_task,
)


class SellerPayoutTaskTest(TestCase):
    def setUp(self):
        container.configure_for_testing()

    def test_payout_task(self):
        order = CollectedOrderFactory()
        BankingDetailsFactory(seller=order.seller)

        result = process_seller_payout_task.apply(args=[str(order.id)]).get()

        self.assertTrue(result["success"])
        self.assertEqual(result["status"], "completed")
        self.assertEqual(result["amount"], "180.00")

    def test_permanent_error_is_not_retried(self):
        order = OrderFactory()

        result = process_seller_payout_task.apply(args=[str(order.id)]).get()

        self.assertFalse(result["success"])
        self.assertEqual(result["error"], ErrorCodes.PAYOUT_NOT_ALLOWED)

    def test_order_collected_listener_queues_payout(self):
        with patch("payment_system.Tasks.payment_tasks.process_seller_payout_task.delay") as mock_delay:
            handle_order_collected({"event_type": "order.collected", "payload": {"order_id": "abc"}})
        mock_delay.assert_called_once_with("abc")

    def test_retry_sweep(self):
        order = CollectedOrderFactory()
        BankingDetailsFactory(seller=order.seller)

        result = retry_failed_payouts_task.apply().get()

        self.assertEqual(result, {"success": True, "retried": 1, "completed": 1, "failed": 0})


class RefundTaskTest(TestCase):
    def setUp(self):
        container.configure_for_testing()

    def test_refund_task(self):
        payment = CompletedPaymentFactory()

        result = process_refund_task.apply(args=[str(payment.order_id), "commit_expired", None]).get()

        self.assertEqual(result, {"success": True, "order_id": str(payment.order_id), "status": "processed"})
        self.assertEqual(Order.objects.get(id=payment.order_id).status, "refunded")

    def test_refund_task_records_initiator(self):
        payment = CompletedPaymentFactory()

        process_refund_task.apply(args=[str(payment.order_id), "cancelled_by_buyer", str(payment.buyer.pk)])

        self.assertEqual(payment.order.refund.initiated_by, payment.buyer)

    def test_refund_task_reports_failure(self):
        result = process_refund_task.apply(args=[str(OrderFactory().id), "dispute"]).get()

        self.assertFalse(result["success"])
        self.assertEqual(result["error"], ErrorCodes.REFUND_NOT_ALLOWED)

    def test_refund_retry_sweep(self):
        RefundFactory(status="failed", attempts=1)

        result = retry_failed_refunds_task.apply().get()

        self.assertEqual(result, {"success": True, "retried": 1, "processed": 1, "failed": 0})
