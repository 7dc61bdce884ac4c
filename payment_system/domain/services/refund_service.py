"""
RefundService - Buyer refunds

Refunds a completed buyer payment through the gateway. The gateway call is
retried with exponential backoff; a refund that still fails is kept as a
``Refund`` row flagged for manual processing and swept again later.
"""

from typing import Any, Dict

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from infrastructure.payments import PaymentException, PaymentProviderInterface, RefundResult, to_minor_units
from marketplace.domain.events import OrderRefundedEvent, publish_event
from marketplace.models import Order, OrderAuditLog
from marketplace.ordering.domain.services.lifecycle import release_books, transition
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from payment_system.domain.models import Payment, Refund
from payment_system.infra.observability.metrics import gateway_call_duration, refund_volume_total, refunds_total

REFUND_ATTEMPTS = 3
REFUNDABLE_STATUSES = ("paid", "committed", "collected", "cancelled")


class RefundService(BaseService):
    """
    Service for buyer refunds.

    Args:
        provider: Payment gateway (injected)
        notification_service: In-app notifications (injected)
        retry_wait: tenacity wait strategy between gateway attempts
    """

    def __init__(self, provider: PaymentProviderInterface = None, notification_service=None, retry_wait=None):
        super().__init__()
        if provider is None:
            from infrastructure.container import container

            provider = container.payment()
        self.provider = provider
        self._notification_service = notification_service
        self.retry_wait = retry_wait or wait_exponential(multiplier=2)

    @property
    def notification_service(self):
        if self._notification_service is None:
            from infrastructure.container import container

            self._notification_service = container.notification_service()
        return self._notification_service

    @BaseService.log_performance
    def process_refund(self, order_id: str, reason: str, initiated_by=None) -> ServiceResult[Dict[str, Any]]:
        """
        Refund the order's completed payment in full.

        Returns:
            ServiceResult with {"status", "refund"} where status is
            'processed' or 'already_refunded'
        """
        with transaction.atomic():
            try:
                order = Order.objects.select_for_update().get(id=order_id)
            except (Order.DoesNotExist, ValueError, ValidationError):
                return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")

            existing = Refund.objects.filter(order=order).first()
            if order.status == "refunded" or (existing is not None and existing.status == "processed"):
                return service_ok({"status": "already_refunded", "refund": existing})

            if order.status not in REFUNDABLE_STATUSES:
                return service_err(ErrorCodes.REFUND_NOT_ALLOWED, f"Cannot refund order in status '{order.status}'")

            payment = order.payments.filter(status="completed").order_by("-paid_at").first()
            if payment is None:
                return service_err(ErrorCodes.REFUND_NOT_ALLOWED, "Order has no completed payment to refund")

            refund, _ = Refund.objects.get_or_create(
                order=order,
                defaults={
                    "payment": payment,
                    "amount": payment.amount,
                    "currency": payment.currency,
                    "reason": reason[:255],
                    "initiated_by": initiated_by,
                },
            )
            refund.status = "pending"
            refund.save(update_fields=["status", "updated_at"])
            order.refund_status = "pending"
            order.save(update_fields=["refund_status", "updated_at"])

        # Gateway call runs outside the row lock
        try:
            result = self._call_gateway(refund, payment)
        except PaymentException as e:
            self._record_failure(refund.id, str(e))
            return service_err(ErrorCodes.PAYMENT_PROVIDER_ERROR, f"Refund failed: {e}")

        return self._complete(refund.id, result)

    def _call_gateway(self, refund: Refund, payment: Payment) -> RefundResult:
        attempts = 0
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(REFUND_ATTEMPTS),
                wait=self.retry_wait,
                retry=retry_if_exception_type(PaymentException),
                reraise=True,
            ):
                with attempt:
                    attempts += 1
                    with gateway_call_duration.labels(operation="refund").time():
                        return self.provider.create_refund(
                            transaction_reference=payment.reference,
                            amount=to_minor_units(refund.amount),
                            currency=refund.currency,
                            customer_note=f"Refund for order #{str(refund.order_id)[:8]}",
                            merchant_note=refund.reason,
                        )
        finally:
            Refund.objects.filter(id=refund.id).update(attempts=refund.attempts + attempts)

    def _record_failure(self, refund_id, error: str):
        with transaction.atomic():
            refund = Refund.objects.select_for_update().get(id=refund_id)
            refund.status = "failed"
            refund.last_error = error
            refund.requires_manual_processing = True
            refund.save(update_fields=["status", "last_error", "requires_manual_processing", "updated_at"])

            order = Order.objects.select_for_update().get(id=refund.order_id)
            order.refund_status = "failed"
            order.payment_status = "refund_failed"
            order.save(update_fields=["refund_status", "payment_status", "updated_at"])
            OrderAuditLog.record(order, "refund_failed", old_status=order.status, error=error, attempts=refund.attempts)

        refunds_total.labels(status="failed").inc()
        self.logger.error(f"Refund for order {refund.order_id} failed after {refund.attempts} attempts: {error}")

    def _complete(self, refund_id, result: RefundResult) -> ServiceResult[Dict[str, Any]]:
        with transaction.atomic():
            refund = Refund.objects.select_for_update().select_related("payment").get(id=refund_id)
            order = Order.objects.select_for_update().select_related("buyer", "seller").get(id=refund.order_id)
            if refund.status == "processed":
                return service_ok({"status": "already_refunded", "refund": refund})

            now = timezone.now()
            refund.status = "processed"
            refund.gateway_refund_id = result.refund_id
            refund.processed_at = now
            refund.requires_manual_processing = False
            refund.last_error = ""
            refund.save()

            payment = refund.payment
            payment.status = "refunded"
            payment.refunded_at = now
            payment.save(update_fields=["status", "refunded_at", "updated_at"])

            shipped = order.collected_at is not None
            # Cancellation already released the books
            was_cancelled = order.status == "cancelled"
            seller_involved = order.was_committed or shipped
            order.refund_status = "processed"
            order.refund_amount = refund.amount
            order.refund_reference = result.refund_id or payment.reference
            order.refunded_at = now
            order.payment_status = "refunded"
            refund_fields = ["refund_status", "refund_amount", "refund_reference", "refunded_at", "payment_status"]
            if order.status != "refunded":
                transition(
                    order,
                    "refunded",
                    "refunded",
                    actor=refund.initiated_by,
                    update_fields=refund_fields,
                    amount=str(refund.amount),
                    reason=refund.reason,
                    already_refunded=result.already_refunded,
                )
            else:
                order.save(update_fields=refund_fields + ["updated_at"])

            if not shipped and not was_cancelled:
                release_books(order)

            self.notification_service.notify(
                order.buyer,
                "refund_processed",
                "Refund Processed",
                f"Your refund of R{refund.amount} for order #{str(order.id)[:8]} has been processed.",
                order=order,
            )
            if seller_involved:
                self.notification_service.notify(
                    order.seller,
                    "refund_processed",
                    "Order Refunded",
                    f"Order #{str(order.id)[:8]} was refunded to the buyer.",
                    order=order,
                )
            publish_event(OrderRefundedEvent(order_id=str(order.id), amount=refund.amount, reason=refund.reason))

            from payment_system.email_utils import send_refund_processed_email

            amount = refund.amount
            transaction.on_commit(lambda: send_refund_processed_email(order, amount))

        refunds_total.labels(status="processed").inc()
        refund_volume_total.labels(currency=refund.currency).inc(float(refund.amount))
        self.logger.info(f"Refunded R{refund.amount} for order {order.id}")
        return service_ok({"status": "processed", "refund": refund})

    @BaseService.log_performance
    def apply_refund_event(self, transaction_reference: str, status: str, data=None) -> ServiceResult[Any]:
        """Apply a refund.processed / refund.failed webhook."""
        refund = Refund.objects.filter(payment__reference=transaction_reference).first()
        if refund is None:
            return service_err(ErrorCodes.PAYMENT_NOT_FOUND, f"No refund for transaction {transaction_reference}")

        data = data or {}
        if status == "processed":
            return self._complete(
                refund.id,
                RefundResult(
                    refund_id=str(data.get("refund_reference") or data.get("id") or ""),
                    transaction_reference=transaction_reference,
                    amount=to_minor_units(refund.amount),
                    status="processed",
                ),
            )

        self._record_failure(refund.id, str(data.get("message") or "Refund failed at the gateway"))
        return service_ok({"status": "failed", "refund": refund})

    @BaseService.log_performance
    def retry_failed_refunds(self) -> ServiceResult[Dict[str, int]]:
        summary = {"retried": 0, "processed": 0, "failed": 0}
        refunds = Refund.objects.filter(status="failed", attempts__lt=settings.REFUND_MAX_ATTEMPTS).values_list(
            "order_id", "reason"
        )
        for order_id, reason in list(refunds):
            summary["retried"] += 1
            result = self.process_refund(str(order_id), reason)
            summary["processed" if result.ok else "failed"] += 1
        return service_ok(summary)

    def list_refunds(self, status=None):
        queryset = Refund.objects.select_related("order", "payment", "initiated_by")
        if status:
            queryset = queryset.filter(status=status)
        return queryset.order_by("-created_at")

