"""
PayoutService - Seller Payout Management

Transfers the seller's share of a collected order from the platform balance
to the seller's bank account. Each order is paid out at most once: the
SellerPayout row is unique per order and is checked under a row lock.
"""

import time
from decimal import Decimal
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Exists, OuterRef
from django.utils import timezone

from infrastructure.payments import PaymentException, PaymentProviderInterface, to_minor_units
from marketplace.domain.events import publish_event
from marketplace.infra.observability.tracing import get_tracer
from marketplace.models import Order, OrderAuditLog
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from payment_system.domain.events.definitions import PayoutCompletedEvent, PayoutFailedEvent
from payment_system.domain.models import BankingDetails, SellerPayout
from payment_system.infra.observability.metrics import gateway_call_duration, payout_attempts_total, payout_volume_total

tracer = get_tracer(__name__)

TWO_PLACES = Decimal("0.01")
PAYABLE_STATUSES = ("collected", "completed")


def payout_reference(order_id, attempt: int = 0) -> str:
    reference = f"PAYOUT_{order_id}_{int(time.time())}"
    return f"{reference}_{attempt}" if attempt else reference


class PayoutService(BaseService):
    """
    Service for managing seller payouts.

    Responsibilities:
    - Execute exactly-once transfers per order
    - Apply transfer webhooks (success, failure, reversal)
    - Retry failed transfers
    """

    def __init__(self, provider: PaymentProviderInterface = None, notification_service=None):
        super().__init__()
        if provider is None:
            from infrastructure.container import container

            provider = container.payment()
        self.provider = provider
        self._notification_service = notification_service

    @property
    def notification_service(self):
        if self._notification_service is None:
            from infrastructure.container import container

            self._notification_service = container.notification_service()
        return self._notification_service

    @BaseService.log_performance
    def pay_seller(self, order_id: str) -> ServiceResult[Dict[str, Any]]:
        """
        Transfer the seller's share of a collected or completed order.

        Returns:
            ServiceResult with {"status", "payout"} where status is
            'completed', 'processing' or 'already_processed'
        """
        with tracer.start_as_current_span("payout_pay_seller") as span:
            span.set_attribute("order.id", str(order_id))

            with transaction.atomic():
                try:
                    order = Order.objects.select_for_update().select_related("seller").get(id=order_id)
                except (Order.DoesNotExist, ValueError, ValidationError):
                    return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")

                if order.status not in PAYABLE_STATUSES:
                    return service_err(
                        ErrorCodes.PAYOUT_NOT_ALLOWED, f"Cannot pay out order in status '{order.status}'"
                    )

                payout = SellerPayout.objects.select_for_update().filter(order=order).first()
                if payout is not None and payout.status == "completed":
                    self.logger.info(f"Payout for order {order.id} already completed ({payout.reference})")
                    return service_ok({"status": "already_processed", "payout": payout})
                if payout is not None and payout.status == "processing":
                    return service_ok({"status": "processing", "payout": payout})

                banking = BankingDetails.objects.filter(seller_id=order.seller_id).first()
                if banking is None or not (banking.recipient_code or banking.subaccount_code):
                    return service_err(ErrorCodes.PAYOUT_NOT_ALLOWED, "Seller has no active banking details")

                recipient_result = self._ensure_recipient(banking)
                if not recipient_result.ok:
                    return recipient_result
                recipient_code = recipient_result.value

                amounts = {
                    "gross_amount": order.subtotal.quantize(TWO_PLACES),
                    "platform_fee": order.platform_fee.quantize(TWO_PLACES),
                    "net_amount": order.seller_amount.quantize(TWO_PLACES),
                }
                if payout is None:
                    payout = SellerPayout.objects.create(
                        order=order,
                        seller=order.seller,
                        reference=payout_reference(order.id),
                        recipient_code=recipient_code,
                        currency=settings.CURRENCY,
                        **amounts,
                    )
                else:
                    # Same reference on every retry until the gateway confirms a failure
                    payout.recipient_code = recipient_code
                    payout.status = "pending"
                    for field, value in amounts.items():
                        setattr(payout, field, value)
                    payout.save()
                reference = payout.reference

                try:
                    with gateway_call_duration.labels(operation="transfer").time():
                        transfer = self.provider.create_transfer(
                            amount=to_minor_units(payout.net_amount),
                            recipient_code=recipient_code,
                            reference=reference,
                            reason=f"ReBooked sale payout for order {str(order.id)[:8]}",
                            currency=payout.currency,
                        )
                except PaymentException as e:
                    span.record_exception(e)
                    self._record_failure(order, payout, str(e))
                    return service_err(ErrorCodes.PAYMENT_PROVIDER_ERROR, f"Transfer failed: {e}")

                payout.transfer_code = transfer.transfer_code
                payout.failure_reason = ""
                if transfer.status == "success":
                    payout.status = "completed"
                    payout.completed_at = timezone.now()
                else:
                    payout.status = "processing"
                payout.save()

                order.payout_status = payout.status
                order.save(update_fields=["payout_status", "updated_at"])
                OrderAuditLog.record(
                    order,
                    "payout_completed" if payout.status == "completed" else "payout_initiated",
                    old_status=order.status,
                    reference=reference,
                    amount=str(payout.net_amount),
                )
                payout_attempts_total.labels(status=payout.status).inc()

                if payout.status == "completed":
                    self._on_completed(payout)

            span.set_attribute("payout.status", payout.status)
            self.logger.info(f"Payout {reference} for order {order.id}: {payout.status} R{payout.net_amount}")
            return service_ok({"status": payout.status, "payout": payout})

    def _ensure_recipient(self, banking: BankingDetails) -> ServiceResult[str]:
        if banking.recipient_code:
            return service_ok(banking.recipient_code)

        try:
            recipient = self.provider.create_transfer_recipient(
                account_name=banking.account_holder,
                account_number=banking.account_number,
                bank_code=banking.bank_code,
                currency=settings.CURRENCY,
            )
        except PaymentException as e:
            self.logger.error(f"Could not create transfer recipient for seller {banking.seller_id}: {e}")
            return service_err(ErrorCodes.PAYMENT_PROVIDER_ERROR, str(e))

        banking.recipient_code = recipient.recipient_code
        banking.save(update_fields=["recipient_code", "updated_at"])
        return service_ok(recipient.recipient_code)

    def _record_failure(self, order: Order, payout: SellerPayout, reason: str, status: str = "failed"):
        payout.status = status
        payout.failure_reason = reason
        payout.retry_count += 1
        payout.save(update_fields=["status", "failure_reason", "retry_count", "updated_at"])

        order.payout_status = "failed"
        order.save(update_fields=["payout_status", "updated_at"])
        OrderAuditLog.record(
            order, "payout_failed", old_status=order.status, reference=payout.reference, reason=reason
        )
        payout_attempts_total.labels(status=status).inc()
        publish_event(
            PayoutFailedEvent(
                order_id=str(order.id), seller_id=str(payout.seller_id), payout_id=str(payout.id), reason=reason
            )
        )
        self.logger.error(f"Payout {payout.reference} for order {order.id} {status}: {reason}")

    def _on_completed(self, payout: SellerPayout):
        payout_volume_total.labels(currency=payout.currency, status="completed").inc(float(payout.net_amount))
        publish_event(
            PayoutCompletedEvent(
                order_id=str(payout.order_id),
                seller_id=str(payout.seller_id),
                payout_id=str(payout.id),
                amount=payout.net_amount,
                currency=payout.currency,
            )
        )
        self.notification_service.notify(
            payout.seller,
            "payout_completed",
            "Payout Sent",
            f"R{payout.net_amount} for order #{str(payout.order_id)[:8]} has been sent to your bank account.",
            order=payout.order,
        )

        from payment_system.email_utils import send_payout_completed_email

        transaction.on_commit(lambda: send_payout_completed_email(payout))

    @BaseService.log_performance
    def apply_transfer_event(self, reference: str, outcome: str, reason: str = "") -> ServiceResult[SellerPayout]:
        """
        Apply a transfer webhook.

        Args:
            reference: Our payout reference
            outcome: 'success', 'failed' or 'reversed'
        """
        with transaction.atomic():
            payout = SellerPayout.objects.select_for_update().select_related("order").filter(reference=reference).first()
            if payout is None:
                return service_err(ErrorCodes.PAYMENT_NOT_FOUND, f"Payout {reference} not found")

            order = Order.objects.select_for_update().get(id=payout.order_id)

            if outcome == "success":
                if payout.status == "completed":
                    return service_ok(payout)
                payout.status = "completed"
                payout.completed_at = timezone.now()
                payout.failure_reason = ""
                payout.save(update_fields=["status", "completed_at", "failure_reason", "updated_at"])
                order.payout_status = "completed"
                order.save(update_fields=["payout_status", "updated_at"])
                OrderAuditLog.record(order, "payout_completed", old_status=order.status, reference=reference)
                payout_attempts_total.labels(status="completed").inc()
                self._on_completed(payout)
            else:
                status = "reversed" if outcome == "reversed" else "failed"
                self._record_failure(order, payout, reason or f"Transfer {outcome}", status=status)
                # Confirmed dead transfer, the next attempt goes out under a new reference
                payout.reference = payout_reference(order.id, payout.retry_count)
                payout.save(update_fields=["reference", "updated_at"])
                self.logger.info(f"Payout for order {order.id} will retry as {payout.reference}")

        return service_ok(payout)

    @BaseService.log_performance
    def retry_failed_payouts(self) -> ServiceResult[Dict[str, int]]:
        """
        Re-attempt failed transfers and pay out collected orders that never got one.

        The second sweep covers payout triggers lost between the collection
        event and the worker.
        """
        max_retries = settings.PAYOUT_MAX_RETRIES
        summary = {"retried": 0, "completed": 0, "failed": 0}

        failed_orders = SellerPayout.objects.filter(
            status__in=["failed", "reversed"], retry_count__lt=max_retries
        ).values_list("order_id", flat=True)
        missing_orders = (
            Order.objects.filter(status__in=PAYABLE_STATUSES)
            .exclude(payout_status="completed")
            .filter(~Exists(SellerPayout.objects.filter(order=OuterRef("pk"))))
            .values_list("id", flat=True)
        )

        for order_id in list(failed_orders) + list(missing_orders):
            summary["retried"] += 1
            result = self.pay_seller(str(order_id))
            if result.ok and result.value["status"] in ("completed", "already_processed", "processing"):
                summary["completed"] += 1
            else:
                summary["failed"] += 1

        return service_ok(summary)

    def list_payouts(self, seller=None, status: Optional[str] = None):
        queryset = SellerPayout.objects.select_related("order", "seller")
        if seller is not None:
            queryset = queryset.filter(seller=seller)
        if status:
            queryset = queryset.filter(status=status)
        return queryset.order_by("-created_at")
