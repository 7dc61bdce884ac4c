"""
PaymentService - Orchestration Layer for Payments

Orchestrates buyer payments through the gateway: initializing a hosted
checkout with the seller split, verifying the result and handing paid
orders to OrderService.
"""

import secrets
import time
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from infrastructure.payments import (
    PaymentException,
    PaymentProviderInterface,
    PaymentStatus,
    TransactionVerification,
    from_minor_units,
    to_minor_units,
)
from marketplace.domain.events import publish_event
from marketplace.infra.observability.tracing import get_tracer
from marketplace.models import Order
from marketplace.ordering.domain.services.lifecycle import queue_refund
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from payment_system.domain.events.definitions import PaymentSucceededEvent
from payment_system.domain.models import BankingDetails, Payment
from payment_system.infra.observability.metrics import gateway_call_duration, payment_volume_total, payments_total
from utils.rbac import is_admin

tracer = get_tracer(__name__)

MIN_AMOUNT_MINOR = 100

GATEWAY_STATUS_MAP = {
    PaymentStatus.FAILED: "failed",
    PaymentStatus.ABANDONED: "abandoned",
    PaymentStatus.REVERSED: "failed",
}


def generate_payment_reference() -> str:
    return f"payment_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


class PaymentService(BaseService):
    """
    Service for orchestrating payment operations.

    Responsibilities:
    - Initialize gateway transactions (with the seller subaccount split)
    - Verify transactions and mark orders paid
    - Publish payment events

    Dependencies:
    - PaymentProviderInterface: Paystack or the mock gateway
    - OrderService: Applies the paid state to the order
    """

    def __init__(self, provider: PaymentProviderInterface = None, order_service=None):
        super().__init__()
        if provider is None:
            from infrastructure.container import container

            provider = container.payment()
        self.provider = provider
        self._order_service = order_service

    @property
    def order_service(self):
        if self._order_service is None:
            from infrastructure.container import container

            self._order_service = container.order_service()
        return self._order_service

    @BaseService.log_performance
    def initialize_payment(self, order_id: str, user, callback_url: Optional[str] = None) -> ServiceResult[Dict]:
        """
        Start a hosted checkout for a pending order.

        Returns:
            ServiceResult with {"authorization_url", "access_code", "reference", "amount", "currency"}
        """
        try:
            order = Order.objects.select_related("buyer", "seller").get(id=order_id)
        except (Order.DoesNotExist, ValueError, ValidationError):
            return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")

        if order.buyer_id != user.pk:
            return service_err(ErrorCodes.NOT_ORDER_OWNER, "You do not own this order")

        if order.status != "pending":
            return service_err(ErrorCodes.INVALID_ORDER_STATE, f"Cannot pay for order in status '{order.status}'")

        amount = to_minor_units(order.total_amount)
        if amount < MIN_AMOUNT_MINOR:
            return service_err(ErrorCodes.INVALID_INPUT, "Payment amount must be at least R1.00")

        currency = settings.CURRENCY
        reference = generate_payment_reference()
        callback_url = callback_url or f"{settings.FRONTEND_URL}/checkout/success"
        metadata = {
            "order_id": str(order.id),
            "custom_fields": [
                {"display_name": "Order ID", "variable_name": "order_id", "value": str(order.id)},
                {"display_name": "Seller", "variable_name": "seller", "value": order.seller.display_name},
                {"display_name": "Books", "variable_name": "book_count", "value": order.items.count()},
            ],
        }

        banking = BankingDetails.objects.filter(seller_id=order.seller_id).first()
        subaccount = banking.subaccount_code if banking and banking.is_active else None
        platform_share = order.platform_fee + order.delivery_fee

        with tracer.start_as_current_span("payment_initialize") as span:
            span.set_attribute("order.id", str(order.id))
            span.set_attribute("payment.split", bool(subaccount))
            try:
                with gateway_call_duration.labels(operation="initialize").time():
                    init = self.provider.initialize_transaction(
                        email=order.buyer.email,
                        amount=amount,
                        reference=reference,
                        currency=currency,
                        callback_url=callback_url,
                        metadata=metadata,
                        subaccount=subaccount,
                        transaction_charge=to_minor_units(platform_share) if subaccount else None,
                        bearer="subaccount" if subaccount else None,
                    )
            except PaymentException as e:
                self.logger.error(f"Gateway rejected payment initialization for order {order.id}: {e}")
                span.record_exception(e)
                payments_total.labels(status="init_failed").inc()
                return service_err(ErrorCodes.PAYMENT_PROVIDER_ERROR, str(e))

        Payment.objects.create(
            order=order,
            buyer=user,
            reference=init.reference,
            access_code=init.access_code,
            authorization_url=init.authorization_url,
            amount=order.total_amount,
            currency=currency,
            subaccount_code=subaccount or "",
            platform_share=platform_share if subaccount else 0,
        )
        order.payment_reference = init.reference
        order.save(update_fields=["payment_reference", "updated_at"])
        payments_total.labels(status="initialized").inc()

        self.logger.info(f"Initialized payment {init.reference} for order {order.id}: R{order.total_amount}")
        return service_ok(
            {
                "authorization_url": init.authorization_url,
                "access_code": init.access_code,
                "reference": init.reference,
                "amount": amount,
                "currency": currency,
                "order_id": str(order.id),
            }
        )

    @BaseService.log_performance
    def verify_payment(self, reference: str, user=None) -> ServiceResult[Dict]:
        """
        Verify a transaction with the gateway and mark its order paid.

        Verifying an already completed payment returns the stored result
        without calling the gateway.
        """
        payment = Payment.objects.select_related("order").filter(reference=reference).first()
        if payment is None:
            return service_err(ErrorCodes.PAYMENT_NOT_FOUND, f"Payment {reference} not found")

        if user is not None and payment.buyer_id != user.pk and not is_admin(user):
            return service_err(ErrorCodes.NOT_ORDER_OWNER, "You do not own this payment")

        if payment.status in ("completed", "refunded"):
            return service_ok(self._summary(payment, already_verified=True))

        try:
            with gateway_call_duration.labels(operation="verify").time():
                verification = self.provider.verify_transaction(reference)
        except PaymentException as e:
            self.logger.error(f"Gateway verification of {reference} failed: {e}")
            return service_err(ErrorCodes.PAYMENT_PROVIDER_ERROR, str(e))

        return self.apply_verification(payment.id, verification)

    def apply_verification(self, payment_id, verification: TransactionVerification) -> ServiceResult[Dict]:
        with transaction.atomic():
            payment = Payment.objects.select_for_update().select_related("order").get(id=payment_id)
            if payment.status == "completed":
                return service_ok(self._summary(payment, already_verified=True))

            payment.gateway_response = verification.raw
            payment.channel = verification.channel or ""
            payment.verified_at = timezone.now()

            if not verification.succeeded:
                payment.status = GATEWAY_STATUS_MAP.get(verification.status, "pending")
                payment.save(update_fields=["status", "gateway_response", "channel", "verified_at", "updated_at"])
                payments_total.labels(status=payment.status).inc()
                if payment.status == "pending":
                    return service_ok(self._summary(payment))
                return service_err(ErrorCodes.PAYMENT_FAILED, f"Payment {verification.status.value}")

            paid_amount = from_minor_units(verification.amount)
            if paid_amount < payment.order.total_amount:
                payment.status = "failed"
                payment.save(update_fields=["status", "gateway_response", "channel", "verified_at", "updated_at"])
                payments_total.labels(status="amount_mismatch").inc()
                self.logger.error(
                    f"Amount mismatch on {payment.reference}: paid R{paid_amount}, "
                    f"order total R{payment.order.total_amount}"
                )
                return service_err(
                    ErrorCodes.AMOUNT_MISMATCH,
                    f"Paid amount R{paid_amount} is less than the order total R{payment.order.total_amount}",
                )

            paid_at = parse_datetime(verification.paid_at) if verification.paid_at else None
            payment.status = "completed"
            payment.paid_at = paid_at or timezone.now()
            payment.save(
                update_fields=["status", "paid_at", "gateway_response", "channel", "verified_at", "updated_at"]
            )

            order_result = self.order_service.confirm_payment(payment.order_id, payment.reference, payment.paid_at)
            if not order_result.ok:
                order = payment.order
                order.refresh_from_db()
                if order.status == "cancelled":
                    # Money arrived for an order that timed out; give it back
                    self.logger.warning(f"Payment {payment.reference} completed for cancelled order {order.id}")
                    order.payment_status = "paid"
                    order.save(update_fields=["payment_status", "updated_at"])
                    queue_refund(order, "payment_after_cancellation")
                else:
                    return order_result

            publish_event(
                PaymentSucceededEvent(
                    order_id=str(payment.order_id),
                    reference=payment.reference,
                    amount=payment.amount,
                    currency=payment.currency,
                )
            )

        payments_total.labels(status="completed").inc()
        payment_volume_total.labels(currency=payment.currency, status="completed").inc(float(payment.amount))
        payment.order.refresh_from_db()
        return service_ok(self._summary(payment))

    @staticmethod
    def _summary(payment: Payment, already_verified: bool = False) -> Dict[str, Any]:
        order = payment.order
        return {
            "reference": payment.reference,
            "status": payment.status,
            "amount": str(payment.amount),
            "currency": payment.currency,
            "order_id": str(order.id),
            "order_status": order.status,
            "commit_deadline": order.commit_deadline.isoformat() if order.commit_deadline else None,
            "paid_at": payment.paid_at.isoformat() if payment.paid_at else None,
            "already_verified": already_verified,
        }
