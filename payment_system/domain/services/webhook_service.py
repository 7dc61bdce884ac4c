"""
WebhookService - Gateway notifications

Verifies the HMAC signature of a gateway notification, records it once per
(event, reference) and dispatches it to the owning service. Redeliveries
of an already recorded event are acknowledged without being reprocessed.
"""

from typing import Any, Dict

from django.db import IntegrityError, transaction
from django.utils import timezone

from infrastructure.payments import InvalidSignatureException, PaymentException, PaymentProviderInterface
from marketplace.infra.observability.tracing import get_tracer
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from payment_system.domain.models import WebhookLog
from payment_system.infra.observability.metrics import webhooks_received_total

tracer = get_tracer(__name__)

TRANSFER_OUTCOMES = {
    "transfer.success": "success",
    "transfer.failed": "failed",
    "transfer.reversed": "reversed",
}

REFUND_OUTCOMES = {
    "refund.processed": "processed",
    "refund.failed": "failed",
}


class WebhookService(BaseService):
    """Service for verified gateway webhooks."""

    def __init__(
        self,
        provider: PaymentProviderInterface = None,
        payment_service=None,
        payout_service=None,
        refund_service=None,
        banking_service=None,
    ):
        super().__init__()
        from infrastructure.container import container

        self.provider = provider or container.payment()
        self.payment_service = payment_service or container.payment_service()
        self.payout_service = payout_service or container.payout_service()
        self.refund_service = refund_service or container.refund_service()
        self.banking_service = banking_service or container.banking_service()

    @BaseService.log_performance
    def handle(self, payload: bytes, signature: str) -> ServiceResult[Dict[str, Any]]:
        """
        Verify and process a raw webhook body.

        Returns:
            ServiceResult with {"event", "result"} where result is
            'processed', 'duplicate', 'ignored' or 'failed'
        """
        try:
            event = self.provider.verify_webhook(payload, signature or "")
        except InvalidSignatureException:
            webhooks_received_total.labels(event="unknown", result="invalid_signature").inc()
            return service_err(ErrorCodes.INVALID_SIGNATURE, "Invalid webhook signature")
        except PaymentException as e:
            webhooks_received_total.labels(event="unknown", result="invalid_payload").inc()
            return service_err(ErrorCodes.INVALID_INPUT, str(e))

        reference = self._reference_for(event.event_type, event.data) or event.reference

        with tracer.start_as_current_span("webhook_handle") as span:
            span.set_attribute("webhook.event", event.event_type)
            span.set_attribute("webhook.reference", reference)

            try:
                with transaction.atomic():
                    log, created = WebhookLog.objects.get_or_create(
                        event_type=event.event_type,
                        reference=reference,
                        defaults={"payload": event.data},
                    )
            except IntegrityError:
                created = False
                log = None

            if not created and (log is None or log.processed):
                self.logger.info(f"Duplicate webhook {event.event_type} {reference}")
                webhooks_received_total.labels(event=event.event_type, result="duplicate").inc()
                return service_ok({"event": event.event_type, "result": "duplicate"})

            result = self._dispatch(event.event_type, reference, event.data)
            if result is None:
                outcome = "ignored"
            elif result.ok:
                outcome = "processed"
            else:
                outcome = "failed"
                span.set_attribute("webhook.error", result.error_detail)

            log.processed = outcome != "failed"
            log.processing_error = "" if result is None or result.ok else result.error_detail
            log.processed_at = timezone.now()
            log.save(update_fields=["processed", "processing_error", "processed_at"])

        webhooks_received_total.labels(event=event.event_type, result=outcome).inc()
        self.logger.info(f"Webhook {event.event_type} {reference}: {outcome}")
        return service_ok({"event": event.event_type, "result": outcome})

    @staticmethod
    def _reference_for(event_type: str, data: Dict[str, Any]) -> str:
        if event_type in REFUND_OUTCOMES:
            return str(data.get("transaction_reference") or data.get("refund_reference") or data.get("id") or "")
        if event_type.startswith("subaccount."):
            return str(data.get("subaccount_code") or "")
        return str(data.get("reference") or "")

    def _dispatch(self, event_type: str, reference: str, data: Dict[str, Any]):
        if event_type == "charge.success":
            return self.payment_service.verify_payment(reference)

        if event_type in TRANSFER_OUTCOMES:
            reason = data.get("reason") or data.get("failures") or ""
            return self.payout_service.apply_transfer_event(reference, TRANSFER_OUTCOMES[event_type], str(reason))

        if event_type in REFUND_OUTCOMES:
            return self.refund_service.apply_refund_event(reference, REFUND_OUTCOMES[event_type], data)

        if event_type == "subaccount.updated":
            return self.banking_service.apply_subaccount_event(data)

        self.logger.info(f"Ignoring unhandled webhook event {event_type}")
        return None
