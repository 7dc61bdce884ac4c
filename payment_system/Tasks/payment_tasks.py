"""
Payment System Celery Tasks

Handles money movement that must not block a request:
- Seller payout after an order is collected
- Buyer refunds after expiry or cancellation
- Periodic sweeps re-attempting failed payouts and refunds
"""

import logging

from celery import shared_task

from marketplace.services.base import ErrorCodes


logger = logging.getLogger(__name__)

# Errors a later attempt cannot fix
PERMANENT_ERRORS = {
    ErrorCodes.ORDER_NOT_FOUND,
    ErrorCodes.PAYOUT_NOT_ALLOWED,
    ErrorCodes.REFUND_NOT_ALLOWED,
}


@shared_task(bind=True, max_retries=3, queue="payment_tasks")
def process_seller_payout_task(self, order_id):
    """
    Transfer the seller's share of a collected order.

    Args:
        order_id (str): The UUID of the collected order

    Returns:
        dict: Payout result with the payout status or the error code
    """
    from infrastructure.container import container

    logger.info(f"Processing seller payout for order {order_id}")
    result = container.payout_service().pay_seller(order_id)

    if result.ok:
        payout = result.value["payout"]
        return {
            "success": True,
            "order_id": order_id,
            "status": result.value["status"],
            "reference": payout.reference,
            "amount": str(payout.net_amount),
        }

    if result.error not in PERMANENT_ERRORS and self.request.retries < self.max_retries:
        logger.warning(f"Payout for order {order_id} failed ({result.error_detail}), retrying")
        raise self.retry(countdown=60 * (2**self.request.retries))

    logger.error(f"Payout for order {order_id} failed: {result.error_detail}")
    return {"success": False, "order_id": order_id, "error": result.error, "detail": result.error_detail}


@shared_task(bind=True, max_retries=3, queue="payment_tasks")
def process_refund_task(self, order_id, reason, initiated_by_id=None):
    """
    Refund the buyer of an order in full.

    Gateway errors are already retried inside the refund service and leave the
    refund flagged for manual processing, so only unexpected failures are
    retried here.
    """
    from django.contrib.auth import get_user_model

    from infrastructure.container import container

    initiated_by = None
    if initiated_by_id is not None:
        initiated_by = get_user_model().objects.filter(pk=initiated_by_id).first()

    logger.info(f"Processing refund for order {order_id} ({reason})")
    try:
        result = container.refund_service().process_refund(order_id, reason, initiated_by=initiated_by)
    except Exception as e:
        logger.error(f"Refund task for order {order_id} raised: {e}", exc_info=True)
        raise self.retry(exc=e, countdown=60 * (2**self.request.retries))

    if result.ok:
        return {"success": True, "order_id": order_id, "status": result.value["status"]}

    logger.error(f"Refund for order {order_id} failed: {result.error_detail}")
    return {"success": False, "order_id": order_id, "error": result.error, "detail": result.error_detail}


@shared_task(bind=True, max_retries=3, queue="payment_tasks")
def retry_failed_payouts_task(self):
    """Periodic sweep over failed transfers and collected orders without a payout."""
    from infrastructure.container import container

    try:
        summary = container.payout_service().retry_failed_payouts().value
    except Exception as e:
        logger.error(f"Error in payout retry sweep: {e}", exc_info=True)
        raise self.retry(exc=e, countdown=60 * (2**self.request.retries))

    logger.info(
        f"Payout retry sweep: retried {summary['retried']}, "
        f"completed {summary['completed']}, failed {summary['failed']}"
    )
    return {"success": True, **summary}


@shared_task(bind=True, max_retries=3, queue="payment_tasks")
def retry_failed_refunds_task(self):
    """Periodic sweep over refunds flagged for manual processing."""
    from infrastructure.container import container

    try:
        summary = container.refund_service().retry_failed_refunds().value
    except Exception as e:
        logger.error(f"Error in refund retry sweep: {e}", exc_info=True)
        raise self.retry(exc=e, countdown=60 * (2**self.request.retries))

    logger.info(
        f"Refund retry sweep: retried {summary['retried']}, "
        f"processed {summary['processed']}, failed {summary['failed']}"
    )
    return {"success": True, **summary}
