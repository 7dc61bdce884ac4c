"""
Payment System Tasks Package

Celery task definitions for seller payouts and buyer refunds.
"""

# Import tasks to ensure they are registered with Celery
from .payment_tasks import (
    process_refund_task,
    process_seller_payout_task,
    retry_failed_payouts_task,
    retry_failed_refunds_task,
)

__all__ = [
    "process_seller_payout_task",
    "process_refund_task",
    "retry_failed_payouts_task",
    "retry_failed_refunds_task",
]
