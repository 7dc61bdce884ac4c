"""
Marketplace Celery Tasks

Periodic jobs driving the order commit workflow:
- Expire paid orders the seller never committed to (48 hour window)
- Remind sellers before the window closes
- Remind sellers of upcoming courier collections
- Cancel checkouts that were never paid
"""

import logging

from celery import shared_task


logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, queue="marketplace_tasks")
def expire_overdue_commits_task(self):
    """
    Cancel and refund every paid order past its commit deadline.

    Returns:
        dict: {"processed", "expired", "errors"}
    """
    from infrastructure.container import container

    try:
        result = container.commit_service().expire_overdue_commits()
    except Exception as e:
        logger.error(f"Error in commit expiry task: {e}", exc_info=True)
        raise self.retry(exc=e, countdown=60 * (2**self.request.retries))

    summary = result.value
    if summary["errors"]:
        logger.warning(f"Commit expiry finished with {len(summary['errors'])} errors")
    return {"success": True, **summary}


@shared_task(bind=True, max_retries=3, queue="marketplace_tasks")
def send_commit_reminders_task(self):
    from infrastructure.container import container

    try:
        sent = container.commit_service().send_commit_reminders().value
    except Exception as e:
        logger.error(f"Error sending commit reminders: {e}", exc_info=True)
        raise self.retry(exc=e, countdown=60 * (2**self.request.retries))

    logger.info(f"Sent {sent} commit reminders")
    return {"success": True, "sent": sent}


@shared_task(bind=True, max_retries=3, queue="marketplace_tasks")
def send_collection_reminders_task(self):
    from infrastructure.container import container

    try:
        sent = container.commit_service().send_collection_reminders().value
    except Exception as e:
        logger.error(f"Error sending collection reminders: {e}", exc_info=True)
        raise self.retry(exc=e, countdown=60 * (2**self.request.retries))

    logger.info(f"Sent {sent} collection reminders")
    return {"success": True, "sent": sent}


@shared_task(bind=True, max_retries=3, queue="marketplace_tasks")
def cancel_abandoned_checkouts_task(self):
    """Cancel pending orders older than the payment timeout and release their books."""
    from infrastructure.container import container

    try:
        cancelled = container.order_service().cancel_abandoned_checkouts().value
    except Exception as e:
        logger.error(f"Error cancelling abandoned checkouts: {e}", exc_info=True)
        raise self.retry(exc=e, countdown=60 * (2**self.request.retries))

    logger.info(f"Cancelled {cancelled} abandoned checkouts")
    return {"success": True, "cancelled": cancelled}
