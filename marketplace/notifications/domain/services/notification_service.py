"""
NotificationService - In-app notifications

Creates notification rows for buyers and sellers as orders move through the
commit workflow, and serves the notification inbox.
"""

from typing import Dict, Optional

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from marketplace.domain.events import NotificationCreatedEvent, publish_event
from marketplace.infra.observability.metrics import notifications_created_total
from marketplace.notifications.domain.models.notification import Notification
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok


class NotificationService(BaseService):
    """
    Service for creating and reading notifications.

    ``notify`` never fails the caller: a notification that cannot be stored is
    logged and dropped so the order operation that triggered it still commits.
    """

    def notify(
        self,
        user,
        notification_type: str,
        title: str,
        message: str,
        order=None,
        priority: str = "normal",
    ) -> Optional[Notification]:
        try:
            # Savepoint so a failed insert does not poison the caller's transaction
            with transaction.atomic():
                notification = Notification.objects.create(
                    user=user,
                    type=notification_type,
                    title=title,
                    message=message,
                    order=order,
                    priority=priority,
                )
        except DatabaseError as e:
            self.logger.error(f"Failed to create {notification_type} notification for user {user.pk}: {e}")
            return None

        notifications_created_total.labels(type=notification_type).inc()
        publish_event(
            NotificationCreatedEvent(
                notification_id=str(notification.id),
                user_id=str(user.pk),
                notification_type=notification_type,
                title=title,
            )
        )
        self.logger.debug(f"Notification {notification_type} created for user {user.pk}")
        return notification

    @BaseService.log_performance
    def list_notifications(
        self, user, unread_only: bool = False, page: int = 1, page_size: int = 20
    ) -> ServiceResult[Dict]:
        try:
            queryset = Notification.objects.filter(user=user).select_related("order")
            if unread_only:
                queryset = queryset.filter(read=False)

            offset = (page - 1) * page_size
            total_count = queryset.count()
            notifications = list(queryset[offset : offset + page_size])

            return service_ok(
                {
                    "results": notifications,
                    "count": total_count,
                    "unread_count": Notification.objects.filter(user=user, read=False).count(),
                    "page": page,
                    "page_size": page_size,
                    "num_pages": (total_count + page_size - 1) // page_size,
                }
            )
        except Exception as e:
            self.logger.error(f"Error listing notifications for user {user.pk}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def mark_read(self, user, notification_id: str) -> ServiceResult[Notification]:
        try:
            notification = Notification.objects.get(id=notification_id, user=user)
        except (Notification.DoesNotExist, ValueError, ValidationError):
            return service_err(ErrorCodes.NOTIFICATION_NOT_FOUND, f"Notification {notification_id} not found")

        if not notification.read:
            notification.read = True
            notification.read_at = timezone.now()
            notification.save(update_fields=["read", "read_at"])

        return service_ok(notification)

    @BaseService.log_performance
    def mark_all_read(self, user) -> ServiceResult[int]:
        updated = Notification.objects.filter(user=user, read=False).update(read=True, read_at=timezone.now())
        self.logger.info(f"Marked {updated} notifications read for user {user.pk}")
        return service_ok(updated)

    def unread_count(self, user) -> ServiceResult[int]:
        return service_ok(Notification.objects.filter(user=user, read=False).count())
