import uuid

from django.contrib.auth import get_user_model
from django.db import models

User = get_user_model()


class Notification(models.Model):
    TYPE_CHOICES = [
        ("new_order", "New Order"),
        ("payment_confirmed", "Payment Confirmed"),
        ("sale_committed", "Sale Committed"),
        ("commitment_confirmed", "Commitment Confirmed"),
        ("commit_declined", "Commit Declined"),
        ("commit_reminder", "Commit Reminder"),
        ("commit_expired_refund", "Commit Expired - Refund"),
        ("commit_expired_penalty", "Commit Expired - Seller"),
        ("collection_reminder", "Collection Reminder"),
        ("order_collected", "Order Collected"),
        ("order_completed", "Order Completed"),
        ("order_cancelled", "Order Cancelled"),
        ("refund_processed", "Refund Processed"),
        ("payout_completed", "Payout Completed"),
        ("payout_failed", "Payout Failed"),
        ("system", "System"),
    ]

    PRIORITY_CHOICES = [
        ("low", "Low"),
        ("normal", "Normal"),
        ("high", "High"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="notifications")
    type = models.CharField(max_length=40, choices=TYPE_CHOICES)
    title = models.CharField(max_length=200)
    message = models.TextField()
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default="normal")
    order = models.ForeignKey(
        "marketplace.Order", on_delete=models.SET_NULL, null=True, blank=True, related_name="notifications"
    )
    read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        app_label = "marketplace"
        indexes = [
            models.Index(fields=["user", "read", "-created_at"], name="notif_user_read_idx"),
            models.Index(fields=["order", "type"], name="notif_order_type_idx"),
        ]

    def __str__(self):
        return f"{self.type} for {self.user_id}"
