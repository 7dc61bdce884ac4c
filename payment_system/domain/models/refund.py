import uuid

from django.contrib.auth import get_user_model
from django.db import models


User = get_user_model()


class Refund(models.Model):
    """
    Buyer refund for an order.

    Rows left in ``failed`` with ``requires_manual_processing`` are the
    record of refunds the gateway or database could not complete.
    """

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("processed", "Processed"),
        ("failed", "Failed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.OneToOneField("marketplace.Order", on_delete=models.PROTECT, related_name="refund")
    payment = models.ForeignKey("payment_system.Payment", on_delete=models.PROTECT, related_name="refunds")

    amount = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, default="ZAR")
    reason = models.CharField(max_length=255)
    initiated_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    gateway_refund_id = models.CharField(max_length=100, blank=True)
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True)
    requires_manual_processing = models.BooleanField(default=False)

    processed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "payment_system"
        db_table = "refunds"
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["status", "attempts"], name="refund_status_attempts_idx")]

    def __str__(self):
        return f"Refund {self.amount} for order {str(self.order_id)[:8]} ({self.status})"
