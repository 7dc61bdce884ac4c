import uuid

from django.contrib.auth import get_user_model
from django.db import models


User = get_user_model()


class SellerPayout(models.Model):
    """
    Transfer of the seller's share of one order.

    The one-to-one link to the order makes a second payout for the same
    order impossible. Retries reuse this row and its reference; a new
    reference is minted only after the gateway reports the transfer failed
    or reversed.
    """

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("processing", "Processing"),
        ("completed", "Completed"),
        ("failed", "Failed"),
        ("reversed", "Reversed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.OneToOneField("marketplace.Order", on_delete=models.PROTECT, related_name="payout")
    seller = models.ForeignKey(User, on_delete=models.CASCADE, related_name="payouts")

    gross_amount = models.DecimalField(max_digits=10, decimal_places=2, help_text="Book subtotal")
    platform_fee = models.DecimalField(max_digits=10, decimal_places=2)
    net_amount = models.DecimalField(max_digits=10, decimal_places=2, help_text="Amount transferred to the seller")
    currency = models.CharField(max_length=3, default="ZAR")

    reference = models.CharField(max_length=100, unique=True)
    transfer_code = models.CharField(max_length=100, blank=True)
    recipient_code = models.CharField(max_length=100, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    failure_reason = models.TextField(blank=True)
    retry_count = models.PositiveIntegerField(default=0)

    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "payment_system"
        db_table = "seller_payouts"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["seller", "status"], name="payout_seller_status_idx"),
            models.Index(fields=["status", "retry_count"], name="payout_status_retry_idx"),
        ]

    def __str__(self):
        return f"Payout {self.reference} ({self.status})"
