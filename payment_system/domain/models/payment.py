import uuid

from django.contrib.auth import get_user_model
from django.db import models


User = get_user_model()


class Payment(models.Model):
    """
    A buyer payment attempt through the gateway.

    One order can have several attempts (abandoned checkout, retry); at most
    one reaches ``completed``.
    """

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("completed", "Completed"),
        ("failed", "Failed"),
        ("abandoned", "Abandoned"),
        ("refunded", "Refunded"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey("marketplace.Order", on_delete=models.CASCADE, related_name="payments")
    buyer = models.ForeignKey(User, on_delete=models.CASCADE, related_name="payments")

    reference = models.CharField(max_length=100, unique=True, help_text="Gateway transaction reference")
    access_code = models.CharField(max_length=100, blank=True)
    authorization_url = models.URLField(max_length=2000, blank=True)

    amount = models.DecimalField(max_digits=10, decimal_places=2, help_text="Amount charged in major units")
    currency = models.CharField(max_length=3, default="ZAR")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")

    # Split payment
    subaccount_code = models.CharField(max_length=100, blank=True)
    platform_share = models.DecimalField(
        max_digits=10, decimal_places=2, default=0, help_text="Platform fee plus delivery kept by the platform"
    )

    channel = models.CharField(max_length=30, blank=True)
    gateway_response = models.JSONField(default=dict, blank=True)

    paid_at = models.DateTimeField(null=True, blank=True)
    verified_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "payment_system"
        db_table = "payments"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["order", "status"], name="payment_order_status_idx"),
            models.Index(fields=["status", "created_at"], name="payment_status_created_idx"),
        ]

    def __str__(self):
        return f"Payment {self.reference} ({self.status})"
