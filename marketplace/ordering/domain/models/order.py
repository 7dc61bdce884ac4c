import uuid
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.db import models
from django.utils import timezone

from marketplace.catalog.domain.models.book import Book

User = get_user_model()


class Order(models.Model):
    STATUS_CHOICES = [
        ("pending", "Pending Payment"),
        ("paid", "Paid - Awaiting Seller Commit"),
        ("committed", "Committed by Seller"),
        ("collected", "Collected by Courier"),
        ("completed", "Completed"),
        ("cancelled", "Cancelled"),
        ("refunded", "Refunded"),
    ]

    PAYMENT_STATUS_CHOICES = [
        ("pending", "Pending"),
        ("paid", "Paid"),
        ("failed", "Failed"),
        ("refunded", "Refunded"),
        ("refund_failed", "Refund Failed"),
    ]

    PAYOUT_STATUS_CHOICES = [
        ("not_due", "Not Due"),
        ("pending", "Pending"),
        ("processing", "Processing"),
        ("completed", "Completed"),
        ("failed", "Failed"),
    ]

    REFUND_STATUS_CHOICES = [
        ("", "None"),
        ("pending", "Pending"),
        ("processed", "Processed"),
        ("failed", "Failed"),
    ]

    # Allowed status moves; anything else is rejected by the services
    TRANSITIONS = {
        "pending": {"paid", "cancelled"},
        "paid": {"committed", "cancelled", "refunded"},
        "committed": {"collected", "cancelled", "refunded"},
        "collected": {"completed", "refunded"},
        "completed": {"refunded"},
        "cancelled": {"refunded"},
        "refunded": set(),
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    buyer = models.ForeignKey(User, on_delete=models.CASCADE, related_name="orders")
    seller = models.ForeignKey(User, on_delete=models.CASCADE, related_name="sales")

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default="pending")
    payout_status = models.CharField(max_length=20, choices=PAYOUT_STATUS_CHOICES, default="not_due")

    # Pricing (ZAR)
    subtotal = models.DecimalField(max_digits=10, decimal_places=2)
    delivery_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    platform_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    seller_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)

    # Delivery
    shipping_address = models.JSONField()
    pickup_address = models.JSONField(default=dict, blank=True)
    courier = models.CharField(max_length=30, blank=True)
    service_level = models.CharField(max_length=20, blank=True)
    delivery_quote = models.JSONField(default=dict, blank=True)
    tracking_number = models.CharField(max_length=100, blank=True)
    waybill_url = models.URLField(max_length=2000, blank=True)
    shipment_status = models.CharField(max_length=50, blank=True)

    # Payment
    payment_reference = models.CharField(max_length=100, blank=True, db_index=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    # Commit workflow
    commit_deadline = models.DateTimeField(null=True, blank=True)
    seller_committed = models.BooleanField(default=False)
    committed_at = models.DateTimeField(null=True, blank=True)
    last_commit_reminder_at = models.DateTimeField(null=True, blank=True)
    expired_at = models.DateTimeField(null=True, blank=True)

    # Fulfilment
    collection_deadline = models.DateTimeField(null=True, blank=True)
    delivery_deadline = models.DateTimeField(null=True, blank=True)
    collection_reminder_sent_at = models.DateTimeField(null=True, blank=True)
    collected_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    # Cancellation and refund
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="cancelled_orders"
    )
    cancellation_reason = models.TextField(blank=True)
    refund_status = models.CharField(max_length=20, choices=REFUND_STATUS_CHOICES, blank=True, default="")
    refund_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    refund_reference = models.CharField(max_length=100, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)

    buyer_notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        app_label = "marketplace"
        indexes = [
            models.Index(fields=["status", "commit_deadline"], name="order_status_deadline_idx"),
            models.Index(fields=["seller", "status"], name="order_seller_status_idx"),
            models.Index(fields=["buyer", "status"], name="order_buyer_status_idx"),
        ]

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in self.TRANSITIONS.get(self.status, set())

    def commit_window_open(self, now=None) -> bool:
        now = now or timezone.now()
        return self.commit_deadline is not None and now <= self.commit_deadline

    def time_until_commit_deadline(self, now=None) -> timedelta:
        if not self.commit_deadline:
            return timedelta(0)
        return max(self.commit_deadline - (now or timezone.now()), timedelta(0))

    @property
    def was_committed(self) -> bool:
        return self.seller_committed or self.committed_at is not None

    def __str__(self):
        return f"Order {str(self.id)[:8]} ({self.status})"


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    book = models.ForeignKey(Book, on_delete=models.SET_NULL, null=True, related_name="order_items")

    # Book snapshot at time of purchase
    title = models.CharField(max_length=255)
    author = models.CharField(max_length=255)
    isbn = models.CharField(max_length=20, blank=True)
    condition = models.CharField(max_length=20)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    image_url = models.URLField(max_length=2000, blank=True)

    class Meta:
        app_label = "marketplace"

    def __str__(self):
        return f"{self.title} in order {str(self.order_id)[:8]}"


class OrderAuditLog(models.Model):
    """Append-only trail of every state change an order goes through."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="audit_logs")
    actor = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    action = models.CharField(max_length=50)
    old_status = models.CharField(max_length=20, blank=True)
    new_status = models.CharField(max_length=20, blank=True)
    details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        app_label = "marketplace"
        db_table = "order_audit_logs"
        ordering = ["created_at"]
        indexes = [models.Index(fields=["order", "created_at"], name="audit_order_created_idx")]

    @classmethod
    def record(cls, order, action, old_status="", actor=None, **details):
        return cls.objects.create(
            order=order,
            actor=actor,
            action=action,
            old_status=old_status,
            new_status=order.status,
            details=details,
        )

    def __str__(self):
        return f"{self.action} on {str(self.order_id)[:8]}"
