import uuid

from django.contrib.auth import get_user_model
from django.db import models

from utils.logging_utils import mask_account_number


User = get_user_model()


class BankingDetails(models.Model):
    """Seller bank account with its gateway subaccount and transfer recipient."""

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("active", "Active"),
        ("failed", "Failed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    seller = models.OneToOneField(User, on_delete=models.CASCADE, related_name="banking_details")

    bank_name = models.CharField(max_length=100)
    bank_code = models.CharField(max_length=20)
    account_number = models.CharField(max_length=30)
    account_holder = models.CharField(max_length=150)
    business_name = models.CharField(max_length=150)
    email = models.EmailField()

    subaccount_code = models.CharField(max_length=100, blank=True, db_index=True)
    recipient_code = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    last_error = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "payment_system"
        db_table = "banking_details"
        verbose_name_plural = "Banking details"

    @property
    def masked_account_number(self):
        return mask_account_number(self.account_number)

    @property
    def is_active(self):
        return self.status == "active" and bool(self.subaccount_code or self.recipient_code)

    def __str__(self):
        return f"{self.bank_name} {self.masked_account_number} ({self.seller_id})"
