import uuid
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

User = get_user_model()


class Book(models.Model):
    CONDITION_CHOICES = [
        ("new", "New"),
        ("good", "Good"),
        ("better", "Better"),
        ("average", "Average"),
        ("below_average", "Below Average"),
    ]

    CATEGORY_CHOICES = [
        ("university", "University"),
        ("school", "School"),
        ("reader", "Reader"),
    ]

    STATUS_CHOICES = [
        ("available", "Available"),
        ("reserved", "Reserved"),  # held by a pending checkout
        ("sold", "Sold"),
        ("unavailable", "Unavailable"),  # delisted by the seller
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    seller = models.ForeignKey(User, on_delete=models.CASCADE, related_name="books")

    title = models.CharField(max_length=255)
    author = models.CharField(max_length=255)
    isbn = models.CharField(max_length=20, blank=True, db_index=True)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default="university")
    grade = models.CharField(max_length=20, blank=True, help_text="School grade for school textbooks")
    university = models.CharField(max_length=120, blank=True)
    university_year = models.CharField(max_length=20, blank=True)
    condition = models.CharField(max_length=20, choices=CONDITION_CHOICES, default="good")

    price = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("1.00")), MaxValueValidator(100000)]
    )
    image_url = models.URLField(max_length=2000, blank=True)

    # Pickup location used for courier quotes and collection
    province = models.CharField(max_length=32, blank=True)
    pickup_address = models.JSONField(default=dict, blank=True)
    weight_kg = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal("1.00"))

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="available")
    sold = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        app_label = "marketplace"
        indexes = [
            models.Index(fields=["status", "-created_at"], name="book_status_created_idx"),
            models.Index(fields=["seller", "status"], name="book_seller_status_idx"),
            models.Index(fields=["province", "status"], name="book_province_status_idx"),
        ]

    @property
    def is_available(self):
        return self.status == "available" and not self.sold

    def mark_sold(self):
        self.status = "sold"
        self.sold = True
        self.save(update_fields=["status", "sold", "updated_at"])

    def relist(self):
        self.status = "available"
        self.sold = False
        self.save(update_fields=["status", "sold", "updated_at"])

    def __str__(self):
        return f"{self.title} by {self.author}"
