import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models


class CustomUser(AbstractUser):
    ROLE_CHOICES = [
        ("buyer", "Buyer"),
        ("seller", "Seller"),
        ("admin", "Admin"),
    ]

    PROVINCE_CHOICES = [
        ("Gauteng", "Gauteng"),
        ("Western Cape", "Western Cape"),
        ("KwaZulu-Natal", "KwaZulu-Natal"),
        ("Eastern Cape", "Eastern Cape"),
        ("Free State", "Free State"),
        ("Limpopo", "Limpopo"),
        ("Mpumalanga", "Mpumalanga"),
        ("North West", "North West"),
        ("Northern Cape", "Northern Cape"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    first_name = models.CharField(max_length=50, blank=True)
    last_name = models.CharField(max_length=50, blank=True)
    phone_number = models.CharField(max_length=20, blank=True)
    province = models.CharField(max_length=32, choices=PROVINCE_CHOICES, blank=True)
    university = models.CharField(max_length=120, blank=True)

    # Buyers become sellers once their banking details are verified
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default="buyer")

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    class Meta:
        app_label = "authentication"

    @property
    def display_name(self):
        full_name = f"{self.first_name} {self.last_name}".strip()
        return full_name or self.username

    def is_seller(self):
        """Check if user may list books and receive payouts"""
        return self.role == "seller" or self.is_admin()

    def is_admin(self):
        """Check if user is an admin"""
        return self.role == "admin" or self.is_superuser

    def __str__(self):
        return self.email
