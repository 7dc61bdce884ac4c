from django.contrib.auth import get_user_model
from django.db import models

from marketplace.catalog.domain.models.book import Book


User = get_user_model()


class Cart(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="cart")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Shopping Cart"
        verbose_name_plural = "Shopping Carts"
        app_label = "marketplace"

    @classmethod
    def get_or_create_cart(cls, user):
        cart, _ = cls.objects.get_or_create(user=user)
        return cart

    def __str__(self):
        return f"Cart for {self.user.email}"


class CartItem(models.Model):
    """A single copy of a book in a cart. Every listing is one physical copy."""

    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name="items")
    book = models.ForeignKey(Book, on_delete=models.CASCADE, related_name="cart_items")
    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ["cart", "book"]
        ordering = ["added_at"]
        app_label = "marketplace"

    def __str__(self):
        return f"{self.book.title} in {self.cart.user.email}'s cart"
