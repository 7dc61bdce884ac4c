"""
CartService - Shopping cart

One cart per user; every book is a single copy so an item has no quantity.
The cart view groups items by seller because checkout creates one order per
seller.
"""

from collections import OrderedDict
from decimal import Decimal
from typing import Dict, List

from django.core.exceptions import ValidationError
from django.db import transaction

from marketplace.cart.domain.models.cart import Cart, CartItem
from marketplace.catalog.domain.models.book import Book
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok


class CartService(BaseService):
    """Service for cart operations."""

    @BaseService.log_performance
    def get_cart(self, user) -> ServiceResult[Dict]:
        """
        Get the user's cart grouped by seller.

        Returns:
            ServiceResult with {"items", "groups", "item_count", "total"} where
            each group is {"seller", "items", "subtotal"}
        """
        try:
            cart = Cart.get_or_create_cart(user)
            items = list(cart.items.select_related("book", "book__seller"))

            groups: "OrderedDict[str, Dict]" = OrderedDict()
            for item in items:
                seller = item.book.seller
                group = groups.setdefault(
                    str(seller.pk), {"seller": seller, "items": [], "subtotal": Decimal("0.00")}
                )
                group["items"].append(item)
                group["subtotal"] += item.book.price

            return service_ok(
                {
                    "cart": cart,
                    "items": items,
                    "groups": list(groups.values()),
                    "item_count": len(items),
                    "total": sum((item.book.price for item in items), Decimal("0.00")),
                }
            )
        except Exception as e:
            self.logger.error(f"Error getting cart for user {user.pk}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    @transaction.atomic
    def add_to_cart(self, user, book_id: str) -> ServiceResult[CartItem]:
        try:
            book = Book.objects.get(id=book_id)
        except (Book.DoesNotExist, ValueError, ValidationError):
            return service_err(ErrorCodes.BOOK_NOT_FOUND, f"Book {book_id} not found")

        if book.seller_id == user.pk:
            return service_err(ErrorCodes.OWN_BOOK, "You cannot buy your own book")

        if not book.is_available:
            return service_err(ErrorCodes.BOOK_UNAVAILABLE, f"'{book.title}' is no longer available")

        cart = Cart.get_or_create_cart(user)
        item, created = CartItem.objects.get_or_create(cart=cart, book=book)
        if not created:
            return service_err(ErrorCodes.ALREADY_IN_CART, f"'{book.title}' is already in your cart")

        self.logger.info(f"Added book {book.id} to cart of user {user.pk}")
        return service_ok(item)

    @BaseService.log_performance
    def remove_from_cart(self, user, book_id: str) -> ServiceResult[bool]:
        try:
            deleted, _ = CartItem.objects.filter(cart__user=user, book_id=book_id).delete()
        except (ValueError, ValidationError):
            deleted = 0

        if not deleted:
            return service_err(ErrorCodes.ITEM_NOT_IN_CART, "Book is not in your cart")
        return service_ok(True)

    @BaseService.log_performance
    def clear_cart(self, user) -> ServiceResult[int]:
        deleted, _ = CartItem.objects.filter(cart__user=user).delete()
        self.logger.info(f"Cleared {deleted} items from cart of user {user.pk}")
        return service_ok(deleted)

    def remove_books(self, user, book_ids: List) -> int:
        """Drop ordered books from the cart after checkout."""
        deleted, _ = CartItem.objects.filter(cart__user=user, book_id__in=book_ids).delete()
        return deleted

    def seller_book_ids(self, user, seller_id) -> List:
        """IDs of the books in the cart listed by ``seller_id``."""
        return list(
            CartItem.objects.filter(cart__user=user, book__seller_id=seller_id).values_list("book_id", flat=True)
        )
