from marketplace.cart.domain.models import Cart, CartItem
from marketplace.catalog.domain.models import Book
from marketplace.notifications.domain.models import Notification
from marketplace.ordering.domain.models import Order, OrderAuditLog, OrderItem


__all__ = [
    "Book",
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    "OrderAuditLog",
    "Notification",
]
