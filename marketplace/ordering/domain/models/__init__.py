from .order import Order, OrderAuditLog, OrderItem


__all__ = ["Order", "OrderItem", "OrderAuditLog"]
