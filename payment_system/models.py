from .domain.models import BankingDetails, Payment, Refund, SellerPayout, WebhookLog


__all__ = [
    "BankingDetails",
    "Payment",
    "SellerPayout",
    "Refund",
    "WebhookLog",
]
