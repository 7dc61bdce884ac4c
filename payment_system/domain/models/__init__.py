from .banking import BankingDetails
from .payment import Payment
from .payout import SellerPayout
from .refund import Refund
from .webhook_log import WebhookLog


__all__ = ["BankingDetails", "Payment", "SellerPayout", "Refund", "WebhookLog"]
