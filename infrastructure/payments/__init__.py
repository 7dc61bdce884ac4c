"""
Payment Gateway Abstraction Layer
==================================

Provides a unified interface for payment operations across gateways.
"""

from .factory import PaymentFactory
from .interface import (
    InvalidSignatureException,
    PaymentException,
    PaymentProviderInterface,
    PaymentStatus,
    RefundResult,
    SubaccountResult,
    TransactionInit,
    TransactionVerification,
    TransferRecipient,
    TransferResult,
    WebhookEvent,
    compute_signature,
    from_minor_units,
    to_minor_units,
)
from .mock_provider import MockPaymentProvider
from .paystack_provider import PaystackProvider

__all__ = [
    "PaymentProviderInterface",
    "PaymentStatus",
    "TransactionInit",
    "TransactionVerification",
    "RefundResult",
    "TransferResult",
    "TransferRecipient",
    "SubaccountResult",
    "WebhookEvent",
    "PaymentException",
    "InvalidSignatureException",
    "compute_signature",
    "to_minor_units",
    "from_minor_units",
    "PaystackProvider",
    "MockPaymentProvider",
    "PaymentFactory",
]
