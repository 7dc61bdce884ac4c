"""
Payment Provider Interface
===========================

Abstract base class defining the contract for gateway operations used by the
marketplace: collecting buyer payments with a seller split, verifying them,
refunding buyers and paying sellers out.

All amounts cross this boundary in the smallest currency unit (kobo/cents).
"""

import hashlib
import hmac
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, Optional


class PaymentStatus(str, Enum):
    """Gateway transaction status."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    ABANDONED = "abandoned"
    REVERSED = "reversed"


@dataclass
class TransactionInit:
    """
    Result of initializing a buyer payment.

    Attributes:
        reference: Our unique transaction reference
        authorization_url: Hosted payment page the buyer is redirected to
        access_code: Gateway access code for inline checkout
        amount: Amount in smallest currency unit
        currency: ISO currency code
    """

    reference: str
    authorization_url: str
    access_code: str
    amount: int
    currency: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TransactionVerification:
    """Verified state of a buyer payment as reported by the gateway."""

    reference: str
    status: PaymentStatus
    amount: int
    currency: str
    paid_at: Optional[str] = None
    channel: Optional[str] = None
    customer_email: Optional[str] = None
    gateway_response: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == PaymentStatus.SUCCESS


@dataclass
class RefundResult:
    """
    Attributes:
        refund_id: Gateway refund identifier (empty when already refunded)
        already_refunded: True when the gateway reported a prior full reversal
    """

    refund_id: str
    transaction_reference: str
    amount: int
    status: str
    already_refunded: bool = False


@dataclass
class TransferResult:
    transfer_code: str
    reference: str
    amount: int
    status: str
    recipient_code: str


@dataclass
class SubaccountResult:
    subaccount_code: str
    business_name: str
    bank_code: str
    account_number: str
    percentage_charge: float = 0.0
    is_verified: bool = False


@dataclass
class TransferRecipient:
    recipient_code: str
    account_name: str
    bank_code: str


@dataclass
class WebhookEvent:
    """
    Verified webhook notification.

    Attributes:
        event_type: Gateway event name (e.g. 'charge.success')
        data: Event payload
        reference: Transaction/transfer reference carried by the event
    """

    event_type: str
    data: Dict[str, Any]
    reference: str = ""


class PaymentException(Exception):
    """Base exception for payment gateway operations."""

    def __init__(self, message: str, status_code: Optional[int] = None, response: Optional[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response or {}


class InvalidSignatureException(PaymentException):
    """Webhook signature did not match the payload."""


def to_minor_units(amount: Decimal) -> int:
    """Convert a major unit amount (Rands) to the smallest unit (cents/kobo)."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> Decimal:
    return (Decimal(amount) / 100).quantize(Decimal("0.01"))


def compute_signature(secret: str, payload: bytes) -> str:
    """HMAC-SHA512 hex digest of the raw webhook body."""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha512).hexdigest()


def signature_matches(secret: str, payload: bytes, signature: str) -> bool:
    if not secret or not signature:
        return False
    return hmac.compare_digest(compute_signature(secret, payload), signature)


class PaymentProviderInterface(ABC):
    """
    Abstract interface for payment gateway operations.

    Concrete implementations:
        - PaystackProvider: Paystack REST API
        - MockPaymentProvider: in-process gateway used in test mode
    """

    @abstractmethod
    def initialize_transaction(
        self,
        email: str,
        amount: int,
        reference: str,
        currency: str,
        callback_url: str,
        metadata: Optional[Dict[str, Any]] = None,
        subaccount: Optional[str] = None,
        transaction_charge: Optional[int] = None,
        bearer: Optional[str] = None,
    ) -> TransactionInit:
        """
        Start a buyer payment.

        Args:
            email: Buyer email
            amount: Amount in smallest currency unit
            reference: Unique reference generated by us
            currency: ISO currency code
            callback_url: Where the gateway redirects after payment
            metadata: Custom data echoed back on verify and webhooks
            subaccount: Seller subaccount code receiving the split
            transaction_charge: Flat platform share in smallest unit
            bearer: Who bears gateway fees ('account' or 'subaccount')

        Raises:
            PaymentException: If initialization fails
        """

    @abstractmethod
    def verify_transaction(self, reference: str) -> TransactionVerification:
        """
        Fetch the authoritative status of a payment.

        Raises:
            PaymentException: If the gateway cannot be reached or rejects the call
        """

    @abstractmethod
    def create_refund(
        self,
        transaction_reference: str,
        amount: int,
        currency: str,
        customer_note: str = "",
        merchant_note: str = "",
    ) -> RefundResult:
        """
        Refund a completed payment.

        A payment that was already fully reversed is reported with
        ``already_refunded=True`` instead of raising.

        Raises:
            PaymentException: If the refund is rejected
        """

    @abstractmethod
    def create_transfer(
        self,
        amount: int,
        recipient_code: str,
        reference: str,
        reason: str,
        currency: str,
    ) -> TransferResult:
        """
        Transfer funds from the platform balance to a seller.

        Raises:
            PaymentException: If the transfer is rejected
        """

    @abstractmethod
    def create_transfer_recipient(
        self, account_name: str, account_number: str, bank_code: str, currency: str
    ) -> TransferRecipient:
        """Register a seller bank account as a transfer recipient."""

    @abstractmethod
    def create_subaccount(
        self,
        business_name: str,
        bank_code: str,
        account_number: str,
        percentage_charge: float,
        primary_contact_email: str = "",
        primary_contact_name: str = "",
    ) -> SubaccountResult:
        """Create a seller subaccount for split payments."""

    @abstractmethod
    def update_subaccount(self, subaccount_code: str, **fields) -> SubaccountResult:
        """Update an existing seller subaccount."""

    @abstractmethod
    def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        """
        Verify and parse a webhook notification.

        Raises:
            InvalidSignatureException: If the signature does not match
            PaymentException: If the payload is not valid JSON
        """
