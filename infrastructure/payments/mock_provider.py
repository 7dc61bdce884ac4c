"""
Mock Payment Provider
=====================

In-process gateway used when no Paystack secret key is configured (test mode)
and in the test suite. Records every call so tests can assert on them.
"""

import json
import logging
import secrets
from typing import Any, Dict, List, Optional

from django.conf import settings

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
    signature_matches,
)

logger = logging.getLogger(__name__)


class MockPaymentProvider(PaymentProviderInterface):
    """
    Mock gateway for test mode and unit tests.

    Every initialized transaction verifies as successful for its full amount
    unless ``set_transaction_status`` says otherwise. ``fail_transfers`` and
    ``fail_refunds`` make the corresponding calls raise PaymentException.
    """

    def __init__(self, secret_key: Optional[str] = None):
        self.secret_key = secret_key or getattr(settings, "PAYSTACK_SECRET_KEY", "") or "sk_test_mock"
        self.transactions: Dict[str, Dict[str, Any]] = {}
        self.refunds: List[RefundResult] = []
        self.transfers: List[TransferResult] = []
        self.subaccounts: Dict[str, SubaccountResult] = {}
        self.fail_transfers = False
        self.fail_refunds = False

    def set_transaction_status(self, reference: str, status: PaymentStatus, amount: Optional[int] = None):
        record = self.transactions.setdefault(reference, {"amount": amount or 0, "currency": "ZAR", "metadata": {}})
        record["status"] = status
        if amount is not None:
            record["amount"] = amount

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
        access_code = f"test_access_{secrets.token_hex(6)}"
        self.transactions[reference] = {
            "email": email,
            "amount": amount,
            "currency": currency,
            "status": PaymentStatus.SUCCESS,
            "metadata": metadata or {},
            "subaccount": subaccount,
            "transaction_charge": transaction_charge,
            "bearer": bearer,
        }
        logger.info(f"[MOCK PAYSTACK] Initialized {reference} for {amount} {currency}")
        return TransactionInit(
            reference=reference,
            authorization_url=f"https://checkout.paystack.com/test/{access_code}",
            access_code=access_code,
            amount=amount,
            currency=currency,
            metadata=metadata or {},
        )

    def verify_transaction(self, reference: str) -> TransactionVerification:
        record = self.transactions.get(reference)
        if record is None:
            raise PaymentException("Transaction reference not found", status_code=404)
        return TransactionVerification(
            reference=reference,
            status=record.get("status", PaymentStatus.SUCCESS),
            amount=record["amount"],
            currency=record.get("currency", "ZAR"),
            channel="card",
            customer_email=record.get("email"),
            gateway_response="Approved",
            metadata=record.get("metadata", {}),
            raw=dict(record),
        )

    def create_refund(
        self,
        transaction_reference: str,
        amount: int,
        currency: str,
        customer_note: str = "",
        merchant_note: str = "",
    ) -> RefundResult:
        if self.fail_refunds:
            raise PaymentException("Refund rejected by mock gateway", status_code=400)

        already_refunded = any(r.transaction_reference == transaction_reference for r in self.refunds)
        result = RefundResult(
            refund_id="" if already_refunded else f"rf_test_{len(self.refunds) + 1}",
            transaction_reference=transaction_reference,
            amount=amount,
            status="processed",
            already_refunded=already_refunded,
        )
        if not already_refunded:
            self.refunds.append(result)
        logger.info(f"[MOCK PAYSTACK] Refund for {transaction_reference}: {amount} {currency}")
        return result

    def create_transfer(
        self,
        amount: int,
        recipient_code: str,
        reference: str,
        reason: str,
        currency: str,
    ) -> TransferResult:
        if self.fail_transfers:
            raise PaymentException("Transfer rejected by mock gateway", status_code=400)

        result = TransferResult(
            transfer_code=f"TRF_test_{len(self.transfers) + 1}",
            reference=reference,
            amount=amount,
            status="success",
            recipient_code=recipient_code,
        )
        self.transfers.append(result)
        logger.info(f"[MOCK PAYSTACK] Transfer {reference}: {amount} {currency} to {recipient_code}")
        return result

    def create_transfer_recipient(
        self, account_name: str, account_number: str, bank_code: str, currency: str
    ) -> TransferRecipient:
        return TransferRecipient(
            recipient_code=f"RCP_test_{secrets.token_hex(4)}", account_name=account_name, bank_code=bank_code
        )

    def create_subaccount(
        self,
        business_name: str,
        bank_code: str,
        account_number: str,
        percentage_charge: float,
        primary_contact_email: str = "",
        primary_contact_name: str = "",
    ) -> SubaccountResult:
        result = SubaccountResult(
            subaccount_code=f"ACCT_test_{secrets.token_hex(4)}",
            business_name=business_name,
            bank_code=bank_code,
            account_number=account_number,
            percentage_charge=percentage_charge,
            is_verified=True,
        )
        self.subaccounts[result.subaccount_code] = result
        return result

    def update_subaccount(self, subaccount_code: str, **fields) -> SubaccountResult:
        existing = self.subaccounts.get(subaccount_code)
        result = SubaccountResult(
            subaccount_code=subaccount_code,
            business_name=fields.get("business_name", existing.business_name if existing else ""),
            bank_code=fields.get("settlement_bank", existing.bank_code if existing else ""),
            account_number=fields.get("account_number", existing.account_number if existing else ""),
            percentage_charge=float(fields.get("percentage_charge", 0)),
            is_verified=True,
        )
        self.subaccounts[subaccount_code] = result
        return result

    def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        if not signature_matches(self.secret_key, payload, signature):
            raise InvalidSignatureException("Invalid webhook signature")
        try:
            body = json.loads(payload.decode("utf-8"))
        except (ValueError, UnicodeDecodeError) as e:
            raise PaymentException(f"Invalid webhook payload: {e}") from e
        data = body.get("data") or {}
        return WebhookEvent(event_type=body.get("event", ""), data=data, reference=str(data.get("reference", "")))
