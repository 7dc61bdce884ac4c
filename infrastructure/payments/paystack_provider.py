"""
Paystack Payment Provider
==========================

Concrete implementation of PaymentProviderInterface on the Paystack REST API.
"""

import json
import logging
from typing import Any, Dict, Optional

import requests
from django.conf import settings
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from utils.logging_utils import mask_value

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

ALREADY_REFUNDED_MARKERS = ("already been fully reversed", "already refunded", "fully refunded")


class PaystackServerError(requests.RequestException):
    """5xx response from Paystack, retried like a network failure."""


class PaystackProvider(PaymentProviderInterface):
    """
    Paystack payment provider implementation.

    Configuration (in settings.py):
        PAYSTACK_SECRET_KEY: Secret API key, also used to sign webhooks
        PAYSTACK_BASE_URL: API base URL
        PAYSTACK_TIMEOUT_SECONDS: Per-request timeout
    """

    def __init__(self, secret_key: Optional[str] = None, base_url: Optional[str] = None):
        self.secret_key = secret_key or getattr(settings, "PAYSTACK_SECRET_KEY", "")
        self.base_url = (base_url or getattr(settings, "PAYSTACK_BASE_URL", "https://api.paystack.co")).rstrip("/")
        self.timeout = getattr(settings, "PAYSTACK_TIMEOUT_SECONDS", 15)
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {self.secret_key}",
                "Content-Type": "application/json",
            }
        )

        if not self.secret_key:
            logger.warning("PAYSTACK_SECRET_KEY not configured")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout, PaystackServerError)),
        reraise=True,
    )
    def _request_api(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> requests.Response:
        """Internal method to call Paystack with retries on transient failures."""
        response = self.session.request(method, f"{self.base_url}{path}", json=payload, timeout=self.timeout)
        if response.status_code >= 500:
            raise PaystackServerError(f"Paystack returned {response.status_code}", response=response)
        return response

    def _call(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Call the API and return ``data`` from a successful envelope."""
        try:
            response = self._request_api(method, path, payload)
        except requests.RequestException as e:
            logger.error(f"Paystack {method} {path} failed after retries: {e}")
            status_code = e.response.status_code if e.response is not None else None
            raise PaymentException(f"Payment gateway unavailable: {e}", status_code=status_code) from e

        try:
            body = response.json()
        except ValueError as e:
            raise PaymentException(
                f"Invalid response from payment gateway ({response.status_code})", status_code=response.status_code
            ) from e

        if response.status_code >= 400 or not body.get("status"):
            message = body.get("message") or f"HTTP {response.status_code}"
            logger.warning(f"Paystack {method} {path} rejected: {message}")
            raise PaymentException(message, status_code=response.status_code, response=body)

        return body.get("data") or {}

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
        payload: Dict[str, Any] = {
            "email": email,
            "amount": amount,
            "reference": reference,
            "currency": currency,
            "callback_url": callback_url,
            "metadata": metadata or {},
        }
        if subaccount:
            payload["subaccount"] = subaccount
            if transaction_charge is not None:
                payload["transaction_charge"] = transaction_charge
            if bearer:
                payload["bearer"] = bearer

        data = self._call("POST", "/transaction/initialize", payload)
        logger.info(f"Paystack transaction initialized: {reference} for {mask_value(email)}")

        return TransactionInit(
            reference=data.get("reference", reference),
            authorization_url=data["authorization_url"],
            access_code=data.get("access_code", ""),
            amount=amount,
            currency=currency,
            metadata=metadata or {},
        )

    def verify_transaction(self, reference: str) -> TransactionVerification:
        data = self._call("GET", f"/transaction/verify/{reference}")
        return self._to_verification(reference, data)

    def create_refund(
        self,
        transaction_reference: str,
        amount: int,
        currency: str,
        customer_note: str = "",
        merchant_note: str = "",
    ) -> RefundResult:
        payload = {
            "transaction": transaction_reference,
            "amount": amount,
            "currency": currency,
            "customer_note": customer_note,
            "merchant_note": merchant_note,
        }
        try:
            data = self._call("POST", "/refund", payload)
        except PaymentException as e:
            if e.status_code == 400 and any(marker in str(e).lower() for marker in ALREADY_REFUNDED_MARKERS):
                logger.info(f"Transaction {transaction_reference} was already refunded")
                return RefundResult(
                    refund_id="",
                    transaction_reference=transaction_reference,
                    amount=amount,
                    status="processed",
                    already_refunded=True,
                )
            raise

        return RefundResult(
            refund_id=str(data.get("id", "")),
            transaction_reference=transaction_reference,
            amount=int(data.get("amount", amount)),
            status=data.get("status", "pending"),
        )

    def create_transfer(
        self,
        amount: int,
        recipient_code: str,
        reference: str,
        reason: str,
        currency: str,
    ) -> TransferResult:
        payload = {
            "source": "balance",
            "amount": amount,
            "recipient": recipient_code,
            "reason": reason,
            "currency": currency,
            "reference": reference,
        }
        data = self._call("POST", "/transfer", payload)
        logger.info(f"Paystack transfer {reference} created with status {data.get('status')}")
        return TransferResult(
            transfer_code=data.get("transfer_code", ""),
            reference=data.get("reference", reference),
            amount=int(data.get("amount", amount)),
            status=data.get("status", "pending"),
            recipient_code=recipient_code,
        )

    def create_transfer_recipient(
        self, account_name: str, account_number: str, bank_code: str, currency: str
    ) -> TransferRecipient:
        payload = {
            "type": "basa",
            "name": account_name,
            "account_number": account_number,
            "bank_code": bank_code,
            "currency": currency,
        }
        data = self._call("POST", "/transferrecipient", payload)
        return TransferRecipient(
            recipient_code=data["recipient_code"],
            account_name=data.get("name", account_name),
            bank_code=bank_code,
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
        payload = {
            "business_name": business_name,
            "settlement_bank": bank_code,
            "account_number": account_number,
            "percentage_charge": percentage_charge,
            "primary_contact_email": primary_contact_email,
            "primary_contact_name": primary_contact_name,
        }
        data = self._call("POST", "/subaccount", payload)
        return self._to_subaccount(data, bank_code, account_number)

    def update_subaccount(self, subaccount_code: str, **fields) -> SubaccountResult:
        data = self._call("PUT", f"/subaccount/{subaccount_code}", fields)
        return self._to_subaccount(data, fields.get("settlement_bank", ""), fields.get("account_number", ""))

    def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        if not signature_matches(self.secret_key, payload, signature):
            logger.warning("Rejected Paystack webhook with invalid signature")
            raise InvalidSignatureException("Invalid webhook signature")

        try:
            body = json.loads(payload.decode("utf-8"))
        except (ValueError, UnicodeDecodeError) as e:
            raise PaymentException(f"Invalid webhook payload: {e}") from e

        data = body.get("data") or {}
        return WebhookEvent(event_type=body.get("event", ""), data=data, reference=str(data.get("reference", "")))

    @staticmethod
    def _to_verification(reference: str, data: Dict[str, Any]) -> TransactionVerification:
        raw_status = data.get("status", "pending")
        try:
            status = PaymentStatus(raw_status)
        except ValueError:
            status = PaymentStatus.FAILED

        customer = data.get("customer") or {}
        metadata = data.get("metadata") or {}
        if isinstance(metadata, str):
            # Paystack echoes metadata back as a JSON string for some integrations
            try:
                metadata = json.loads(metadata)
            except ValueError:
                metadata = {}

        return TransactionVerification(
            reference=data.get("reference", reference),
            status=status,
            amount=int(data.get("amount", 0)),
            currency=data.get("currency", ""),
            paid_at=data.get("paid_at") or data.get("paidAt"),
            channel=data.get("channel"),
            customer_email=customer.get("email"),
            gateway_response=data.get("gateway_response"),
            metadata=metadata,
            raw=data,
        )

    @staticmethod
    def _to_subaccount(data: Dict[str, Any], bank_code: str, account_number: str) -> SubaccountResult:
        return SubaccountResult(
            subaccount_code=data["subaccount_code"],
            business_name=data.get("business_name", ""),
            bank_code=data.get("settlement_bank", bank_code),
            account_number=data.get("account_number", account_number),
            percentage_charge=float(data.get("percentage_charge", 0)),
            is_verified=bool(data.get("is_verified", False)),
        )
