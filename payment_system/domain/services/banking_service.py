"""
BankingService - Seller bank accounts

Registers a seller's bank account with the gateway twice: as a subaccount,
so buyer payments are split at source, and as a transfer recipient, so
payouts can be sent from the platform balance.
"""

import re
from typing import Any, Dict, Optional

from django.conf import settings
from django.db import transaction

from infrastructure.payments import PaymentException, PaymentProviderInterface
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from payment_system.domain.models import BankingDetails
from utils.logging_utils import mask_account_number
from utils.rbac import ROLE_BUYER, ROLE_SELLER

BANK_CODES = {
    "absa": "632005",
    "capitec": "470010",
    "fnb": "250655",
    "investec": "580105",
    "nedbank": "198765",
    "standard bank": "051001",
    "african bank": "430000",
    "tymebank": "678910",
    "discovery bank": "679000",
    "bidvest bank": "462005",
}

BANK_ALIASES = {
    "first national bank": "fnb",
    "absa bank": "absa",
    "capitec bank": "capitec",
    "tyme bank": "tymebank",
    "standard bank of south africa": "standard bank",
}

ACCOUNT_NUMBER_RE = re.compile(r"^\d{6,16}$")


def resolve_bank_code(bank_name: str) -> Optional[str]:
    key = " ".join((bank_name or "").lower().split())
    key = BANK_ALIASES.get(key, key)
    return BANK_CODES.get(key)


class BankingService(BaseService):
    """Service for seller banking details and gateway subaccounts."""

    def __init__(self, provider: PaymentProviderInterface = None):
        super().__init__()
        if provider is None:
            from infrastructure.container import container

            provider = container.payment()
        self.provider = provider

    @BaseService.log_performance
    def save_banking_details(self, user, data: Dict[str, Any]) -> ServiceResult[BankingDetails]:
        """
        Create or update the seller's banking details and gateway accounts.

        Args:
            data: bank_name, account_number, account_holder, and optionally
                  business_name and email
        """
        bank_name = (data.get("bank_name") or "").strip()
        bank_code = resolve_bank_code(bank_name)
        if bank_code is None:
            return service_err(ErrorCodes.INVALID_BANK, f"Unsupported bank: {bank_name or 'none given'}")

        account_number = re.sub(r"[\s-]", "", str(data.get("account_number") or ""))
        if not ACCOUNT_NUMBER_RE.match(account_number):
            return service_err(ErrorCodes.INVALID_INPUT, "Account number must be 6 to 16 digits")

        account_holder = (data.get("account_holder") or "").strip()
        if not account_holder:
            return service_err(ErrorCodes.INVALID_INPUT, "Account holder name is required")

        business_name = (data.get("business_name") or "").strip() or account_holder
        email = (data.get("email") or "").strip() or user.email

        banking = BankingDetails.objects.filter(seller=user).first() or BankingDetails(seller=user)
        account_changed = banking.account_number != account_number or banking.bank_code != bank_code
        banking.bank_name = bank_name
        banking.bank_code = bank_code
        banking.account_number = account_number
        banking.account_holder = account_holder
        banking.business_name = business_name
        banking.email = email

        try:
            if banking.subaccount_code:
                subaccount = self.provider.update_subaccount(
                    banking.subaccount_code,
                    business_name=business_name,
                    settlement_bank=bank_code,
                    account_number=account_number,
                    primary_contact_email=email,
                )
            else:
                subaccount = self.provider.create_subaccount(
                    business_name=business_name,
                    bank_code=bank_code,
                    account_number=account_number,
                    percentage_charge=0,
                    primary_contact_email=email,
                    primary_contact_name=account_holder,
                )
            banking.subaccount_code = subaccount.subaccount_code

            if account_changed or not banking.recipient_code:
                recipient = self.provider.create_transfer_recipient(
                    account_name=account_holder,
                    account_number=account_number,
                    bank_code=bank_code,
                    currency=settings.CURRENCY,
                )
                banking.recipient_code = recipient.recipient_code
        except PaymentException as e:
            self.logger.error(
                f"Gateway rejected banking details for seller {user.pk} "
                f"({bank_name} {mask_account_number(account_number)}): {e}"
            )
            banking.status = "failed"
            banking.last_error = str(e)
            banking.save()
            return service_err(ErrorCodes.PAYMENT_PROVIDER_ERROR, f"Could not verify banking details: {e}")

        with transaction.atomic():
            banking.status = "active"
            banking.last_error = ""
            banking.save()

            if user.role == ROLE_BUYER:
                user.role = ROLE_SELLER
                user.save(update_fields=["role"])

        self.logger.info(
            f"Banking details active for seller {user.pk}: {bank_name} {banking.masked_account_number}, "
            f"subaccount {banking.subaccount_code}"
        )
        return service_ok(banking)

    def get_status(self, user) -> ServiceResult[Dict[str, Any]]:
        banking = BankingDetails.objects.filter(seller=user).first()
        if banking is None:
            return service_ok({"has_banking": False, "status": None})

        return service_ok(
            {
                "has_banking": True,
                "status": banking.status,
                "is_active": banking.is_active,
                "bank_name": banking.bank_name,
                "account_number": banking.masked_account_number,
                "account_holder": banking.account_holder,
                "business_name": banking.business_name,
                "email": banking.email,
                "has_subaccount": bool(banking.subaccount_code),
                "updated_at": banking.updated_at,
            }
        )

    @BaseService.log_performance
    def apply_subaccount_event(self, data: Dict[str, Any]) -> ServiceResult[Optional[BankingDetails]]:
        """Refresh banking status from a subaccount.updated webhook."""
        subaccount_code = data.get("subaccount_code", "")
        banking = BankingDetails.objects.filter(subaccount_code=subaccount_code).first()
        if banking is None:
            self.logger.warning(f"subaccount.updated for unknown subaccount {subaccount_code}")
            return service_ok(None)

        active = data.get("active", data.get("is_verified", True))
        banking.status = "active" if active else "failed"
        if data.get("business_name"):
            banking.business_name = data["business_name"]
        banking.save(update_fields=["status", "business_name", "updated_at"])
        return service_ok(banking)
