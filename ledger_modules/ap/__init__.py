"""Accounts payable: purchase bills and vendor payments."""

from ledger_modules.ap.profiles import AccountRole, PurchaseBillRule, VendorPaymentRule
from ledger_modules.ap.service import PayablesService

__all__ = ["AccountRole", "PayablesService", "PurchaseBillRule", "VendorPaymentRule"]
