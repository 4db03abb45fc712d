"""
Accounts Payable Posting Profiles (``ledger_modules.ap.profiles``).

Profiles:
    PurchaseBillRule -- Dr Expense/Inventory + Input Tax / Cr AP;
                        withholding: Cr WHT Payable / Dr AP
    VendorPaymentRule -- Dr AP / Cr bank GL; the bank account must cover it
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum

from ledger_engines.totals import DocumentTotals, DocumentTotalsCalculator
from ledger_kernel.domain.documents import Document, DocumentKind, Payment
from ledger_kernel.domain.ledger import AccountSnapshot, LineSpec
from ledger_kernel.logging_config import get_logger
from ledger_kernel.posting_rules.base import BasePostingRule
from ledger_kernel.posting_rules.registry import PostingRuleRegistry
from ledger_modules.cash.profiles import require_bank_account, require_funds

logger = get_logger("modules.ap.profiles")

MODULE_NAME = "ap"


class AccountRole(str, Enum):
    """Logical account roles for AP."""

    EXPENSE = "EXPENSE"
    INVENTORY = "INVENTORY"
    INPUT_TAX = "INPUT_TAX"
    ACCOUNTS_PAYABLE = "ACCOUNTS_PAYABLE"
    WITHHOLDING_PAYABLE = "WITHHOLDING_PAYABLE"


class PurchaseBillRule(BasePostingRule):
    """
    Supplier bill entered.

    The payable is first recognised gross (subtotal + tax).  Withholding
    deducted at source moves part of it to the withholding-tax liability:
    a debit to AP and a credit to WHT payable of the same amount.  Input
    tax absorbs any rounding residue.
    """

    def __init__(self, calculator: DocumentTotalsCalculator | None = None):
        self._calculator = calculator or DocumentTotalsCalculator()

    @property
    def document_kind(self) -> DocumentKind:
        return DocumentKind.PURCHASE_BILL

    def totals(self, document: Document) -> DocumentTotals:
        return self._calculator.compute(document.lines, document.currency)

    def validate(self, document: Document) -> None:
        super().validate(document)
        self.totals(document).require_amount_due(document.document_id)

    def compute_lines(self, document: Document) -> list[LineSpec]:
        totals = self.totals(document)
        cost_role = AccountRole.INVENTORY if document.inventory_purchase else AccountRole.EXPENSE
        lines = [
            LineSpec.debit(totals.subtotal, role=cost_role, description="Purchase cost"),
            LineSpec.debit(totals.tax, role=AccountRole.INPUT_TAX,
                           description="Input tax", is_residual=True),
            LineSpec.credit(totals.total, role=AccountRole.ACCOUNTS_PAYABLE,
                            description="Accounts payable"),
        ]
        if totals.has_withholding:
            lines += [
                LineSpec.debit(totals.withholding, role=AccountRole.ACCOUNTS_PAYABLE,
                               description="Withholding deducted from payable"),
                LineSpec.credit(totals.withholding, role=AccountRole.WITHHOLDING_PAYABLE,
                                description="Withholding tax payable"),
            ]
        return lines


class VendorPaymentRule(BasePostingRule):
    """
    Payment made to a vendor.

    Settles the payable out of a bank account.  The bank balance is checked
    under the posting lock, so a payment never overdraws the account.
    """

    @property
    def document_kind(self) -> DocumentKind:
        return DocumentKind.VENDOR_PAYMENT

    def compute_lines(self, document: Payment) -> list[LineSpec]:
        memo = f"Payment to {document.party_ref}"
        return [
            LineSpec.debit(document.amount, role=AccountRole.ACCOUNTS_PAYABLE,
                           description="Accounts payable"),
            LineSpec.credit(document.amount, account_code=document.bank_account_code,
                            description=memo),
        ]

    def check_preconditions(
        self, document: Payment, accounts: Mapping[str, AccountSnapshot],
    ) -> None:
        bank = require_bank_account(accounts, document.bank_account_code)
        require_funds(bank, document.amount, "vendor_payment")


def register(registry: PostingRuleRegistry) -> None:
    """Register all AP rules."""
    rules = (PurchaseBillRule(), VendorPaymentRule())
    for rule in rules:
        registry.register(rule)
    logger.info("ap_profiles_registered", extra={"profile_count": len(rules)})
