"""
Accounts Receivable Posting Profiles (``ledger_modules.ar.profiles``).

Responsibility
--------------
Declares the posting rules for customer documents.  Each rule maps a
document to ledger lines using account ROLES (not account codes); the
posting engine resolves roles through the AccountChart.

Architecture position
---------------------
**Modules layer** -- thin ERP glue.  Rules are registered into a
``PostingRuleRegistry`` by ``register()``.

Profiles:
    SalesInvoiceRule -- Dr AR + WHT Receivable / Cr Revenue + Tax Payable
    CreditNoteRule   -- Dr Revenue + Tax Payable / Cr AR + WHT Receivable
    CustomerPaymentRule -- Dr bank GL / Cr AR
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
from ledger_modules.cash.profiles import require_bank_account

logger = get_logger("modules.ar.profiles")

MODULE_NAME = "ar"


class AccountRole(str, Enum):
    """Logical account roles for AR."""

    ACCOUNTS_RECEIVABLE = "ACCOUNTS_RECEIVABLE"
    REVENUE = "REVENUE"
    TAX_PAYABLE = "TAX_PAYABLE"
    WITHHOLDING_RECEIVABLE = "WITHHOLDING_RECEIVABLE"


class _CustomerDocumentRule(BasePostingRule):
    def __init__(self, calculator: DocumentTotalsCalculator | None = None):
        self._calculator = calculator or DocumentTotalsCalculator()

    def totals(self, document: Document) -> DocumentTotals:
        return self._calculator.compute(document.lines, document.currency)

    def validate(self, document: Document) -> None:
        super().validate(document)
        self.totals(document).require_amount_due(document.document_id)


class SalesInvoiceRule(_CustomerDocumentRule):
    """
    Invoice issued.

    The receivable is the amount due; withholding the customer deducts at
    source is carried as a withholding-tax receivable, so
    AR + WHT receivable == revenue + tax payable.  Tax payable absorbs any
    rounding residue.
    """

    @property
    def document_kind(self) -> DocumentKind:
        return DocumentKind.SALES_INVOICE

    def compute_lines(self, document: Document) -> list[LineSpec]:
        totals = self.totals(document)
        return [
            LineSpec.debit(totals.amount_due, role=AccountRole.ACCOUNTS_RECEIVABLE,
                           description="Accounts receivable"),
            LineSpec.debit(totals.withholding, role=AccountRole.WITHHOLDING_RECEIVABLE,
                           description="Withholding tax receivable"),
            LineSpec.credit(totals.subtotal, role=AccountRole.REVENUE,
                            description="Sales revenue"),
            LineSpec.credit(totals.tax, role=AccountRole.TAX_PAYABLE,
                            description="Output tax", is_residual=True),
        ]


class CreditNoteRule(_CustomerDocumentRule):
    """Credit note: the invoice posting with every side flipped."""

    @property
    def document_kind(self) -> DocumentKind:
        return DocumentKind.CREDIT_NOTE

    def compute_lines(self, document: Document) -> list[LineSpec]:
        totals = self.totals(document)
        return [
            LineSpec.debit(totals.subtotal, role=AccountRole.REVENUE,
                           description="Revenue reversal"),
            LineSpec.debit(totals.tax, role=AccountRole.TAX_PAYABLE,
                           description="Output tax reversal", is_residual=True),
            LineSpec.credit(totals.amount_due, role=AccountRole.ACCOUNTS_RECEIVABLE,
                            description="Accounts receivable"),
            LineSpec.credit(totals.withholding, role=AccountRole.WITHHOLDING_RECEIVABLE,
                            description="Withholding tax receivable"),
        ]


class CustomerPaymentRule(BasePostingRule):
    """Payment received: the bank account goes up and the receivable comes down."""

    @property
    def document_kind(self) -> DocumentKind:
        return DocumentKind.CUSTOMER_PAYMENT

    def compute_lines(self, document: Payment) -> list[LineSpec]:
        memo = f"Payment from {document.party_ref}"
        return [
            LineSpec.debit(document.amount, account_code=document.bank_account_code,
                           description=memo),
            LineSpec.credit(document.amount, role=AccountRole.ACCOUNTS_RECEIVABLE,
                            description="Accounts receivable"),
        ]

    def check_preconditions(
        self, document: Payment, accounts: Mapping[str, AccountSnapshot],
    ) -> None:
        require_bank_account(accounts, document.bank_account_code)


def register(registry: PostingRuleRegistry) -> None:
    """Register all AR rules."""
    rules = (SalesInvoiceRule(), CreditNoteRule(), CustomerPaymentRule())
    for rule in rules:
        registry.register(rule)
    logger.info("ar_profiles_registered", extra={"profile_count": len(rules)})
