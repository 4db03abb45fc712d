"""
ledger_modules.ap.service
=========================

Responsibility:
    Enters supplier bills and pays vendors.  Bills are totalled, posted
    and returned as posted copies.  Thin glue over the posting engine.
"""

from __future__ import annotations

from ledger_engines.totals import DocumentTotals, DocumentTotalsCalculator
from ledger_kernel.domain.documents import Document, DocumentKind, Payment
from ledger_kernel.domain.ledger import Transaction
from ledger_kernel.exceptions import InvalidDocumentError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.services.posting_engine import PostingEngine

logger = get_logger("modules.ap.service")


class PayablesService:
    """Enter AP bills through the posting engine."""

    def __init__(self, engine: PostingEngine, calculator: DocumentTotalsCalculator | None = None):
        self._engine = engine
        self._calculator = calculator or DocumentTotalsCalculator()

    def enter_bill(self, bill: Document) -> tuple[DocumentTotals, Transaction, Document]:
        if bill.kind != DocumentKind.PURCHASE_BILL:
            raise InvalidDocumentError(f"{bill.kind.value} is not a purchase bill", bill.document_id)
        totals = self._calculator.compute(bill.lines, bill.currency)
        transaction = self._engine.post(bill)
        logger.info("ap_bill_entered", extra={
            "document_id": bill.document_id,
            "payable": str(totals.amount_due.amount),
            "withholding": str(totals.withholding.amount),
            "transaction_number": transaction.transaction_number,
        })
        return totals, transaction, bill.mark_posted()

    def pay_vendor(self, payment: Payment) -> tuple[Transaction, Payment]:
        """Post a vendor payment; raises InsufficientFundsError if the bank account is short."""
        if payment.kind != DocumentKind.VENDOR_PAYMENT:
            raise InvalidDocumentError(f"{payment.kind.value} is not a vendor payment", payment.document_id)
        transaction = self._engine.post(payment)
        logger.info("ap_vendor_paid", extra={
            "document_id": payment.document_id,
            "party_ref": payment.party_ref,
            "amount": str(payment.amount.amount),
            "transaction_number": transaction.transaction_number,
        })
        return transaction, payment.mark_posted()
