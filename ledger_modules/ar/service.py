"""
ledger_modules.ar.service
=========================

Responsibility:
    Issues customer invoices and credit notes: computes the document
    totals the customer sees, posts the document, and hands back the
    posted copy.  Also records payments received from customers.
    Thin glue -- no calculation logic of its own.

Usage::

    service = InvoicingService(engine)
    totals, transaction, posted = service.issue(invoice)
"""

from __future__ import annotations

from ledger_engines.totals import DocumentTotals, DocumentTotalsCalculator
from ledger_kernel.domain.documents import Document, DocumentKind, Payment
from ledger_kernel.domain.ledger import Transaction
from ledger_kernel.exceptions import InvalidDocumentError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.services.posting_engine import PostingEngine

logger = get_logger("modules.ar.service")

_AR_KINDS = frozenset({DocumentKind.SALES_INVOICE, DocumentKind.CREDIT_NOTE})


class InvoicingService:
    """Issue AR documents through the posting engine."""

    def __init__(self, engine: PostingEngine, calculator: DocumentTotalsCalculator | None = None):
        self._engine = engine
        self._calculator = calculator or DocumentTotalsCalculator()

    def preview(self, document: Document) -> DocumentTotals:
        return self._calculator.compute(document.lines, document.currency)

    def issue(self, document: Document) -> tuple[DocumentTotals, Transaction, Document]:
        if document.kind not in _AR_KINDS:
            raise InvalidDocumentError(
                f"{document.kind.value} is not a receivables document", document.document_id,
            )
        totals = self.preview(document)
        transaction = self._engine.post(document)
        logger.info("ar_document_issued", extra={
            "document_id": document.document_id,
            "document_kind": document.kind.value,
            "amount_due": str(totals.amount_due.amount),
            "transaction_number": transaction.transaction_number,
        })
        return totals, transaction, document.mark_posted()

    def receive_payment(self, payment: Payment) -> tuple[Transaction, Payment]:
        if payment.kind != DocumentKind.CUSTOMER_PAYMENT:
            raise InvalidDocumentError(
                f"{payment.kind.value} is not a customer payment", payment.document_id,
            )
        transaction = self._engine.post(payment)
        logger.info("ar_payment_received", extra={
            "document_id": payment.document_id,
            "party_ref": payment.party_ref,
            "amount": str(payment.amount.amount),
            "allocation_count": len(payment.allocations),
            "transaction_number": transaction.transaction_number,
        })
        return transaction, payment.mark_posted()
