"""Accounts receivable: sales invoices, credit notes and customer payments."""

from ledger_modules.ar.profiles import (
    AccountRole,
    CreditNoteRule,
    CustomerPaymentRule,
    SalesInvoiceRule,
)
from ledger_modules.ar.service import InvoicingService

__all__ = [
    "AccountRole",
    "CreditNoteRule",
    "CustomerPaymentRule",
    "InvoicingService",
    "SalesInvoiceRule",
]
