"""
Pure domain layer.

Value objects, documents and ledger types with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Wall-clock time

All domain objects are immutable and deterministic.
"""

from ledger_kernel.domain.chart import AccountChart
from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from ledger_kernel.domain.documents import (
    AssemblyBuild,
    BankTransfer,
    ComponentConsumption,
    Document,
    DocumentKind,
    DocumentStatus,
    InventoryPosition,
    LineItem,
    PostableDocument,
    TaxLine,
    TaxType,
)
from ledger_kernel.domain.ledger import (
    AccountSnapshot,
    AccountType,
    EntryBuilder,
    EntrySide,
    LedgerEntry,
    LineSpec,
    ResolvedLine,
    Transaction,
    TransactionStatus,
    apply_entry,
    balance_delta,
)
from ledger_kernel.domain.values import Currency, Money

__all__ = [
    "AccountChart",
    "AccountSnapshot",
    "AccountType",
    "AssemblyBuild",
    "BankTransfer",
    "Clock",
    "ComponentConsumption",
    "Currency",
    "CurrencyInfo",
    "CurrencyRegistry",
    "DeterministicClock",
    "Document",
    "DocumentKind",
    "DocumentStatus",
    "EntryBuilder",
    "EntrySide",
    "InventoryPosition",
    "LedgerEntry",
    "LineItem",
    "LineSpec",
    "Money",
    "PostableDocument",
    "ResolvedLine",
    "SystemClock",
    "TaxLine",
    "TaxType",
    "Transaction",
    "TransactionStatus",
    "apply_entry",
    "balance_delta",
]
