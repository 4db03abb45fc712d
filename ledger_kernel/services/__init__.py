"""Imperative shell: ledger stores and the posting engine."""

from ledger_kernel.services.ledger_store import InMemoryLedgerStore, LedgerStore
from ledger_kernel.services.posting_engine import PostingEngine
from ledger_kernel.services.sql_ledger_store import SqlAlchemyLedgerStore

__all__ = [
    "InMemoryLedgerStore",
    "LedgerStore",
    "PostingEngine",
    "SqlAlchemyLedgerStore",
]
