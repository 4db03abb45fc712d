"""ORM models for the ledger kernel."""

from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import LedgerLine, LedgerTransaction
from ledger_kernel.models.sequence import SequenceCounter

__all__ = [
    "Account",
    "LedgerLine",
    "LedgerTransaction",
    "SequenceCounter",
]
