"""
Ledger -- transactions, entries, accounts and the entry builder.

Responsibility:
    Pure domain types for the output side of posting (Transaction,
    LedgerEntry, AccountSnapshot), the account-type sign convention, and the
    EntryBuilder that rounds proposed lines, absorbs rounding residue into a
    single designated entry and proves the result balances.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Used by the PostingEngine and by the ledger stores.

Invariants enforced:
    - Sum of debits == sum of credits exactly for every Transaction.
    - Entry amounts are non-negative; the side carries the direction.
    - At most one entry absorbs rounding residue, and never more than one
      minor unit per entry.
    - ASSET/EXPENSE: debit increases the balance.
      LIABILITY/EQUITY/REVENUE: credit increases the balance.

Failure modes:
    - UnbalancedTransactionError when debits != credits after rounding.
    - RoundingAmountExceededError when the residue is too large to be rounding.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.domain.arithmetic import add, multiply, subtract, sum_decimals
from ledger_kernel.domain.documents import DocumentKind
from ledger_kernel.domain.values import Currency, Money
from ledger_kernel.exceptions import (
    CurrencyMismatchError,
    InvalidAmountError,
    RoundingAmountExceededError,
    UnbalancedTransactionError,
)
from ledger_kernel.logging_config import get_logger

logger = get_logger("domain.ledger")


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"

    @property
    def is_debit_normal(self) -> bool:
        return self in (AccountType.ASSET, AccountType.EXPENSE)


class EntrySide(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"

    def flipped(self) -> EntrySide:
        return EntrySide.CREDIT if self == EntrySide.DEBIT else EntrySide.DEBIT


class TransactionStatus(str, Enum):
    """One-way lifecycle: POSTED -> REVERSED."""

    POSTED = "posted"
    REVERSED = "reversed"


TRANSACTION_PREFIXES: dict[DocumentKind, str] = {
    DocumentKind.SALES_INVOICE: "INV",
    DocumentKind.CREDIT_NOTE: "CN",
    DocumentKind.PURCHASE_BILL: "BILL",
    DocumentKind.BANK_TRANSFER: "TRF",
    DocumentKind.ASSEMBLY_BUILD: "ASM",
    DocumentKind.CUSTOMER_PAYMENT: "RCPT",
    DocumentKind.VENDOR_PAYMENT: "PAY",
    DocumentKind.REVERSAL: "REV",
}


def transaction_prefix(kind: DocumentKind) -> str:
    return TRANSACTION_PREFIXES.get(kind, "JE")


def format_transaction_number(kind: DocumentKind, year: int, sequence: int) -> str:
    """INV-2025-0001 style numbering."""
    return f"{transaction_prefix(kind)}-{year}-{sequence:04d}"


def balance_delta(account_type: AccountType, side: EntrySide, amount: Decimal) -> Decimal:
    """Signed change an entry makes to an account's running balance."""
    increases = (side == EntrySide.DEBIT) == account_type.is_debit_normal
    return amount if increases else -amount


def apply_entry(
    account_type: AccountType, balance: Decimal, side: EntrySide, amount: Decimal,
) -> Decimal:
    return add(balance, balance_delta(account_type, side, amount))


@dataclass(frozen=True)
class AccountSnapshot:
    """Point-in-time view of an account, as returned by a ledger store."""

    code: str
    name: str
    account_type: AccountType
    running_balance: Decimal
    currency: Currency
    is_active: bool = True

    @property
    def balance(self) -> Money:
        return Money(self.running_balance, self.currency)

    def with_balance(self, running_balance: Decimal) -> AccountSnapshot:
        return replace(self, running_balance=running_balance)


@dataclass(frozen=True)
class LedgerEntry:
    """One debit or credit against one account."""

    account_code: str
    side: EntrySide
    amount: Money
    description: str = ""
    is_residual: bool = False

    def __post_init__(self) -> None:
        if self.amount.is_negative:
            raise InvalidAmountError(self.amount.amount, "entry amounts must be non-negative")

    @property
    def is_debit(self) -> bool:
        return self.side == EntrySide.DEBIT

    def reversed(self) -> LedgerEntry:
        return replace(self, side=self.side.flipped(), is_residual=False)


@dataclass(frozen=True)
class Transaction:
    """
    A balanced set of ledger entries derived from one source document.

    ``source_document_id`` is unique across the ledger: a document maps to
    at most one posted transaction.
    """

    transaction_id: UUID
    transaction_number: str
    source_document_id: str
    document_kind: DocumentKind
    effective_date: date
    currency: Currency
    entries: tuple[LedgerEntry, ...]
    posted_at: datetime
    description: str = ""
    status: TransactionStatus = TransactionStatus.POSTED
    reversal_of: UUID | None = None

    @property
    def total_debits(self) -> Decimal:
        return sum_decimals(e.amount.amount for e in self.entries if e.is_debit)

    @property
    def total_credits(self) -> Decimal:
        return sum_decimals(e.amount.amount for e in self.entries if not e.is_debit)

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits

    @property
    def is_reversed(self) -> bool:
        return self.status == TransactionStatus.REVERSED

    def entries_for(self, account_code: str) -> tuple[LedgerEntry, ...]:
        return tuple(e for e in self.entries if e.account_code == account_code)

    def net_change(self, account_code: str, account_type: AccountType) -> Decimal:
        return sum_decimals(
            balance_delta(account_type, e.side, e.amount.amount)
            for e in self.entries_for(account_code)
        )


@dataclass(frozen=True)
class LineSpec:
    """
    A proposed ledger entry produced by a posting rule.

    Names either a chart role (resolved through the AccountChart) or an
    explicit account code. Amounts may carry more precision than the
    currency; the EntryBuilder rounds them.
    """

    side: EntrySide
    amount: Money
    role: str | None = None
    account_code: str | None = None
    description: str = ""
    is_residual: bool = False

    def __post_init__(self) -> None:
        if (self.role is None) == (self.account_code is None):
            raise ValueError("LineSpec needs exactly one of role or account_code")
        if self.amount.is_negative:
            raise InvalidAmountError(self.amount.amount, "line amounts must be non-negative")

    @classmethod
    def debit(cls, amount: Money, *, role: str | None = None, account_code: str | None = None,
              description: str = "", is_residual: bool = False) -> LineSpec:
        return cls(EntrySide.DEBIT, amount, role, account_code, description, is_residual)

    @classmethod
    def credit(cls, amount: Money, *, role: str | None = None, account_code: str | None = None,
               description: str = "", is_residual: bool = False) -> LineSpec:
        return cls(EntrySide.CREDIT, amount, role, account_code, description, is_residual)


@dataclass(frozen=True)
class ResolvedLine:
    """A LineSpec whose account has been resolved to a code."""

    account_code: str
    side: EntrySide
    amount: Money
    description: str = ""
    is_residual: bool = False


class EntryBuilder:
    """
    Turns resolved lines into balanced ledger entries.

    Every amount is rounded half-up to the currency precision. If the
    rounded debits and credits differ, the difference is absorbed by the one
    line flagged ``is_residual``; the difference may not exceed one minor
    unit per line. Zero-amount lines are dropped after balancing.
    """

    def __init__(self, currency: Currency):
        self._currency = currency

    def build(self, lines: Sequence[ResolvedLine]) -> tuple[LedgerEntry, ...]:
        for line in lines:
            if line.amount.currency != self._currency:
                raise CurrencyMismatchError(self._currency.code, line.amount.currency.code)

        rounded = [replace(line, amount=line.amount.round()) for line in lines]
        residual_indexes = [i for i, line in enumerate(rounded) if line.is_residual]
        if len(residual_indexes) > 1:
            raise ValueError(
                f"At most one residual line is allowed, got {len(residual_indexes)}"
            )

        imbalance = subtract(self._total(rounded, EntrySide.DEBIT), self._total(rounded, EntrySide.CREDIT))
        if not imbalance.is_zero():
            rounded = self._absorb(rounded, residual_indexes, imbalance)

        debits = self._total(rounded, EntrySide.DEBIT)
        credits = self._total(rounded, EntrySide.CREDIT)
        if debits != credits:
            logger.error("transaction_unbalanced", extra={
                "debits": str(debits),
                "credits": str(credits),
                "currency": self._currency.code,
            })
            raise UnbalancedTransactionError(str(debits), str(credits), self._currency.code)

        return tuple(
            LedgerEntry(
                account_code=line.account_code,
                side=line.side,
                amount=line.amount,
                description=line.description,
                is_residual=line.is_residual,
            )
            for line in rounded
            if not line.amount.is_zero
        )

    def _absorb(
        self,
        lines: list[ResolvedLine],
        residual_indexes: list[int],
        imbalance: Decimal,
    ) -> list[ResolvedLine]:
        debits = self._total(lines, EntrySide.DEBIT)
        credits = self._total(lines, EntrySide.CREDIT)
        if not residual_indexes:
            logger.error("transaction_unbalanced_no_residual_line", extra={
                "imbalance": str(imbalance),
                "currency": self._currency.code,
            })
            raise UnbalancedTransactionError(str(debits), str(credits), self._currency.code)

        threshold = multiply(self._currency.minor_unit, len(lines))
        if abs(imbalance) > threshold:
            logger.error("rounding_residual_exceeded", extra={
                "imbalance": str(imbalance),
                "threshold": str(threshold),
                "currency": self._currency.code,
            })
            raise RoundingAmountExceededError(str(abs(imbalance)), str(threshold), self._currency.code)

        index = residual_indexes[0]
        target = lines[index]
        # Debit target shrinks when debits are heavy; credit target grows.
        if target.side == EntrySide.DEBIT:
            adjusted = subtract(target.amount.amount, imbalance)
        else:
            adjusted = add(target.amount.amount, imbalance)
        if adjusted < 0:
            raise UnbalancedTransactionError(str(debits), str(credits), self._currency.code)

        logger.info("rounding_residual_assigned", extra={
            "account_code": target.account_code,
            "residual": str(imbalance),
            "currency": self._currency.code,
        })
        result = list(lines)
        result[index] = replace(target, amount=Money(adjusted, self._currency))
        return result

    @staticmethod
    def _total(lines: Iterable[ResolvedLine], side: EntrySide) -> Decimal:
        return sum_decimals(line.amount.amount for line in lines if line.side == side)
