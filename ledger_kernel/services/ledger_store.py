"""
LedgerStore -- the persistence boundary the posting engine writes through.

Responsibility:
    Defines the operations the engine needs from storage: account lookup with
    row locking, idempotency lookup by source document, transaction
    numbering, and an all-or-nothing unit (``atomic()``) in which a
    transaction and its balance updates are recorded together.

    ``InMemoryLedgerStore`` implements it with a reentrant lock and
    snapshot/restore; ``SqlAlchemyLedgerStore`` (sql_ledger_store.py) with a
    savepoint and SELECT ... FOR UPDATE.

Invariants enforced:
    - A source document id maps to at most one transaction.
    - Balances change only through ``record()`` and only inside ``atomic()``.
    - A failure anywhere inside ``atomic()`` leaves no trace.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Mapping
from contextlib import AbstractContextManager, contextmanager
from dataclasses import replace
from decimal import Decimal
from uuid import UUID

from ledger_kernel.domain.arithmetic import to_decimal
from ledger_kernel.domain.ledger import (
    AccountSnapshot,
    AccountType,
    Transaction,
    TransactionStatus,
)
from ledger_kernel.domain.values import Currency
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    AlreadyPostedError,
    InvalidAccountError,
    TransactionNotFoundError,
)
from ledger_kernel.logging_config import get_logger

logger = get_logger("services.ledger_store")


class LedgerStore(ABC):
    """Storage operations required by the PostingEngine."""

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """All-or-nothing unit. Exceptions propagate after the unit is undone."""

    @abstractmethod
    def open_account(
        self,
        code: str,
        name: str,
        account_type: AccountType,
        currency: Currency | str,
        opening_balance: Decimal | int | str = Decimal("0"),
        is_active: bool = True,
    ) -> AccountSnapshot:
        ...

    @abstractmethod
    def get_account(self, code: str) -> AccountSnapshot:
        """Current account state; AccountNotFoundError when unknown."""

    @abstractmethod
    def lock_accounts(self, codes: Iterable[str]) -> dict[str, AccountSnapshot]:
        """
        Lock and return the named accounts for the rest of the unit.

        Locks are taken in code order. Raises AccountNotFoundError for the
        first unknown code.
        """

    @abstractmethod
    def find_transaction_by_source(self, source_document_id: str) -> Transaction | None:
        ...

    @abstractmethod
    def get_transaction(self, transaction_id: UUID) -> Transaction:
        """TransactionNotFoundError when unknown."""

    @abstractmethod
    def list_transactions(self) -> list[Transaction]:
        ...

    @abstractmethod
    def next_sequence(self, name: str) -> int:
        """Next value (starting at 1) of a named counter."""

    @abstractmethod
    def record(self, transaction: Transaction, balances: Mapping[str, Decimal]) -> None:
        """Persist ``transaction`` and set each account's new running balance."""

    @abstractmethod
    def mark_reversed(self, transaction_id: UUID) -> None:
        ...


class InMemoryLedgerStore(LedgerStore):
    """
    Process-local store for tests, previews and single-process tools.

    Every ``atomic()`` unit holds a reentrant lock, so concurrent postings
    are serialised and no balance update is lost.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._accounts: dict[str, AccountSnapshot] = {}
        self._transactions: dict[UUID, Transaction] = {}
        self._by_source: dict[str, UUID] = {}
        self._sequences: dict[str, int] = {}

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            snapshot = (
                dict(self._accounts),
                dict(self._transactions),
                dict(self._by_source),
                dict(self._sequences),
            )
            try:
                yield
            except BaseException:
                (
                    self._accounts,
                    self._transactions,
                    self._by_source,
                    self._sequences,
                ) = snapshot
                logger.debug("in_memory_unit_rolled_back")
                raise

    def open_account(
        self,
        code: str,
        name: str,
        account_type: AccountType,
        currency: Currency | str,
        opening_balance: Decimal | int | str = Decimal("0"),
        is_active: bool = True,
    ) -> AccountSnapshot:
        with self._lock:
            if code in self._accounts:
                raise InvalidAccountError(code, "account code already exists")
            account = AccountSnapshot(
                code=code,
                name=name,
                account_type=AccountType(account_type),
                running_balance=to_decimal(opening_balance),
                currency=currency if isinstance(currency, Currency) else Currency(currency),
                is_active=is_active,
            )
            self._accounts[code] = account
            logger.debug("account_opened", extra={
                "account_code": code,
                "account_type": account.account_type.value,
                "opening_balance": str(account.running_balance),
            })
            return account

    def get_account(self, code: str) -> AccountSnapshot:
        with self._lock:
            try:
                return self._accounts[code]
            except KeyError:
                raise AccountNotFoundError(code) from None

    def lock_accounts(self, codes: Iterable[str]) -> dict[str, AccountSnapshot]:
        # The unit lock already serialises writers; per-account locks add nothing.
        with self._lock:
            return {code: self.get_account(code) for code in sorted(set(codes))}

    def find_transaction_by_source(self, source_document_id: str) -> Transaction | None:
        with self._lock:
            transaction_id = self._by_source.get(source_document_id)
            return self._transactions[transaction_id] if transaction_id else None

    def get_transaction(self, transaction_id: UUID) -> Transaction:
        with self._lock:
            try:
                return self._transactions[transaction_id]
            except KeyError:
                raise TransactionNotFoundError(str(transaction_id)) from None

    def list_transactions(self) -> list[Transaction]:
        with self._lock:
            return list(self._transactions.values())

    def next_sequence(self, name: str) -> int:
        with self._lock:
            value = self._sequences.get(name, 0) + 1
            self._sequences[name] = value
            return value

    def record(self, transaction: Transaction, balances: Mapping[str, Decimal]) -> None:
        with self._lock:
            existing = self._by_source.get(transaction.source_document_id)
            if existing is not None:
                raise AlreadyPostedError(transaction.source_document_id, str(existing))
            for code, balance in balances.items():
                self._accounts[code] = self.get_account(code).with_balance(balance)
            self._transactions[transaction.transaction_id] = transaction
            self._by_source[transaction.source_document_id] = transaction.transaction_id

    def mark_reversed(self, transaction_id: UUID) -> None:
        with self._lock:
            original = self.get_transaction(transaction_id)
            self._transactions[transaction_id] = replace(
                original, status=TransactionStatus.REVERSED,
            )
