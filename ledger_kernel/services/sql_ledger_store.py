"""
SqlAlchemyLedgerStore -- LedgerStore backed by the ledger ORM models.

Responsibility:
    Maps between domain Transactions / AccountSnapshots and the accounts,
    ledger_transactions, ledger_lines and sequence_counters tables.

Architecture position:
    Kernel > Services -- imperative shell.  Flushes within the caller's
    session and never commits; the caller (session_scope() or a test
    fixture) owns the outer transaction.

Invariants enforced:
    - Each ``atomic()`` unit is a SAVEPOINT: a failure rolls back every row
      and balance written inside it, while earlier work in the session
      survives.
    - Accounts are locked with SELECT ... FOR UPDATE in code order, so two
      postings touching the same accounts cannot deadlock or interleave.
    - A racing duplicate of the same source document hits the UNIQUE
      constraint and surfaces as AlreadyPostedError.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_kernel.domain.arithmetic import round_to, to_decimal
from ledger_kernel.domain.documents import DocumentKind
from ledger_kernel.domain.ledger import (
    AccountSnapshot,
    AccountType,
    EntrySide,
    LedgerEntry,
    Transaction,
    TransactionStatus,
)
from ledger_kernel.domain.values import Currency, Money
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    AlreadyPostedError,
    InvalidAccountError,
    TransactionNotFoundError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import LedgerLine, LedgerTransaction
from ledger_kernel.models.sequence import SequenceCounter
from ledger_kernel.services.ledger_store import LedgerStore

logger = get_logger("services.sql_ledger_store")


def _utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class SqlAlchemyLedgerStore(LedgerStore):
    """
    Ledger store on a SQLAlchemy session.

    Args:
        session: Open session; the caller commits.
        actor_id: Recorded as created_by_id / updated_by_id on written rows.
    """

    def __init__(self, session: Session, actor_id: UUID):
        self._session = session
        self._actor_id = actor_id

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._session.begin_nested():
            yield

    # -- accounts ---------------------------------------------------------

    def open_account(
        self,
        code: str,
        name: str,
        account_type: AccountType,
        currency: Currency | str,
        opening_balance: Decimal | int | str = Decimal("0"),
        is_active: bool = True,
    ) -> AccountSnapshot:
        currency = currency if isinstance(currency, Currency) else Currency(currency)
        row = Account(
            code=code,
            name=name,
            account_type=AccountType(account_type).value,
            currency=currency.code,
            running_balance=to_decimal(opening_balance),
            is_active=is_active,
            created_by_id=self._actor_id,
        )
        try:
            with self._session.begin_nested():
                self._session.add(row)
                self._session.flush()
        except IntegrityError:
            raise InvalidAccountError(code, "account code already exists") from None
        logger.debug("account_opened", extra={
            "account_code": code,
            "account_type": row.account_type,
            "opening_balance": str(row.running_balance),
        })
        return self._account_to_domain(row)

    def get_account(self, code: str) -> AccountSnapshot:
        row = self._session.execute(
            select(Account)
            .where(Account.code == code)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if row is None:
            raise AccountNotFoundError(code)
        return self._account_to_domain(row)

    def lock_accounts(self, codes: Iterable[str]) -> dict[str, AccountSnapshot]:
        wanted = sorted(set(codes))
        rows = self._lock_rows(wanted)
        for code in wanted:
            if code not in rows:
                raise AccountNotFoundError(code)
        return {code: self._account_to_domain(rows[code]) for code in wanted}

    def _lock_rows(self, codes: list[str]) -> dict[str, Account]:
        rows = self._session.execute(
            select(Account)
            .where(Account.code.in_(codes))
            .order_by(Account.code)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()
        return {row.code: row for row in rows}

    # -- transactions -----------------------------------------------------

    def find_transaction_by_source(self, source_document_id: str) -> Transaction | None:
        row = self._session.execute(
            select(LedgerTransaction).where(
                LedgerTransaction.source_document_id == source_document_id
            )
        ).scalar_one_or_none()
        return self._transaction_to_domain(row) if row is not None else None

    def get_transaction(self, transaction_id: UUID) -> Transaction:
        row = self._session.get(LedgerTransaction, transaction_id, populate_existing=True)
        if row is None:
            raise TransactionNotFoundError(str(transaction_id))
        return self._transaction_to_domain(row)

    def list_transactions(self) -> list[Transaction]:
        rows = self._session.execute(
            select(LedgerTransaction).order_by(LedgerTransaction.posted_at, LedgerTransaction.transaction_number)
        ).scalars().all()
        return [self._transaction_to_domain(row) for row in rows]

    def next_sequence(self, name: str) -> int:
        counter = self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if counter is None:
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(name=name, current_value=1)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                return 1
            except IntegrityError:
                logger.debug("sequence_counter_race_retry", extra={"sequence_name": name})
                savepoint.rollback()
                counter = self._session.execute(
                    select(SequenceCounter)
                    .where(SequenceCounter.name == name)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                ).scalar_one()

        counter.current_value += 1
        self._session.flush()
        return counter.current_value

    def record(self, transaction: Transaction, balances: Mapping[str, Decimal]) -> None:
        codes = sorted({e.account_code for e in transaction.entries} | set(balances))
        accounts = self._lock_rows(codes)
        for code in codes:
            if code not in accounts:
                raise AccountNotFoundError(code)

        row = LedgerTransaction(
            id=transaction.transaction_id,
            transaction_number=transaction.transaction_number,
            source_document_id=transaction.source_document_id,
            document_kind=transaction.document_kind.value,
            effective_date=transaction.effective_date,
            currency=transaction.currency.code,
            description=transaction.description,
            status=transaction.status.value,
            posted_at=transaction.posted_at,
            reversal_of_id=transaction.reversal_of,
            created_by_id=self._actor_id,
        )
        for seq, entry in enumerate(transaction.entries):
            row.lines.append(LedgerLine(
                account_id=accounts[entry.account_code].id,
                side=entry.side.value,
                amount=entry.amount.amount,
                currency=entry.amount.currency.code,
                description=entry.description,
                is_residual=entry.is_residual,
                line_seq=seq,
                created_by_id=self._actor_id,
            ))

        for code, balance in balances.items():
            account = accounts[code]
            account.running_balance = balance
            account.updated_by_id = self._actor_id

        self._session.add(row)
        try:
            self._session.flush()
        except IntegrityError as exc:
            logger.warning("transaction_duplicate_source", extra={
                "source_document_id": transaction.source_document_id,
            })
            raise AlreadyPostedError(transaction.source_document_id) from exc

    def mark_reversed(self, transaction_id: UUID) -> None:
        row = self._session.execute(
            select(LedgerTransaction)
            .where(LedgerTransaction.id == transaction_id)
            .with_for_update()
        ).scalar_one_or_none()
        if row is None:
            raise TransactionNotFoundError(str(transaction_id))
        row.status = TransactionStatus.REVERSED.value
        row.updated_by_id = self._actor_id
        self._session.flush()

    # -- mapping ----------------------------------------------------------

    @staticmethod
    def _account_to_domain(row: Account) -> AccountSnapshot:
        currency = Currency(row.currency)
        return AccountSnapshot(
            code=row.code,
            name=row.name,
            account_type=AccountType(row.account_type),
            running_balance=round_to(row.running_balance, currency.decimal_places),
            currency=currency,
            is_active=row.is_active,
        )

    @staticmethod
    def _transaction_to_domain(row: LedgerTransaction) -> Transaction:
        currency = Currency(row.currency)
        entries = tuple(
            LedgerEntry(
                account_code=line.account.code,
                side=EntrySide(line.side),
                amount=Money(line.amount, Currency(line.currency)).round(),
                description=line.description,
                is_residual=line.is_residual,
            )
            for line in row.lines
        )
        return Transaction(
            transaction_id=row.id,
            transaction_number=row.transaction_number,
            source_document_id=row.source_document_id,
            document_kind=DocumentKind(row.document_kind),
            effective_date=row.effective_date,
            currency=currency,
            entries=entries,
            posted_at=_utc(row.posted_at),
            description=row.description,
            status=TransactionStatus(row.status),
            reversal_of=row.reversal_of_id,
        )
