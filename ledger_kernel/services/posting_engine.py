"""
PostingEngine -- turns source documents into balanced, recorded transactions.

Responsibility:
    Orchestrates one posting: rule lookup, line computation, role
    resolution, account locking, precondition checks, entry building,
    balance updates and recording, all inside a single store unit.  Also
    reverses posted transactions with a mirror transaction.

Architecture position:
    Kernel > Services -- imperative shell.  Pure pieces (rules, EntryBuilder,
    sign convention) live in domain/ and posting_rules/; persistence lives
    behind LedgerStore.

Invariants enforced:
    - A document is posted at most once (status check + store lookup +
      UNIQUE source_document_id).
    - Every recorded transaction balances exactly.
    - Running balances follow the account-type sign convention.
    - Any failure inside the unit leaves entries and balances untouched.
    - Transactions carry at least one debit and one credit.

Failure modes:
    - AlreadyPostedError, PostingRuleNotFoundError, AccountRoleNotBoundError,
      AccountNotFoundError, InvalidAccountError, UnbalancedTransactionError,
      plus whatever the rule raises (InsufficientFundsError,
      SameAccountTransferError, InvalidOutputQuantityError, ...).
    - TransactionNotFoundError / AlreadyReversedError from ``reverse``.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from ledger_kernel.domain.chart import AccountChart
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.documents import DocumentKind, PostableDocument
from ledger_kernel.domain.ledger import (
    AccountSnapshot,
    EntryBuilder,
    LedgerEntry,
    LineSpec,
    ResolvedLine,
    Transaction,
    apply_entry,
    format_transaction_number,
    transaction_prefix,
)
from ledger_kernel.domain.values import Currency
from ledger_kernel.exceptions import (
    AlreadyPostedError,
    AlreadyReversedError,
    InvalidAccountError,
    InvalidDocumentError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.posting_rules.registry import PostingRuleRegistry, get_default_registry
from ledger_kernel.services.ledger_store import LedgerStore

logger = get_logger("services.posting_engine")


class PostingEngine:
    """
    Posts documents to a LedgerStore.

    Contract:
        ``post(document)`` returns the recorded Transaction or raises; it
        never records a partial result.  The engine holds no state between
        calls besides its collaborators.

    Args:
        store: Where accounts live and transactions are recorded.
        chart: Role -> account code bindings used by posting rules.
        registry: Posting rules; defaults to the process-wide registry.
        clock: Source of ``posted_at``; defaults to the system clock.
    """

    def __init__(
        self,
        store: LedgerStore,
        chart: AccountChart,
        registry: PostingRuleRegistry | None = None,
        clock: Clock | None = None,
    ):
        self._store = store
        self._chart = chart
        self._registry = registry if registry is not None else get_default_registry()
        self._clock = clock or SystemClock()

    def propose(self, document: PostableDocument) -> tuple[LedgerEntry, ...]:
        """Compute the balanced entries for ``document`` without touching the store."""
        rule = self._registry.require_rule(document.kind)
        rule.validate(document)
        lines = self._resolve(rule.compute_lines(document))
        entries = EntryBuilder(document.currency).build(lines)
        self._validate_entries(document.document_id, entries)
        return entries

    def post(self, document: PostableDocument) -> Transaction:
        t0 = time.monotonic()
        with LogContext.bind(document_id=document.document_id):
            logger.info("posting_started", extra={
                "document_kind": document.kind.value,
                "currency": document.currency.code,
            })

            if document.is_posted:
                logger.warning("posting_rejected_already_posted", extra={"reason": "status"})
                raise AlreadyPostedError(document.document_id)

            rule = self._registry.require_rule(document.kind)
            rule.validate(document)
            lines = self._resolve(rule.compute_lines(document))

            with self._store.atomic():
                existing = self._store.find_transaction_by_source(document.document_id)
                if existing is not None:
                    logger.warning("posting_rejected_already_posted", extra={
                        "reason": "ledger",
                        "transaction_id": str(existing.transaction_id),
                    })
                    raise AlreadyPostedError(document.document_id, str(existing.transaction_id))

                accounts = self._store.lock_accounts(line.account_code for line in lines)
                self._check_accounts(accounts.values(), document.currency)
                rule.check_preconditions(document, accounts)

                entries = EntryBuilder(document.currency).build(lines)
                self._validate_entries(document.document_id, entries)

                transaction = self._new_transaction(
                    kind=document.kind,
                    source_document_id=document.document_id,
                    effective_date=document.effective_date,
                    currency=document.currency,
                    entries=entries,
                    description=rule.describe(document),
                )
                balances = self._apply(accounts, entries)
                self._store.record(transaction, balances)

            logger.info("posting_completed", extra={
                "transaction_id": str(transaction.transaction_id),
                "transaction_number": transaction.transaction_number,
                "entry_count": len(transaction.entries),
                "total_debits": str(transaction.total_debits),
                "total_credits": str(transaction.total_credits),
                "duration_ms": round((time.monotonic() - t0) * 1000, 2),
            })
            return transaction

    def reverse(
        self,
        transaction_id: UUID,
        reason: str = "",
        effective_date: date | None = None,
    ) -> Transaction:
        """
        Void a posted transaction by recording its mirror image.

        The original is marked REVERSED; the reversal carries
        ``reversal_of`` pointing at it. A reversal cannot itself be reversed.
        """
        with LogContext.bind(transaction_id=str(transaction_id)):
            logger.info("reversal_started", extra={"reason": reason})
            with self._store.atomic():
                original = self._store.get_transaction(transaction_id)
                if original.is_reversed:
                    raise AlreadyReversedError(str(transaction_id))
                if original.document_kind == DocumentKind.REVERSAL:
                    raise InvalidDocumentError(
                        "a reversal cannot be reversed", original.source_document_id,
                    )

                entries = tuple(entry.reversed() for entry in original.entries)
                accounts = self._store.lock_accounts(e.account_code for e in entries)
                reversal = self._new_transaction(
                    kind=DocumentKind.REVERSAL,
                    source_document_id=f"REV:{original.source_document_id}",
                    effective_date=effective_date or self._clock.today(),
                    currency=original.currency,
                    entries=entries,
                    description=reason or f"Reversal of {original.transaction_number}",
                    reversal_of=original.transaction_id,
                )
                self._store.record(reversal, self._apply(accounts, entries))
                self._store.mark_reversed(original.transaction_id)

            logger.info("reversal_completed", extra={
                "reversal_transaction_id": str(reversal.transaction_id),
                "transaction_number": reversal.transaction_number,
            })
            return reversal

    # -- helpers ----------------------------------------------------------

    def _resolve(self, specs: Sequence[LineSpec]) -> list[ResolvedLine]:
        return [
            ResolvedLine(
                account_code=spec.account_code or self._chart.resolve(spec.role),
                side=spec.side,
                amount=spec.amount,
                description=spec.description,
                is_residual=spec.is_residual,
            )
            for spec in specs
        ]

    @staticmethod
    def _check_accounts(accounts: Iterable[AccountSnapshot], currency: Currency) -> None:
        for account in accounts:
            if not account.is_active:
                raise InvalidAccountError(account.code, "account is inactive")
            if account.currency != currency:
                raise InvalidAccountError(
                    account.code,
                    f"account currency {account.currency.code} does not match {currency.code}",
                )

    @staticmethod
    def _validate_entries(document_id: str, entries: Sequence[LedgerEntry]) -> None:
        has_debit = any(e.is_debit for e in entries)
        has_credit = any(not e.is_debit for e in entries)
        if len(entries) < 2 or not (has_debit and has_credit):
            logger.error("posting_rejected_insufficient_entries", extra={
                "entry_count": len(entries),
            })
            raise InvalidDocumentError(
                "a transaction needs at least one debit and one credit entry", document_id,
            )

    @staticmethod
    def _apply(
        accounts: Mapping[str, AccountSnapshot], entries: Iterable[LedgerEntry],
    ) -> dict[str, Decimal]:
        balances = {code: account.running_balance for code, account in accounts.items()}
        for entry in entries:
            account = accounts[entry.account_code]
            balances[entry.account_code] = apply_entry(
                account.account_type, balances[entry.account_code], entry.side, entry.amount.amount,
            )
        return balances

    def _new_transaction(
        self,
        *,
        kind: DocumentKind,
        source_document_id: str,
        effective_date: date,
        currency: Currency,
        entries: tuple[LedgerEntry, ...],
        description: str,
        reversal_of: UUID | None = None,
    ) -> Transaction:
        year = effective_date.year
        sequence = self._store.next_sequence(f"{transaction_prefix(kind)}-{year}")
        return Transaction(
            transaction_id=uuid4(),
            transaction_number=format_transaction_number(kind, year, sequence),
            source_document_id=source_document_id,
            document_kind=kind,
            effective_date=effective_date,
            currency=currency,
            entries=entries,
            posted_at=self._clock.now(),
            description=description,
            reversal_of=reversal_of,
        )
