"""
Concurrent posting through one shared in-memory store.

Threads are released together by a Barrier so postings genuinely
interleave at the engine level; the store's unit lock must keep numbering,
idempotency and balance checks consistent.
"""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from threading import Barrier

import pytest

from ledger_kernel.domain.ledger import AccountType
from ledger_kernel.exceptions import AlreadyPostedError, InsufficientFundsError
from tests.builders import make_document, make_transfer

THREADS = 8


def run_together(fn, args):
    """Run ``fn`` over ``args`` in threads, all started at once.

    Returns (results, errors) in completion-independent order.
    """
    barrier = Barrier(len(args))

    def call(arg):
        barrier.wait()
        try:
            return fn(arg), None
        except Exception as exc:
            return None, exc

    with ThreadPoolExecutor(max_workers=len(args)) as pool:
        outcomes = list(pool.map(call, args))
    results = [r for r, e in outcomes if e is None]
    errors = [e for r, e in outcomes if e is not None]
    return results, errors


class TestConcurrentInvoices:
    """Distinct documents posted at the same time."""

    def test_numbers_are_unique_and_gapless(self, engine, store):
        docs = [make_document(f"INV-C{i}") for i in range(THREADS)]

        results, errors = run_together(engine.post, docs)

        assert errors == []
        numbers = sorted(t.transaction_number for t in results)
        assert numbers == [f"INV-2025-{i:04d}" for i in range(1, THREADS + 1)]

    def test_balances_add_up(self, engine, store):
        docs = [make_document(f"INV-C{i}") for i in range(THREADS)]

        run_together(engine.post, docs)

        assert store.get_account("1200").running_balance == Decimal("1003.00") * THREADS
        assert store.get_account("4000").running_balance == Decimal("850.00") * THREADS
        assert store.get_account("2100").running_balance == Decimal("153.00") * THREADS
        assert len(store.list_transactions()) == THREADS


class TestConcurrentDuplicates:
    """The same document posted from several threads."""

    def test_exactly_one_post_succeeds(self, engine, store):
        doc = make_document("INV-DUP")

        results, errors = run_together(engine.post, [doc] * THREADS)

        assert len(results) == 1
        assert len(errors) == THREADS - 1
        assert all(isinstance(e, AlreadyPostedError) for e in errors)
        assert store.get_account("1200").running_balance == Decimal("1003.00")
        assert results[0].transaction_number == "INV-2025-0001"


class TestConcurrentTransfers:
    """Transfers racing against one source balance."""

    @pytest.fixture
    def funded_store(self, store):
        store.open_account("1110", "Savings", AccountType.ASSET, "USD", opening_balance="500.00")
        return store

    def test_source_never_overdrawn(self, engine, funded_store):
        transfers = [
            make_transfer(f"TRF-C{i}", source="1110", amount="100.00")
            for i in range(THREADS)
        ]

        results, errors = run_together(engine.post, transfers)

        assert len(results) == 5
        assert len(errors) == THREADS - 5
        assert all(isinstance(e, InsufficientFundsError) for e in errors)
        assert funded_store.get_account("1110").running_balance == Decimal("0.00")
        assert funded_store.get_account("1000").running_balance == Decimal("500.00")

    def test_failed_transfers_consume_no_numbers(self, engine, funded_store):
        transfers = [
            make_transfer(f"TRF-C{i}", source="1110", amount="100.00")
            for i in range(THREADS)
        ]

        results, _ = run_together(engine.post, transfers)

        numbers = sorted(t.transaction_number for t in results)
        assert numbers == [f"TRF-2025-{i:04d}" for i in range(1, 6)]
