"""Assembly build postings and the WIP service."""

from decimal import Decimal

import pytest

from ledger_kernel.domain.documents import InventoryPosition
from ledger_kernel.exceptions import InsufficientMaterialError, InvalidOutputQuantityError
from ledger_modules.wip import AssemblyService
from tests.builders import make_build, usd


def balance(store, code) -> Decimal:
    return store.get_account(code).running_balance


@pytest.fixture
def inventory():
    return {
        "RM-1": InventoryPosition("RM-1", Decimal("1000"), usd("5.00")),
        "FG-1": InventoryPosition("FG-1", Decimal("100"), usd("40.00")),
    }


class TestAssemblyPosting:
    """Tests for AssemblyBuildRule through the posting engine."""

    def test_build_entries(self, engine, store):
        txn = engine.post(make_build())

        assert txn.transaction_number == "ASM-2025-0001"
        assert txn.total_debits == Decimal("2900.00")
        assert balance(store, "1320") == Decimal("2900.00")
        assert balance(store, "1310") == Decimal("-2500.00")
        assert balance(store, "5200") == Decimal("-250.00")
        assert balance(store, "5300") == Decimal("-150.00")

    def test_excise_leg_balances_on_its_own(self, engine, store):
        txn = engine.post(make_build(excise_rate=Decimal("10")))

        assert txn.is_balanced
        assert txn.total_debits == Decimal("3190.00")
        assert balance(store, "1320") == Decimal("2900.00")
        assert balance(store, "1360") == Decimal("290.00")
        assert balance(store, "2160") == Decimal("290.00")

    def test_zero_output_rejected_before_posting(self, engine, store):
        with pytest.raises(InvalidOutputQuantityError):
            engine.post(make_build(output="0"))
        assert store.list_transactions() == []


class TestAssemblyService:
    """Tests for the WIP service."""

    def test_build_returns_rollup_and_transaction(self, engine, inventory):
        rollup, txn = AssemblyService(engine).build(make_build(), inventory)
        assert rollup.unit_cost.amount == Decimal("5.8000")
        assert rollup.new_average_cost.amount == Decimal("11.5000")
        assert txn.total_debits == rollup.total_cost.amount

    def test_insufficient_material_posts_nothing(self, engine, store, inventory):
        inventory["RM-1"] = InventoryPosition("RM-1", Decimal("10"), usd("5.00"))
        with pytest.raises(InsufficientMaterialError):
            AssemblyService(engine).build(make_build(), inventory)
        assert store.list_transactions() == []
        assert balance(store, "1320") == Decimal("0")
