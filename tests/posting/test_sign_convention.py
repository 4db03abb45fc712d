"""Account-type sign convention for running balances."""

from decimal import Decimal

import pytest

from ledger_kernel.domain.ledger import AccountType, EntrySide, apply_entry, balance_delta


class TestSignConvention:
    """Debit-normal accounts grow with debits; credit-normal with credits."""

    @pytest.mark.parametrize("account_type,side,expected", [
        (AccountType.ASSET, EntrySide.DEBIT, Decimal("10")),
        (AccountType.ASSET, EntrySide.CREDIT, Decimal("-10")),
        (AccountType.EXPENSE, EntrySide.DEBIT, Decimal("10")),
        (AccountType.EXPENSE, EntrySide.CREDIT, Decimal("-10")),
        (AccountType.LIABILITY, EntrySide.CREDIT, Decimal("10")),
        (AccountType.LIABILITY, EntrySide.DEBIT, Decimal("-10")),
        (AccountType.EQUITY, EntrySide.CREDIT, Decimal("10")),
        (AccountType.EQUITY, EntrySide.DEBIT, Decimal("-10")),
        (AccountType.REVENUE, EntrySide.CREDIT, Decimal("10")),
        (AccountType.REVENUE, EntrySide.DEBIT, Decimal("-10")),
    ])
    def test_balance_delta(self, account_type, side, expected):
        assert balance_delta(account_type, side, Decimal("10")) == expected

    def test_debit_normal_types(self):
        assert {t for t in AccountType if t.is_debit_normal} == {AccountType.ASSET, AccountType.EXPENSE}

    def test_apply_entry(self):
        assert apply_entry(AccountType.ASSET, Decimal("500.00"), EntrySide.CREDIT, Decimal("600.00")) == Decimal("-100.00")

    def test_side_flip(self):
        assert EntrySide.DEBIT.flipped() is EntrySide.CREDIT
        assert EntrySide.CREDIT.flipped() is EntrySide.DEBIT
