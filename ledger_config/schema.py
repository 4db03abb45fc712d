"""
Configuration Schema (``ledger_config.schema``).

Frozen dataclasses describing a ledger configuration set: the chart of
accounts to open and the role -> account bindings posting rules resolve
through.  Produced by ``ledger_config.loader``; never built from raw
dicts anywhere else.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from ledger_kernel.domain.chart import AccountChart
from ledger_kernel.domain.ledger import AccountType


@dataclass(frozen=True)
class AccountDef:
    """One account of the chart."""

    code: str
    name: str
    account_type: AccountType
    currency: str | None = None  # None = the set's currency
    opening_balance: Decimal = Decimal("0")
    is_active: bool = True


@dataclass(frozen=True)
class LedgerConfig:
    """A complete, validated configuration set."""

    name: str
    version: int
    currency: str
    accounts: tuple[AccountDef, ...]
    role_bindings: Mapping[str, str] = field(default_factory=dict)
    unit_cost_places: int = 4
    checksum: str = ""

    def chart(self) -> AccountChart:
        return AccountChart(dict(self.role_bindings))

    def account(self, code: str) -> AccountDef | None:
        for account in self.accounts:
            if account.code == code:
                return account
        return None

    def currency_of(self, account: AccountDef) -> str:
        return account.currency or self.currency
