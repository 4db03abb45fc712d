"""Account chart -- maps posting roles to concrete account codes."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from ledger_kernel.exceptions import AccountRoleNotBoundError


def _role_key(role: str | Enum) -> str:
    return role.value if isinstance(role, Enum) else str(role)


@dataclass(frozen=True)
class AccountChart:
    """
    Immutable role -> account-code bindings.

    Posting rules speak in roles (ACCOUNTS_RECEIVABLE, TAX_PAYABLE, ...);
    the chart decides which account each role lands on.
    """

    bindings: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        normalized = {_role_key(k): v for k, v in self.bindings.items()}
        object.__setattr__(self, "bindings", MappingProxyType(normalized))

    def resolve(self, role: str | Enum) -> str:
        key = _role_key(role)
        try:
            return self.bindings[key]
        except KeyError:
            raise AccountRoleNotBoundError(key) from None

    def is_bound(self, role: str | Enum) -> bool:
        return _role_key(role) in self.bindings

    def with_binding(self, role: str | Enum, account_code: str) -> AccountChart:
        merged = dict(self.bindings)
        merged[_role_key(role)] = account_code
        return AccountChart(merged)
