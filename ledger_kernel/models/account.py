"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for ledger accounts and their running
    balances.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - code is unique.
    - running_balance only changes inside a posting unit, under a row lock
      held by SqlAlchemyLedgerStore.

Failure modes:
    - IntegrityError on duplicate code.
"""

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase

if TYPE_CHECKING:
    from ledger_kernel.models.journal import LedgerLine


class Account(TrackedBase):
    """
    A general-ledger account with its running balance.

    ``account_type`` holds the value of ``ledger_kernel.domain.AccountType``
    (asset, liability, equity, revenue, expense); the store converts it.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("code", name="uq_account_code"),
        Index("idx_account_type", "account_type"),
        Index("idx_account_active", "is_active"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    account_type: Mapped[str] = mapped_column(String(20), nullable=False)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    running_balance: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("0"),
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    lines: Mapped[list["LedgerLine"]] = relationship(
        back_populates="account",
        lazy="dynamic",
    )

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name}>"
