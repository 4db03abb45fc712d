"""
Module: ledger_kernel.models.journal
Responsibility: ORM persistence for posted transactions and their ledger
    lines.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One transaction per source document (UNIQUE source_document_id).
    - Transaction numbers are unique (UNIQUE transaction_number).
    - Balance is proven by the EntryBuilder before a row is written;
      ``is_balanced`` is a read-side check.

Failure modes:
    - IntegrityError on a duplicate source_document_id (a concurrent post
      of the same document); the store turns it into AlreadyPostedError.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account


class LedgerTransaction(TrackedBase):
    """Transaction header. ``status`` is posted or reversed."""

    __tablename__ = "ledger_transactions"

    __table_args__ = (
        UniqueConstraint("source_document_id", name="uq_transaction_source_document"),
        UniqueConstraint("transaction_number", name="uq_transaction_number"),
        Index("idx_transaction_effective_date", "effective_date"),
        Index("idx_transaction_kind", "document_kind"),
    )

    transaction_number: Mapped[str] = mapped_column(String(40), nullable=False)

    source_document_id: Mapped[str] = mapped_column(String(100), nullable=False)

    document_kind: Mapped[str] = mapped_column(String(30), nullable=False)

    effective_date: Mapped[date] = mapped_column(Date, nullable=False)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="posted")

    posted_at: Mapped[datetime] = mapped_column(nullable=False)

    reversal_of_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("ledger_transactions.id"),
        nullable=True,
    )

    lines: Mapped[list["LedgerLine"]] = relationship(
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="LedgerLine.line_seq",
        lazy="selectin",
    )

    @property
    def total_debits(self) -> Decimal:
        return sum((line.amount for line in self.lines if line.side == "debit"), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        return sum((line.amount for line in self.lines if line.side == "credit"), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits

    def __repr__(self) -> str:
        return f"<LedgerTransaction {self.transaction_number} ({self.source_document_id})>"


class LedgerLine(TrackedBase):
    """One debit or credit line. ``amount`` is always non-negative."""

    __tablename__ = "ledger_lines"

    __table_args__ = (
        Index("idx_line_transaction", "transaction_id"),
        Index("idx_line_account", "account_id"),
    )

    transaction_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("ledger_transactions.id"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    side: Mapped[str] = mapped_column(String(10), nullable=False)

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    is_residual: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    line_seq: Mapped[int] = mapped_column(Integer, nullable=False)

    transaction: Mapped["LedgerTransaction"] = relationship(back_populates="lines")

    account: Mapped["Account"] = relationship(back_populates="lines", lazy="joined")

    def __repr__(self) -> str:
        return f"<LedgerLine {self.side} {self.amount} {self.currency}>"
