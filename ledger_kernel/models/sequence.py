"""
Module: ledger_kernel.models.sequence
Responsibility: Named counter rows backing transaction numbering
    (INV-2025-0001, TRF-2025-0002, ...).

The next value is always taken from a row locked with SELECT ... FOR UPDATE,
never from MAX(...) + 1.
"""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base


class SequenceCounter(Base):
    """One row per sequence name, e.g. ``INV-2025``."""

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
