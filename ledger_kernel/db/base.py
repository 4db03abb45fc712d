"""
Declarative base for the ledger ORM models.

Column conventions shared by every table:
    - Primary keys are uuid4 values stored as 36-character strings, so the
      same schema runs on PostgreSQL and SQLite.
    - ``Decimal`` attributes map to ``Numeric(38, 9)``; monetary columns never
      hold binary floats.
    - Ledger rows (TrackedBase) record who created and last changed them.

Nothing here imports from models/, services/ or domain/.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

LEDGER_NUMERIC = Numeric(38, 9)


class UUIDString(TypeDecorator):
    """uuid.UUID in Python, String(36) in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


def _timestamp_column(**kwargs):
    return mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, **kwargs,
    )


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        Decimal: LEDGER_NUMERIC,
        datetime: DateTime(timezone=True),
        UUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """Abstract base adding audit timestamps and the acting user."""

    __abstract__ = True

    created_at: Mapped[datetime] = _timestamp_column()
    updated_at: Mapped[datetime] = _timestamp_column(onupdate=func.now())
    created_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    updated_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
