"""
Clock -- injectable time source.

The posting engine stamps every transaction with ``posted_at``. It reads that
time from a Clock handed to its constructor so tests can pin it.
"""

from abc import ABC, abstractmethod
from datetime import UTC, date, datetime, timedelta


class Clock(ABC):
    """Abstract clock. ``now()`` always returns a timezone-aware UTC datetime."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Production clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    ``now()`` returns the same value until ``advance()`` or ``set_time()`` is
    called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._fixed_time = fixed_time or datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)
        self._advance_seconds = 0

    def now(self) -> datetime:
        return self._fixed_time + timedelta(seconds=self._advance_seconds)

    def set_time(self, time: datetime) -> None:
        self._fixed_time = time
        self._advance_seconds = 0

    def advance(self, seconds: int = 1) -> None:
        self._advance_seconds += seconds
