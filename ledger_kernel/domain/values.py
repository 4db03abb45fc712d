"""
Values -- Immutable, self-validating money value objects.

Responsibility:
    Provides Currency and Money, the types every document line, tax amount
    and ledger entry is expressed in. Arithmetic is delegated to
    ``ledger_kernel.domain.arithmetic`` so there is exactly one place where
    decimal semantics are decided.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every other domain module and by the engines.

Invariants enforced:
    - Money amounts are Decimal, never float (floats raise InvalidAmountError).
    - Currency codes are ISO 4217 codes known to CurrencyRegistry.
    - Money never mixes currencies (CurrencyMismatchError).
    - Money is never rounded implicitly; callers call ``.round()``.

Failure modes:
    - InvalidAmountError / InvalidCurrencyError on construction.
    - CurrencyMismatchError when arithmetic or comparison mixes currencies.
    - DivisionByZeroError when dividing by zero.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from ledger_kernel.domain import arithmetic
from ledger_kernel.domain.currency import CurrencyRegistry
from ledger_kernel.exceptions import CurrencyMismatchError


@dataclass(frozen=True, slots=True)
class Currency:
    """
    ISO 4217 currency code value object.

    Contract:
        Wraps a three-letter code, uppercased and validated on construction.

    Guarantees:
        - Immutable and hashable
        - ``decimal_places`` is the ISO minor-unit precision (USD 2, UGX 0)
    """

    code: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "code", CurrencyRegistry.validate(self.code))

    @property
    def decimal_places(self) -> int:
        return CurrencyRegistry.get_decimal_places(self.code)

    @property
    def minor_unit(self) -> Decimal:
        """Smallest representable amount in this currency."""
        return arithmetic.quantum(self.decimal_places)

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


def _as_currency(currency: str | Currency) -> Currency:
    return currency if isinstance(currency, Currency) else Currency(currency)


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Pairs an exact Decimal amount with its Currency. They are never
        separated.

    Guarantees:
        - Immutable and hashable
        - Same-currency enforcement in arithmetic and comparisons
        - Full precision is kept until ``round()`` is called

    Non-goals:
        - Does NOT convert between currencies
        - Does NOT auto-round
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", arithmetic.to_decimal(self.amount))
        object.__setattr__(self, "currency", _as_currency(self.currency))

    @classmethod
    def of(cls, amount: arithmetic.Numeric, currency: str | Currency) -> Money:
        """Build Money from a Decimal, int or decimal string. Floats are rejected."""
        return cls(amount=arithmetic.to_decimal(amount), currency=_as_currency(currency))

    @classmethod
    def zero(cls, currency: str | Currency) -> Money:
        return cls(amount=Decimal("0"), currency=_as_currency(currency))

    @classmethod
    def sum(cls, items: Iterable[Money], currency: str | Currency) -> Money:
        """Sum Money values; an empty iterable yields zero in ``currency``."""
        total = cls.zero(currency)
        for item in items:
            total = total + item
        return total

    @property
    def is_zero(self) -> bool:
        return self.amount.is_zero()

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    def round(self, places: int | None = None, rounding: str = ROUND_HALF_UP) -> Money:
        """
        Round to the currency precision, or to ``places`` when given.

        Unit costs use ``places=4``; every ledger amount uses the currency
        precision.
        """
        if places is None:
            places = self.currency.decimal_places
        return Money(arithmetic.round_to(self.amount, places, rounding), self.currency)

    def percentage(self, rate_percent: arithmetic.Numeric) -> Money:
        """``self * rate_percent / 100``, unrounded."""
        return Money(arithmetic.percentage_of(self.amount, rate_percent), self.currency)

    def _check_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency.code, other.currency.code)

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return Money(arithmetic.add(self.amount, other.amount), self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return Money(arithmetic.subtract(self.amount, other.amount), self.currency)

    def __neg__(self) -> Money:
        return Money(-self.amount, self.currency)

    def __abs__(self) -> Money:
        return Money(abs(self.amount), self.currency)

    def __mul__(self, factor: arithmetic.Numeric) -> Money:
        if isinstance(factor, Money):
            return NotImplemented
        return Money(arithmetic.multiply(self.amount, factor), self.currency)

    def __rmul__(self, factor: arithmetic.Numeric) -> Money:
        return self.__mul__(factor)

    def __truediv__(self, divisor: arithmetic.Numeric) -> Money:
        if isinstance(divisor, Money):
            return NotImplemented
        return Money(arithmetic.divide(self.amount, divisor), self.currency)

    def _amount_of(self, other: object) -> Decimal | None:
        if not isinstance(other, Money):
            return None
        self._check_currency(other)
        return other.amount

    def __lt__(self, other: Money) -> bool:
        theirs = self._amount_of(other)
        return NotImplemented if theirs is None else self.amount < theirs

    def __le__(self, other: Money) -> bool:
        theirs = self._amount_of(other)
        return NotImplemented if theirs is None else self.amount <= theirs

    def __gt__(self, other: Money) -> bool:
        theirs = self._amount_of(other)
        return NotImplemented if theirs is None else self.amount > theirs

    def __ge__(self, other: Money) -> bool:
        theirs = self._amount_of(other)
        return NotImplemented if theirs is None else self.amount >= theirs

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"
