"""
Arithmetic -- the exact decimal core every monetary computation goes through.

Responsibility:
    Converts inputs to ``Decimal`` exactly once and performs add, subtract,
    multiply, divide, percentage and rounding in an explicit decimal context.
    No operation ever touches a binary float.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by values.py (Money) and by the calculation engines.

Invariants enforced:
    - Floats, booleans, None, NaN and infinities are rejected at the boundary.
    - All operations run in ``LEDGER_CONTEXT`` (38 significant digits,
      ROUND_HALF_UP, traps on), passed explicitly. The thread-global decimal
      context is never read or modified.
    - Rounding is ROUND_HALF_UP unless the caller names another mode.

Failure modes:
    - InvalidAmountError for malformed input.
    - DivisionByZeroError for a zero divisor.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import (
    ROUND_HALF_UP,
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
)

from ledger_kernel.exceptions import DivisionByZeroError, InvalidAmountError

__all__ = [
    "LEDGER_CONTEXT",
    "MONEY_DECIMAL_PLACES",
    "UNIT_COST_DECIMAL_PLACES",
    "Numeric",
    "to_decimal",
    "add",
    "subtract",
    "multiply",
    "divide",
    "percentage_of",
    "round_to",
    "quantum",
    "sum_decimals",
]

LEDGER_CONTEXT = Context(
    prec=38,
    rounding=ROUND_HALF_UP,
    traps=[InvalidOperation, DivisionByZero, Overflow],
)

MONEY_DECIMAL_PLACES = 2
UNIT_COST_DECIMAL_PLACES = 4

_HUNDRED = Decimal(100)

Numeric = Decimal | int | str


def to_decimal(value: object) -> Decimal:
    """
    Convert ``value`` to an exact Decimal.

    Accepts Decimal, int and decimal strings ("12.50", " -3 ", "1E+2").
    Everything else raises InvalidAmountError.
    """
    if value is None or isinstance(value, (bool, float)):
        raise InvalidAmountError(value, f"{type(value).__name__} is not an exact decimal")

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidAmountError(value, "empty string")
        try:
            result = Decimal(text)
        except InvalidOperation as exc:
            raise InvalidAmountError(value) from exc
    else:
        raise InvalidAmountError(value, f"unsupported type {type(value).__name__}")

    if not result.is_finite():
        raise InvalidAmountError(value, "must be finite")
    return result


def add(a: Numeric, b: Numeric) -> Decimal:
    return LEDGER_CONTEXT.add(to_decimal(a), to_decimal(b))


def subtract(a: Numeric, b: Numeric) -> Decimal:
    return LEDGER_CONTEXT.subtract(to_decimal(a), to_decimal(b))


def multiply(a: Numeric, b: Numeric) -> Decimal:
    return LEDGER_CONTEXT.multiply(to_decimal(a), to_decimal(b))


def divide(dividend: Numeric, divisor: Numeric) -> Decimal:
    """Divide exactly to 38 significant digits; a zero divisor is an error."""
    d = to_decimal(divisor)
    n = to_decimal(dividend)
    if d.is_zero():
        raise DivisionByZeroError(str(n))
    return LEDGER_CONTEXT.divide(n, d)


def percentage_of(base: Numeric, rate_percent: Numeric) -> Decimal:
    """``base * rate_percent / 100`` without intermediate rounding."""
    return LEDGER_CONTEXT.divide(multiply(base, rate_percent), _HUNDRED)


def quantum(places: int) -> Decimal:
    """The Decimal exponent template for ``places`` decimal places (2 -> 0.01)."""
    if places < 0:
        raise ValueError(f"decimal places must be non-negative, got {places}")
    return Decimal((0, (1,), -places))


def round_to(value: Numeric, places: int, rounding: str = ROUND_HALF_UP) -> Decimal:
    """Round to ``places`` decimal places (half-up by default)."""
    return to_decimal(value).quantize(quantum(places), rounding=rounding, context=LEDGER_CONTEXT)


def sum_decimals(values: Iterable[Numeric]) -> Decimal:
    total = Decimal(0)
    for value in values:
        total = LEDGER_CONTEXT.add(total, to_decimal(value))
    return total
