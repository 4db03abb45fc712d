"""
ISO 4217 currencies known to the ledger and their minor-unit precision.

Money is always rounded to the precision listed here: two places for most
codes, none for UGX, JPY and the CFA francs, three for the Gulf dinars.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar

from ledger_kernel.exceptions import InvalidCurrencyError


@dataclass(frozen=True)
class CurrencyInfo:
    code: str
    decimal_places: int
    name: str
    symbol: str

    @property
    def minor_unit(self) -> Decimal:
        """Smallest representable amount (0.01 for USD, 1 for UGX)."""
        return Decimal(1).scaleb(-self.decimal_places)


# (code, decimal places, name, symbol)
_TABLE: tuple[tuple[str, int, str, str], ...] = (
    ("USD", 2, "US Dollar", "$"),
    ("EUR", 2, "Euro", "€"),
    ("GBP", 2, "British Pound", "£"),
    ("CHF", 2, "Swiss Franc", "CHF"),
    ("CAD", 2, "Canadian Dollar", "C$"),
    ("AUD", 2, "Australian Dollar", "A$"),
    ("CNY", 2, "Chinese Yuan", "¥"),
    ("INR", 2, "Indian Rupee", "₹"),
    ("AED", 2, "UAE Dirham", "AED"),
    ("KES", 2, "Kenyan Shilling", "KSh"),
    ("TZS", 2, "Tanzanian Shilling", "TSh"),
    ("ETB", 2, "Ethiopian Birr", "Br"),
    ("ZAR", 2, "South African Rand", "R"),
    ("NGN", 2, "Nigerian Naira", "₦"),
    ("GHS", 2, "Ghanaian Cedi", "GH₵"),
    ("JPY", 0, "Japanese Yen", "¥"),
    ("UGX", 0, "Ugandan Shilling", "UGX"),
    ("RWF", 0, "Rwandan Franc", "RF"),
    ("BIF", 0, "Burundian Franc", "FBu"),
    ("XAF", 0, "Central African CFA Franc", "FCFA"),
    ("XOF", 0, "West African CFA Franc", "CFA"),
    ("KRW", 0, "South Korean Won", "₩"),
    ("VND", 0, "Vietnamese Dong", "₫"),
    ("CLP", 0, "Chilean Peso", "CLP$"),
    ("BHD", 3, "Bahraini Dinar", "BD"),
    ("JOD", 3, "Jordanian Dinar", "JD"),
    ("KWD", 3, "Kuwaiti Dinar", "KD"),
    ("OMR", 3, "Omani Rial", "OMR"),
    ("TND", 3, "Tunisian Dinar", "DT"),
)


def _normalize(code: object) -> str | None:
    if not isinstance(code, str):
        return None
    return code.strip().upper() or None


class CurrencyRegistry:
    """Lookup of supported currencies by code (case and surrounding spaces ignored)."""

    _BY_CODE: ClassVar[dict[str, CurrencyInfo]] = {
        row[0]: CurrencyInfo(*row) for row in _TABLE
    }

    @classmethod
    def is_valid(cls, code: object) -> bool:
        return _normalize(code) in cls._BY_CODE

    @classmethod
    def validate(cls, code: object) -> str:
        """Return the normalized code or raise InvalidCurrencyError."""
        normalized = _normalize(code)
        if normalized not in cls._BY_CODE:
            raise InvalidCurrencyError(code if isinstance(code, str) else repr(code))
        return normalized

    @classmethod
    def get_info(cls, code: object) -> CurrencyInfo:
        return cls._BY_CODE[cls.validate(code)]

    @classmethod
    def get_decimal_places(cls, code: object) -> int:
        return cls.get_info(code).decimal_places

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        return frozenset(cls._BY_CODE)
