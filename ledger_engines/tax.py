"""
Tax Engine - Evaluate the tax lines of one document line.

Supports standard, reduced, zero-rated, exempt, custom and withholding
taxes, with compounding by ``compound_sequence``. Pure functions with no
I/O - tax lines are provided as parameters.

Usage:
    from ledger_engines.tax import TaxEvaluator
    from ledger_kernel.domain.documents import TaxLine, TaxType
    from ledger_kernel.domain.values import Money

    evaluator = TaxEvaluator()
    result = evaluator.evaluate(
        base=Money.of("100.00", "USD"),
        tax_lines=[
            TaxLine(TaxType.STANDARD, Decimal("18")),
            TaxLine(TaxType.CUSTOM, Decimal("2"), is_compound=True, compound_sequence=2),
        ],
    )
    print(result.ordinary_tax)  # Money: 20.36 USD
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from ledger_kernel.domain.documents import TaxLine, TaxType
from ledger_kernel.domain.values import Money
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.tax")


@dataclass(frozen=True)
class AppliedTax:
    """
    Calculated tax for a single tax line.

    ``taxable_base`` is the amount the rate was applied to: the line base,
    or for a compound line the base plus previously accumulated ordinary tax.
    """

    tax_line: TaxLine
    taxable_base: Money
    tax_amount: Money

    @property
    def is_withholding(self) -> bool:
        return self.tax_line.is_withholding

    @property
    def tax_type(self) -> TaxType:
        return self.tax_line.tax_type

    @property
    def jurisdiction_ref(self) -> str | None:
        return self.tax_line.jurisdiction_ref

    @property
    def rate_applied(self) -> Decimal:
        return self.tax_line.effective_rate


@dataclass(frozen=True)
class LineTaxResult:
    """
    Taxes evaluated for one line.

    ``ordinary_tax`` is added to the line amount; ``withholding`` is only
    deducted at document level.
    """

    base: Money
    applied: tuple[AppliedTax, ...]
    ordinary_tax: Money
    withholding: Money

    @property
    def line_amount(self) -> Money:
        return self.base + self.ordinary_tax

    @property
    def tax_count(self) -> int:
        return len(self.applied)

    def by_type(self) -> dict[TaxType, Money]:
        """Tax amount per tax type, withholding included under WITHHOLDING."""
        totals: dict[TaxType, Money] = {}
        for tax in self.applied:
            key = TaxType.WITHHOLDING if tax.is_withholding else tax.tax_type
            totals[key] = totals.get(key, Money.zero(self.base.currency)) + tax.tax_amount
        return totals

    def by_jurisdiction(self) -> dict[str | None, Money]:
        totals: dict[str | None, Money] = {}
        for tax in self.applied:
            key = tax.jurisdiction_ref
            totals[key] = totals.get(key, Money.zero(self.base.currency)) + tax.tax_amount
        return totals


class TaxEvaluator:
    """
    Evaluate taxes for one line base.

    Pure functions - no I/O, no database access.

    Rules:
        - Lines are applied in ascending ``compound_sequence``; ties keep
          their given order.
        - A compound line taxes ``base + accumulated ordinary tax``.
        - Each tax amount is rounded half-up to the currency precision.
        - Withholding is computed on the pre-withholding base and is never
          accumulated, so it never raises a later compound base.
        - Zero-rated and exempt lines contribute 0 but keep their place.
    """

    def evaluate(self, base: Money, tax_lines: Sequence[TaxLine]) -> LineTaxResult:
        t0 = time.monotonic()
        currency = base.currency
        logger.debug("tax_evaluation_started", extra={
            "base": str(base.amount),
            "currency": currency.code,
            "tax_line_count": len(tax_lines),
        })

        if not tax_lines:
            zero = Money.zero(currency)
            return LineTaxResult(base=base, applied=(), ordinary_tax=zero, withholding=zero)

        ordered = sorted(tax_lines, key=lambda line: line.compound_sequence)
        accumulated = Money.zero(currency)
        withholding = Money.zero(currency)
        applied: list[AppliedTax] = []

        for tax_line in ordered:
            taxable = base + accumulated if tax_line.is_compound else base
            amount = self._apply_rate(taxable, tax_line.effective_rate)
            applied.append(AppliedTax(tax_line=tax_line, taxable_base=taxable, tax_amount=amount))
            if tax_line.is_withholding:
                withholding = withholding + amount
            else:
                accumulated = accumulated + amount

        result = LineTaxResult(
            base=base,
            applied=tuple(applied),
            ordinary_tax=accumulated,
            withholding=withholding,
        )

        logger.debug("tax_evaluation_completed", extra={
            "base": str(base.amount),
            "ordinary_tax": str(result.ordinary_tax.amount),
            "withholding": str(result.withholding.amount),
            "compound_count": sum(1 for line in ordered if line.is_compound),
            "duration_ms": round((time.monotonic() - t0) * 1000, 2),
        })
        return result

    @staticmethod
    def _apply_rate(taxable: Money, rate_percent: Decimal) -> Money:
        return taxable.percentage(rate_percent).round()
