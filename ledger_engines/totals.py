"""
Document Totals - Aggregate line items into document-level totals.

Pure functions with no I/O. The calculator keeps no state between calls,
so computing the same lines twice gives identical results.

Usage:
    from ledger_engines.totals import DocumentTotalsCalculator

    totals = DocumentTotalsCalculator().compute(document.lines, document.currency)
    print(totals.subtotal, totals.tax, totals.total, totals.amount_due)
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from ledger_engines.tax import LineTaxResult, TaxEvaluator
from ledger_kernel.domain.arithmetic import divide, multiply, round_to
from ledger_kernel.domain.documents import LineItem, TaxType
from ledger_kernel.domain.values import Currency, Money
from ledger_kernel.exceptions import CurrencyMismatchError, WithholdingExceedsTotalError
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.totals")

RATE_DECIMAL_PLACES = 4


@dataclass(frozen=True)
class LineTotals:
    """Totals for one line item."""

    line: LineItem
    line_subtotal: Money
    taxes: LineTaxResult

    @property
    def ordinary_tax(self) -> Money:
        return self.taxes.ordinary_tax

    @property
    def withholding(self) -> Money:
        return self.taxes.withholding

    @property
    def amount(self) -> Money:
        """Displayed line amount: subtotal plus ordinary tax, withholding excluded."""
        return self.line_subtotal + self.ordinary_tax


@dataclass(frozen=True)
class DocumentTotals:
    """
    Document-level totals.

    total = subtotal + tax
    amount_due = total - withholding
    """

    currency: Currency
    lines: tuple[LineTotals, ...]
    subtotal: Money
    tax: Money
    withholding: Money

    @property
    def total(self) -> Money:
        return self.subtotal + self.tax

    @property
    def amount_due(self) -> Money:
        return self.total - self.withholding

    @property
    def has_withholding(self) -> bool:
        return not self.withholding.is_zero

    def require_amount_due(self, document_id: str) -> None:
        """Raise WithholdingExceedsTotalError when withholding leaves a negative amount due."""
        if self.amount_due.is_negative:
            raise WithholdingExceedsTotalError(
                document_id,
                str(self.withholding.amount),
                str(self.total.amount),
                self.currency.code,
            )

    @property
    def effective_withholding_rate(self) -> Decimal:
        """Withholding as a percentage of the subtotal (4 dp); 0 for a zero subtotal."""
        if self.subtotal.is_zero:
            return Decimal("0")
        rate = multiply(divide(self.withholding.amount, self.subtotal.amount), 100)
        return round_to(rate, RATE_DECIMAL_PLACES)

    def tax_by_type(self) -> dict[TaxType, Money]:
        totals: dict[TaxType, Money] = {}
        for line in self.lines:
            for tax_type, amount in line.taxes.by_type().items():
                totals[tax_type] = totals.get(tax_type, Money.zero(self.currency)) + amount
        return totals

    def tax_by_jurisdiction(self) -> dict[str | None, Money]:
        totals: dict[str | None, Money] = {}
        for line in self.lines:
            for jurisdiction, amount in line.taxes.by_jurisdiction().items():
                totals[jurisdiction] = totals.get(jurisdiction, Money.zero(self.currency)) + amount
        return totals


class DocumentTotalsCalculator:
    """
    Compute subtotal, tax, withholding, total and amount due.

    Each line subtotal (quantity x unit price - discount) is rounded to the
    currency precision before its taxes are evaluated, so document totals
    are exact sums of the displayed line figures.
    """

    def __init__(self, tax_evaluator: TaxEvaluator | None = None):
        self._tax_evaluator = tax_evaluator or TaxEvaluator()

    def line_totals(self, line: LineItem) -> LineTotals:
        line_subtotal = (line.gross_amount - line.discount).round()
        return LineTotals(
            line=line,
            line_subtotal=line_subtotal,
            taxes=self._tax_evaluator.evaluate(line_subtotal, line.tax_lines),
        )

    def compute(self, lines: Sequence[LineItem], currency: Currency | str) -> DocumentTotals:
        t0 = time.monotonic()
        currency = currency if isinstance(currency, Currency) else Currency(currency)
        logger.info("document_totals_started", extra={
            "currency": currency.code,
            "line_count": len(lines),
        })

        computed: list[LineTotals] = []
        for line in lines:
            if line.currency != currency:
                logger.error("document_totals_currency_mismatch", extra={
                    "expected": currency.code,
                    "actual": line.currency.code,
                })
                raise CurrencyMismatchError(currency.code, line.currency.code)
            computed.append(self.line_totals(line))

        totals = DocumentTotals(
            currency=currency,
            lines=tuple(computed),
            subtotal=Money.sum((lt.line_subtotal for lt in computed), currency),
            tax=Money.sum((lt.ordinary_tax for lt in computed), currency),
            withholding=Money.sum((lt.withholding for lt in computed), currency),
        )

        logger.info("document_totals_completed", extra={
            "subtotal": str(totals.subtotal.amount),
            "tax": str(totals.tax.amount),
            "withholding": str(totals.withholding.amount),
            "total": str(totals.total.amount),
            "amount_due": str(totals.amount_due.amount),
            "duration_ms": round((time.monotonic() - t0) * 1000, 2),
        })
        return totals
