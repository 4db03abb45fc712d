"""Tests for the document totals calculator."""

from decimal import Decimal

import pytest

from ledger_engines.totals import DocumentTotalsCalculator
from ledger_kernel.domain.documents import TaxType
from ledger_kernel.exceptions import CurrencyMismatchError, WithholdingExceedsTotalError
from tests.builders import USD, line, standard_tax, usd, withholding_tax


class TestDocumentTotals:
    """Tests for DocumentTotalsCalculator.compute."""

    def setup_method(self):
        self.calculator = DocumentTotalsCalculator()

    def test_sales_with_vat(self):
        totals = self.calculator.compute([line("100", "8.50", [standard_tax("18")])], USD)
        assert totals.subtotal == usd("850.00")
        assert totals.tax == usd("153.00")
        assert totals.total == usd("1003.00")
        assert totals.amount_due == usd("1003.00")
        assert not totals.has_withholding

    def test_withholding_reduces_amount_due(self):
        lines = [line("1", "1000.00", [standard_tax("18"), withholding_tax("6")])]
        totals = self.calculator.compute(lines, USD)
        assert totals.subtotal == usd("1000.00")
        assert totals.tax == usd("180.00")
        assert totals.withholding == usd("60.00")
        assert totals.total == usd("1180.00")
        assert totals.amount_due == usd("1120.00")
        assert totals.effective_withholding_rate == Decimal("6.0000")

    def test_line_amount_excludes_withholding(self):
        lines = [line("1", "1000.00", [standard_tax("18"), withholding_tax("6")])]
        totals = self.calculator.compute(lines, USD)
        assert totals.lines[0].amount == usd("1180.00")
        assert totals.lines[0].withholding == usd("60.00")

    def test_discount_applied_before_tax(self):
        totals = self.calculator.compute([line("2", "50.00", [standard_tax("18")], discount="10")], USD)
        assert totals.subtotal == usd("90.00")
        assert totals.tax == usd("16.20")

    def test_multiple_lines(self):
        lines = [
            line("100", "8.50", [standard_tax("18")]),
            line("1", "100.00"),
        ]
        totals = self.calculator.compute(lines, USD)
        assert totals.subtotal == usd("950.00")
        assert totals.tax == usd("153.00")
        assert totals.total == usd("1103.00")
        assert totals.lines[1].amount == usd("100.00")

    def test_line_subtotal_rounded_before_tax(self):
        totals = self.calculator.compute([line("3", "0.333")], USD)
        assert totals.subtotal.amount == Decimal("1.00")

    def test_currency_string_accepted(self):
        totals = self.calculator.compute([line()], "usd")
        assert totals.currency == USD

    def test_line_currency_mismatch(self):
        with pytest.raises(CurrencyMismatchError):
            self.calculator.compute([line()], "EUR")

    def test_zero_subtotal_has_zero_withholding_rate(self):
        totals = self.calculator.compute([line("0", "10.00", [withholding_tax("6")])], USD)
        assert totals.subtotal.is_zero
        assert totals.effective_withholding_rate == Decimal("0")

    def test_idempotent(self):
        lines = [line("7", "13.37", [standard_tax("16"), withholding_tax("3")], discount="1.11")]
        assert self.calculator.compute(lines, USD) == self.calculator.compute(lines, USD)

    def test_tax_breakdowns_sum_across_lines(self):
        lines = [
            line("1", "100", [standard_tax("18", jurisdiction_ref="KE")]),
            line("1", "200", [standard_tax("18", jurisdiction_ref="KE"), withholding_tax("5")]),
        ]
        totals = self.calculator.compute(lines, USD)
        assert totals.tax_by_type() == {TaxType.STANDARD: usd("54"), TaxType.WITHHOLDING: usd("10")}
        assert totals.tax_by_jurisdiction() == {"KE": usd("54"), None: usd("10")}

    def test_logs_totals(self, captured_logs):
        self.calculator.compute([line("100", "8.50", [standard_tax("18")])], USD)
        completed = [r for r in captured_logs() if r["message"] == "document_totals_completed"]
        assert len(completed) == 1
        assert completed[0]["total"] == "1003.00"
        assert completed[0]["amount_due"] == "1003.00"

    def test_require_amount_due(self):
        lines = [line("1", "100.00", [withholding_tax("60"), withholding_tax("60")])]
        totals = self.calculator.compute(lines, USD)
        assert totals.amount_due == usd("-20.00")
        with pytest.raises(WithholdingExceedsTotalError, match="DOC-1"):
            totals.require_amount_due("DOC-1")

        covered = self.calculator.compute([line("1", "100.00", [withholding_tax("6")])], USD)
        covered.require_amount_due("DOC-2")
