"""
Unit tests for document value objects.

Verifies construction-time validation of tax lines, line items, commercial
documents, payments, bank transfers, assembly builds and inventory
positions.
"""

from datetime import date
from decimal import Decimal

import pytest

from ledger_kernel.domain.documents import (
    AssemblyBuild,
    Document,
    DocumentKind,
    DocumentStatus,
    InventoryPosition,
    LineItem,
    Payment,
    PaymentAllocation,
    PaymentMethod,
    TaxLine,
    TaxType,
    validate_rate,
)
from ledger_kernel.domain.values import Money
from ledger_kernel.exceptions import (
    CurrencyMismatchError,
    InvalidAmountError,
    InvalidDocumentError,
    InvalidTaxRateError,
)
from tests.builders import (
    USD,
    line,
    make_build,
    make_document,
    make_payment,
    make_transfer,
    usd,
)


class TestTaxLine:
    """Tests for TaxLine validation."""

    def test_rate_is_percentage(self):
        tax = TaxLine(TaxType.STANDARD, Decimal("18"))
        assert tax.rate == Decimal("18")
        assert tax.effective_rate == Decimal("18")

    @pytest.mark.parametrize("rate", ["0", "100", "0.5", "17.75"])
    def test_boundary_rates_accepted(self, rate):
        assert TaxLine(TaxType.STANDARD, rate).rate == Decimal(rate)

    def test_negative_rate_rejected(self):
        with pytest.raises(InvalidTaxRateError, match="negative"):
            TaxLine(TaxType.STANDARD, Decimal("-1"))

    def test_rate_above_hundred_rejected(self):
        with pytest.raises(InvalidTaxRateError, match="exceed 100"):
            TaxLine(TaxType.STANDARD, Decimal("100.01"))

    def test_float_rate_rejected(self):
        with pytest.raises(InvalidAmountError):
            TaxLine(TaxType.STANDARD, 18.0)

    def test_sequence_must_be_positive(self):
        with pytest.raises(InvalidDocumentError, match="compound_sequence"):
            TaxLine(TaxType.STANDARD, Decimal("5"), compound_sequence=0)

    def test_sequence_must_be_integer(self):
        with pytest.raises(InvalidDocumentError, match="compound_sequence"):
            TaxLine(TaxType.STANDARD, Decimal("5"), compound_sequence=True)

    def test_withholding_type_sets_flag(self):
        assert TaxLine(TaxType.WITHHOLDING, Decimal("6")).is_withholding

    def test_tax_type_accepts_string(self):
        assert TaxLine("reduced", Decimal("5")).tax_type is TaxType.REDUCED

    @pytest.mark.parametrize("tax_type", [TaxType.ZERO, TaxType.EXEMPT])
    def test_zero_and_exempt_apply_nothing(self, tax_type):
        assert TaxLine(tax_type, Decimal("18")).effective_rate == Decimal("0")

    def test_label_prefers_name(self):
        assert TaxLine(TaxType.STANDARD, "18", name="VAT", rule_ref="R1").label == "VAT"
        assert TaxLine(TaxType.STANDARD, "18", rule_ref="R1").label == "R1"
        assert TaxLine(TaxType.STANDARD, "18").label == "standard"

    def test_validate_rate_returns_decimal(self):
        assert validate_rate("12.5") == Decimal("12.5")


class TestLineItem:
    """Tests for LineItem validation."""

    def test_gross_amount_is_unrounded(self):
        item = line("3", "0.333")
        assert item.gross_amount.amount == Decimal("0.999")

    def test_default_discount_is_zero(self):
        assert line().discount == Money.zero(USD)

    def test_negative_quantity_rejected(self):
        with pytest.raises(InvalidAmountError, match="quantity"):
            line("-1")

    def test_negative_price_rejected(self):
        with pytest.raises(InvalidAmountError, match="unit price"):
            line(price="-5")

    def test_negative_discount_rejected(self):
        with pytest.raises(InvalidAmountError, match="discount"):
            line(discount="-1")

    def test_discount_currency_must_match(self):
        with pytest.raises(CurrencyMismatchError):
            LineItem(Decimal("1"), usd("10"), discount=Money.of("1", "EUR"))


class TestDocument:
    """Tests for commercial documents."""

    def test_defaults(self):
        doc = make_document()
        assert doc.status == DocumentStatus.DRAFT
        assert not doc.is_posted
        assert doc.effective_date == date(2025, 3, 15)

    def test_mark_posted_returns_copy(self):
        doc = make_document()
        posted = doc.mark_posted()
        assert posted.is_posted
        assert not doc.is_posted

    def test_lines_required(self):
        with pytest.raises(InvalidDocumentError, match="at least one line"):
            make_document(lines=[])

    def test_document_id_required(self):
        with pytest.raises(InvalidDocumentError, match="document_id"):
            make_document(document_id="")

    def test_line_currency_must_match(self):
        eur_line = LineItem(Decimal("1"), Money.of("10", "EUR"))
        with pytest.raises(CurrencyMismatchError):
            make_document(lines=[eur_line])

    def test_due_date_before_issue_rejected(self):
        with pytest.raises(InvalidDocumentError, match="due date"):
            make_document(due_date=date(2025, 3, 1))

    @pytest.mark.parametrize("kind", [DocumentKind.BANK_TRANSFER, DocumentKind.REVERSAL])
    def test_non_commercial_kind_rejected(self, kind):
        with pytest.raises(InvalidDocumentError, match="not a commercial"):
            make_document(kind=kind)


class TestBankTransfer:
    """Tests for bank transfer documents."""

    def test_kind_and_currency(self):
        transfer = make_transfer()
        assert transfer.kind == DocumentKind.BANK_TRANSFER
        assert transfer.currency == USD

    @pytest.mark.parametrize("amount", ["0", "-10"])
    def test_amount_must_be_positive(self, amount):
        with pytest.raises(InvalidAmountError, match="greater than zero"):
            make_transfer(amount=amount)

    def test_accounts_required(self):
        with pytest.raises(InvalidDocumentError, match="accounts are required"):
            make_transfer(source="")



class TestPayment:
    """Tests for customer and vendor payment documents."""

    def test_defaults(self):
        payment = make_payment()
        assert payment.kind == DocumentKind.CUSTOMER_PAYMENT
        assert payment.currency == USD
        assert payment.effective_date == date(2025, 3, 15)
        assert payment.method == PaymentMethod.OTHER
        assert not payment.is_posted
        assert payment.mark_posted().is_posted

    @pytest.mark.parametrize("kind", [DocumentKind.SALES_INVOICE, DocumentKind.BANK_TRANSFER])
    def test_kind_must_be_payment(self, kind):
        with pytest.raises(InvalidDocumentError, match="not a payment kind"):
            make_payment(kind=kind)

    def test_kind_accepts_value(self):
        assert make_payment(kind="vendor_payment").kind == DocumentKind.VENDOR_PAYMENT

    @pytest.mark.parametrize("amount", ["0", "-5"])
    def test_amount_must_be_positive(self, amount):
        with pytest.raises(InvalidAmountError, match="greater than zero"):
            make_payment(amount=amount)

    def test_bank_account_required(self):
        with pytest.raises(InvalidDocumentError, match="bank_account_code"):
            make_payment(bank="")

    def test_party_required(self):
        with pytest.raises(InvalidDocumentError, match="party_ref"):
            make_payment(party_ref="")

    def test_allocations_must_match_amount(self):
        with pytest.raises(InvalidDocumentError, match="allocations total 90.00"):
            make_payment(amount="100.00", allocations=[("INV-1", "60.00"), ("INV-2", "30.00")])

    def test_allocations_split_payment(self):
        payment = make_payment(amount="100.00", allocations=[("INV-1", "60.00"), ("INV-2", "40.00")])
        assert [a.document_ref for a in payment.allocations] == ["INV-1", "INV-2"]

    def test_allocation_currency_must_match(self):
        with pytest.raises(CurrencyMismatchError):
            Payment(
                document_id="PAY-X",
                payment_kind=DocumentKind.CUSTOMER_PAYMENT,
                party_ref="CUST-1",
                bank_account_code="1100",
                amount=usd("10"),
                payment_date=date(2025, 3, 15),
                allocations=(PaymentAllocation("INV-1", Money.of("10", "EUR")),),
            )

    def test_allocation_amount_positive(self):
        with pytest.raises(InvalidAmountError, match="allocation amount"):
            PaymentAllocation("INV-1", usd("0"))

class TestAssemblyBuild:
    """Tests for assembly build documents."""

    def test_zero_output_is_representable(self):
        build = make_build(output="0")
        assert build.output_quantity == Decimal("0")

    def test_negative_wastage_rejected(self):
        with pytest.raises(InvalidAmountError, match="wastage"):
            make_build(wastage_quantity=Decimal("-1"))

    def test_excise_rate_validated(self):
        with pytest.raises(InvalidTaxRateError):
            make_build(excise_rate=Decimal("150"))

    def test_overhead_currency_must_match(self):
        with pytest.raises(CurrencyMismatchError):
            AssemblyBuild(
                document_id="ASM-X",
                finished_good_ref="FG-1",
                components=(),
                labor_cost=usd("10"),
                overhead_cost=Money.of("10", "EUR"),
                output_quantity=Decimal("1"),
                build_date=date(2025, 3, 15),
            )

    def test_negative_labor_rejected(self):
        with pytest.raises(InvalidAmountError, match="labor and overhead"):
            make_build(labor="-1")

    def test_component_cost_is_unrounded(self):
        build = make_build(material_qty="3", material_cost="0.3333")
        assert build.components[0].cost.amount == Decimal("0.9999")


class TestInventoryPosition:
    """Tests for on-hand inventory positions."""

    def test_quantity_normalised(self):
        position = InventoryPosition("FG-1", "12.5", usd("4.00"))
        assert position.quantity_on_hand == Decimal("12.5")

    def test_zero_on_hand_allowed(self):
        assert InventoryPosition("FG-1", Decimal("0"), usd("0")).quantity_on_hand == Decimal("0")

    def test_negative_on_hand_rejected(self):
        with pytest.raises(InvalidAmountError, match="quantity on hand"):
            InventoryPosition("FG-1", Decimal("-500"), usd("40.00"))

    def test_negative_average_cost_rejected(self):
        with pytest.raises(InvalidAmountError, match="average cost"):
            InventoryPosition("FG-1", Decimal("1"), usd("-1"))
