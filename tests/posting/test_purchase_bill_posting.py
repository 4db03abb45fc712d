"""Purchase bill postings through the AP rule and service."""

from decimal import Decimal

import pytest

from ledger_kernel.domain.documents import DocumentKind
from ledger_kernel.domain.ledger import EntrySide
from ledger_kernel.exceptions import InvalidDocumentError
from ledger_modules.ap import PayablesService
from tests.builders import line, make_document, standard_tax, usd, withholding_tax


def make_bill(document_id="BILL-1", inventory_purchase=False, taxes=None):
    if taxes is None:
        taxes = [standard_tax("18"), withholding_tax("6")]
    return make_document(
        document_id,
        kind=DocumentKind.PURCHASE_BILL,
        lines=[line("1", "1000.00", taxes)],
        inventory_purchase=inventory_purchase,
    )


class TestPurchaseBillPosting:
    """Tests for PurchaseBillRule."""

    def test_bill_with_withholding(self, engine, store):
        txn = engine.post(make_bill())

        assert txn.transaction_number == "BILL-2025-0001"
        assert txn.is_balanced
        assert txn.total_debits == Decimal("1240.00")
        assert store.get_account("6300").running_balance == Decimal("1000.00")
        assert store.get_account("1350").running_balance == Decimal("180.00")
        assert store.get_account("2000").running_balance == Decimal("1120.00")
        assert store.get_account("2150").running_balance == Decimal("60.00")

    def test_withholding_leg_moves_payable(self, engine):
        txn = engine.post(make_bill())
        ap_entries = txn.entries_for("2000")
        assert {(e.side, e.amount) for e in ap_entries} == {
            (EntrySide.CREDIT, usd("1180.00")),
            (EntrySide.DEBIT, usd("60.00")),
        }

    def test_bill_without_withholding(self, engine, store):
        txn = engine.post(make_bill(taxes=[standard_tax("18")]))
        assert len(txn.entries) == 3
        assert store.get_account("2000").running_balance == Decimal("1180.00")
        assert store.get_account("2150").running_balance == Decimal("0")

    def test_inventory_purchase_debits_inventory(self, engine, store):
        engine.post(make_bill(inventory_purchase=True))
        assert store.get_account("1300").running_balance == Decimal("1000.00")
        assert store.get_account("6300").running_balance == Decimal("0")


class TestPayablesService:
    """Tests for the AP service."""

    def test_enter_bill(self, engine):
        totals, txn, posted = PayablesService(engine).enter_bill(make_bill())
        assert totals.amount_due == usd("1120.00")
        assert txn.source_document_id == "BILL-1"
        assert posted.is_posted

    def test_rejects_sales_invoice(self, engine, vat_invoice, store):
        with pytest.raises(InvalidDocumentError, match="not a purchase bill"):
            PayablesService(engine).enter_bill(vat_invoice)
        assert store.list_transactions() == []
