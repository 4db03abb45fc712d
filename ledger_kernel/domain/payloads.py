"""
Payload parsing -- turns loosely-typed request dicts into domain documents.

Responsibility
--------------
API handlers receive JSON: numbers as strings or ints, enums as strings,
dates as ISO strings. These functions validate that shape once and return
the frozen domain objects from ``documents``. Everything downstream works
with typed values only.

Conventions
-----------
* Money fields are plain numbers in the document currency.
* Floats are rejected (JSON parsers should be configured with
  ``parse_float=Decimal``, or amounts sent as strings).
* ``tax_rate`` on a line is accepted as a single STANDARD tax line when
  ``tax_lines`` is absent (older clients send one flat rate).

Failure modes
-------------
* Missing required key, unknown enum value or unparseable date
  -> ``InvalidDocumentError``.
* Malformed number -> ``InvalidAmountError``; bad rate -> ``InvalidTaxRateError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any

from ledger_kernel.domain.arithmetic import to_decimal
from ledger_kernel.domain.documents import (
    AssemblyBuild,
    BankTransfer,
    ComponentConsumption,
    Document,
    DocumentKind,
    DocumentStatus,
    LineItem,
    Payment,
    PaymentAllocation,
    PaymentMethod,
    TaxLine,
    TaxType,
)
from ledger_kernel.domain.values import Currency, Money
from ledger_kernel.exceptions import InvalidDocumentError


def _require(data: Mapping[str, Any], key: str, context: str | None = None) -> Any:
    try:
        return data[key]
    except KeyError:
        raise InvalidDocumentError(f"missing required field '{key}'", context) from None


def parse_date(value: Any, context: str | None = None) -> date:
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    raise InvalidDocumentError(f"cannot parse date from {value!r}", context)


def _parse_enum(enum_cls: type, value: Any, context: str | None = None):
    try:
        return enum_cls(value.lower() if isinstance(value, str) else value)
    except ValueError:
        raise InvalidDocumentError(
            f"unknown {enum_cls.__name__} {value!r}", context
        ) from None


def _parse_int(value: Any, field_name: str, context: str | None = None) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise InvalidDocumentError(f"{field_name} must be an integer, got {value!r}", context)
    try:
        return int(value)
    except ValueError:
        raise InvalidDocumentError(f"{field_name} must be an integer, got {value!r}", context) from None


def parse_tax_line(data: Mapping[str, Any], context: str | None = None) -> TaxLine:
    """Parse one tax line; ``rate`` is a percentage."""
    return TaxLine(
        tax_type=_parse_enum(TaxType, data.get("tax_type", "standard"), context),
        rate=to_decimal(_require(data, "rate", context)),
        is_compound=bool(data.get("is_compound", False)),
        compound_sequence=_parse_int(data.get("compound_sequence", 1), "compound_sequence", context),
        is_withholding=bool(data.get("is_withholding", False)),
        jurisdiction_ref=data.get("jurisdiction_ref"),
        rule_ref=data.get("rule_ref"),
        name=data.get("name"),
    )


def parse_line_item(
    data: Mapping[str, Any], currency: Currency, context: str | None = None,
) -> LineItem:
    if "tax_lines" in data:
        tax_lines = tuple(parse_tax_line(t, context) for t in data["tax_lines"] or ())
    elif data.get("tax_rate") is not None:
        tax_lines = (TaxLine(tax_type=TaxType.STANDARD, rate=to_decimal(data["tax_rate"])),)
    else:
        tax_lines = ()

    discount = data.get("discount")
    return LineItem(
        quantity=to_decimal(_require(data, "quantity", context)),
        unit_price=Money.of(_require(data, "unit_price", context), currency),
        discount=Money.of(discount, currency) if discount is not None else None,
        tax_lines=tax_lines,
        description=data.get("description", ""),
    )


def parse_document(data: Mapping[str, Any]) -> Document:
    """Parse a sales invoice, purchase bill or credit note."""
    document_id = _require(data, "document_id")
    currency = Currency(_require(data, "currency", document_id))
    lines = tuple(
        parse_line_item(line, currency, document_id)
        for line in _require(data, "lines", document_id)
    )
    due = data.get("due_date")
    return Document(
        document_id=document_id,
        kind=_parse_enum(DocumentKind, _require(data, "kind", document_id), document_id),
        currency=currency,
        lines=lines,
        issue_date=parse_date(_require(data, "issue_date", document_id), document_id),
        due_date=parse_date(due, document_id) if due is not None else None,
        party_ref=data.get("party_ref"),
        status=_parse_enum(DocumentStatus, data.get("status", "draft"), document_id),
        inventory_purchase=bool(data.get("inventory_purchase", False)),
        reference=data.get("reference"),
    )


def parse_bank_transfer(data: Mapping[str, Any]) -> BankTransfer:
    document_id = _require(data, "document_id")
    return BankTransfer(
        document_id=document_id,
        source_account_code=str(_require(data, "source_account_code", document_id)),
        destination_account_code=str(_require(data, "destination_account_code", document_id)),
        amount=Money.of(
            _require(data, "amount", document_id),
            _require(data, "currency", document_id),
        ),
        transfer_date=parse_date(_require(data, "transfer_date", document_id), document_id),
        reference=data.get("reference"),
        status=_parse_enum(DocumentStatus, data.get("status", "draft"), document_id),
    )


def parse_payment(data: Mapping[str, Any]) -> Payment:
    """
    ``kind`` is ``customer_payment`` or ``vendor_payment``; ``allocations``
    is an optional list of ``{document_ref, amount}`` in the payment currency.
    """
    document_id = _require(data, "document_id")
    currency = Currency(_require(data, "currency", document_id))
    allocations = tuple(
        PaymentAllocation(
            document_ref=str(_require(a, "document_ref", document_id)),
            amount=Money.of(_require(a, "amount", document_id), currency),
        )
        for a in data.get("allocations", ())
    )
    return Payment(
        document_id=document_id,
        payment_kind=_parse_enum(DocumentKind, _require(data, "kind", document_id), document_id),
        party_ref=str(_require(data, "party_ref", document_id)),
        bank_account_code=str(_require(data, "bank_account_code", document_id)),
        amount=Money.of(_require(data, "amount", document_id), currency),
        payment_date=parse_date(_require(data, "payment_date", document_id), document_id),
        method=_parse_enum(PaymentMethod, data.get("method", "other"), document_id),
        reference=data.get("reference"),
        allocations=allocations,
        status=_parse_enum(DocumentStatus, data.get("status", "draft"), document_id),
    )


def parse_assembly_build(data: Mapping[str, Any]) -> AssemblyBuild:
    document_id = _require(data, "document_id")
    currency = Currency(_require(data, "currency", document_id))
    components = tuple(
        ComponentConsumption(
            component_ref=str(_require(c, "component_ref", document_id)),
            quantity=to_decimal(_require(c, "quantity", document_id)),
            unit_cost=Money.of(_require(c, "unit_cost", document_id), currency),
        )
        for c in data.get("components", ())
    )
    excise_rate = data.get("excise_rate")
    return AssemblyBuild(
        document_id=document_id,
        finished_good_ref=str(_require(data, "finished_good_ref", document_id)),
        components=components,
        labor_cost=Money.of(data.get("labor_cost", 0), currency),
        overhead_cost=Money.of(data.get("overhead_cost", 0), currency),
        output_quantity=to_decimal(_require(data, "output_quantity", document_id)),
        build_date=parse_date(_require(data, "build_date", document_id), document_id),
        wastage_quantity=to_decimal(data.get("wastage_quantity", 0)),
        excise_rate=to_decimal(excise_rate) if excise_rate is not None else None,
        status=_parse_enum(DocumentStatus, data.get("status", "draft"), document_id),
    )
