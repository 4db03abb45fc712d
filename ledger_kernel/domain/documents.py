"""
Documents -- typed commercial documents the posting engine accepts.

Responsibility:
    Immutable value objects for tax lines, line items, invoices / bills /
    credit notes, customer and vendor payments, bank transfers and
    assembly builds. Each object validates itself once on construction;
    engines downstream trust the shape.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Built by ``payloads`` (edge parsing) or directly by callers.

Invariants enforced:
    - Tax rates are percentages in [0, 100].
    - compound_sequence >= 1.
    - A WITHHOLDING tax type is always flagged is_withholding.
    - Quantities, prices and discounts are non-negative.
    - Payment allocations add up to the payment amount.
    - All money inside a document shares the document currency.

Failure modes:
    - InvalidTaxRateError, InvalidAmountError, InvalidDocumentError,
      CurrencyMismatchError on construction.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from enum import Enum

from ledger_kernel.domain.arithmetic import multiply, to_decimal
from ledger_kernel.domain.values import Currency, Money
from ledger_kernel.exceptions import (
    CurrencyMismatchError,
    InvalidAmountError,
    InvalidDocumentError,
    InvalidTaxRateError,
)
from ledger_kernel.logging_config import get_logger

logger = get_logger("domain.documents")

_MAX_RATE = Decimal("100")


class TaxType(str, Enum):
    """Kind of tax carried by a tax line."""

    STANDARD = "standard"
    REDUCED = "reduced"
    ZERO = "zero"
    EXEMPT = "exempt"
    WITHHOLDING = "withholding"
    CUSTOM = "custom"


class DocumentKind(str, Enum):
    """Source document kinds the posting engine knows how to post."""

    SALES_INVOICE = "sales_invoice"
    CREDIT_NOTE = "credit_note"
    PURCHASE_BILL = "purchase_bill"
    BANK_TRANSFER = "bank_transfer"
    ASSEMBLY_BUILD = "assembly_build"
    CUSTOMER_PAYMENT = "customer_payment"
    VENDOR_PAYMENT = "vendor_payment"
    REVERSAL = "reversal"


COMMERCIAL_KINDS = frozenset({
    DocumentKind.SALES_INVOICE,
    DocumentKind.CREDIT_NOTE,
    DocumentKind.PURCHASE_BILL,
})

PAYMENT_KINDS = frozenset({DocumentKind.CUSTOMER_PAYMENT, DocumentKind.VENDOR_PAYMENT})


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    POSTED = "posted"


def validate_rate(rate: object) -> Decimal:
    """Parse a percentage rate and check it lies in [0, 100]."""
    value = to_decimal(rate)
    if value < 0:
        logger.error("tax_rate_negative", extra={"rate": str(value)})
        raise InvalidTaxRateError(str(value), "rate cannot be negative")
    if value > _MAX_RATE:
        logger.error("tax_rate_above_maximum", extra={"rate": str(value)})
        raise InvalidTaxRateError(str(value), "rate cannot exceed 100")
    return value


@dataclass(frozen=True)
class TaxLine:
    """
    One tax applied to a line item.

    ``rate`` is a percentage (18 means 18%). Lines are evaluated in ascending
    ``compound_sequence``; a compound line taxes the base plus the ordinary
    tax accumulated by the lines before it.
    """

    tax_type: TaxType
    rate: Decimal
    is_compound: bool = False
    compound_sequence: int = 1
    is_withholding: bool = False
    jurisdiction_ref: str | None = None
    rule_ref: str | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.tax_type, TaxType):
            object.__setattr__(self, "tax_type", TaxType(self.tax_type))
        object.__setattr__(self, "rate", validate_rate(self.rate))
        if isinstance(self.compound_sequence, bool) or not isinstance(self.compound_sequence, int):
            raise InvalidDocumentError(
                f"compound_sequence must be an integer, got {self.compound_sequence!r}"
            )
        if self.compound_sequence < 1:
            raise InvalidDocumentError(
                f"compound_sequence must be a positive integer, got {self.compound_sequence}"
            )
        if self.tax_type == TaxType.WITHHOLDING:
            object.__setattr__(self, "is_withholding", True)

    @property
    def effective_rate(self) -> Decimal:
        """Rate actually applied: zero-rated and exempt lines apply 0%."""
        if self.tax_type in (TaxType.ZERO, TaxType.EXEMPT):
            return Decimal("0")
        return self.rate

    @property
    def label(self) -> str:
        return self.name or self.rule_ref or self.tax_type.value


@dataclass(frozen=True)
class LineItem:
    """A document line: quantity x unit price, less discount, plus its taxes."""

    quantity: Decimal
    unit_price: Money
    discount: Money | None = None
    tax_lines: tuple[TaxLine, ...] = ()
    description: str = ""

    def __post_init__(self) -> None:
        quantity = to_decimal(self.quantity)
        if quantity < 0:
            raise InvalidAmountError(self.quantity, "quantity must be non-negative")
        object.__setattr__(self, "quantity", quantity)

        if self.unit_price.is_negative:
            raise InvalidAmountError(self.unit_price.amount, "unit price must be non-negative")

        discount = self.discount if self.discount is not None else Money.zero(self.unit_price.currency)
        if discount.currency != self.unit_price.currency:
            raise CurrencyMismatchError(self.unit_price.currency.code, discount.currency.code)
        if discount.is_negative:
            raise InvalidAmountError(discount.amount, "discount must be non-negative")
        object.__setattr__(self, "discount", discount)
        object.__setattr__(self, "tax_lines", tuple(self.tax_lines))

    @property
    def currency(self) -> Currency:
        return self.unit_price.currency

    @property
    def gross_amount(self) -> Money:
        """quantity x unit price, unrounded."""
        return Money(multiply(self.quantity, self.unit_price.amount), self.currency)


@dataclass(frozen=True)
class Document:
    """
    Sales invoice, purchase bill or credit note.

    The engine posts a document once. ``mark_posted()`` returns the copy the
    caller should persist after a successful post.
    """

    document_id: str
    kind: DocumentKind
    currency: Currency
    lines: tuple[LineItem, ...]
    issue_date: date
    due_date: date | None = None
    party_ref: str | None = None
    status: DocumentStatus = DocumentStatus.DRAFT
    inventory_purchase: bool = False
    reference: str | None = None

    def __post_init__(self) -> None:
        if not self.document_id:
            raise InvalidDocumentError("document_id is required")
        kind = DocumentKind(self.kind)
        if kind not in COMMERCIAL_KINDS:
            raise InvalidDocumentError(f"{kind.value} is not a commercial document kind", self.document_id)
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "status", DocumentStatus(self.status))
        if not isinstance(self.currency, Currency):
            object.__setattr__(self, "currency", Currency(self.currency))
        object.__setattr__(self, "lines", tuple(self.lines))

        if not self.lines:
            raise InvalidDocumentError("at least one line item is required", self.document_id)
        for line in self.lines:
            if line.currency != self.currency:
                raise CurrencyMismatchError(self.currency.code, line.currency.code)
        if self.due_date is not None and self.due_date < self.issue_date:
            raise InvalidDocumentError("due date cannot precede issue date", self.document_id)

    @property
    def effective_date(self) -> date:
        return self.issue_date

    @property
    def is_posted(self) -> bool:
        return self.status == DocumentStatus.POSTED

    def mark_posted(self) -> Document:
        return replace(self, status=DocumentStatus.POSTED)


@dataclass(frozen=True)
class BankTransfer:
    """
    Movement of funds between two bank accounts.

    Source and destination are the general-ledger codes the bank accounts
    are linked to.
    """

    document_id: str
    source_account_code: str
    destination_account_code: str
    amount: Money
    transfer_date: date
    reference: str | None = None
    status: DocumentStatus = DocumentStatus.DRAFT

    def __post_init__(self) -> None:
        if not self.document_id:
            raise InvalidDocumentError("document_id is required")
        if not self.source_account_code or not self.destination_account_code:
            raise InvalidDocumentError("source and destination accounts are required", self.document_id)
        if not self.amount.is_positive:
            raise InvalidAmountError(self.amount.amount, "transfer amount must be greater than zero")
        object.__setattr__(self, "status", DocumentStatus(self.status))

    @property
    def kind(self) -> DocumentKind:
        return DocumentKind.BANK_TRANSFER

    @property
    def currency(self) -> Currency:
        return self.amount.currency

    @property
    def effective_date(self) -> date:
        return self.transfer_date

    @property
    def is_posted(self) -> bool:
        return self.status == DocumentStatus.POSTED

    def mark_posted(self) -> BankTransfer:
        return replace(self, status=DocumentStatus.POSTED)


class PaymentMethod(str, Enum):
    CASH = "cash"
    CHECK = "check"
    CARD = "card"
    ACH = "ach"
    WIRE = "wire"
    OTHER = "other"


@dataclass(frozen=True)
class PaymentAllocation:
    """Part of a payment applied to one invoice or bill."""

    document_ref: str
    amount: Money

    def __post_init__(self) -> None:
        if not self.document_ref:
            raise InvalidDocumentError("allocation document_ref is required")
        if not self.amount.is_positive:
            raise InvalidAmountError(self.amount.amount, "allocation amount must be greater than zero")


@dataclass(frozen=True)
class Payment:
    """
    Money received from a customer or paid to a vendor.

    ``bank_account_code`` is the general-ledger code of the bank account
    the money moves through. Allocations are optional; when present they
    must add up to the payment amount exactly.
    """

    document_id: str
    payment_kind: DocumentKind
    party_ref: str
    bank_account_code: str
    amount: Money
    payment_date: date
    method: PaymentMethod = PaymentMethod.OTHER
    reference: str | None = None
    allocations: tuple[PaymentAllocation, ...] = ()
    status: DocumentStatus = DocumentStatus.DRAFT

    def __post_init__(self) -> None:
        if not self.document_id:
            raise InvalidDocumentError("document_id is required")
        kind = DocumentKind(self.payment_kind)
        if kind not in PAYMENT_KINDS:
            raise InvalidDocumentError(f"{kind.value} is not a payment kind", self.document_id)
        if not self.party_ref:
            raise InvalidDocumentError("party_ref is required", self.document_id)
        if not self.bank_account_code:
            raise InvalidDocumentError("bank_account_code is required", self.document_id)
        if not self.amount.is_positive:
            raise InvalidAmountError(self.amount.amount, "payment amount must be greater than zero")

        allocations = tuple(self.allocations)
        for allocation in allocations:
            if allocation.amount.currency != self.amount.currency:
                raise CurrencyMismatchError(self.amount.currency.code, allocation.amount.currency.code)
        if allocations:
            allocated = sum((a.amount.amount for a in allocations), Decimal("0"))
            if allocated != self.amount.amount:
                raise InvalidDocumentError(
                    f"allocations total {allocated} but payment amount is {self.amount.amount}",
                    self.document_id,
                )

        object.__setattr__(self, "payment_kind", kind)
        object.__setattr__(self, "method", PaymentMethod(self.method))
        object.__setattr__(self, "allocations", allocations)
        object.__setattr__(self, "status", DocumentStatus(self.status))

    @property
    def kind(self) -> DocumentKind:
        return self.payment_kind

    @property
    def currency(self) -> Currency:
        return self.amount.currency

    @property
    def effective_date(self) -> date:
        return self.payment_date

    @property
    def is_posted(self) -> bool:
        return self.status == DocumentStatus.POSTED

    def mark_posted(self) -> Payment:
        return replace(self, status=DocumentStatus.POSTED)


@dataclass(frozen=True)
class ComponentConsumption:
    """Raw material consumed by an assembly build."""

    component_ref: str
    quantity: Decimal
    unit_cost: Money

    def __post_init__(self) -> None:
        quantity = to_decimal(self.quantity)
        if quantity < 0:
            raise InvalidAmountError(self.quantity, "component quantity must be non-negative")
        if self.unit_cost.is_negative:
            raise InvalidAmountError(self.unit_cost.amount, "unit cost must be non-negative")
        object.__setattr__(self, "quantity", quantity)

    @property
    def cost(self) -> Money:
        """quantity x unit cost, unrounded."""
        return self.unit_cost * self.quantity


@dataclass(frozen=True)
class AssemblyBuild:
    """
    A manufacturing build turning components, labor and overhead into
    finished goods.

    ``output_quantity`` is checked by the costing rollup, not here, so that
    a zero-output build can still be represented and rejected with a typed
    error at the point of costing.
    """

    document_id: str
    finished_good_ref: str
    components: tuple[ComponentConsumption, ...]
    labor_cost: Money
    overhead_cost: Money
    output_quantity: Decimal
    build_date: date
    wastage_quantity: Decimal = Decimal("0")
    excise_rate: Decimal | None = None
    status: DocumentStatus = DocumentStatus.DRAFT

    def __post_init__(self) -> None:
        if not self.document_id:
            raise InvalidDocumentError("document_id is required")
        object.__setattr__(self, "components", tuple(self.components))
        object.__setattr__(self, "output_quantity", to_decimal(self.output_quantity))
        wastage = to_decimal(self.wastage_quantity)
        if wastage < 0:
            raise InvalidAmountError(self.wastage_quantity, "wastage quantity must be non-negative")
        object.__setattr__(self, "wastage_quantity", wastage)
        if self.excise_rate is not None:
            object.__setattr__(self, "excise_rate", validate_rate(self.excise_rate))
        object.__setattr__(self, "status", DocumentStatus(self.status))

        currency = self.labor_cost.currency
        if self.overhead_cost.currency != currency:
            raise CurrencyMismatchError(currency.code, self.overhead_cost.currency.code)
        for component in self.components:
            if component.unit_cost.currency != currency:
                raise CurrencyMismatchError(currency.code, component.unit_cost.currency.code)
        if self.labor_cost.is_negative or self.overhead_cost.is_negative:
            raise InvalidAmountError(
                f"{self.labor_cost.amount}/{self.overhead_cost.amount}",
                "labor and overhead must be non-negative",
            )

    @property
    def kind(self) -> DocumentKind:
        return DocumentKind.ASSEMBLY_BUILD

    @property
    def currency(self) -> Currency:
        return self.labor_cost.currency

    @property
    def effective_date(self) -> date:
        return self.build_date

    @property
    def is_posted(self) -> bool:
        return self.status == DocumentStatus.POSTED

    def mark_posted(self) -> AssemblyBuild:
        return replace(self, status=DocumentStatus.POSTED)


@dataclass(frozen=True)
class InventoryPosition:
    """On-hand quantity and weighted-average unit cost of one item."""

    item_ref: str
    quantity_on_hand: Decimal
    average_cost: Money

    def __post_init__(self) -> None:
        quantity = to_decimal(self.quantity_on_hand)
        if quantity < 0:
            raise InvalidAmountError(self.quantity_on_hand, "quantity on hand must be non-negative")
        if self.average_cost.is_negative:
            raise InvalidAmountError(self.average_cost.amount, "average cost must be non-negative")
        object.__setattr__(self, "quantity_on_hand", quantity)


PostableDocument = Document | Payment | BankTransfer | AssemblyBuild
