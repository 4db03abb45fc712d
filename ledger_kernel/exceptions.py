"""
Typed exception hierarchy for the ledger kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers must be able to tell an insufficient bank balance from a malformed
amount without parsing messages. Every error in this package therefore:
  1. Has its own class (catch by type, not by message text)
  2. Carries a ``code`` class attribute (machine-readable, API-safe)
  3. Stores its context as attributes (not only inside the message)

Example:
    try:
        engine.post(transfer)
    except InsufficientFundsError as e:
        api_response(code=e.code, available=e.available, requested=e.requested)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerKernelError (base)
    |
    +-- ValidationError
    |   +-- InvalidAmountError
    |   +-- InvalidTaxRateError
    |   +-- InvalidOutputQuantityError
    |   +-- DivisionByZeroError
    |   +-- InvalidDocumentError
    |   +-- WithholdingExceedsTotalError
    |
    +-- BusinessRuleError
    |   +-- InsufficientFundsError
    |   +-- InsufficientMaterialError
    |   +-- SameAccountTransferError
    |
    +-- PostingError
    |   +-- AlreadyPostedError
    |   +-- UnbalancedTransactionError
    |   |   +-- RoundingAmountExceededError
    |   +-- PostingRuleNotFoundError
    |
    +-- AccountError
    |   +-- AccountNotFoundError
    |   +-- InvalidAccountError
    |   +-- AccountRoleNotBoundError
    |
    +-- CurrencyError
    |   +-- InvalidCurrencyError
    |   +-- CurrencyMismatchError
    |
    +-- ReversalError
    |   +-- TransactionNotFoundError
    |   +-- AlreadyReversedError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | INVALID_AMOUNT              | Malformed, float, NaN or out-of-range amount
                | INVALID_TAX_RATE            | Tax rate below 0 or above 100
                | INVALID_OUTPUT_QUANTITY     | Assembly output quantity <= 0
                | DIVISION_BY_ZERO            | Arithmetic core asked to divide by zero
                | INVALID_DOCUMENT            | Structurally invalid document
                | WITHHOLDING_EXCEEDS_TOTAL   | Withholding leaves a negative amount due
----------------|-----------------------------|-----------------------------------------
Business rule   | INSUFFICIENT_FUNDS          | Transfer or vendor payment exceeds bank balance
                | INSUFFICIENT_MATERIAL       | Component quantity exceeds on-hand
                | SAME_ACCOUNT_TRANSFER       | Transfer source == destination
----------------|-----------------------------|-----------------------------------------
Posting         | ALREADY_POSTED              | Document already has a transaction
                | UNBALANCED_TRANSACTION      | Debits != credits
                | ROUNDING_AMOUNT_EXCEEDED    | Residual larger than rounding tolerance
                | POSTING_RULE_NOT_FOUND      | No profile for the document kind
----------------|-----------------------------|-----------------------------------------
Account         | ACCOUNT_NOT_FOUND           | Account code unknown to the store
                | INVALID_ACCOUNT             | Account cannot be posted to
                | ACCOUNT_ROLE_NOT_BOUND      | Chart has no account for a role
----------------|-----------------------------|-----------------------------------------
Currency        | INVALID_CURRENCY            | Not an ISO 4217 code
                | CURRENCY_MISMATCH           | Arithmetic across currencies
----------------|-----------------------------|-----------------------------------------
Reversal        | TRANSACTION_NOT_FOUND       | Unknown transaction id
                | ALREADY_REVERSED            | Transaction was already reversed
----------------|-----------------------------|-----------------------------------------
Config          | CONFIGURATION_ERROR         | Chart YAML is unreadable or inconsistent

Nothing in the kernel retries on error. Every failure inside a posting unit
leaves the ledger untouched.
"""


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"


# Input validation


class ValidationError(LedgerKernelError):
    """Base exception for malformed input."""

    code: str = "VALIDATION_ERROR"


class InvalidAmountError(ValidationError):
    """Amount could not be interpreted as an exact decimal, or is out of range."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, value: object, reason: str = "not a well-formed decimal"):
        self.value = repr(value)
        self.reason = reason
        super().__init__(f"Invalid amount {value!r}: {reason}")


class InvalidTaxRateError(ValidationError):
    """Tax rate outside the 0-100 percentage range."""

    code: str = "INVALID_TAX_RATE"

    def __init__(self, rate: str, reason: str = "must be between 0 and 100"):
        self.rate = rate
        self.reason = reason
        super().__init__(f"Invalid tax rate {rate}: {reason}")


class InvalidOutputQuantityError(ValidationError):
    """Assembly build declared a non-positive output quantity."""

    code: str = "INVALID_OUTPUT_QUANTITY"

    def __init__(self, build_id: str, output_quantity: str):
        self.build_id = build_id
        self.output_quantity = output_quantity
        super().__init__(
            f"Build {build_id} has invalid output quantity {output_quantity}: "
            f"must be greater than zero"
        )


class DivisionByZeroError(ValidationError):
    """Division by a zero divisor."""

    code: str = "DIVISION_BY_ZERO"

    def __init__(self, dividend: str):
        self.dividend = dividend
        super().__init__(f"Cannot divide {dividend} by zero")


class InvalidDocumentError(ValidationError):
    """Document is structurally invalid (missing fields, bad sequence, ...)."""

    code: str = "INVALID_DOCUMENT"

    def __init__(self, reason: str, document_id: str | None = None):
        self.document_id = document_id
        self.reason = reason
        if document_id:
            super().__init__(f"Invalid document {document_id}: {reason}")
        else:
            super().__init__(f"Invalid document: {reason}")


class WithholdingExceedsTotalError(ValidationError):
    """Withholding deducted at source is larger than the document total."""

    code: str = "WITHHOLDING_EXCEEDS_TOTAL"

    def __init__(self, document_id: str, withholding: str, total: str, currency: str):
        self.document_id = document_id
        self.withholding = withholding
        self.total = total
        self.currency = currency
        super().__init__(
            f"Document {document_id} withholds {withholding} {currency}, "
            f"more than its total of {total} {currency}"
        )


# Business rules


class BusinessRuleError(LedgerKernelError):
    """Base exception for well-formed requests the ledger must refuse."""

    code: str = "BUSINESS_RULE_ERROR"


class InsufficientFundsError(BusinessRuleError):
    """Transfer or vendor payment exceeds the bank account balance."""

    code: str = "INSUFFICIENT_FUNDS"

    def __init__(self, account_code: str, available: str, requested: str, currency: str):
        self.account_code = account_code
        self.available = available
        self.requested = requested
        self.currency = currency
        super().__init__(
            f"Insufficient funds in account {account_code}: "
            f"available {available} {currency}, requested {requested} {currency}"
        )


class InsufficientMaterialError(BusinessRuleError):
    """Component consumption exceeds the quantity on hand."""

    code: str = "INSUFFICIENT_MATERIAL"

    def __init__(self, component_ref: str, on_hand: str, required: str):
        self.component_ref = component_ref
        self.on_hand = on_hand
        self.required = required
        super().__init__(
            f"Insufficient quantity for component {component_ref}: "
            f"on hand {on_hand}, required {required}"
        )


class SameAccountTransferError(BusinessRuleError):
    """Transfer source and destination are the same account."""

    code: str = "SAME_ACCOUNT_TRANSFER"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(
            f"Cannot transfer from account {account_code} to itself"
        )


# Posting


class PostingError(LedgerKernelError):
    """Base exception for posting-related errors."""

    code: str = "POSTING_ERROR"


class AlreadyPostedError(PostingError):
    """Document has already been posted."""

    code: str = "ALREADY_POSTED"

    def __init__(self, document_id: str, transaction_id: str | None = None):
        self.document_id = document_id
        self.transaction_id = transaction_id
        if transaction_id:
            msg = f"Document {document_id} already posted as transaction {transaction_id}"
        else:
            msg = f"Document {document_id} is already posted"
        super().__init__(msg)


class UnbalancedTransactionError(PostingError):
    """Transaction debits do not equal credits."""

    code: str = "UNBALANCED_TRANSACTION"

    def __init__(self, debits: str, credits: str, currency: str):
        self.debits = debits
        self.credits = credits
        self.currency = currency
        super().__init__(
            f"Unbalanced transaction in {currency}: debits={debits}, credits={credits}"
        )


class RoundingAmountExceededError(UnbalancedTransactionError):
    """
    Rounding residual is larger than rounding can explain.

    The tolerance is one minor unit per entry. Anything larger is a
    calculation error, not rounding.
    """

    code: str = "ROUNDING_AMOUNT_EXCEEDED"

    def __init__(self, residual: str, threshold: str, currency: str):
        self.residual = residual
        self.threshold = threshold
        # Parent attributes kept meaningful for callers catching the base.
        self.debits = residual
        self.credits = "0"
        self.currency = currency
        PostingError.__init__(
            self,
            f"Rounding residual {residual} {currency} exceeds threshold "
            f"{threshold} {currency}",
        )


class PostingRuleNotFoundError(PostingError):
    """No posting rule registered for the document kind."""

    code: str = "POSTING_RULE_NOT_FOUND"

    def __init__(self, document_kind: str):
        self.document_kind = document_kind
        super().__init__(f"No posting rule registered for document kind: {document_kind}")


# Accounts


class AccountError(LedgerKernelError):
    """Base exception for account-related errors."""

    code: str = "ACCOUNT_ERROR"


class AccountNotFoundError(AccountError):
    """Account with given code was not found."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account not found: {account_code}")


class InvalidAccountError(AccountError):
    """Account exists but cannot be posted to."""

    code: str = "INVALID_ACCOUNT"

    def __init__(self, account_code: str, reason: str):
        self.account_code = account_code
        self.reason = reason
        super().__init__(f"Invalid account {account_code}: {reason}")


class AccountRoleNotBoundError(AccountError):
    """The account chart has no account bound to a posting role."""

    code: str = "ACCOUNT_ROLE_NOT_BOUND"

    def __init__(self, role: str):
        self.role = role
        super().__init__(f"No account bound to role: {role}")


# Currency


class CurrencyError(LedgerKernelError):
    """Base exception for currency-related errors."""

    code: str = "CURRENCY_ERROR"


class InvalidCurrencyError(CurrencyError):
    """Invalid ISO 4217 currency code provided."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid ISO 4217 currency code: '{currency}'")


class CurrencyMismatchError(CurrencyError):
    """Attempted operation on mismatched currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, currency1: str, currency2: str):
        self.currency1 = currency1
        self.currency2 = currency2
        super().__init__(f"Currency mismatch: {currency1} vs {currency2}")


# Reversal


class ReversalError(LedgerKernelError):
    """Base exception for reversal-related errors."""

    code: str = "REVERSAL_ERROR"


class TransactionNotFoundError(ReversalError):
    """Transaction with given id was not found."""

    code: str = "TRANSACTION_NOT_FOUND"

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction not found: {transaction_id}")


class AlreadyReversedError(ReversalError):
    """Transaction has already been reversed."""

    code: str = "ALREADY_REVERSED"

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} has already been reversed")


# Configuration


class ConfigurationError(LedgerKernelError):
    """Account chart configuration is unreadable or inconsistent."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid ledger configuration ({source}): {reason}")
