"""
Cash Management Posting Profiles (``ledger_modules.cash.profiles``).

Profiles:
    BankTransferRule -- Dr destination bank GL / Cr source bank GL

Transfers name their accounts directly (the GL codes the two bank
accounts are linked to), so this rule uses no chart roles.  The bank
account checks here are shared with the customer and vendor payment
rules.
"""

from __future__ import annotations

from collections.abc import Mapping

from ledger_kernel.domain.documents import BankTransfer, DocumentKind
from ledger_kernel.domain.ledger import AccountSnapshot, AccountType, LineSpec
from ledger_kernel.domain.values import Money
from ledger_kernel.exceptions import (
    InsufficientFundsError,
    InvalidAccountError,
    SameAccountTransferError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.posting_rules.base import BasePostingRule
from ledger_kernel.posting_rules.registry import PostingRuleRegistry

logger = get_logger("modules.cash.profiles")

MODULE_NAME = "cash"


def require_bank_account(accounts: Mapping[str, AccountSnapshot], code: str) -> AccountSnapshot:
    """Locked snapshot of a bank GL account; bank accounts are always assets."""
    account = accounts[code]
    if account.account_type != AccountType.ASSET:
        raise InvalidAccountError(
            code, f"bank account must be an asset account, not {account.account_type.value}",
        )
    return account


def require_funds(account: AccountSnapshot, amount: Money, purpose: str) -> None:
    """Raise InsufficientFundsError when ``account`` holds less than ``amount``."""
    if account.balance < amount:
        logger.warning(f"{purpose}_rejected_insufficient_funds", extra={
            "account_code": account.code,
            "available": str(account.running_balance),
            "requested": str(amount.amount),
        })
        raise InsufficientFundsError(
            account.code,
            str(account.running_balance),
            str(amount.amount),
            amount.currency.code,
        )


class BankTransferRule(BasePostingRule):
    """Internal transfer between two bank accounts."""

    @property
    def document_kind(self) -> DocumentKind:
        return DocumentKind.BANK_TRANSFER

    def validate(self, document: BankTransfer) -> None:
        super().validate(document)
        if document.source_account_code == document.destination_account_code:
            logger.warning("transfer_rejected_same_account", extra={
                "account_code": document.source_account_code,
            })
            raise SameAccountTransferError(document.source_account_code)

    def compute_lines(self, document: BankTransfer) -> list[LineSpec]:
        memo = f"Transfer {document.reference or document.document_id}"
        return [
            LineSpec.debit(document.amount, account_code=document.destination_account_code,
                           description=memo),
            LineSpec.credit(document.amount, account_code=document.source_account_code,
                            description=memo),
        ]

    def check_preconditions(
        self, document: BankTransfer, accounts: Mapping[str, AccountSnapshot],
    ) -> None:
        require_funds(accounts[document.source_account_code], document.amount, "transfer")


def register(registry: PostingRuleRegistry) -> None:
    """Register all cash rules."""
    registry.register(BankTransferRule())
    logger.info("cash_profiles_registered", extra={"profile_count": 1})
