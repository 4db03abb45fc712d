"""Cash management: transfers between bank accounts."""

from ledger_modules.cash.profiles import BankTransferRule
from ledger_modules.cash.service import TransferService

__all__ = ["BankTransferRule", "TransferService"]
