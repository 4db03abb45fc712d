"""
ledger_modules.cash.service
===========================

Responsibility:
    Moves funds between bank accounts.  Balance and same-account checks
    live in the BankTransferRule; the posting engine runs them inside the
    posting unit, after the source account is locked.
"""

from __future__ import annotations

from ledger_kernel.domain.documents import BankTransfer
from ledger_kernel.domain.ledger import Transaction
from ledger_kernel.logging_config import get_logger
from ledger_kernel.services.posting_engine import PostingEngine

logger = get_logger("modules.cash.service")


class TransferService:
    def __init__(self, engine: PostingEngine):
        self._engine = engine

    def transfer(self, transfer: BankTransfer) -> Transaction:
        logger.info("bank_transfer_requested", extra={
            "document_id": transfer.document_id,
            "source_account_code": transfer.source_account_code,
            "destination_account_code": transfer.destination_account_code,
            "amount": str(transfer.amount.amount),
        })
        return self._engine.post(transfer)
