"""Domain port definitions for adapters."""

from __future__ import annotations

from .content import ContentResolver
from .ledger import (
    LedgerReader,
    LedgerWriter,
    PendingTransaction,
    ReceiptLog,
    TransactionReceipt,
)
from .signer import UNRECOGNIZED_CHAIN_CODE, Signer

__all__ = [
    "UNRECOGNIZED_CHAIN_CODE",
    "ContentResolver",
    "LedgerReader",
    "LedgerWriter",
    "PendingTransaction",
    "ReceiptLog",
    "Signer",
    "TransactionReceipt",
]
