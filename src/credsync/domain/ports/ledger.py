"""Ports for reading from and writing to the credential ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from credsync.domain.types import TokenId


@dataclass(frozen=True, slots=True)
class PendingTransaction:
    """A submitted write awaiting confirmation."""

    tx_hash: str
    recipient_address: str
    pointer: str


@dataclass(frozen=True, slots=True)
class ReceiptLog:
    address: str
    topics: tuple[str, ...]
    data: str = "0x"


@dataclass(frozen=True, slots=True)
class TransactionReceipt:
    tx_hash: str
    status: int
    block_number: int | None = None
    logs: tuple[ReceiptLog, ...] = field(default_factory=tuple)


@runtime_checkable
class LedgerReader(Protocol):
    """Unauthenticated reads against the credential contract."""

    async def get_total_supply(self) -> int: ...

    async def get_metadata_pointer(self, token_id: TokenId) -> str: ...

    async def get_owner(self, token_id: TokenId) -> str: ...


@runtime_checkable
class LedgerWriter(LedgerReader, Protocol):
    """Reads plus the signed mint path."""

    @property
    def contract_address(self) -> str: ...

    async def submit_mint(self, recipient: str, combined_pointer: str) -> PendingTransaction: ...

    async def wait_for_receipt(self, tx_hash: str) -> TransactionReceipt: ...


__all__ = [
    "LedgerReader",
    "LedgerWriter",
    "PendingTransaction",
    "ReceiptLog",
    "TransactionReceipt",
]
