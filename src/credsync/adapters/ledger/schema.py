"""JSON-RPC payload schemas for transaction receipts."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class LedgerBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class LogPayload(LedgerBaseModel):
    address: str
    topics: list[str] = Field(default_factory=list)
    data: str = "0x"
    log_index: str | None = Field(default=None, alias="logIndex")


class ReceiptPayload(LedgerBaseModel):
    transaction_hash: str = Field(alias="transactionHash")
    # Absent before Byzantium; treated as success.
    status: str | None = None
    block_number: str | None = Field(default=None, alias="blockNumber")
    logs: list[LogPayload] = Field(default_factory=list)
