"""Translate ledger payloads into domain receipts."""

from __future__ import annotations

from typing import TYPE_CHECKING

from credsync.domain.ports.ledger import ReceiptLog, TransactionReceipt

if TYPE_CHECKING:
    from .schema import LogPayload, ReceiptPayload


def _hex_to_int(value: str | None) -> int | None:
    if value is None:
        return None
    return int(value, 16)


def translate_log(payload: LogPayload) -> ReceiptLog:
    return ReceiptLog(
        address=payload.address.lower(),
        topics=tuple(topic.lower() for topic in payload.topics),
        data=payload.data,
    )


def translate_receipt(payload: ReceiptPayload) -> TransactionReceipt:
    status = _hex_to_int(payload.status)
    return TransactionReceipt(
        tx_hash=payload.transaction_hash,
        status=1 if status is None else status,
        block_number=_hex_to_int(payload.block_number),
        logs=tuple(translate_log(log) for log in payload.logs),
    )
