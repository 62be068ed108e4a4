"""Public interface for the ledger adapter."""

from __future__ import annotations

from .abi import AbiDecodingError, decode_output, encode_call
from .client import LedgerClient

__all__ = [
    "AbiDecodingError",
    "LedgerClient",
    "decode_output",
    "encode_call",
]
