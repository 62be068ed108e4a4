"""Public interface for the wallet adapter."""

from __future__ import annotations

from .client import WalletRpcSigner

__all__ = ["WalletRpcSigner"]
