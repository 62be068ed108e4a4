"""Wallet signer configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var
from .http_resilience import NO_RETRY, ResilienceConfig

# Frame and similar desktop wallets expose an EIP-1193 bridge over local JSON-RPC.
DEFAULT_WALLET_RPC_URL = "http://127.0.0.1:1248"
WALLET_TIMEOUT_SECONDS = 120.0


@dataclass(frozen=True, slots=True)
class WalletConfig:
    resilience: ResilienceConfig


def get_wallet_config() -> WalletConfig:
    rpc_url = optional_env_var("WALLET_RPC_URL", DEFAULT_WALLET_RPC_URL)
    # User confirmation happens inside the wallet, hence the long timeout; writes are never retried.
    return WalletConfig(
        resilience=ResilienceConfig(
            name="wallet",
            base_url=rpc_url,
            timeout_seconds=WALLET_TIMEOUT_SECONDS,
            retry=NO_RETRY,
            default_headers={"Content-Type": "application/json"},
        )
    )
