"""Ledger and network configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

SEPOLIA_CHAIN_ID = "0xaa36a7"
SEPOLIA_RPC_URLS = ("https://ethereum-sepolia-rpc.publicnode.com",)
SEPOLIA_EXPLORER_URLS = ("https://sepolia.etherscan.io",)

LEDGER_TIMEOUT_SECONDS = 20.0
DEFAULT_RECEIPT_POLL_SECONDS = 2.0


@dataclass(frozen=True, slots=True)
class NetworkConfig:
    """Identity of the chain the credential contract lives on.

    The same values validate the signer's current network and register the
    network with a signer that does not know it yet.
    """

    chain_id: str = SEPOLIA_CHAIN_ID
    chain_name: str = "Sepolia Test Network"
    rpc_urls: tuple[str, ...] = SEPOLIA_RPC_URLS
    currency_name: str = "SepoliaETH"
    currency_symbol: str = "ETH"
    currency_decimals: int = 18
    explorer_urls: tuple[str, ...] = SEPOLIA_EXPLORER_URLS

    def add_chain_params(self) -> dict[str, object]:
        return {
            "chainId": self.chain_id,
            "chainName": self.chain_name,
            "rpcUrls": list(self.rpc_urls),
            "nativeCurrency": {
                "name": self.currency_name,
                "symbol": self.currency_symbol,
                "decimals": self.currency_decimals,
            },
            "blockExplorerUrls": list(self.explorer_urls),
        }


@dataclass(frozen=True, slots=True)
class LedgerConfig:
    rpc_url: str
    contract_address: str
    resilience: ResilienceConfig
    network: NetworkConfig = field(default_factory=NetworkConfig)
    receipt_poll_seconds: float = DEFAULT_RECEIPT_POLL_SECONDS


def normalize_chain_id(value: str) -> str:
    text = value.strip().lower()
    try:
        number = int(text, 16) if text.startswith("0x") else int(text)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid chain id: {value!r}") from exc
    return hex(number)


def ledger_resilience(rpc_url: str) -> ResilienceConfig:
    return ResilienceConfig(
        name="ledger",
        base_url=rpc_url,
        timeout_seconds=LEDGER_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        retry=RetryPolicy(total=4),
        default_headers={"Content-Type": "application/json"},
    )


def get_ledger_config(*, network: NetworkConfig | None = None) -> LedgerConfig:
    values = require_env_vars(("LEDGER_RPC_URL", "CREDENTIAL_CONTRACT_ADDRESS"))
    rpc_url = values["LEDGER_RPC_URL"]

    if network is None:
        chain_id = normalize_chain_id(optional_env_var("LEDGER_CHAIN_ID", SEPOLIA_CHAIN_ID))
        network = (
            NetworkConfig(rpc_urls=(rpc_url, *SEPOLIA_RPC_URLS))
            if chain_id == SEPOLIA_CHAIN_ID
            else NetworkConfig(
                chain_id=chain_id,
                chain_name=optional_env_var("LEDGER_CHAIN_NAME", f"Chain {int(chain_id, 16)}"),
                rpc_urls=(rpc_url,),
                explorer_urls=(),
            )
        )

    return LedgerConfig(
        rpc_url=rpc_url,
        contract_address=values["CREDENTIAL_CONTRACT_ADDRESS"],
        resilience=ledger_resilience(rpc_url),
        network=network,
    )
