"""Application configuration helpers."""

from __future__ import annotations

from .content import ContentConfig, get_content_config
from .env import optional_env_var, optional_int_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import NO_RETRY, RateLimit, ResilienceConfig, RetryPolicy
from .ledger import LedgerConfig, NetworkConfig, get_ledger_config, normalize_chain_id
from .logging import configure_logging
from .sync import SyncConfig, get_sync_config
from .wallet import WalletConfig, get_wallet_config

__all__ = [
    "NO_RETRY",
    "ConfigurationError",
    "ContentConfig",
    "LedgerConfig",
    "MissingConfigurationError",
    "NetworkConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SyncConfig",
    "WalletConfig",
    "configure_logging",
    "get_content_config",
    "get_ledger_config",
    "get_sync_config",
    "get_wallet_config",
    "normalize_chain_id",
    "optional_env_var",
    "optional_int_env_var",
    "require_env_vars",
]
