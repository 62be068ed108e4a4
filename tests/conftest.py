from __future__ import annotations

import pytest

from credsync.config import ContentConfig, LedgerConfig, ResilienceConfig, WalletConfig
from credsync.config.http_resilience import NO_RETRY
from tests.support.fakes import CONTRACT_ADDRESS
from tests.support.http import GATEWAY_URL, LEDGER_URL, WALLET_URL


@pytest.fixture
def ledger_config() -> LedgerConfig:
    return LedgerConfig(
        rpc_url=LEDGER_URL,
        contract_address=CONTRACT_ADDRESS,
        resilience=ResilienceConfig(name="ledger", base_url=LEDGER_URL, retry=NO_RETRY),
        receipt_poll_seconds=0.0,
    )


@pytest.fixture
def content_config() -> ContentConfig:
    return ContentConfig(
        resilience=ResilienceConfig(name="content", base_url=GATEWAY_URL, retry=NO_RETRY)
    )


@pytest.fixture
def wallet_config() -> WalletConfig:
    return WalletConfig(
        resilience=ResilienceConfig(name="wallet", base_url=WALLET_URL, retry=NO_RETRY)
    )
