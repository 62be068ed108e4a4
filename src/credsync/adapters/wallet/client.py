"""Signer backed by a wallet that exposes JSON-RPC over HTTP."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from credsync.adapters.http_resilience import ResilientClient
from credsync.adapters.jsonrpc import JsonRpcError, JsonRpcTransport
from credsync.domain.addresses import checksum_address
from credsync.domain.errors import SignerRequestError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import TracebackType

    from credsync.config.http_resilience import ResilienceConfig
    from credsync.config.wallet import WalletConfig

log = getLogger(__name__)


def _parse_accounts(result: object) -> list[str]:
    if not isinstance(result, list):
        raise SignerRequestError(f"Wallet returned malformed accounts: {result!r}")
    try:
        return [checksum_address(account) for account in result]
    except ValidationError as exc:
        raise SignerRequestError(f"Wallet returned an invalid account: {exc}") from exc


class WalletRpcSigner:
    """EIP-1193 style signer reached through a local JSON-RPC bridge.

    Signing and user confirmation happen inside the wallet; this class only
    dispatches requests and tracks the connected account.
    """

    def __init__(
        self,
        *,
        config: WalletConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        factory = client_factory or ResilientClient
        self._rpc = JsonRpcTransport(factory(config.resilience), name="wallet")
        self._address: str | None = None

    async def __aenter__(self) -> WalletRpcSigner:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._rpc.aclose()

    async def connect(self) -> None:
        accounts = _parse_accounts(await self.request("eth_accounts"))
        if not accounts:
            accounts = await self.request_accounts()
        if not accounts:
            raise SignerRequestError("Wallet exposed no accounts")
        self._address = accounts[0]
        log.info("Connected wallet account %s", self._address)

    async def disconnect(self) -> None:
        self._address = None

    async def get_address(self) -> str:
        if self._address is None:
            accounts = _parse_accounts(await self.request("eth_accounts"))
            if not accounts:
                raise SignerRequestError("No wallet account connected")
            self._address = accounts[0]
        return self._address

    async def request_accounts(self) -> list[str]:
        await self.request("wallet_requestPermissions", [{"eth_accounts": {}}])
        accounts = _parse_accounts(await self.request("eth_requestAccounts"))
        if accounts:
            self._address = accounts[0]
        return accounts

    async def request(self, method: str, params: Sequence[object] = ()) -> object:
        try:
            return await self._rpc.call(method, params)
        except JsonRpcError as exc:
            raise SignerRequestError(f"{method} rejected: {exc}", code=exc.code) from exc
