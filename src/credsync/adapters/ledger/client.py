"""JSON-RPC client for the credential contract."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from eth_utils import to_checksum_address
from pydantic import ValidationError as SchemaValidationError

from credsync.adapters.http_resilience import ResilientClient
from credsync.adapters.jsonrpc import JsonRpcError, JsonRpcTransport
from credsync.config.errors import ConfigurationError
from credsync.domain.addresses import checksum_address
from credsync.domain.errors import (
    ConnectivityError,
    MissingSignerError,
    NotFoundError,
    SignerRequestError,
    TransactionRevertedError,
    ValidationError,
)
from credsync.domain.ports.ledger import PendingTransaction

from .abi import (
    GET_METADATA,
    MINT,
    OWNER_OF,
    TOTAL_SUPPLY,
    AbiDecodingError,
    decode_output,
    encode_call,
)
from .schema import ReceiptPayload
from .translator import translate_receipt

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from types import TracebackType

    from credsync.config.http_resilience import ResilienceConfig
    from credsync.config.ledger import LedgerConfig
    from credsync.domain.ports.ledger import TransactionReceipt
    from credsync.domain.ports.signer import Signer
    from credsync.domain.types import TokenId

log = getLogger(__name__)

# Geth-style "execution reverted" code; other nodes only say so in the message.
EXECUTION_REVERTED_CODE = 3


def _is_revert(exc: JsonRpcError) -> bool:
    return exc.code == EXECUTION_REVERTED_CODE or "revert" in str(exc).lower()


class LedgerClient:
    """Read/write gateway to the credential contract.

    Reads go straight to the configured RPC endpoint. The single write,
    ``submit_mint``, is signed and sent by the ``Signer`` supplied at
    construction; a client built without one is read-only.
    """

    def __init__(
        self,
        *,
        config: LedgerConfig,
        signer: Signer | None = None,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        try:
            self._contract_address = checksum_address(config.contract_address)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid contract address: {config.contract_address}") from exc
        self._config = config
        self._signer = signer
        self._sleep = sleep
        factory = client_factory or ResilientClient
        self._rpc = JsonRpcTransport(factory(config.resilience), name="ledger")

    @property
    def contract_address(self) -> str:
        return self._contract_address

    async def __aenter__(self) -> LedgerClient:
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

    async def get_total_supply(self) -> int:
        try:
            output = await self._eth_call(encode_call(TOTAL_SUPPLY))
        except JsonRpcError as exc:
            raise ConnectivityError(f"totalSupply failed: {exc}") from exc
        try:
            (supply,) = decode_output(["uint256"], output)
        except AbiDecodingError as exc:
            raise ConnectivityError(f"Unexpected totalSupply output: {exc}") from exc
        return int(supply)  # type: ignore[arg-type]

    async def get_metadata_pointer(self, token_id: TokenId) -> str:
        output = await self._token_call(GET_METADATA, token_id)
        try:
            (pointer,) = decode_output(["string"], output)
        except AbiDecodingError as exc:
            raise NotFoundError(f"No metadata pointer for token {token_id}: {exc}") from exc
        return str(pointer)

    async def get_owner(self, token_id: TokenId) -> str:
        output = await self._token_call(OWNER_OF, token_id)
        try:
            (owner,) = decode_output(["address"], output)
        except AbiDecodingError as exc:
            raise NotFoundError(f"No owner for token {token_id}: {exc}") from exc
        return to_checksum_address(str(owner))

    async def submit_mint(self, recipient: str, combined_pointer: str) -> PendingTransaction:
        normalized = checksum_address(recipient)
        if self._signer is None:
            raise MissingSignerError("Minting requires a signer")

        sender = await self._signer.get_address()
        transaction = {
            "from": sender,
            "to": self._contract_address,
            "data": encode_call(MINT, ["address", "string"], [normalized, combined_pointer]),
        }
        tx_hash = await self._signer.request("eth_sendTransaction", [transaction])
        if not isinstance(tx_hash, str) or not tx_hash.startswith("0x"):
            raise SignerRequestError(f"Signer returned no transaction hash: {tx_hash!r}")

        log.info("Submitted mint for %s: %s", normalized, tx_hash)
        return PendingTransaction(
            tx_hash=tx_hash,
            recipient_address=normalized,
            pointer=combined_pointer,
        )

    async def wait_for_receipt(self, tx_hash: str) -> TransactionReceipt:
        """Poll until the transaction is mined. No deadline: a hung provider hangs the caller."""

        while True:
            try:
                result = await self._rpc.call("eth_getTransactionReceipt", [tx_hash])
            except JsonRpcError as exc:
                raise ConnectivityError(f"Receipt lookup failed for {tx_hash}: {exc}") from exc
            if result is not None:
                break
            await self._sleep(self._config.receipt_poll_seconds)

        try:
            receipt = translate_receipt(ReceiptPayload.model_validate(result))
        except (SchemaValidationError, ValueError) as exc:
            raise ConnectivityError(f"Malformed receipt for {tx_hash}") from exc

        if receipt.status == 0:
            raise TransactionRevertedError(f"Transaction {tx_hash} reverted", tx_hash=tx_hash)
        log.info("Transaction %s confirmed in block %s", tx_hash, receipt.block_number)
        return receipt

    async def _token_call(self, signature: str, token_id: TokenId) -> str:
        try:
            return await self._eth_call(encode_call(signature, ["uint256"], [token_id]))
        except JsonRpcError as exc:
            if _is_revert(exc):
                raise NotFoundError(f"Token {token_id} does not exist: {exc}") from exc
            raise ConnectivityError(f"{signature} failed for token {token_id}: {exc}") from exc

    async def _eth_call(self, data: str) -> str:
        result = await self._rpc.call(
            "eth_call",
            [{"to": self._contract_address, "data": data}, "latest"],
        )
        if not isinstance(result, str):
            raise ConnectivityError(f"Unexpected eth_call result: {result!r}")
        return result
