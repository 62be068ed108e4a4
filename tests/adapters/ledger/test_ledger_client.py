from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import TYPE_CHECKING

import httpx
import pytest
from eth_abi import decode
from eth_utils import decode_hex

from credsync.adapters.ledger import AbiDecodingError, LedgerClient, decode_output
from credsync.adapters.ledger.abi import GET_METADATA, MINT, OWNER_OF, TOTAL_SUPPLY
from credsync.config.errors import ConfigurationError
from credsync.domain.addresses import checksum_address
from credsync.domain.errors import (
    ConnectivityError,
    MissingSignerError,
    NotFoundError,
    TransactionRevertedError,
    ValidationError,
)
from credsync.domain.issuance import TRANSFER_EVENT_TOPIC
from tests.support.fakes import (
    CONTRACT_ADDRESS,
    HOLDER_A,
    ISSUER_ADDRESS,
    FakeSigner,
    address_topic,
    uint_topic,
)
from tests.support.http import (
    abi_result,
    make_client_factory,
    rpc_body,
    rpc_error,
    rpc_result,
    selector,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from credsync.config import LedgerConfig

POINTERS = {1: "QmMeta1,QmArtifact1", 2: "QmMeta2,QmArtifact2"}
OWNERS = {1: HOLDER_A.lower(), 2: ISSUER_ADDRESS}


def _token_arg(data: str) -> int:
    (token_id,) = decode(["uint256"], decode_hex(data)[4:])
    return int(token_id)


def _contract_handler(request: httpx.Request) -> httpx.Response:
    body = rpc_body(request)
    assert body["method"] == "eth_call"
    call, block = body["params"]  # type: ignore[misc]
    assert block == "latest"
    assert call["to"] == CONTRACT_ADDRESS  # type: ignore[index]
    data: str = call["data"]  # type: ignore[index]

    if data == selector(TOTAL_SUPPLY):
        return rpc_result(request, abi_result(["uint256"], [len(POINTERS)]))
    token_id = _token_arg(data)
    if token_id not in POINTERS:
        return rpc_error(request, 3, "execution reverted: ERC721: invalid token ID")
    if data.startswith(selector(GET_METADATA)):
        return rpc_result(request, abi_result(["string"], [POINTERS[token_id]]))
    if data.startswith(selector(OWNER_OF)):
        return rpc_result(request, abi_result(["address"], [OWNERS[token_id]]))
    raise AssertionError(f"unexpected call data {data}")


def _client(
    config: LedgerConfig,
    handler: Callable[[httpx.Request], httpx.Response] = _contract_handler,
    **kwargs: object,
) -> LedgerClient:
    factory = make_client_factory(handler)
    return LedgerClient(config=config, client_factory=factory, **kwargs)  # type: ignore[arg-type]


def test_reads_total_supply(ledger_config: LedgerConfig) -> None:
    async def scenario() -> int:
        async with _client(ledger_config) as client:
            return await client.get_total_supply()

    assert asyncio.run(scenario()) == 2


def test_reads_pointer_and_checksummed_owner(ledger_config: LedgerConfig) -> None:
    async def scenario() -> tuple[str, str]:
        async with _client(ledger_config) as client:
            return await client.get_metadata_pointer(1), await client.get_owner(1)

    pointer, owner = asyncio.run(scenario())

    assert pointer == "QmMeta1,QmArtifact1"
    assert owner == checksum_address(HOLDER_A)


def test_reverted_token_call_is_not_found(ledger_config: LedgerConfig) -> None:
    with pytest.raises(NotFoundError):
        asyncio.run(_client(ledger_config).get_metadata_pointer(7))
    with pytest.raises(NotFoundError):
        asyncio.run(_client(ledger_config).get_owner(7))


def test_revert_detected_from_message_only(ledger_config: LedgerConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return rpc_error(request, -32000, "VM Exception while processing transaction: revert")

    with pytest.raises(NotFoundError):
        asyncio.run(_client(ledger_config, handler).get_owner(1))


def test_empty_call_output_is_not_found(ledger_config: LedgerConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return rpc_result(request, "0x")

    with pytest.raises(NotFoundError):
        asyncio.run(_client(ledger_config, handler).get_metadata_pointer(1))


def test_non_utf8_pointer_is_not_found(ledger_config: LedgerConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return rpc_result(request, abi_result(["bytes"], [b"\xff\xfe,abc"]))

    with pytest.raises(NotFoundError):
        asyncio.run(_client(ledger_config, handler).get_metadata_pointer(1))


def test_decode_output_rejects_invalid_utf8_string() -> None:
    data = abi_result(["bytes"], [b"\xff\xfe,abc"])

    with pytest.raises(AbiDecodingError):
        decode_output(["string"], data)


def test_rpc_errors_are_connectivity_errors(ledger_config: LedgerConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return rpc_error(request, -32005, "limit exceeded")

    with pytest.raises(ConnectivityError):
        asyncio.run(_client(ledger_config, handler).get_total_supply())
    with pytest.raises(ConnectivityError):
        asyncio.run(_client(ledger_config, handler).get_owner(1))


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json={"jsonrpc": "1.0", "id": 1, "result": "0x"}),
    ],
)
def test_bad_http_responses_are_connectivity_errors(
    ledger_config: LedgerConfig, response: httpx.Response
) -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return response

    with pytest.raises(ConnectivityError):
        asyncio.run(_client(ledger_config, handler).get_total_supply())


def test_unreachable_endpoint_is_connectivity_error(ledger_config: LedgerConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ConnectivityError):
        asyncio.run(_client(ledger_config, handler).get_total_supply())


def test_invalid_contract_address_is_configuration_error(ledger_config: LedgerConfig) -> None:
    with pytest.raises(ConfigurationError):
        _client(replace(ledger_config, contract_address="0xnot-a-contract"))


def test_submit_mint_requires_signer(ledger_config: LedgerConfig) -> None:
    with pytest.raises(MissingSignerError):
        asyncio.run(_client(ledger_config).submit_mint(HOLDER_A, "QmMeta,QmArtifact"))


def test_submit_mint_validates_recipient_first(ledger_config: LedgerConfig) -> None:
    signer = FakeSigner()

    with pytest.raises(ValidationError):
        asyncio.run(_client(ledger_config, signer=signer).submit_mint("0x12", "QmMeta,QmArtifact"))

    assert signer.calls == []


def test_submit_mint_sends_encoded_transaction_through_signer(
    ledger_config: LedgerConfig,
) -> None:
    signer = FakeSigner()
    client = _client(ledger_config, signer=signer)

    pending = asyncio.run(client.submit_mint(HOLDER_A.lower(), "QmMeta,QmArtifact"))

    assert pending.tx_hash == signer.tx_hash
    assert pending.recipient_address == checksum_address(HOLDER_A)
    assert pending.pointer == "QmMeta,QmArtifact"

    method, params = signer.calls[-1]
    assert method == "eth_sendTransaction"
    (transaction,) = params  # type: ignore[misc]
    assert transaction["from"] == ISSUER_ADDRESS  # type: ignore[index]
    assert transaction["to"] == CONTRACT_ADDRESS  # type: ignore[index]
    data: str = transaction["data"]  # type: ignore[index]
    assert data.startswith(selector(MINT))
    recipient, pointer = decode(["address", "string"], decode_hex(data)[4:])
    assert checksum_address(recipient) == checksum_address(HOLDER_A)
    assert pointer == "QmMeta,QmArtifact"


def _receipt_payload(status: str = "0x1") -> dict[str, object]:
    return {
        "transactionHash": "0xfeed",
        "status": status,
        "blockNumber": "0x10",
        "logs": [
            {
                "address": CONTRACT_ADDRESS,
                "topics": [
                    TRANSFER_EVENT_TOPIC,
                    address_topic("0x" + "00" * 20),
                    address_topic(HOLDER_A).upper().replace("0X", "0x"),
                    uint_topic(3),
                ],
                "data": "0x",
                "logIndex": "0x0",
            }
        ],
    }


def test_wait_for_receipt_polls_until_mined(ledger_config: LedgerConfig) -> None:
    polls: list[str] = []
    sleeps: list[float] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = rpc_body(request)
        assert body["method"] == "eth_getTransactionReceipt"
        polls.append(body["params"][0])  # type: ignore[index]
        if len(polls) < 3:
            return rpc_result(request, None)
        return rpc_result(request, _receipt_payload())

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    client = _client(ledger_config, handler, sleep=fake_sleep)
    receipt = asyncio.run(client.wait_for_receipt("0xfeed"))

    assert polls == ["0xfeed", "0xfeed", "0xfeed"]
    assert sleeps == [ledger_config.receipt_poll_seconds] * 2
    assert receipt.status == 1
    assert receipt.block_number == 16
    assert receipt.logs[0].address == CONTRACT_ADDRESS.lower()
    assert receipt.logs[0].topics[2] == address_topic(HOLDER_A)


def test_reverted_receipt_raises(ledger_config: LedgerConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return rpc_result(request, _receipt_payload(status="0x0"))

    with pytest.raises(TransactionRevertedError) as excinfo:
        asyncio.run(_client(ledger_config, handler).wait_for_receipt("0xfeed"))

    assert excinfo.value.tx_hash == "0xfeed"


def test_malformed_receipt_is_connectivity_error(ledger_config: LedgerConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return rpc_result(request, {"status": "0x1"})

    with pytest.raises(ConnectivityError):
        asyncio.run(_client(ledger_config, handler).wait_for_receipt("0xfeed"))
