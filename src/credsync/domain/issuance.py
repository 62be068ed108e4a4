"""Credential issuance: network checks, mint submission and token id extraction."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from eth_utils import encode_hex, keccak

from credsync.config.errors import ConfigurationError
from credsync.config.ledger import normalize_chain_id
from credsync.domain.addresses import ZERO_ADDRESS, checksum_address, same_address
from credsync.domain.errors import (
    CredentialError,
    EventNotFoundError,
    NetworkMismatchError,
    SignerRequestError,
)
from credsync.domain.ports.signer import UNRECOGNIZED_CHAIN_CODE
from credsync.domain.types import MintOutcome, MintRequest, validate_content_id

if TYPE_CHECKING:
    from credsync.config.ledger import NetworkConfig
    from credsync.domain.ports.ledger import LedgerWriter, TransactionReceipt
    from credsync.domain.ports.signer import Signer
    from credsync.domain.types import TokenId

log = getLogger(__name__)

TRANSFER_EVENT_TOPIC = encode_hex(keccak(text="Transfer(address,address,uint256)"))


def _topic_address(topic: str) -> str:
    return "0x" + topic[-40:]


def extract_minted_token_id(
    receipt: TransactionReceipt,
    *,
    contract_address: str,
    recipient: str | None = None,
) -> TokenId:
    """Return the token id carried by the contract's ``Transfer`` event.

    Mint transfers (from the zero address) to ``recipient`` win over any other
    transfer the contract emitted in the same transaction.
    """

    transfers = [
        log_entry
        for log_entry in receipt.logs
        if same_address(log_entry.address, contract_address)
        and len(log_entry.topics) == 4
        and log_entry.topics[0].lower() == TRANSFER_EVENT_TOPIC
    ]
    if not transfers:
        raise EventNotFoundError(
            f"Transaction {receipt.tx_hash} confirmed without a Transfer event",
            tx_hash=receipt.tx_hash,
        )

    def is_mint_to_recipient(topics: tuple[str, ...]) -> bool:
        minted = same_address(_topic_address(topics[1]), ZERO_ADDRESS)
        return minted and (recipient is None or same_address(_topic_address(topics[2]), recipient))

    chosen = next(
        (entry for entry in transfers if is_mint_to_recipient(entry.topics)),
        transfers[0],
    )
    try:
        return int(chosen.topics[3], 16)
    except ValueError as exc:
        raise EventNotFoundError(
            f"Transfer event in {receipt.tx_hash} carries no token id",
            tx_hash=receipt.tx_hash,
        ) from exc


class IssuancePipeline:
    """Mints one credential per call through an explicitly supplied signer.

    The pipeline never touches the credential index; callers decide whether to
    insert the new record or resync.
    """

    def __init__(
        self,
        *,
        ledger: LedgerWriter,
        signer: Signer,
        network: NetworkConfig,
        verify_owner: bool = True,
    ) -> None:
        self._ledger = ledger
        self._signer = signer
        self._network = network
        self._verify_owner = verify_owner

    async def mint_credential(
        self,
        recipient_address: str,
        metadata_content_id: str,
        artifact_content_id: str,
    ) -> TokenId:
        outcome = await self.mint(
            MintRequest(
                recipient_address=recipient_address,
                metadata_content_id=metadata_content_id,
                artifact_content_id=artifact_content_id,
            )
        )
        return outcome.token_id

    async def mint(self, request: MintRequest) -> MintOutcome:
        request = self._validate(request)

        await self.ensure_network()
        await self._ensure_account()

        pending = await self._ledger.submit_mint(request.recipient_address, request.pointer.encode())
        receipt = await self._ledger.wait_for_receipt(pending.tx_hash)
        token_id = extract_minted_token_id(
            receipt,
            contract_address=self._ledger.contract_address,
            recipient=request.recipient_address,
        )
        log.info("Minted credential token %s for %s", token_id, request.recipient_address)

        owner_verified = (
            await self._check_owner(token_id, request.recipient_address)
            if self._verify_owner
            else None
        )
        return MintOutcome(
            token_id=token_id,
            tx_hash=pending.tx_hash,
            recipient_address=request.recipient_address,
            pointer=request.pointer,
            owner_verified=owner_verified,
        )

    async def ensure_network(self) -> None:
        expected = normalize_chain_id(self._network.chain_id)
        current = await self._current_chain_id()
        if current == expected:
            return

        log.info("Signer is on %s, switching to %s", current, expected)
        try:
            await self._switch_network(expected)
        except SignerRequestError as exc:
            if exc.code != UNRECOGNIZED_CHAIN_CODE:
                raise NetworkMismatchError(
                    f"Could not switch signer to {expected}: {exc}",
                    expected=expected,
                    actual=current,
                ) from exc
            await self._register_and_switch(expected, current)

        current = await self._current_chain_id()
        if current != expected:
            raise NetworkMismatchError(
                f"Signer is still on {current} after switching to {expected}",
                expected=expected,
                actual=current,
            )

    @staticmethod
    def _validate(request: MintRequest) -> MintRequest:
        return MintRequest(
            recipient_address=checksum_address(request.recipient_address),
            metadata_content_id=validate_content_id(
                request.metadata_content_id, label="Metadata content id"
            ),
            artifact_content_id=validate_content_id(
                request.artifact_content_id, label="Artifact content id"
            ),
        )

    async def _ensure_account(self) -> None:
        try:
            await self._signer.get_address()
        except SignerRequestError:
            log.info("No signer account available, requesting permission")
            accounts = await self._signer.request_accounts()
            if not accounts:
                raise

    async def _register_and_switch(self, expected: str, current: str | None) -> None:
        log.info("Network %s unknown to signer, registering %s", expected, self._network.chain_name)
        try:
            await self._signer.request("wallet_addEthereumChain", [self._network.add_chain_params()])
            await self._switch_network(expected)
        except SignerRequestError as exc:
            raise NetworkMismatchError(
                f"Could not register network {expected} with signer: {exc}",
                expected=expected,
                actual=current,
            ) from exc

    async def _switch_network(self, chain_id: str) -> None:
        await self._signer.request("wallet_switchEthereumChain", [{"chainId": chain_id}])

    async def _current_chain_id(self) -> str | None:
        try:
            result = await self._signer.request("eth_chainId")
        except SignerRequestError as exc:
            expected = normalize_chain_id(self._network.chain_id)
            raise NetworkMismatchError(
                f"Could not read signer network: {exc}",
                expected=expected,
                actual=None,
            ) from exc
        if not isinstance(result, str):
            return None
        try:
            return normalize_chain_id(result)
        except ConfigurationError:
            return None

    async def _check_owner(self, token_id: TokenId, recipient: str) -> bool:
        try:
            owner = await self._ledger.get_owner(token_id)
        except CredentialError as exc:
            log.warning("Could not verify owner of minted token %s: %s", token_id, exc)
            return False
        if not same_address(owner, recipient):
            log.warning("Minted token %s is owned by %s, expected %s", token_id, owner, recipient)
            return False
        return True
