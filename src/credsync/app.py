"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from credsync.adapters.content import GatewayContentResolver
from credsync.adapters.ledger import LedgerClient
from credsync.adapters.wallet import WalletRpcSigner
from credsync.config import (
    get_content_config,
    get_ledger_config,
    get_sync_config,
    get_wallet_config,
)
from credsync.domain.errors import CredentialError
from credsync.domain.index import CredentialIndex
from credsync.domain.issuance import IssuancePipeline
from credsync.domain.synchronizer import FanOutSynchronizer, build_record
from credsync.domain.types import MintRequest

if TYPE_CHECKING:
    from collections.abc import Callable

    from credsync.adapters.http_resilience import ResilientClient
    from credsync.config import (
        ContentConfig,
        LedgerConfig,
        ResilienceConfig,
        SyncConfig,
        WalletConfig,
    )
    from credsync.domain.ports.content import ContentResolver
    from credsync.domain.ports.ledger import LedgerReader
    from credsync.domain.types import CredentialRecord, MintOutcome, SyncSession

type ClientFactory = Callable[[ResilienceConfig], ResilientClient]

log = getLogger(__name__)


@dataclass(slots=True)
class SyncSummary:
    """Outcome of one full sync pass."""

    records: list[CredentialRecord]
    organizations: frozenset[str]
    session: SyncSession


def sync_credentials(
    *,
    index: CredentialIndex | None = None,
    ledger_config: LedgerConfig | None = None,
    content_config: ContentConfig | None = None,
    sync_config: SyncConfig | None = None,
    client_factory: ClientFactory | None = None,
) -> SyncSummary:
    """Rebuild ``index`` (or a fresh one) from the ledger."""

    return asyncio.run(
        sync_credentials_async(
            index=index,
            ledger_config=ledger_config,
            content_config=content_config,
            sync_config=sync_config,
            client_factory=client_factory,
        )
    )


async def sync_credentials_async(
    *,
    index: CredentialIndex | None = None,
    ledger_config: LedgerConfig | None = None,
    content_config: ContentConfig | None = None,
    sync_config: SyncConfig | None = None,
    client_factory: ClientFactory | None = None,
) -> SyncSummary:
    target = index if index is not None else CredentialIndex()
    effective_sync = sync_config or get_sync_config()
    log.info("Starting credential sync: max_concurrency=%s", effective_sync.max_concurrency)

    async with (
        LedgerClient(
            config=ledger_config or get_ledger_config(),
            client_factory=client_factory,
        ) as ledger,
        GatewayContentResolver(
            config=content_config or get_content_config(),
            client_factory=client_factory,
        ) as resolver,
    ):
        synchronizer = FanOutSynchronizer(
            ledger=ledger,
            resolver=resolver,
            index=target,
            config=effective_sync,
        )
        records = await synchronizer.run_full_sync()

    return SyncSummary(
        records=records,
        organizations=target.list_organizations(),
        session=target.session,
    )


def mint_credential(
    *,
    recipient_address: str,
    metadata_content_id: str,
    artifact_content_id: str,
    index: CredentialIndex | None = None,
    ledger_config: LedgerConfig | None = None,
    content_config: ContentConfig | None = None,
    wallet_config: WalletConfig | None = None,
    client_factory: ClientFactory | None = None,
) -> MintOutcome:
    """Mint a credential; when ``index`` is given, add the new record to it."""

    return asyncio.run(
        mint_credential_async(
            recipient_address=recipient_address,
            metadata_content_id=metadata_content_id,
            artifact_content_id=artifact_content_id,
            index=index,
            ledger_config=ledger_config,
            content_config=content_config,
            wallet_config=wallet_config,
            client_factory=client_factory,
        )
    )


async def mint_credential_async(
    *,
    recipient_address: str,
    metadata_content_id: str,
    artifact_content_id: str,
    index: CredentialIndex | None = None,
    ledger_config: LedgerConfig | None = None,
    content_config: ContentConfig | None = None,
    wallet_config: WalletConfig | None = None,
    client_factory: ClientFactory | None = None,
) -> MintOutcome:
    effective_ledger = ledger_config or get_ledger_config()

    async with (
        WalletRpcSigner(
            config=wallet_config or get_wallet_config(),
            client_factory=client_factory,
        ) as signer,
        LedgerClient(
            config=effective_ledger,
            signer=signer,
            client_factory=client_factory,
        ) as ledger,
    ):
        pipeline = IssuancePipeline(ledger=ledger, signer=signer, network=effective_ledger.network)
        outcome = await pipeline.mint(
            MintRequest(
                recipient_address=recipient_address,
                metadata_content_id=metadata_content_id,
                artifact_content_id=artifact_content_id,
            )
        )

        if index is not None:
            async with GatewayContentResolver(
                config=content_config or get_content_config(),
                client_factory=client_factory,
            ) as resolver:
                await index_minted_credential(index, outcome, ledger=ledger, resolver=resolver)

    return outcome


async def index_minted_credential(
    index: CredentialIndex,
    outcome: MintOutcome,
    *,
    ledger: LedgerReader,
    resolver: ContentResolver,
) -> CredentialRecord | None:
    """Feed a freshly minted credential into ``index`` without a full resync.

    Failures are logged and leave the index untouched; the mint itself already
    succeeded.
    """

    try:
        document = await resolver.resolve(outcome.pointer.content_id)
        owner = await ledger.get_owner(outcome.token_id)
    except CredentialError as exc:
        log.warning("Minted token %s not indexed: %s", outcome.token_id, exc)
        return None
    record = build_record(outcome.token_id, outcome.pointer, document, owner)
    index.insert_or_refresh(record)
    return record
