"""Fan-out synchronization of ledger tokens into the credential index."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from credsync.config.sync import SyncConfig
from credsync.domain.addresses import normalize_address
from credsync.domain.errors import CredentialError, SkipThresholdError, SyncError
from credsync.domain.index import collect_organizations
from credsync.domain.types import CredentialRecord, MetadataPointer

if TYPE_CHECKING:
    from credsync.domain.index import CredentialIndex
    from credsync.domain.ports.content import ContentResolver
    from credsync.domain.ports.ledger import LedgerReader
    from credsync.domain.types import CredentialDocument, TokenId

log = getLogger(__name__)


async def resolve_record(
    token_id: TokenId,
    *,
    ledger: LedgerReader,
    resolver: ContentResolver,
) -> CredentialRecord:
    """Resolve one token into a record, raising on the first failed sub-step.

    The document and the owner are fetched concurrently once the pointer is
    known. Errors surface as an ``ExceptionGroup`` when both lookups fail.
    """

    pointer = MetadataPointer.parse(await ledger.get_metadata_pointer(token_id))
    async with asyncio.TaskGroup() as group:
        document_task = group.create_task(resolver.resolve(pointer.content_id))
        owner_task = group.create_task(ledger.get_owner(token_id))
    return build_record(token_id, pointer, document_task.result(), owner_task.result())


def build_record(
    token_id: TokenId,
    pointer: MetadataPointer,
    document: CredentialDocument,
    owner: str,
) -> CredentialRecord:
    return CredentialRecord(
        token_id=token_id,
        owner_address=normalize_address(owner),
        content_id=pointer.content_id,
        artifact_id=pointer.artifact_id,
        metadata=document,
        organization=document.organization,
    )


class FanOutSynchronizer:
    """Rebuilds the credential index from the ledger in one pass.

    Token ids ``1..total_supply`` are resolved concurrently, at most
    ``SyncConfig.max_concurrency`` at a time. A token whose pointer, document or
    owner cannot be resolved is logged and left out. A failed total-supply read
    or any other unexpected error fails the pass with ``SyncError``, so the
    session never stays ``loading``. The index is written once, after every token has
    settled.
    """

    def __init__(
        self,
        *,
        ledger: LedgerReader,
        resolver: ContentResolver,
        index: CredentialIndex,
        config: SyncConfig | None = None,
    ) -> None:
        self._ledger = ledger
        self._resolver = resolver
        self._index = index
        self._config = config or SyncConfig()

    async def run_full_sync(self) -> list[CredentialRecord]:
        pass_id = self._index.begin_pass()
        log.info("Starting credential sync pass %s", pass_id)

        try:
            total_supply = await self._ledger.get_total_supply()
        except Exception as exc:
            message = f"Unable to read total supply: {exc}"
            log.error("Sync pass %s failed: %s", pass_id, message)
            self._index.fail(pass_id, message)
            raise SyncError(message) from exc

        semaphore = asyncio.Semaphore(self._config.max_concurrency)
        token_ids = range(1, total_supply + 1)
        try:
            async with asyncio.TaskGroup() as group:
                tasks = [
                    group.create_task(self._attempt(token_id, semaphore)) for token_id in token_ids
                ]
        except Exception as exc:
            message = f"Unexpected failure while resolving tokens: {exc!r}"
            log.exception("Sync pass %s failed", pass_id)
            self._index.fail(pass_id, message)
            raise SyncError(message) from exc
        outcomes = [task.result() for task in tasks]

        records = sorted(
            (record for record in outcomes if record is not None),
            key=lambda record: record.token_id,
        )
        skipped = tuple(
            token_id for token_id, record in zip(token_ids, outcomes, strict=True) if record is None
        )
        self._check_skip_threshold(pass_id, skipped)

        published = self._index.publish(
            pass_id,
            records,
            collect_organizations(records),
            attempted=total_supply,
            skipped=skipped,
        )
        log.info(
            "Finished sync pass %s: supply=%s, indexed=%s, skipped=%s, published=%s",
            pass_id,
            total_supply,
            len(records),
            len(skipped),
            published,
        )
        return records

    async def _attempt(
        self,
        token_id: TokenId,
        semaphore: asyncio.Semaphore,
    ) -> CredentialRecord | None:
        async with semaphore:
            try:
                return await resolve_record(
                    token_id,
                    ledger=self._ledger,
                    resolver=self._resolver,
                )
            except* CredentialError as group:
                reasons = "; ".join(str(exc) for exc in group.exceptions)
                log.warning("Skipping token %s: %s", token_id, reasons)
        return None

    def _check_skip_threshold(self, pass_id: int, skipped: tuple[TokenId, ...]) -> None:
        limit = self._config.max_skipped
        if limit is None or len(skipped) <= limit:
            return
        message = f"Skipped {len(skipped)} tokens, more than the allowed {limit}"
        log.error("Sync pass %s failed: %s", pass_id, message)
        self._index.fail(pass_id, message)
        raise SkipThresholdError(message, skipped=skipped)
