"""In-memory credential index and its sync-session state machine."""

from __future__ import annotations

import bisect
from dataclasses import replace
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from credsync.domain.addresses import normalize_address
from credsync.domain.types import Role, SyncSession, SyncStatus

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from credsync.domain.types import CredentialRecord, Principal, TokenId

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def collect_organizations(records: Iterable[CredentialRecord]) -> frozenset[str]:
    return frozenset(record.organization for record in records if record.organization)


class CredentialIndex:
    """Resolved credential records plus the state of the pass that produced them.

    ``idle -> loading -> {succeeded, failed} -> loading``. Every pass gets a
    monotonic id from ``begin_pass``; ``publish`` and ``fail`` from a pass that a
    newer one has superseded are dropped, so an older, slower pass can never
    overwrite fresher results. Records only change wholesale through
    ``publish`` or one at a time through ``insert_or_refresh``.
    """

    def __init__(self, *, now_provider: Callable[[], datetime] = _utcnow) -> None:
        self._now = now_provider
        self._records: tuple[CredentialRecord, ...] = ()
        self._organizations: frozenset[str] = frozenset()
        self._session = SyncSession()
        self._latest_pass = 0

    @property
    def session(self) -> SyncSession:
        return self._session

    @property
    def status(self) -> SyncStatus:
        return self._session.status

    @property
    def records(self) -> tuple[CredentialRecord, ...]:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def begin_pass(self) -> int:
        self._latest_pass += 1
        self._session = SyncSession(
            status=SyncStatus.LOADING,
            pass_id=self._latest_pass,
            started_at=self._now(),
        )
        return self._latest_pass

    def publish(
        self,
        pass_id: int,
        records: Sequence[CredentialRecord],
        organizations: frozenset[str] | None = None,
        *,
        attempted: int | None = None,
        skipped: Sequence[TokenId] = (),
    ) -> bool:
        """Replace the whole index with the result of ``pass_id``.

        Returns ``False`` without touching anything when the pass is superseded.
        """

        if self._is_superseded(pass_id, "publish"):
            return False

        ordered = tuple(sorted(records, key=lambda record: record.token_id))
        self._records = ordered
        self._organizations = (
            organizations if organizations is not None else collect_organizations(ordered)
        )
        self._session = replace(
            self._session,
            status=SyncStatus.SUCCEEDED,
            error=None,
            finished_at=self._now(),
            attempted=len(ordered) + len(skipped) if attempted is None else attempted,
            skipped_token_ids=tuple(sorted(skipped)),
        )
        return True

    def fail(self, pass_id: int, message: str) -> bool:
        if self._is_superseded(pass_id, "failure"):
            return False
        self._session = replace(
            self._session,
            status=SyncStatus.FAILED,
            error=message,
            finished_at=self._now(),
        )
        return True

    def insert_or_refresh(self, record: CredentialRecord) -> None:
        """Add or replace a single record without touching the session state."""

        records = [existing for existing in self._records if existing.token_id != record.token_id]
        bisect.insort(records, record, key=lambda item: item.token_id)
        self._records = tuple(records)
        self._organizations = collect_organizations(self._records)

    def get(self, token_id: TokenId) -> CredentialRecord | None:
        for record in self._records:
            if record.token_id == token_id:
                return record
        return None

    def list_by_owner(self, address: str | None) -> list[CredentialRecord]:
        owner = normalize_address(address)
        if not owner:
            return []
        return [
            record for record in self._records if normalize_address(record.owner_address) == owner
        ]

    def list_for_principal(self, principal: Principal) -> list[CredentialRecord]:
        if principal.role is Role.ISSUER:
            return list(self._records)
        return self.list_by_owner(principal.address)

    def list_organizations(self) -> frozenset[str]:
        return self._organizations

    def _is_superseded(self, pass_id: int, action: str) -> bool:
        if pass_id == self._latest_pass:
            return False
        log.info(
            "Discarding %s from superseded sync pass %s (latest is %s)",
            action,
            pass_id,
            self._latest_pass,
        )
        return True
