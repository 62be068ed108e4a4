from __future__ import annotations

from datetime import UTC, datetime

from credsync.domain.index import CredentialIndex
from credsync.domain.types import (
    CredentialDocument,
    CredentialRecord,
    Principal,
    Role,
    SyncStatus,
)
from tests.support.fakes import HOLDER_A, HOLDER_B

FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


def _record(
    token_id: int,
    owner: str = HOLDER_A,
    organization: str | None = "Acme",
) -> CredentialRecord:
    return CredentialRecord(
        token_id=token_id,
        owner_address=owner.lower(),
        content_id=f"QmMeta{token_id}",
        artifact_id=f"QmArtifact{token_id}",
        metadata=CredentialDocument(organization=organization),
        organization=organization,
    )


def _index() -> CredentialIndex:
    return CredentialIndex(now_provider=lambda: FIXED_NOW)


def test_new_index_is_idle_and_empty() -> None:
    index = _index()

    assert index.status is SyncStatus.IDLE
    assert len(index) == 0
    assert index.list_organizations() == frozenset()


def test_publish_replaces_records_in_token_order() -> None:
    index = _index()
    pass_id = index.begin_pass()

    assert index.status is SyncStatus.LOADING
    assert index.session.started_at == FIXED_NOW

    published = index.publish(pass_id, [_record(3), _record(1), _record(2, organization="Globex")])

    assert published
    assert [record.token_id for record in index.records] == [1, 2, 3]
    assert index.list_organizations() == frozenset({"Acme", "Globex"})
    assert index.session.status is SyncStatus.SUCCEEDED
    assert index.session.attempted == 3
    assert index.session.finished_at == FIXED_NOW


def test_publish_records_skipped_tokens() -> None:
    index = _index()
    pass_id = index.begin_pass()

    index.publish(pass_id, [_record(1)], attempted=3, skipped=[3, 2])

    assert index.session.attempted == 3
    assert index.session.skipped_token_ids == (2, 3)
    assert not index.session.complete


def test_superseded_pass_cannot_overwrite_newer_results() -> None:
    index = _index()
    stale = index.begin_pass()
    fresh = index.begin_pass()

    assert index.publish(fresh, [_record(1), _record(2)])
    assert not index.publish(stale, [_record(9)])
    assert not index.fail(stale, "late failure")

    assert [record.token_id for record in index.records] == [1, 2]
    assert index.session.status is SyncStatus.SUCCEEDED
    assert index.session.pass_id == fresh


def test_fail_keeps_previous_records() -> None:
    index = _index()
    index.publish(index.begin_pass(), [_record(1)])

    failing = index.begin_pass()
    assert index.fail(failing, "ledger unreachable")

    assert index.status is SyncStatus.FAILED
    assert index.session.error == "ledger unreachable"
    assert [record.token_id for record in index.records] == [1]


def test_insert_or_refresh_keeps_order_and_session() -> None:
    index = _index()
    index.publish(index.begin_pass(), [_record(1), _record(3)])
    session = index.session

    index.insert_or_refresh(_record(2, organization="Initech"))
    index.insert_or_refresh(_record(3, owner=HOLDER_B))

    assert [record.token_id for record in index.records] == [1, 2, 3]
    assert index.get(3) is not None
    assert index.get(3).owner_address == HOLDER_B.lower()  # type: ignore[union-attr]
    assert index.list_organizations() == frozenset({"Acme", "Initech"})
    assert index.session is session


def test_list_by_owner_is_case_insensitive() -> None:
    index = _index()
    index.publish(index.begin_pass(), [_record(1), _record(2, owner=HOLDER_B), _record(3)])

    owned = index.list_by_owner(HOLDER_A.upper().replace("0X", "0x"))

    assert [record.token_id for record in owned] == [1, 3]
    assert index.list_by_owner(None) == []
    assert index.list_by_owner("  ") == []


def test_list_for_principal_scopes_by_role() -> None:
    index = _index()
    index.publish(index.begin_pass(), [_record(1), _record(2, owner=HOLDER_B)])

    holder = Principal(subject="holder|1", address=HOLDER_B)
    issuer = Principal(subject="issuer|1", address=None, role=Role.ISSUER)
    anonymous = Principal(subject="holder|2", address=None)

    assert [record.token_id for record in index.list_for_principal(holder)] == [2]
    assert [record.token_id for record in index.list_for_principal(issuer)] == [1, 2]
    assert index.list_for_principal(anonymous) == []


def test_get_unknown_token_returns_none() -> None:
    assert _index().get(42) is None
