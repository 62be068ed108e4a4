from __future__ import annotations

import pytest

from credsync import main as main_module
from credsync.app import SyncSummary
from credsync.config.sync import DEFAULT_MAX_CONCURRENCY
from credsync.domain.addresses import checksum_address
from credsync.domain.errors import ValidationError
from credsync.domain.index import CredentialIndex
from credsync.domain.types import (
    CredentialDocument,
    CredentialRecord,
    MetadataPointer,
    MintOutcome,
)
from tests.support.fakes import HOLDER_A, HOLDER_B


def _record(token_id: int, owner: str, organization: str) -> CredentialRecord:
    return CredentialRecord(
        token_id=token_id,
        owner_address=owner.lower(),
        content_id=f"QmMeta{token_id}",
        artifact_id=f"QmArtifact{token_id}",
        metadata=CredentialDocument(organization=organization),
        organization=organization,
    )


@pytest.fixture
def captured_sync(monkeypatch: pytest.MonkeyPatch) -> dict[str, object]:
    captured: dict[str, object] = {}
    monkeypatch.delenv("CREDSYNC_MAX_CONCURRENCY", raising=False)

    def fake_sync(*, index: CredentialIndex, **kwargs: object) -> SyncSummary:
        captured.update(kwargs)
        records = [_record(1, HOLDER_A, "Acme"), _record(2, HOLDER_B, "Globex")]
        pass_id = index.begin_pass()
        index.publish(pass_id, records, attempted=3, skipped=[3])
        return SyncSummary(
            records=records,
            organizations=index.list_organizations(),
            session=index.session,
        )

    monkeypatch.setattr(main_module, "sync_credentials", fake_sync)
    return captured


def test_sync_uses_default_config(captured_sync: dict[str, object]) -> None:
    main_module.main(["sync"])

    config = captured_sync["sync_config"]
    assert config.max_concurrency == DEFAULT_MAX_CONCURRENCY  # type: ignore[attr-defined]
    assert config.max_skipped is None  # type: ignore[attr-defined]


def test_sync_with_flags(captured_sync: dict[str, object]) -> None:
    main_module.main(["sync", "--max-concurrency", "2", "--max-skipped", "5"])

    config = captured_sync["sync_config"]
    assert config.max_concurrency == 2  # type: ignore[attr-defined]
    assert config.max_skipped == 5  # type: ignore[attr-defined]


def test_sync_reports_skipped_tokens(
    captured_sync: dict[str, object], capsys: pytest.CaptureFixture[str]
) -> None:
    main_module.main(["sync"])

    out = capsys.readouterr().out
    assert "skipped=1" in out
    assert "Skipped tokens: 3" in out
    assert captured_sync


@pytest.mark.parametrize("flag", ["--max-concurrency=0", "--max-skipped=-1"])
def test_invalid_sync_flags_exit_with_usage_code(
    captured_sync: dict[str, object], capsys: pytest.CaptureFixture[str], flag: str
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main_module.main(["sync", flag])

    assert excinfo.value.code == 2
    assert capsys.readouterr().err.startswith("Error: --max-")
    assert captured_sync == {}


def test_list_filters_by_owner(
    captured_sync: dict[str, object], capsys: pytest.CaptureFixture[str]
) -> None:
    main_module.main(["list", "--owner", HOLDER_B])

    out = capsys.readouterr().out
    assert f"1 credentials held by {HOLDER_B}" in out
    assert "token=2 " in out
    assert "token=1 " not in out
    assert captured_sync


def test_organizations_lists_distinct_names(
    captured_sync: dict[str, object], capsys: pytest.CaptureFixture[str]
) -> None:
    main_module.main(["organizations"])

    assert capsys.readouterr().out.splitlines() == ["Acme", "Globex"]
    assert captured_sync


def test_verify_prints_indexed_record(
    captured_sync: dict[str, object], capsys: pytest.CaptureFixture[str]
) -> None:
    main_module.main(["verify", "--token-id", "1"])

    out = capsys.readouterr().out
    assert out.startswith(f"token=1 owner={HOLDER_A.lower()} organization=Acme")
    assert captured_sync


def test_verify_unknown_token_exits_with_error(
    captured_sync: dict[str, object], capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main_module.main(["verify", "--token-id", "9"])

    assert excinfo.value.code == 1
    assert "Error: Credential 9 is not indexed" in capsys.readouterr().err
    assert captured_sync


def test_mint_passes_arguments(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    captured: dict[str, object] = {}

    def fake_mint(**kwargs: object) -> MintOutcome:
        captured.update(kwargs)
        return MintOutcome(
            token_id=7,
            tx_hash="0xfeed",
            recipient_address=HOLDER_A,
            pointer=MetadataPointer(content_id="QmMeta", artifact_id="QmArtifact"),
            owner_verified=True,
        )

    monkeypatch.setattr(main_module, "mint_credential", fake_mint)

    main_module.main(
        [
            "mint",
            "--recipient",
            HOLDER_A,
            "--metadata-cid",
            "QmMeta",
            "--artifact-cid",
            "QmArtifact",
        ]
    )

    assert captured == {
        "recipient_address": checksum_address(HOLDER_A),
        "metadata_content_id": "QmMeta",
        "artifact_content_id": "QmArtifact",
    }
    assert capsys.readouterr().out.startswith("Minted token 7 for ")


def test_invalid_mint_input_exits_before_minting(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def fake_mint(**_: object) -> MintOutcome:
        raise AssertionError("mint must not be attempted")

    monkeypatch.setattr(main_module, "mint_credential", fake_mint)

    with pytest.raises(SystemExit) as excinfo:
        main_module.main(
            ["mint", "--recipient", "0x12", "--metadata-cid", "QmMeta", "--artifact-cid", "QmA"]
        )

    assert excinfo.value.code == 2
    assert capsys.readouterr().err == "Error: Invalid address: '0x12'\n"


def test_runtime_validation_error_exits_with_failure_code(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def fake_mint(**_: object) -> MintOutcome:
        raise ValidationError("Recipient is not a token holder")

    monkeypatch.setattr(main_module, "mint_credential", fake_mint)

    with pytest.raises(SystemExit) as excinfo:
        main_module.main(
            ["mint", "--recipient", HOLDER_A, "--metadata-cid", "QmMeta", "--artifact-cid", "QmA"]
        )

    assert excinfo.value.code == 1
    assert "Error: Recipient is not a token holder" in capsys.readouterr().err
