"""Credential domain types (pure, dependency-light)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from credsync.domain.errors import NotFoundError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

type TokenId = int

POINTER_DELIMITER = ","


@dataclass(frozen=True, slots=True)
class MetadataPointer:
    """The on-chain half of a credential: metadata document id plus artifact id."""

    content_id: str
    artifact_id: str

    @classmethod
    def parse(cls, raw: str) -> MetadataPointer:
        content_id, delimiter, artifact_id = raw.partition(POINTER_DELIMITER)
        content_id = content_id.strip()
        if not delimiter or not content_id:
            raise NotFoundError(f"Malformed metadata pointer: {raw!r}")
        return cls(content_id=content_id, artifact_id=artifact_id.strip())

    def encode(self) -> str:
        return f"{self.content_id}{POINTER_DELIMITER}{self.artifact_id}"


def validate_content_id(value: str, *, label: str) -> str:
    candidate = value.strip() if isinstance(value, str) else ""
    if not candidate:
        raise ValidationError(f"{label} is required")
    if POINTER_DELIMITER in candidate:
        raise ValidationError(f"{label} must not contain {POINTER_DELIMITER!r}: {candidate!r}")
    return candidate


@dataclass(frozen=True, slots=True)
class CredentialDocument:
    """Parsed off-chain metadata document.

    ``attributes`` keeps the whole payload, including keys without a typed field.
    """

    organization: str | None = None
    name: str | None = None
    description: str | None = None
    issued_at: str | None = None
    attributes: Mapping[str, object] = field(default_factory=dict[str, object])


@dataclass(frozen=True, slots=True)
class CredentialRecord:
    token_id: TokenId
    owner_address: str
    content_id: str
    artifact_id: str
    metadata: CredentialDocument = field(hash=False)
    organization: str | None = None


class SyncStatus(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class SyncSession:
    """Snapshot of the index's sync state."""

    status: SyncStatus = SyncStatus.IDLE
    pass_id: int = 0
    error: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    attempted: int = 0
    skipped_token_ids: tuple[TokenId, ...] = ()

    @property
    def skipped(self) -> int:
        return len(self.skipped_token_ids)

    @property
    def complete(self) -> bool:
        return self.status is SyncStatus.SUCCEEDED and not self.skipped_token_ids


class Role(StrEnum):
    HOLDER = "holder"
    ISSUER = "issuer"


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity handed over by an external identity provider."""

    subject: str
    address: str | None
    email: str | None = None
    role: Role = Role.HOLDER


@dataclass(frozen=True, slots=True)
class MintRequest:
    recipient_address: str
    metadata_content_id: str
    artifact_content_id: str

    @property
    def pointer(self) -> MetadataPointer:
        return MetadataPointer(
            content_id=self.metadata_content_id,
            artifact_id=self.artifact_content_id,
        )


@dataclass(frozen=True, slots=True)
class MintOutcome:
    token_id: TokenId
    tx_hash: str
    recipient_address: str
    pointer: MetadataPointer
    owner_verified: bool | None = None


__all__ = [
    "POINTER_DELIMITER",
    "CredentialDocument",
    "CredentialRecord",
    "MetadataPointer",
    "MintOutcome",
    "MintRequest",
    "Principal",
    "Role",
    "SyncSession",
    "SyncStatus",
    "TokenId",
    "validate_content_id",
]
