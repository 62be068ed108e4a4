"""Translate content payloads into domain documents."""

from __future__ import annotations

from credsync.domain.types import CredentialDocument

from .schema import CredentialDocumentPayload


def translate_document(payload: dict[str, object]) -> CredentialDocument:
    parsed = CredentialDocumentPayload.model_validate(payload)
    return CredentialDocument(
        organization=parsed.organization,
        name=parsed.name,
        description=parsed.description,
        issued_at=parsed.issued_at,
        attributes=dict(payload),
    )
