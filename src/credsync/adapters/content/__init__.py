"""Public interface for the content adapter."""

from __future__ import annotations

from .client import GatewayContentResolver
from .schema import CredentialDocumentPayload
from .translator import translate_document

__all__ = [
    "CredentialDocumentPayload",
    "GatewayContentResolver",
    "translate_document",
]
