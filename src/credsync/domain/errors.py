"""Error taxonomy shared by the ledger, content and issuance paths.

Per-token errors (``NotFoundError``, ``ResolutionError`` and per-token
``ConnectivityError``) are absorbed by the synchronizer; everything else
propagates to the caller.
"""

from __future__ import annotations


class CredentialError(RuntimeError):
    """Base class for every credsync failure."""


class ConnectivityError(CredentialError):
    """The ledger or content gateway could not be reached or answered with an error."""


class NotFoundError(CredentialError):
    """A token or a content document does not exist."""


class ValidationError(CredentialError, ValueError):
    """Malformed caller input, raised before any network call."""


class ResolutionError(CredentialError):
    """A content document timed out or could not be parsed."""


class NetworkMismatchError(CredentialError):
    """The signer could not be moved onto the required network."""

    def __init__(self, message: str, *, expected: str, actual: str | None = None) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class EventNotFoundError(CredentialError):
    """The mint was confirmed but no ownership-transfer event carried the new token id.

    The credential most likely exists on the ledger; reconcile by hand using
    ``tx_hash``.
    """

    def __init__(self, message: str, *, tx_hash: str) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


class TransactionRevertedError(CredentialError):
    """The mint transaction was mined with a failure status."""

    def __init__(self, message: str, *, tx_hash: str) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


class MissingSignerError(CredentialError):
    """A ledger write was requested from a read-only client."""


class SignerRequestError(CredentialError):
    """The signer rejected or failed an RPC request."""

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class SyncError(CredentialError):
    """A full sync pass could not complete."""


class SkipThresholdError(SyncError):
    """Too many tokens were skipped during a pass."""

    def __init__(self, message: str, *, skipped: tuple[int, ...]) -> None:
        super().__init__(message)
        self.skipped = skipped


__all__ = [
    "ConnectivityError",
    "CredentialError",
    "EventNotFoundError",
    "MissingSignerError",
    "NetworkMismatchError",
    "NotFoundError",
    "ResolutionError",
    "SignerRequestError",
    "SkipThresholdError",
    "SyncError",
    "TransactionRevertedError",
    "ValidationError",
]
