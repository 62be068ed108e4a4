"""Port for resolving content-addressed documents."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from credsync.domain.types import CredentialDocument


@runtime_checkable
class ContentResolver(Protocol):
    """Fetch and parse the document stored under ``content_id``.

    Implementations are stateless; callers own any caching.
    """

    async def resolve(self, content_id: str) -> CredentialDocument: ...


__all__ = ["ContentResolver"]
