"""Content-addressed document resolver backed by an IPFS HTTP gateway."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError as SchemaValidationError

from credsync.adapters.http_resilience import ResilientClient
from credsync.config.errors import ConfigurationError
from credsync.domain.errors import NotFoundError, ResolutionError

from .translator import translate_document

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from credsync.config.content import ContentConfig
    from credsync.config.http_resilience import ResilienceConfig
    from credsync.domain.types import CredentialDocument

log = getLogger(__name__)


class GatewayContentResolver:
    """Resolves content ids to parsed credential documents.

    Holds no cache: every call hits the gateway.
    """

    def __init__(
        self,
        *,
        config: ContentConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        base_url = config.resilience.base_url
        if base_url is None:
            raise ConfigurationError("Missing content gateway base_url in resilience configuration")
        self._base_url = base_url
        factory = client_factory or ResilientClient
        self._client = factory(config.resilience)

    async def __aenter__(self) -> GatewayContentResolver:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def resolve(self, content_id: str) -> CredentialDocument:
        content_id = content_id.strip()
        if not content_id:
            raise NotFoundError("Empty content id")
        url = f"{self._base_url}{content_id}"

        try:
            response = await self._client.get(url)
        except httpx.InvalidURL as exc:
            raise ResolutionError(f"Content id {content_id!r} is not a valid URL path") from exc
        except httpx.TimeoutException as exc:
            raise ResolutionError(f"Timed out resolving {content_id}") from exc
        except httpx.HTTPError as exc:
            raise ResolutionError(f"Gateway unreachable for {content_id}: {exc}") from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            raise NotFoundError(f"Content {content_id} not found")
        if response.is_error:
            raise ResolutionError(f"Gateway answered {response.status_code} for {content_id}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise ResolutionError(f"Content {content_id} is not JSON") from exc
        if not isinstance(payload, dict):
            raise ResolutionError(f"Content {content_id} is not a JSON object")

        try:
            return translate_document(payload)
        except SchemaValidationError as exc:
            raise ResolutionError(f"Content {content_id} does not match the document schema") from exc
