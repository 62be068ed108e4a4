"""Minimal JSON-RPC 2.0 transport shared by the ledger and wallet adapters."""

from __future__ import annotations

import itertools
from logging import getLogger
from typing import TYPE_CHECKING, Literal

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as SchemaValidationError

from credsync.config.errors import ConfigurationError
from credsync.domain.errors import ConnectivityError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .http_resilience import ResilientClient

log = getLogger(__name__)


class JsonRpcErrorPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: int
    message: str = ""
    data: object = None


class JsonRpcResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    jsonrpc: Literal["2.0"] = "2.0"
    id: int | str | None = None
    result: object = None
    error: JsonRpcErrorPayload | None = None


class JsonRpcError(RuntimeError):
    """Raised when the endpoint answers with a JSON-RPC error object."""

    def __init__(self, message: str, *, code: int, data: object = None) -> None:
        super().__init__(message)
        self.code = code
        self.data = data


class JsonRpcTransport:
    """Posts JSON-RPC requests through a ``ResilientClient``.

    Transport failures and non-success HTTP statuses become ``ConnectivityError``;
    error objects in a well-formed response become ``JsonRpcError``.
    """

    def __init__(self, client: ResilientClient, *, name: str) -> None:
        if client.config.base_url is None:
            raise ConfigurationError(f"Missing {name} base_url in resilience configuration")
        self._client = client
        self._name = name
        self._url = client.config.base_url
        self._ids = itertools.count(1)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def call(self, method: str, params: Sequence[object] = ()) -> object:
        request_id = next(self._ids)
        body = {"jsonrpc": "2.0", "id": request_id, "method": method, "params": list(params)}
        log.debug("%s rpc #%s %s", self._name, request_id, method)

        try:
            response = await self._client.post(self._url, json=body)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise ConnectivityError(
                f"{self._name} endpoint answered {exc.response.status_code} to {method}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ConnectivityError(f"{self._name} endpoint unreachable for {method}: {exc}") from exc
        except ValueError as exc:
            raise ConnectivityError(f"{self._name} endpoint returned non-JSON for {method}") from exc

        try:
            envelope = JsonRpcResponse.model_validate(payload)
        except SchemaValidationError as exc:
            raise ConnectivityError(f"Unexpected {self._name} response envelope for {method}") from exc

        if envelope.error is not None:
            log.debug(
                "%s rpc #%s %s failed: %s %s",
                self._name,
                request_id,
                method,
                envelope.error.code,
                envelope.error.message,
            )
            raise JsonRpcError(
                envelope.error.message or f"{method} failed",
                code=envelope.error.code,
                data=envelope.error.data,
            )
        return envelope.result
