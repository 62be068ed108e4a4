"""Port for the externally held signing capability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

# EIP-1193 / EIP-3085 error code for a chain the wallet does not know.
UNRECOGNIZED_CHAIN_CODE = 4902


@runtime_checkable
class Signer(Protocol):
    """A wallet able to sign and dispatch arbitrary RPC requests.

    Constructed once by the caller and handed to the ledger client and the
    issuance pipeline; nothing looks it up from ambient state. Failed requests
    raise ``SignerRequestError`` carrying the wallet's error code.
    """

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    async def get_address(self) -> str: ...

    async def request_accounts(self) -> list[str]: ...

    async def request(self, method: str, params: Sequence[object] = ()) -> object: ...


__all__ = ["UNRECOGNIZED_CHAIN_CODE", "Signer"]
