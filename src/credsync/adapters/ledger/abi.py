"""ABI fragments of the credential contract."""

from __future__ import annotations

from typing import TYPE_CHECKING

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import decode_hex, encode_hex, function_signature_to_4byte_selector

if TYPE_CHECKING:
    from collections.abc import Sequence

TOTAL_SUPPLY = "totalSupply()"
GET_METADATA = "getMetaData(uint256)"
OWNER_OF = "ownerOf(uint256)"
MINT = "mint(address,string)"


class AbiDecodingError(ValueError):
    """Raised when call output does not match the expected ABI types."""


def encode_call(signature: str, arg_types: Sequence[str] = (), args: Sequence[object] = ()) -> str:
    selector = function_signature_to_4byte_selector(signature)
    return encode_hex(selector + encode(list(arg_types), list(args)))


def decode_output(types: Sequence[str], data: str) -> tuple[object, ...]:
    try:
        raw = decode_hex(data)
    except (TypeError, ValueError) as exc:
        raise AbiDecodingError(f"Call output is not hex: {data!r}") from exc
    if not raw:
        raise AbiDecodingError("Call returned no data")
    try:
        return tuple(decode(list(types), raw))
    except (DecodingError, UnicodeDecodeError) as exc:
        raise AbiDecodingError(str(exc)) from exc
