"""Account address helpers."""

from __future__ import annotations

from eth_utils import is_address, to_checksum_address

from credsync.domain.errors import ValidationError

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def checksum_address(value: object) -> str:
    """Return the EIP-55 form of ``value`` or raise ``ValidationError``.

    Accepts lowercase, uppercase and correctly checksummed hex addresses; a
    mixed-case address with a wrong checksum is rejected.
    """

    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Recipient address is required")
    candidate = value.strip()
    if not is_address(candidate):
        raise ValidationError(f"Invalid address: {candidate!r}")
    return to_checksum_address(candidate)


def normalize_address(value: str | None) -> str:
    """Lowercase form used for every owner comparison."""

    if value is None:
        return ""
    return value.strip().lower()


def same_address(left: str | None, right: str | None) -> bool:
    normalized = normalize_address(left)
    return bool(normalized) and normalized == normalize_address(right)
