"""Synchronization defaults for the credential index."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_int_env_var
from .errors import ConfigurationError

DEFAULT_MAX_CONCURRENCY = 8


@dataclass(frozen=True, slots=True)
class SyncConfig:
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    # None keeps partial passes successful; an int fails the pass once exceeded.
    max_skipped: int | None = None

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ConfigurationError("max_concurrency must be at least 1")
        if self.max_skipped is not None and self.max_skipped < 0:
            raise ConfigurationError("max_skipped must be non-negative")


def get_sync_config(*, max_skipped: int | None = None) -> SyncConfig:
    return SyncConfig(
        max_concurrency=optional_int_env_var("CREDSYNC_MAX_CONCURRENCY", DEFAULT_MAX_CONCURRENCY),
        max_skipped=max_skipped,
    )
