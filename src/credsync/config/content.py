"""Content store configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_CONTENT_GATEWAY_URL = "https://ipfs.io/ipfs/"
CONTENT_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True, slots=True)
class ContentConfig:
    resilience: ResilienceConfig


def get_content_config() -> ContentConfig:
    gateway = optional_env_var("CONTENT_GATEWAY_URL", DEFAULT_CONTENT_GATEWAY_URL)
    if not gateway.endswith("/"):
        gateway = f"{gateway}/"

    return ContentConfig(
        resilience=ResilienceConfig(
            name="content",
            base_url=gateway,
            timeout_seconds=CONTENT_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=8, per_seconds=1.0),
            retry=RetryPolicy(total=3, allowed_methods=frozenset({"GET"})),
            default_headers={"Accept": "application/json"},
        )
    )
