"""
Settings and configuration for the IPFS client.

Centralizes configuration values and provides validation with fail-fast behavior.
Loads settings from environment variables at client construction time.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Optional

__all__ = ["DEFAULT_URI", "Settings", "create_settings_from_env"]

DEFAULT_URI = "http://127.0.0.1:5001/api/v0/"

_URL_PATTERN = re.compile(r"^https?://[a-zA-Z0-9.\-\[\]:]+(?::[0-9]+)?(?:/.*)?$")


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for ``IpfsService``.

    api_url: Base URL of the daemon's RPC API (always ends with "/")
    http_timeout_s: Timeout for non-streaming calls and for opening a subscription
    http_retry: Number of retries for transport failures (0=no retry)
    """
    api_url: str = DEFAULT_URI
    http_timeout_s: float = 30.0
    http_retry: int = 0

    def __post_init__(self):
        """Validate settings on construction."""
        if not self.api_url:
            raise ValueError("api_url is required")

        if not _URL_PATTERN.match(self.api_url):
            raise ValueError(f"Invalid api_url format: {self.api_url}")

        # Relative RPC paths are joined onto the base, so it must end in a slash
        if not self.api_url.endswith("/"):
            object.__setattr__(self, "api_url", self.api_url + "/")

        if self.http_timeout_s <= 0:
            raise ValueError(f"http_timeout_s must be positive, got {self.http_timeout_s}")

        if self.http_retry < 0:
            raise ValueError(f"http_retry must be non-negative, got {self.http_retry}")


def create_settings_from_env(api_url: Optional[str] = None) -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - IPFS_API_URL (default: http://127.0.0.1:5001/api/v0/)
        - IPFS_HTTP_TIMEOUT (default: 30.0)
        - IPFS_HTTP_RETRY (default: 0)

    Args:
        api_url: Explicit API URL, takes precedence over IPFS_API_URL

    Returns:
        Settings object with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        return float(value) if value else default

    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        return int(value) if value else default

    return Settings(
        api_url=api_url or os.getenv("IPFS_API_URL") or DEFAULT_URI,
        http_timeout_s=get_float("IPFS_HTTP_TIMEOUT", 30.0),
        http_retry=get_int("IPFS_HTTP_RETRY", 0),
    )
