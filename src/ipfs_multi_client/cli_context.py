"""
CLI Context for managing application dependencies.

Provides a clean way to manage CLI-level dependencies like settings and the
RPC client, avoiding global state and enabling dependency injection in tests.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .client import IpfsService
from .settings import Settings, create_settings_from_env


@dataclass
class CLIContext:
    """
    Shared context for CLI commands.

    Holds the settings resolved for one CLI invocation and creates the
    ``IpfsService`` lazily on first use.
    """
    settings: Settings
    _service: Optional[IpfsService] = None

    @classmethod
    def from_env(cls, api_url: Optional[str] = None) -> CLIContext:
        """
        Create CLI context from environment variables.

        Args:
            api_url: Explicit ``--api`` value, overrides IPFS_API_URL
        """
        return cls(settings=create_settings_from_env(api_url))

    @property
    def service(self) -> IpfsService:
        """Get or create the RPC client (lazy initialization)."""
        if self._service is None:
            self._service = IpfsService(self.settings)
        return self._service

    def close(self) -> None:
        if self._service is not None:
            self._service.close()
            self._service = None
