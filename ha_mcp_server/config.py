"""Runtime configuration for the Home Assistant MCP server."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .const import (
    DEFAULT_API_TIMEOUT,
    DEFAULT_LOG_LEVEL,
    ENV_LOG_LEVEL,
    ENV_SUPERVISOR_TOKEN,
    HA_API_BASE,
    SUPERVISOR_API_BASE,
)

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True)
class ServerConfig:
    """Immutable settings shared by every upstream call."""

    token: str | None = None
    api_base: str = HA_API_BASE
    supervisor_base: str = SUPERVISOR_API_BASE
    timeout: float = DEFAULT_API_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServerConfig:
        """Build the configuration from process environment variables.

        Args:
            environ: Mapping to read from instead of ``os.environ``.

        Returns:
            A ServerConfig with the credential and log level filled in.
        """
        env = os.environ if environ is None else environ
        return cls(
            token=env.get(ENV_SUPERVISOR_TOKEN) or None,
            log_level=env.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper(),
        )

    @property
    def has_token(self) -> bool:
        """Return True if a credential was configured."""
        return bool(self.token)
