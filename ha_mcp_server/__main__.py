"""Command line entry point for the Home Assistant MCP server."""

from __future__ import annotations

import asyncio
import logging
import sys

from .config import ServerConfig
from .server import async_run

_LOGGER = logging.getLogger(__name__)


def main() -> None:
    """Run the server over stdio, logging to stderr."""
    config = ServerConfig.from_env()
    logging.basicConfig(
        stream=sys.stderr,
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        asyncio.run(async_run(config))
    except KeyboardInterrupt:
        _LOGGER.info("Home Assistant MCP Server stopped")
    except Exception:
        _LOGGER.exception("Fatal error")
        sys.exit(1)


if __name__ == "__main__":
    main()
