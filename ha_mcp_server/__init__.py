"""MCP server exposing the Home Assistant REST API as tools."""

from .const import SERVER_VERSION

__version__ = SERVER_VERSION
