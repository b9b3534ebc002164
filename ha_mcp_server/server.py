"""MCP server frontend for the Home Assistant tool catalog.

stdout carries the MCP protocol stream, so everything here logs through
``logging`` to stderr and never prints.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import voluptuous as vol
from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server
from voluptuous.humanize import humanize_error

from .const import SERVER_NAME, SERVER_VERSION
from .exceptions import ToolValidationError, UnknownToolError
from .ha_client import TOOLS, HomeAssistantClient

if TYPE_CHECKING:
    from .config import ServerConfig
    from .ha_client import ToolDescriptor

_LOGGER = logging.getLogger(__name__)


class ToolDispatcher:
    """Validate tool invocations and route them to their handlers."""

    def __init__(
        self,
        client: HomeAssistantClient,
        tools: dict[str, ToolDescriptor] | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            client: Client the tool handlers call upstream with.
            tools: Tool catalog, defaults to the full Home Assistant catalog.
        """
        self.client = client
        self.tools = TOOLS if tools is None else tools

    def list_tools(self) -> list[types.Tool]:
        """Describe every tool in the catalog for MCP clients."""
        return [
            types.Tool(
                name=descriptor.name,
                description=descriptor.description,
                inputSchema=descriptor.input_schema,
            )
            for descriptor in self.tools.values()
        ]

    def validate(self, name: str, arguments: dict[str, Any] | None) -> dict[str, Any]:
        """Validate invocation arguments against the tool's schema.

        Raises:
            UnknownToolError: No tool has this name.
            ToolValidationError: The arguments do not match the schema.
        """
        descriptor = self.tools.get(name)
        if descriptor is None:
            raise UnknownToolError(f"Unknown tool: {name}")

        provided = arguments or {}
        try:
            return descriptor.validate(provided)
        except vol.Invalid as err:
            raise ToolValidationError(
                f"Invalid arguments for {name}: {humanize_error(provided, err)}"
            ) from err

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None
    ) -> list[types.TextContent]:
        """Validate and execute a tool, returning its text result.

        Errors are logged and re-raised so the MCP layer reports them as
        an error result.
        """
        validated = self.validate(name, arguments)
        _LOGGER.debug("Calling tool %s with %s", name, validated)

        try:
            text = await self.tools[name].handler(self.client, **validated)
        except Exception as err:
            _LOGGER.error("Tool execution error (%s): %s", name, err)
            raise

        return [types.TextContent(type="text", text=text)]


def create_server(dispatcher: ToolDispatcher) -> Server:
    """Create the MCP server and register the tool handlers."""
    server = Server(SERVER_NAME, version=SERVER_VERSION)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return dispatcher.list_tools()

    @server.call_tool()
    async def handle_call_tool(
        name: str, arguments: dict[str, Any]
    ) -> list[types.TextContent]:
        return await dispatcher.call_tool(name, arguments)

    return server


async def async_run(config: ServerConfig) -> None:
    """Serve the tool catalog over stdio until the client disconnects."""
    if not config.has_token:
        _LOGGER.warning("SUPERVISOR_TOKEN not set. HA API calls will fail.")

    client = HomeAssistantClient(config)
    server = create_server(ToolDispatcher(client))

    try:
        async with stdio_server() as (read_stream, write_stream):
            _LOGGER.info("Home Assistant MCP Server running on stdio")
            await server.run(
                read_stream, write_stream, server.create_initialization_options()
            )
    finally:
        await client.async_close()
