"""Home Assistant API client and MCP tool catalog."""

from .client import Api, HomeAssistantClient
from .tools import TOOLS, ToolDescriptor, get_tools

__all__ = ["Api", "HomeAssistantClient", "TOOLS", "ToolDescriptor", "get_tools"]
