"""Exceptions raised by the Home Assistant MCP server."""

from __future__ import annotations


class HomeAssistantError(Exception):
    """Base error for failed upstream calls."""


class HomeAssistantApiError(HomeAssistantError):
    """An upstream API answered with a non-2xx status."""

    def __init__(
        self, api: str, method: str, path: str, status: int, body: str
    ) -> None:
        """Initialize the error."""
        super().__init__(f"{api} {method} {path} failed ({status}): {body}")
        self.api = api
        self.method = method
        self.path = path
        self.status = status
        self.body = body


class HomeAssistantTimeoutError(HomeAssistantError):
    """An upstream API did not answer in time."""


class HomeAssistantConnectionError(HomeAssistantError):
    """An upstream API could not be reached."""


class ToolError(Exception):
    """Base error for rejected tool invocations."""


class UnknownToolError(ToolError):
    """No tool is registered under the requested name."""


class ToolValidationError(ToolError):
    """Tool arguments do not match the tool's input schema."""
