"""Tests for the MCP server frontend."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from mcp import types

from ha_mcp_server import server as server_module
from ha_mcp_server.__main__ import main
from ha_mcp_server.config import ServerConfig
from ha_mcp_server.exceptions import (
    HomeAssistantTimeoutError,
    ToolValidationError,
    UnknownToolError,
)
from ha_mcp_server.server import ToolDispatcher, create_server


@pytest.fixture
def dispatcher(mock_client):
    """Dispatcher over the full tool catalog."""
    return ToolDispatcher(mock_client)


async def _invoke(server, name, arguments):
    """Send a tools/call request through the MCP request handler."""
    handler = server.request_handlers[types.CallToolRequest]
    request = types.CallToolRequest(
        method="tools/call",
        params=types.CallToolRequestParams(name=name, arguments=arguments),
    )
    result = await handler(request)
    return result.root


class TestListTools:
    """Tests for advertising the catalog."""

    def test_lists_every_tool(self, dispatcher):
        """Test that each catalog entry becomes an MCP tool."""
        listed = dispatcher.list_tools()

        assert [tool.name for tool in listed] == list(dispatcher.tools)
        for tool in listed:
            assert isinstance(tool, types.Tool)
            assert tool.description
            assert tool.inputSchema["type"] == "object"

    def test_reload_description_lists_domains(self, dispatcher):
        """Test that the reload tool names its domains."""
        tool = next(t for t in dispatcher.list_tools() if t.name == "reload_config")

        assert "input_boolean" in tool.description
        assert "core" in tool.description


class TestCallTool:
    """Tests for validating and dispatching invocations."""

    async def test_returns_text_content(self, dispatcher, mock_client, states_fixture):
        """Test a successful invocation."""
        mock_client.get_states.return_value = states_fixture

        result = await dispatcher.call_tool("get_entities", {"domain": "light"})

        assert len(result) == 1
        assert result[0].type == "text"
        assert result[0].text.startswith("Found 3 light entities:")

    async def test_unknown_tool(self, dispatcher):
        """Test that unknown names are rejected."""
        with pytest.raises(UnknownToolError, match="Unknown tool: get_weather"):
            await dispatcher.call_tool("get_weather", {})

    async def test_validation_error_skips_handler(self, dispatcher, mock_client):
        """Test that invalid arguments never reach upstream."""
        with pytest.raises(ToolValidationError) as exc_info:
            await dispatcher.call_tool("get_entity_state", {"entity_id": 42})

        assert "get_entity_state" in str(exc_info.value)
        assert "entity_id" in str(exc_info.value)
        mock_client.get_state.assert_not_called()

    async def test_missing_required_argument(self, dispatcher, mock_client):
        """Test that required arguments are enforced."""
        with pytest.raises(ToolValidationError):
            await dispatcher.call_tool("restart", {})

        mock_client.call_service.assert_not_called()

    async def test_null_arguments_rejected(self, dispatcher, mock_client):
        """Test that null is not accepted in place of an omitted argument."""
        with pytest.raises(ToolValidationError):
            await dispatcher.call_tool("get_entities", {"domain": None, "limit": None})

        mock_client.get_states.assert_not_called()

    async def test_no_arguments(self, dispatcher, mock_client):
        """Test tools invoked without an arguments object."""
        mock_client.render_template.return_value = "kitchen: Kitchen (1 entities)"

        result = await dispatcher.call_tool("get_areas", None)

        assert result[0].text == "Areas:\n\nkitchen: Kitchen (1 entities)"

    async def test_defaults_passed_to_handler(self, mock_client):
        """Test that validated defaults reach the handler."""
        handler = AsyncMock(return_value="ok")
        descriptor = MagicMock()
        descriptor.validate.return_value = {"lines": 100}
        descriptor.handler = handler
        dispatcher = ToolDispatcher(mock_client, {"get_logs": descriptor})

        await dispatcher.call_tool("get_logs", {})

        handler.assert_called_once_with(mock_client, lines=100)

    async def test_handler_error_propagates(self, dispatcher, mock_client, caplog):
        """Test that upstream errors are logged and re-raised."""
        mock_client.get_states.side_effect = HomeAssistantTimeoutError("HA API GET /states timed out")

        with pytest.raises(HomeAssistantTimeoutError):
            await dispatcher.call_tool("get_automations", {})

        assert "Tool execution error (get_automations)" in caplog.text

    async def test_handled_input_error_is_a_result(self, dispatcher, mock_client):
        """Test that an unknown reload domain is a normal result."""
        result = await dispatcher.call_tool("reload_config", {"domain": "light"})

        assert result[0].text.startswith("Unknown domain 'light'.")
        mock_client.call_service.assert_not_called()


class TestServer:
    """Tests for the MCP server wiring."""

    def test_create_server_registers_handlers(self, dispatcher):
        """Test that list and call handlers are registered."""
        server = create_server(dispatcher)

        assert server.name == "home-assistant"
        assert types.ListToolsRequest in server.request_handlers
        assert types.CallToolRequest in server.request_handlers

    async def test_call_through_mcp_handler(self, dispatcher, mock_client, states_fixture):
        """Test a successful tools/call request end to end."""
        mock_client.get_states.return_value = states_fixture
        server = create_server(dispatcher)

        result = await _invoke(server, "get_entities", {"domain": "light"})

        assert not result.isError
        assert result.content[0].text.startswith("Found 3 light entities:")

    async def test_null_arguments_rejected_by_mcp_handler(self, dispatcher, mock_client):
        """Test that null arguments come back as an error result."""
        server = create_server(dispatcher)

        result = await _invoke(server, "get_entities", {"domain": None, "limit": None})

        assert result.isError
        mock_client.get_states.assert_not_called()

    async def test_out_of_range_hours_rejected_by_mcp_handler(self, dispatcher, mock_client):
        """Test that an absurd history window is a validation error."""
        server = create_server(dispatcher)

        result = await _invoke(server, "get_history", {"entity_id": "light.a", "hours": 1e9})

        assert result.isError
        assert "date value out of range" not in result.content[0].text
        mock_client.get_history.assert_not_called()

    async def test_upstream_error_is_error_result(self, dispatcher, mock_client):
        """Test that upstream failures are reported as error results."""
        mock_client.get_states.side_effect = HomeAssistantTimeoutError(
            "HA API GET /states timed out after 30 seconds"
        )
        server = create_server(dispatcher)

        result = await _invoke(server, "get_automations", {})

        assert result.isError
        assert "timed out" in result.content[0].text

    async def test_async_run_warns_without_token(self, caplog):
        """Test the startup warning for a missing credential."""

        @asynccontextmanager
        async def fake_stdio_server():
            yield MagicMock(), MagicMock()

        fake_server = MagicMock()
        fake_server.run = AsyncMock()

        with patch.object(server_module, "stdio_server", fake_stdio_server), patch.object(
            server_module, "create_server", return_value=fake_server
        ):
            await server_module.async_run(ServerConfig(token=None))

        assert "SUPERVISOR_TOKEN not set" in caplog.text
        fake_server.run.assert_called_once()

    async def test_async_run_with_token(self, caplog):
        """Test that no warning is logged with a credential."""

        @asynccontextmanager
        async def fake_stdio_server():
            yield MagicMock(), MagicMock()

        fake_server = MagicMock()
        fake_server.run = AsyncMock()

        with patch.object(server_module, "stdio_server", fake_stdio_server), patch.object(
            server_module, "create_server", return_value=fake_server
        ):
            await server_module.async_run(ServerConfig(token="abc"))

        assert "SUPERVISOR_TOKEN not set" not in caplog.text


class TestMain:
    """Tests for the command line entry point."""

    def test_fatal_error_exits(self):
        """Test that a fatal error exits with status 1."""
        with patch("ha_mcp_server.__main__.async_run", AsyncMock(side_effect=RuntimeError("no stdio"))), patch(
            "ha_mcp_server.__main__.logging.basicConfig"
        ):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 1

    def test_runs_with_env_config(self, monkeypatch):
        """Test that the environment configures the server."""
        monkeypatch.setenv("SUPERVISOR_TOKEN", "from_env")
        run = AsyncMock()

        with patch("ha_mcp_server.__main__.async_run", run), patch(
            "ha_mcp_server.__main__.logging.basicConfig"
        ):
            main()

        config = run.call_args[0][0]
        assert config.token == "from_env"
