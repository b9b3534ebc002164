"""Shared pytest fixtures for Home Assistant MCP server tests."""

from __future__ import annotations

from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from ha_mcp_server.config import ServerConfig
from ha_mcp_server.ha_client import HomeAssistantClient


@pytest.fixture
def config():
    """Server configuration with a test credential."""
    return ServerConfig(token="test_token", timeout=5)


@pytest.fixture
def make_client(config):
    """Build a client whose requests are answered by ``handler``."""

    def _make(
        handler: Callable[[httpx.Request], Any],
        server_config: ServerConfig | None = None,
    ) -> HomeAssistantClient:
        return HomeAssistantClient(
            server_config or config, transport=httpx.MockTransport(handler)
        )

    return _make


@pytest.fixture
def mock_client():
    """Mock Home Assistant client with async API methods."""
    client = MagicMock(spec=HomeAssistantClient)
    client.get_states = AsyncMock(return_value=[])
    client.get_state = AsyncMock()
    client.call_service = AsyncMock(return_value=[])
    client.render_template = AsyncMock(return_value="")
    client.get_config = AsyncMock()
    client.get_history = AsyncMock(return_value=[])
    client.fire_event = AsyncMock()
    client.get_core_logs = AsyncMock(return_value="")
    return client


@pytest.fixture
def states_fixture():
    """Entity states: three lights and five other entities."""
    return [
        {"entity_id": "light.kitchen", "state": "on", "attributes": {"friendly_name": "Kitchen"}},
        {"entity_id": "sensor.temperature", "state": "21.5", "attributes": {"friendly_name": "Temperature"}},
        {"entity_id": "light.living_room", "state": "off", "attributes": {"friendly_name": "Living Room"}},
        {"entity_id": "switch.fan", "state": "on", "attributes": {}},
        {"entity_id": "light.hall", "state": "on", "attributes": {"friendly_name": "Hall"}},
        {"entity_id": "lightning.detector", "state": "clear", "attributes": {}},
        {
            "entity_id": "automation.morning",
            "state": "on",
            "attributes": {"friendly_name": "Morning", "last_triggered": "2026-10-18T06:00:00+00:00"},
        },
        {"entity_id": "automation.night", "state": "off", "attributes": {"friendly_name": "Night", "last_triggered": None}},
    ]
