"""Home Assistant REST API client for MCP tool execution."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

import httpx

from ..const import DEFAULT_API_TIMEOUT, MAX_ERROR_BODY_LENGTH
from ..exceptions import (
    HomeAssistantApiError,
    HomeAssistantConnectionError,
    HomeAssistantTimeoutError,
)

if TYPE_CHECKING:
    from ..config import ServerConfig

_LOGGER = logging.getLogger(__name__)


class Api(str, Enum):
    """Upstream API a request is sent to."""

    CORE = "HA API"
    SUPERVISOR = "Supervisor API"


class HomeAssistantClient:
    """Client for the Home Assistant core and Supervisor REST APIs."""

    def __init__(
        self,
        config: ServerConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Server configuration holding the credential and API bases.
            transport: Optional httpx transport, used by tests to fake upstream.
        """
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            # Timeouts are enforced per call in async_request
            self._client = httpx.AsyncClient(transport=self._transport, timeout=None)
        return self._client

    async def async_close(self) -> None:
        """Close the HTTP client and cleanup resources."""
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    def _base_url(self, api: Api) -> str:
        if api is Api.SUPERVISOR:
            return self.config.supervisor_base
        return self.config.api_base

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.token or ''}",
            "Content-Type": "application/json",
        }

    async def async_request(
        self,
        api: Api,
        path: str,
        *,
        method: str = "GET",
        body: Any = None,
        params: dict[str, str] | None = None,
        timeout: float | None = None,
        raw_response: bool = False,
    ) -> Any:
        """Send one request to an upstream API and decode the response.

        Args:
            api: Which upstream API to call.
            path: Path appended to the API base, e.g. '/states'.
            method: HTTP method.
            body: Optional JSON-serializable request body.
            params: Optional query parameters.
            timeout: Seconds before the call is aborted. Defaults to the
                configured timeout.
            raw_response: Return the body as text even if it is labelled JSON.

        Returns:
            The decoded JSON value, or the body text for non-JSON responses.

        Raises:
            HomeAssistantApiError: The response status was not 2xx.
            HomeAssistantTimeoutError: No response arrived within the timeout.
            HomeAssistantConnectionError: The API could not be reached.
        """
        if timeout is None:
            timeout = self.config.timeout or DEFAULT_API_TIMEOUT

        try:
            return await asyncio.wait_for(
                self._send(api, path, method, body, params, raw_response),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as err:
            _LOGGER.error(
                "%s %s %s timed out after %s seconds", api.value, method, path, timeout
            )
            raise HomeAssistantTimeoutError(
                f"{api.value} {method} {path} timed out after {timeout} seconds"
            ) from err
        except httpx.TransportError as err:
            _LOGGER.error("%s %s %s connection error: %s", api.value, method, path, err)
            raise HomeAssistantConnectionError(
                f"{api.value} {method} {path} connection failed: {err}"
            ) from err

    async def _send(
        self,
        api: Api,
        path: str,
        method: str,
        body: Any,
        params: dict[str, str] | None,
        raw_response: bool,
    ) -> Any:
        request = self.client.build_request(
            method,
            f"{self._base_url(api)}{path}",
            headers=self._headers(),
            params=params,
            json=body,
        )
        _LOGGER.debug("%s %s %s", api.value, method, path)

        response = await self.client.send(request, stream=True)
        try:
            if not response.is_success:
                raise HomeAssistantApiError(
                    api.value,
                    method,
                    path,
                    response.status_code,
                    await self._read_error_body(response),
                )

            await response.aread()
            if raw_response:
                return response.text

            content_type = response.headers.get("content-type", "")
            if "application/json" in content_type:
                return response.json()
            return response.text
        finally:
            await response.aclose()

    @staticmethod
    async def _read_error_body(response: httpx.Response) -> str:
        """Read an error body, returning an empty string if that also fails."""
        try:
            await response.aread()
            text = response.text
        except (httpx.HTTPError, httpx.StreamError, UnicodeDecodeError) as err:
            _LOGGER.debug("Could not read error body: %s", err)
            return ""
        return text[:MAX_ERROR_BODY_LENGTH]

    async def api_request(self, path: str, **kwargs: Any) -> Any:
        """Send a request to the Home Assistant core API."""
        return await self.async_request(Api.CORE, path, **kwargs)

    async def supervisor_request(self, path: str, **kwargs: Any) -> Any:
        """Send a request to the Supervisor API."""
        return await self.async_request(Api.SUPERVISOR, path, **kwargs)

    async def get_states(self) -> Any:
        """Get the state of every entity."""
        return await self.api_request("/states")

    async def get_state(self, entity_id: str) -> Any:
        """Get the state of a single entity."""
        return await self.api_request(f"/states/{entity_id}")

    async def call_service(
        self, domain: str, service: str, service_data: dict[str, Any] | None = None
    ) -> Any:
        """Call a service, returning the list of states it changed."""
        return await self.api_request(
            f"/services/{domain}/{service}",
            method="POST",
            body=service_data or None,
        )

    async def render_template(self, template: str) -> str:
        """Render a template server-side and return the text."""
        return await self.api_request(
            "/template",
            method="POST",
            body={"template": template},
            raw_response=True,
        )

    async def get_config(self) -> Any:
        """Get the core configuration."""
        return await self.api_request("/config")

    async def get_history(self, entity_id: str, start_time: datetime) -> Any:
        """Get minimal state history for an entity since ``start_time`` (UTC)."""
        start = start_time.strftime("%Y-%m-%dT%H:%M:%SZ")
        return await self.api_request(
            f"/history/period/{start}",
            params={
                "filter_entity_id": entity_id,
                "no_attributes": "",
                "minimal_response": "",
            },
        )

    async def fire_event(
        self, event_type: str, event_data: dict[str, Any] | None = None
    ) -> Any:
        """Fire an event on the event bus."""
        return await self.api_request(
            f"/events/{event_type}", method="POST", body=event_data or {}
        )

    async def get_core_logs(self) -> str:
        """Get the Home Assistant core log as plain text."""
        return await self.supervisor_request("/core/logs", raw_response=True)
