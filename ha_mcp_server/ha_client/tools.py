"""Tool catalog exposing Home Assistant operations to MCP clients."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Awaitable, Callable

import voluptuous as vol
from voluptuous_openapi import convert

from ..const import (
    DEFAULT_ENTITY_LIMIT,
    DEFAULT_HISTORY_HOURS,
    DEFAULT_LOG_LINES,
    MAX_HISTORY_HOURS,
)
from ..reload import RELOAD_DOMAINS, reload_path

if TYPE_CHECKING:
    from .client import HomeAssistantClient

_LOGGER = logging.getLogger(__name__)

ToolHandler = Callable[..., Awaitable[str]]

_TARGET_KEYS = ("entity_id", "area_id", "device_id")

AREAS_TEMPLATE = (
    "{% set result = [] %}"
    "{% for area_id in areas() %}"
    '{% set result = result + [area_id ~ ": " ~ area_name(area_id)'
    ' ~ " (" ~ (area_entities(area_id) | length) ~ " entities)"] %}'
    "{% endfor %}"
    '{{ result | join("\\n") }}'
)

AREA_DEVICES_TEMPLATE = (
    "{% for device_id in area_devices(__AREA_ID__) %}"
    "{{ device_id }}: {{ device_attr(device_id, 'name') or 'Unknown' }}"
    " ({{ device_attr(device_id, 'manufacturer') or '?' }}"
    " {{ device_attr(device_id, 'model') or '' }})\n"
    "{% endfor %}"
)

# Devices can be listed under several areas, so track the ones already shown
ALL_DEVICES_TEMPLATE = (
    "{% set seen = [] %}"
    "{% for area_id in areas() %}"
    "{% for device_id in area_devices(area_id) %}"
    "{% if device_id not in seen %}"
    "{% set seen = seen + [device_id] %}"
    "{{ device_id }}: {{ device_attr(device_id, 'name') or 'Unknown' }}"
    " [{{ area_name(area_id) }}]"
    " ({{ device_attr(device_id, 'manufacturer') or '?' }})\n"
    "{% endif %}"
    "{% endfor %}"
    "{% endfor %}"
)


@dataclass(frozen=True)
class ToolDescriptor:
    """A named operation with its input schema and handler."""

    name: str
    description: str
    schema: vol.Schema
    handler: ToolHandler

    @property
    def input_schema(self) -> dict[str, Any]:
        """Return the input schema as JSON schema."""
        converted = convert(self.schema)
        converted.setdefault("type", "object")
        converted.setdefault("properties", {})
        return converted

    def validate(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Validate arguments, filling in defaults.

        Raises:
            vol.Invalid: If the arguments do not match the schema.
        """
        return self.schema(arguments)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _format_hours(hours: float) -> str:
    return str(int(hours) if float(hours).is_integer() else hours)


async def get_entities(
    client: HomeAssistantClient,
    domain: str | None = None,
    limit: int = DEFAULT_ENTITY_LIMIT,
) -> str:
    """List entities with their state, optionally filtered by domain."""
    states = await client.get_states()

    filtered = states
    if domain:
        filtered = [s for s in states if s["entity_id"].startswith(f"{domain}.")]

    limited = filtered[:limit]
    lines = []
    for state in limited:
        name = state.get("attributes", {}).get("friendly_name") or state["entity_id"]
        lines.append(f"{state['entity_id']} — {state['state']} ({name})")

    if domain:
        header = f"Found {len(filtered)} {domain} entities"
    else:
        header = f"Found {len(states)} total entities"
    showing = f" (showing first {len(limited)})" if len(limited) < len(filtered) else ""

    return f"{header}{showing}:\n\n" + "\n".join(lines)


async def get_entity_state(client: HomeAssistantClient, entity_id: str) -> str:
    """Describe a single entity including all attributes."""
    state = await client.get_state(entity_id)

    attr_lines = "\n".join(
        f"  {key}: {json.dumps(value)}"
        for key, value in state.get("attributes", {}).items()
    )

    return (
        f"Entity: {state['entity_id']}\n"
        f"State: {state['state']}\n"
        f"Last Changed: {state.get('last_changed')}\n"
        f"Last Updated: {state.get('last_updated')}\n\n"
        f"Attributes:\n{attr_lines}"
    )


def build_service_data(
    target: dict[str, Any] | None, data: dict[str, Any] | None
) -> dict[str, Any]:
    """Merge a service target and service data into one request body.

    Keys from ``data`` win over target keys with the same name.
    """
    body: dict[str, Any] = {}
    if target:
        for key in _TARGET_KEYS:
            if target.get(key):
                body[key] = target[key]
    if data:
        body.update(data)
    return body


async def call_service(
    client: HomeAssistantClient,
    domain: str,
    service: str,
    target: dict[str, Any] | None = None,
    data: dict[str, Any] | None = None,
) -> str:
    """Call a service against the given target."""
    result = await client.call_service(domain, service, build_service_data(target, data))

    changed = len(result) if isinstance(result, list) else 0
    return (
        f"Service {domain}.{service} called successfully. "
        f"{changed} entity state(s) changed."
    )


async def get_areas(client: HomeAssistantClient) -> str:
    """List areas with their entity counts."""
    rendered = await client.render_template(AREAS_TEMPLATE)
    return f"Areas:\n\n{rendered or 'No areas defined.'}"


def devices_template(area_id: str | None = None) -> str:
    """Return the template listing devices in one area, or in all areas."""
    if not area_id:
        return ALL_DEVICES_TEMPLATE
    return AREA_DEVICES_TEMPLATE.replace(
        "__AREA_ID__", json.dumps(area_id, ensure_ascii=False)
    )


async def get_devices(client: HomeAssistantClient, area_id: str | None = None) -> str:
    """List devices, optionally limited to one area."""
    rendered = await client.render_template(devices_template(area_id))

    label = f"Devices in area '{area_id}'" if area_id else "Devices"
    return f"{label}:\n\n{rendered.strip() or 'No devices found.'}"


async def get_automations(client: HomeAssistantClient) -> str:
    """List automations with state and last trigger time."""
    states = await client.get_states()
    automations = [s for s in states if s["entity_id"].startswith("automation.")]

    if not automations:
        return "No automations found."

    lines = []
    for automation in automations:
        attributes = automation.get("attributes", {})
        name = attributes.get("friendly_name") or automation["entity_id"]
        last_triggered = attributes.get("last_triggered") or "never"
        lines.append(
            f"{automation['entity_id']} — {automation['state']} — \"{name}\""
            f" (last triggered: {last_triggered})"
        )

    return f"Found {len(automations)} automations:\n\n" + "\n".join(lines)


async def get_integrations(client: HomeAssistantClient) -> str:
    """List installed integrations by base domain."""
    config = await client.get_config()

    # 'hue.light' and 'hue' are the same integration
    base_domains = {component.split(".")[0] for component in config.get("components", [])}
    integrations = sorted(base_domains)

    return (
        f"HA Version: {config.get('version')}\n"
        f"{len(integrations)} integrations installed:\n\n"
        + ", ".join(integrations)
    )


async def restart(client: HomeAssistantClient, confirm: bool) -> str:
    """Restart Home Assistant core if confirmed."""
    if not confirm:
        return (
            "Restart cancelled. Set confirm=true to proceed. Consider running "
            "`ha core check` first to validate configuration."
        )

    _LOGGER.info("Restarting Home Assistant")
    await client.call_service("homeassistant", "restart")
    return (
        "Home Assistant restart initiated. It will be unavailable briefly. "
        "Check logs after restart with get_logs."
    )


async def reload_config(client: HomeAssistantClient, domain: str) -> str:
    """Reload one config domain."""
    path = reload_path(domain)
    if path is None:
        return f"Unknown domain '{domain}'. Supported: {', '.join(RELOAD_DOMAINS)}"

    service_domain, service = path.split("/", 1)
    await client.call_service(service_domain, service)
    return f"Reloaded '{domain}' configuration successfully."


async def get_logs(client: HomeAssistantClient, lines: int = DEFAULT_LOG_LINES) -> str:
    """Return the tail of the Home Assistant core log."""
    logs = await client.get_core_logs()
    last_lines = "\n".join(logs.splitlines()[-lines:])
    return f"Home Assistant logs (last {lines} lines):\n\n{last_lines}"


async def get_history(
    client: HomeAssistantClient,
    entity_id: str,
    hours: float = DEFAULT_HISTORY_HOURS,
) -> str:
    """List state changes of an entity over the last ``hours`` hours."""
    start_time = _utcnow() - timedelta(hours=hours)
    result = await client.get_history(entity_id, start_time)

    changes = result[0] if isinstance(result, list) and result else None
    if not isinstance(changes, list) or not changes:
        return (
            f"No history found for {entity_id} in the last "
            f"{_format_hours(hours)} hours."
        )

    lines = [
        f"{change.get('last_changed')} — {change.get('state')}"
        for change in changes
        if isinstance(change, dict)
    ]
    return (
        f"History for {entity_id} (last {_format_hours(hours)}h, "
        f"{len(changes)} changes):\n\n" + "\n".join(lines)
    )


async def fire_event(
    client: HomeAssistantClient,
    event_type: str,
    event_data: dict[str, Any] | None = None,
) -> str:
    """Fire a custom event."""
    await client.fire_event(event_type, event_data)

    echoed = f" Data: {json.dumps(event_data)}" if event_data else ""
    return f"Event '{event_type}' fired successfully.{echoed}"


async def render_template(client: HomeAssistantClient, template: str) -> str:
    """Render a template and return the result verbatim."""
    result = await client.render_template(template)
    return f"Template result:\n\n{result}"


_ID_OR_IDS = vol.Any(str, [str])
_POSITIVE_INT = vol.All(vol.Coerce(int), vol.Range(min=1))

TOOL_DESCRIPTORS: list[ToolDescriptor] = [
    ToolDescriptor(
        name="get_entities",
        description=(
            "List Home Assistant entities with current states. Filter by domain "
            "(e.g. 'light', 'sensor', 'switch'). Returns entity_id, state, and "
            "friendly_name."
        ),
        schema=vol.Schema(
            {
                vol.Optional(
                    "domain",
                    description=(
                        "Entity domain to filter (e.g. 'light', 'sensor', "
                        "'binary_sensor'). Omit for all."
                    ),
                ): str,
                vol.Optional(
                    "limit",
                    default=DEFAULT_ENTITY_LIMIT,
                    description="Max entities to return. Default 200.",
                ): _POSITIVE_INT,
            }
        ),
        handler=get_entities,
    ),
    ToolDescriptor(
        name="get_entity_state",
        description=(
            "Get detailed state of a specific entity including all attributes, "
            "last_changed, and last_updated."
        ),
        schema=vol.Schema(
            {
                vol.Required(
                    "entity_id",
                    description="Entity ID (e.g. 'light.kitchen', 'sensor.temperature')",
                ): str,
            }
        ),
        handler=get_entity_state,
    ),
    ToolDescriptor(
        name="call_service",
        description=(
            "Call a Home Assistant service to control devices, trigger automations, "
            "send notifications, etc. Example: domain='light', service='turn_on', "
            "target={entity_id:'light.kitchen'}, data={brightness_pct:80}"
        ),
        schema=vol.Schema(
            {
                vol.Required(
                    "domain",
                    description=(
                        "Service domain (e.g. 'light', 'switch', 'automation', 'notify')"
                    ),
                ): str,
                vol.Required(
                    "service",
                    description=(
                        "Service name (e.g. 'turn_on', 'turn_off', 'trigger', 'reload')"
                    ),
                ): str,
                vol.Optional(
                    "target", description="Target entities, areas, or devices"
                ): {
                    vol.Optional("entity_id"): _ID_OR_IDS,
                    vol.Optional("area_id"): _ID_OR_IDS,
                    vol.Optional("device_id"): _ID_OR_IDS,
                },
                vol.Optional(
                    "data",
                    description="Service data payload (e.g. {brightness_pct: 80})",
                ): dict,
            }
        ),
        handler=call_service,
    ),
    ToolDescriptor(
        name="get_areas",
        description="List all areas (rooms/zones) defined in Home Assistant with entity counts.",
        schema=vol.Schema({}),
        handler=get_areas,
    ),
    ToolDescriptor(
        name="get_devices",
        description="List devices registered in Home Assistant. Can filter by area.",
        schema=vol.Schema(
            {vol.Optional("area_id", description="Filter devices by area ID"): str}
        ),
        handler=get_devices,
    ),
    ToolDescriptor(
        name="get_automations",
        description=(
            "List all automations with their state (on/off), last triggered time, "
            "and friendly name."
        ),
        schema=vol.Schema({}),
        handler=get_automations,
    ),
    ToolDescriptor(
        name="get_integrations",
        description="List all installed integrations/components in Home Assistant.",
        schema=vol.Schema({}),
        handler=get_integrations,
    ),
    ToolDescriptor(
        name="restart",
        description=(
            "Restart Home Assistant Core. Causes brief downtime. Only use when "
            "necessary (after configuration.yaml changes, custom component "
            "updates). Always run config check first with `ha core check`."
        ),
        schema=vol.Schema(
            {
                vol.Required(
                    "confirm",
                    description="Must be true to confirm restart. Prevents accidents.",
                ): bool,
            }
        ),
        handler=restart,
    ),
    ToolDescriptor(
        name="reload_config",
        description=(
            "Reload a config domain without restarting. Supported: "
            f"{', '.join(RELOAD_DOMAINS)}. Use after editing YAML files."
        ),
        schema=vol.Schema(
            {
                vol.Required(
                    "domain",
                    description=f"Domain to reload: {', '.join(RELOAD_DOMAINS)}",
                ): str,
            }
        ),
        handler=reload_config,
    ),
    ToolDescriptor(
        name="get_logs",
        description=(
            "Get recent Home Assistant logs. Useful for debugging after config changes."
        ),
        schema=vol.Schema(
            {
                vol.Optional(
                    "lines",
                    default=DEFAULT_LOG_LINES,
                    description="Number of log lines to return. Default 100.",
                ): _POSITIVE_INT,
            }
        ),
        handler=get_logs,
    ),
    ToolDescriptor(
        name="get_history",
        description="Get state history for an entity over a time period.",
        schema=vol.Schema(
            {
                vol.Required("entity_id", description="Entity ID to get history for"): str,
                vol.Optional(
                    "hours",
                    default=DEFAULT_HISTORY_HOURS,
                    description="Hours of history to retrieve. Default 24.",
                ): vol.All(vol.Coerce(float), vol.Range(min=0, max=MAX_HISTORY_HOURS)),
            }
        ),
        handler=get_history,
    ),
    ToolDescriptor(
        name="fire_event",
        description=(
            "Fire a custom event in Home Assistant. Events can trigger automations."
        ),
        schema=vol.Schema(
            {
                vol.Required(
                    "event_type", description="Event type to fire (e.g. 'custom_event')"
                ): str,
                vol.Optional("event_data", description="Event data payload"): dict,
            }
        ),
        handler=fire_event,
    ),
    ToolDescriptor(
        name="render_template",
        description=(
            "Render a Jinja2 template in HA context. Test templates before using in "
            "automations. Has access to states(), is_state(), area functions, etc."
        ),
        schema=vol.Schema(
            {
                vol.Required(
                    "template",
                    description="Jinja2 template (e.g. '{{ states(\"sensor.temperature\") }}')",
                ): str,
            }
        ),
        handler=render_template,
    ),
]


def build_catalog(descriptors: list[ToolDescriptor]) -> dict[str, ToolDescriptor]:
    """Index tool descriptors by name.

    Raises:
        ValueError: If two descriptors share a name.
    """
    catalog: dict[str, ToolDescriptor] = {}
    for descriptor in descriptors:
        if descriptor.name in catalog:
            raise ValueError(f"Duplicate tool name: {descriptor.name}")
        catalog[descriptor.name] = descriptor
    return catalog


TOOLS: dict[str, ToolDescriptor] = build_catalog(TOOL_DESCRIPTORS)


def get_tools() -> list[ToolDescriptor]:
    """Get all tool descriptors in catalog order."""
    return list(TOOLS.values())
