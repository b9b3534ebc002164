"""Constants for the Home Assistant MCP server."""

SERVER_NAME = "home-assistant"
SERVER_VERSION = "1.0.0"

# Upstream API bases (reachable from inside a Supervisor add-on)
HA_API_BASE = "http://supervisor/core/api"
SUPERVISOR_API_BASE = "http://supervisor"

# Environment variables
ENV_SUPERVISOR_TOKEN = "SUPERVISOR_TOKEN"
ENV_LOG_LEVEL = "HA_MCP_LOG_LEVEL"

# Default values
DEFAULT_API_TIMEOUT = 30  # seconds for API calls
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_ENTITY_LIMIT = 200
DEFAULT_LOG_LINES = 100
DEFAULT_HISTORY_HOURS = 24
MAX_HISTORY_HOURS = 24 * 365 * 10

# Error bodies longer than this are cut down before being reported
MAX_ERROR_BODY_LENGTH = 1000
