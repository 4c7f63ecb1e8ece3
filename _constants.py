"""Shared constants for the TimeCamp MCP server."""

from __future__ import annotations

DEFAULT_BASE_URL: str = "https://app.timecamp.com/third_party/api"
DEFAULT_TIMEOUT: float = 10.0
DEFAULT_CLIENT_NAME: str = "timecamp-mcp"

RATE_LIMIT_STATUS: int = 429
DEFAULT_RETRY_ATTEMPTS: int = 3
DEFAULT_RETRY_DELAY_MS: int = 5000

# Levels of ``user_access_type`` that allow logging time (write, admin).
TRACKABLE_ACCESS_LEVELS: frozenset[int] = frozenset({2, 3})

INVITE_POLL_ATTEMPTS: int = 10
INVITE_POLL_DELAY_MS: int = 2000
INVITE_RETRY_ATTEMPTS: int = 3
DISPLAY_NAME_RETRY_ATTEMPTS: int = 6

# Sent with every invite unless the caller overrides them.
INVITE_PERMISSION_DEFAULTS: dict[str, str] = {
    "tt_global_admin": "0",
    "tt_can_create_level_1_tasks": "0",
    "can_view_rates": "0",
    "add_to_all_projects": "0",
    "send_email": "0",
    "force_change_pass": "0",
}

MAX_ERROR_BODY_LEN: int = 500
MAX_QUERY_DAYS: int = 366
MAX_NOTE_LEN: int = 5000
