"""Constants for the Actron Que integration."""

from __future__ import annotations

from typing import Final

# Domain
DOMAIN: Final = "actron_que"

# HTTP base & paths
API_BASE: Final = "https://que.actronair.com.au"
TOKEN_PATH: Final = "/api/v0/oauth/token"
STATUS_PATH: Final = "/api/v0/client/ac-systems/status/latest"
COMMAND_PATH: Final = "/api/v0/client/ac-systems/cmds/send"
NEGOTIATE_PATH: Final = "/api/v0/messaging/app/negotiate"
CHANNEL_PATH: Final = "/api/v0/messaging/app"

# OAuth client id used by the mobile app for refresh-token grants
CLIENT_ID: Final = "app"

USER_AGENT: Final = "ActronQue (HomeAssistant Integration)"

# Config entry keys
CONF_SERIAL: Final = "serial"
CONF_REFRESH_TOKEN: Final = "refresh_token"
CONF_DEBUG: Final = "debug"

# Realtime channel timing (seconds)
WATCHDOG_WINDOW: Final = 60.0
RESUBSCRIBE_INTERVAL: Final = 600.0
RECONNECT_DELAY: Final = 30.0
MAX_CONSECUTIVE_ERRORS: Final = 5

# Polling fallback timing (seconds)
POLL_INTERVAL: Final = 20.0
POLL_STALE_AFTER: Final = 60.0

# Tokens are reused until this many seconds before the advertised expiry
TOKEN_EXPIRY_MARGIN: Final = 1800.0
DEFAULT_TOKEN_TTL: Final = 3600.0

# Zone controllers expose up to eight zones
MAX_ZONES: Final = 8
DEFAULT_ZONE_OFFSET: Final = 2.0

ISSUE_CHANNEL_GIVEN_UP: Final = "channel_given_up"


def signal_state_updated(entry_id: str) -> str:
    """Return the dispatcher signal emitted after the mirror changes."""

    return f"{DOMAIN}_{entry_id}_state"


def signal_channel_status(entry_id: str) -> str:
    """Return the dispatcher signal carrying realtime channel status."""

    return f"{DOMAIN}_{entry_id}_channel_status"
