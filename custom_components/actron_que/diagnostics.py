"""Diagnostics support for the Actron Que integration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict
from typing import Any, Final

from homeassistant.components.diagnostics import async_redact_data
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .exceptions import NotReady
from .runtime import require_runtime

SENSITIVE_FIELDS: Final = {
    "access_token",
    "authorization",
    "master_sensor_id",
    "refresh_token",
    "serial",
    "serial_number",
    "token",
}


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> Mapping[str, Any]:
    """Return a diagnostics payload for ``entry``."""

    runtime = require_runtime(hass, entry.entry_id)
    mirror = runtime.mirror
    try:
        snapshot = mirror.snapshot
    except NotReady:
        state: dict[str, Any] = {"ready": False}
    else:
        state = {
            "ready": True,
            "seconds_since_update": mirror.seconds_since_update(),
            "unit": asdict(snapshot.unit),
            "zones": [asdict(zone) for zone in snapshot.zones],
        }

    payload = {
        "entry": {
            "title": entry.title,
            "data": dict(entry.data),
            "options": dict(entry.options),
        },
        "version": runtime.version,
        "channel": runtime.channel.diagnostics(),
        "coordinator": {
            "polls": runtime.coordinator.polls,
            "last_update_success": runtime.coordinator.last_update_success,
        },
        "state": state,
    }
    return async_redact_data(payload, SENSITIVE_FIELDS)
