"""Utility helpers shared across the Actron Que integration."""

from __future__ import annotations

from homeassistant.core import HomeAssistant
from homeassistant.loader import async_get_integration

from .const import DOMAIN


async def async_get_integration_version(hass: HomeAssistant) -> str:
    """Return the version declared in this integration's manifest."""

    integration = await async_get_integration(hass, DOMAIN)
    return str(integration.version or "unknown")
