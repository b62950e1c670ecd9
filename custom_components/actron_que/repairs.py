"""Repair issue helpers for the Actron Que integration."""

from __future__ import annotations

from homeassistant.core import HomeAssistant
from homeassistant.helpers import issue_registry as ir

from .const import DOMAIN, ISSUE_CHANNEL_GIVEN_UP


def channel_issue_id(entry_id: str) -> str:
    """Return the repair issue id for ``entry_id``."""

    return f"{ISSUE_CHANNEL_GIVEN_UP}_{entry_id}"


def async_create_channel_given_up_issue(
    hass: HomeAssistant, entry_id: str, name: str
) -> None:
    """Raise a persistent issue once the realtime channel stops retrying."""
    ir.async_create_issue(
        hass,
        DOMAIN,
        channel_issue_id(entry_id),
        is_fixable=False,
        severity=ir.IssueSeverity.ERROR,
        translation_key=ISSUE_CHANNEL_GIVEN_UP,
        translation_placeholders={"name": name},
    )


def async_delete_channel_given_up_issue(hass: HomeAssistant, entry_id: str) -> None:
    """Remove the channel issue when the entry is reloaded or unloaded."""
    ir.async_delete_issue(hass, DOMAIN, channel_issue_id(entry_id))
