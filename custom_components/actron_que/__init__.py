"""Home Assistant entry point for the Actron Que integration."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import EVENT_HOMEASSISTANT_STOP
from homeassistant.core import HomeAssistant, callback
from homeassistant.exceptions import ConfigEntryAuthFailed, ConfigEntryNotReady
from homeassistant.helpers import aiohttp_client
from homeassistant.helpers.dispatcher import async_dispatcher_send

from .api import RESTClient
from .backend.channel import ChannelState, QueChannelClient
from .backend.sanitize import mask_identifier
from .codecs.que_codec import decode_snapshot
from .const import (
    CONF_DEBUG,
    CONF_REFRESH_TOKEN,
    CONF_SERIAL,
    DOMAIN,
    signal_channel_status,
    signal_state_updated,
)
from .controller import QueController
from .coordinator import QueCoordinator
from .domain.mirror import StateMirror
from .domain.state import UnitState, ZoneState
from .exceptions import BackendAuthError, MalformedSnapshot, TransportError
from .repairs import (
    async_create_channel_given_up_issue,
    async_delete_channel_given_up_issue,
)
from .runtime import EntryRuntime
from .utils import async_get_integration_version

_LOGGER = logging.getLogger(__name__)


def create_rest_client(hass: HomeAssistant, serial: str, refresh_token: str) -> RESTClient:
    """Return a REST client bound to Home Assistant's shared session."""

    session = aiohttp_client.async_get_clientsession(hass)
    return RESTClient(session, serial, refresh_token)


async def async_fetch_initial_state(
    client: RESTClient,
) -> tuple[UnitState, tuple[ZoneState, ...]]:
    """Fetch and decode the startup snapshot, logging failures consistently."""

    try:
        raw = await client.fetch_snapshot()
        return decode_snapshot(raw, serial=client.serial)
    except BackendAuthError:
        _LOGGER.info("Refresh token rejected for %s", mask_identifier(client.serial))
        raise
    except (TransportError, MalformedSnapshot) as err:
        _LOGGER.info(
            "Initial snapshot for %s failed: %s", mask_identifier(client.serial), err
        )
        raise


def _apply_debug_logging(enabled: bool) -> None:
    """Raise the package logger to DEBUG when the option is set."""

    logging.getLogger(__package__).setLevel(logging.DEBUG if enabled else logging.NOTSET)


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up the Actron Que integration for a config entry."""
    serial = entry.data[CONF_SERIAL]
    refresh_token = entry.data[CONF_REFRESH_TOKEN]
    debug_enabled = bool(entry.options.get(CONF_DEBUG, False))
    _apply_debug_logging(debug_enabled)

    version = await async_get_integration_version(hass)

    client = create_rest_client(hass, serial, refresh_token)
    try:
        unit, zones = await async_fetch_initial_state(client)
    except BackendAuthError as err:
        raise ConfigEntryAuthFailed from err
    except (TransportError, MalformedSnapshot) as err:
        raise ConfigEntryNotReady from err

    mirror = StateMirror()
    mirror.apply(unit, zones)
    name = unit.name or serial
    _LOGGER.info(
        "%s: %d operable zones (%s)",
        mask_identifier(serial),
        len(zones),
        ", ".join(zone.name for zone in zones) or "none",
    )

    async_delete_channel_given_up_issue(hass, entry.entry_id)

    @callback
    def _handle_channel_status(state: ChannelState) -> None:
        """Forward channel status and raise a repair issue on give-up."""
        async_dispatcher_send(
            hass, signal_channel_status(entry.entry_id), {"status": state.value}
        )
        if state is ChannelState.GIVEN_UP:
            async_create_channel_given_up_issue(hass, entry.entry_id, name)

    channel = QueChannelClient(client, mirror, on_status=_handle_channel_status)
    coordinator = QueCoordinator(hass, client, mirror, config_entry=entry)
    runtime = EntryRuntime(
        client=client,
        mirror=mirror,
        controller=QueController(client, mirror),
        channel=channel,
        coordinator=coordinator,
        config_entry=entry,
        serial=serial,
        version=version,
        debug=debug_enabled,
    )
    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = runtime

    @callback
    def _handle_mirror_update() -> None:
        """Notify listeners that the unit state changed."""
        async_dispatcher_send(hass, signal_state_updated(entry.entry_id))

    runtime.unsub_callbacks.append(
        coordinator.async_add_listener(_handle_mirror_update)
    )

    async def _async_handle_hass_stop(_event: Any) -> None:
        """Stop background activity gracefully when Home Assistant stops."""

        await _async_shutdown_entry(runtime)

    entry.async_on_unload(
        hass.bus.async_listen_once(EVENT_HOMEASSISTANT_STOP, _async_handle_hass_stop)
    )
    entry.async_on_unload(entry.add_update_listener(async_update_entry_options))

    channel.start()
    _LOGGER.info("%s: realtime channel and fallback polling started", name)
    return True


async def _async_shutdown_entry(runtime: EntryRuntime) -> None:
    """Stop the channel, coordinator and listeners for an entry."""

    if runtime._shutdown_complete:
        return
    runtime._shutdown_complete = True

    for unsub in runtime.unsub_callbacks:
        unsub()
    runtime.unsub_callbacks.clear()
    await runtime.channel.stop()
    await runtime.coordinator.async_shutdown()


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry for Actron Que."""
    domain_data = hass.data.get(DOMAIN)
    runtime = domain_data.pop(entry.entry_id, None) if domain_data else None
    if runtime is None:
        return True

    await _async_shutdown_entry(runtime)
    async_delete_channel_given_up_issue(hass, entry.entry_id)
    return True


async def async_update_entry_options(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle options updates; toggle debug logging."""
    runtime = hass.data[DOMAIN][entry.entry_id]
    runtime.debug = bool(entry.options.get(CONF_DEBUG, False))
    _apply_debug_logging(runtime.debug)
