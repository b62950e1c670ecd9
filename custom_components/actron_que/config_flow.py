"""Config flow handlers for the Actron Que integration."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant import config_entries
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import callback
from homeassistant.data_entry_flow import FlowResult
import voluptuous as vol

from . import async_fetch_initial_state, create_rest_client
from .const import CONF_DEBUG, CONF_REFRESH_TOKEN, CONF_SERIAL, DOMAIN
from .exceptions import BackendAuthError, BackendRateLimitError, MalformedSnapshot, TransportError
from .utils import async_get_integration_version

_LOGGER = logging.getLogger(__name__)


def _login_schema(default_serial: str = "") -> vol.Schema:
    """Build the login form schema with provided defaults."""
    return vol.Schema(
        {
            vol.Required(CONF_SERIAL, default=default_serial): str,
            vol.Required(CONF_REFRESH_TOKEN): str,
        }
    )


class ActronQueConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Collect the unit serial and a refresh token."""

    VERSION = 1

    async def _handle_login_workflow(
        self,
        *,
        step_id: str,
        user_input: dict[str, Any] | None,
        default_serial: str,
        version: str,
        expected_serial: str | None = None,
    ) -> tuple[FlowResult | None, dict[str, Any]]:
        """Show the login form or validate it by fetching a snapshot."""

        placeholders = {"version": version}
        if user_input is None:
            return (
                self.async_show_form(
                    step_id=step_id,
                    data_schema=_login_schema(default_serial=default_serial),
                    description_placeholders=placeholders,
                ),
                {},
            )

        serial = (user_input.get(CONF_SERIAL) or "").strip()
        refresh_token = (user_input.get(CONF_REFRESH_TOKEN) or "").strip()

        errors: dict[str, str] = {}
        unit = None
        if expected_serial is not None and serial != expected_serial:
            errors["base"] = "wrong_unit"
        else:
            try:
                client = create_rest_client(self.hass, serial, refresh_token)
                unit, _zones = await async_fetch_initial_state(client)
            except BackendAuthError:
                errors["base"] = "invalid_auth"
            except BackendRateLimitError:
                errors["base"] = "rate_limited"
            except MalformedSnapshot:
                errors["base"] = "unsupported_unit"
            except TransportError:
                errors["base"] = "cannot_connect"
            except Exception:
                _LOGGER.exception("Unexpected error during %s step", step_id)
                errors["base"] = "unknown"

        if errors or unit is None:
            return (
                self.async_show_form(
                    step_id=step_id,
                    data_schema=_login_schema(default_serial=serial or default_serial),
                    errors=errors or {"base": "unknown"},
                    description_placeholders=placeholders,
                ),
                {},
            )

        return None, {CONF_SERIAL: serial, CONF_REFRESH_TOKEN: refresh_token, "unit": unit}

    async def async_step_user(self, user_input: dict[str, Any] | None = None) -> FlowResult:
        """Validate credentials by fetching a snapshot and create the entry."""
        ver = await async_get_integration_version(self.hass)

        result, data = await self._handle_login_workflow(
            step_id="user",
            user_input=user_input,
            default_serial="",
            version=ver,
        )
        if result is not None:
            return result

        serial = data[CONF_SERIAL]
        await self.async_set_unique_id(serial)
        self._abort_if_unique_id_configured()

        title = data["unit"].name or f"Actron Que ({serial})"
        return self.async_create_entry(
            title=title,
            data={CONF_SERIAL: serial, CONF_REFRESH_TOKEN: data[CONF_REFRESH_TOKEN]},
        )

    async def async_step_reconfigure(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Replace the refresh token of an existing entry."""
        entry_id = self.context.get("entry_id")
        entry: ConfigEntry | None = (
            self.hass.config_entries.async_get_entry(entry_id) if entry_id else None
        )
        if entry is None:
            return self.async_abort(reason="no_config_entry")

        ver = await async_get_integration_version(self.hass)
        current_serial = entry.data.get(CONF_SERIAL, "")

        result, data = await self._handle_login_workflow(
            step_id="reconfigure",
            user_input=user_input,
            default_serial=current_serial,
            version=ver,
            expected_serial=current_serial,
        )
        if result is not None:
            return result

        new_data = dict(entry.data)
        new_data[CONF_REFRESH_TOKEN] = data[CONF_REFRESH_TOKEN]
        self.hass.config_entries.async_update_entry(entry, data=new_data)
        self.hass.config_entries.async_schedule_reload(entry.entry_id)
        return self.async_abort(reason="reconfigure_successful")

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: ConfigEntry) -> ActronQueOptionsFlow:
        """Return the options flow handler for this config entry."""
        return ActronQueOptionsFlow(config_entry)


class ActronQueOptionsFlow(config_entries.OptionsFlow):
    """Options flow to toggle debug logging."""

    def __init__(self, entry: ConfigEntry) -> None:
        """Store the entry being configured."""
        self.entry = entry

    async def async_step_init(self, user_input: dict[str, Any] | None = None):
        """Show or process the debug options form."""
        if user_input is not None:
            return self.async_create_entry(
                title="",
                data={CONF_DEBUG: bool(user_input.get(CONF_DEBUG, False))},
            )

        debug_default = bool(self.entry.options.get(CONF_DEBUG, False))
        schema = vol.Schema({vol.Optional(CONF_DEBUG, default=debug_default): bool})
        return self.async_show_form(step_id="init", data_schema=schema)
