"""Coordinator that publishes mirror updates and polls when pushes go quiet."""

from __future__ import annotations

import asyncio
from datetime import timedelta
import logging
from typing import TYPE_CHECKING

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .backend.sanitize import mask_identifier
from .codecs.que_codec import decode_snapshot
from .const import DOMAIN, POLL_INTERVAL, POLL_STALE_AFTER
from .domain.state import MirrorSnapshot
from .exceptions import NotReady

if TYPE_CHECKING:
    from .api import RESTClient
    from .domain.mirror import StateMirror

_LOGGER = logging.getLogger(__name__)


class QueCoordinator(DataUpdateCoordinator[MirrorSnapshot]):
    """Fan mirror snapshots out to listeners and poll when the mirror is stale.

    Every snapshot the mirror accepts, pushed or optimistic, arrives through
    ``async_set_updated_data``. The periodic refresh only pulls from the
    cloud when no update has been accepted for ``stale_after`` seconds.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        client: RESTClient,
        mirror: StateMirror,
        *,
        config_entry: ConfigEntry | None = None,
        interval: float = POLL_INTERVAL,
        stale_after: float = POLL_STALE_AFTER,
    ) -> None:
        """Initialise the coordinator and bind it to ``mirror``."""
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=DOMAIN,
            update_interval=timedelta(seconds=interval),
            always_update=False,
        )
        self.client = client
        self.mirror = mirror
        self._stale_after = stale_after
        self.polls = 0
        if mirror.ready:
            self.data = mirror.snapshot
        self._unbind = mirror.bind(self.async_set_updated_data)

    def is_stale(self) -> bool:
        """Return True when the last accepted update is older than the threshold."""

        elapsed = self.mirror.seconds_since_update()
        return elapsed is None or elapsed > self._stale_after

    async def _async_update_data(self) -> MirrorSnapshot:
        """Pull a snapshot if the mirror is stale and return the current one."""

        if self.is_stale():
            await self._async_poll()
        try:
            return self.mirror.snapshot
        except NotReady as err:
            raise UpdateFailed("No snapshot has been received yet") from err

    async def _async_poll(self) -> bool:
        """Fetch and apply a snapshot; return True when one was accepted."""

        _LOGGER.info(
            "Poll: no update for %s in %.0f s; pulling snapshot",
            mask_identifier(self.client.serial),
            self._stale_after,
        )
        try:
            raw = await self.client.fetch_snapshot()
            unit, zones = decode_snapshot(raw, serial=self.client.serial)
        except asyncio.CancelledError:
            raise
        except Exception as err:  # noqa: BLE001
            _LOGGER.warning(
                "Poll: snapshot pull failed (%s: %s)", type(err).__name__, err
            )
            return False
        # Published by the refresh that called us.
        self.mirror.apply(unit, zones, notify=False)
        self.polls += 1
        return True

    @callback
    def async_update_listeners(self) -> None:
        """Call every listener, logging failures without stopping the rest."""

        for update_callback, _context in list(self._listeners.values()):
            try:
                update_callback()
            except Exception:  # noqa: BLE001
                _LOGGER.exception("Listener %s failed", update_callback)

    async def async_shutdown(self) -> None:
        """Detach from the mirror and cancel the scheduled refresh."""

        self._unbind()
        await super().async_shutdown()


__all__ = ["QueCoordinator"]
