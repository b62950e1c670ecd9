"""Runtime container helpers for Actron Que config entries."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import DOMAIN

if TYPE_CHECKING:
    from .api import RESTClient
    from .backend.channel import QueChannelClient
    from .controller import QueController
    from .coordinator import QueCoordinator
    from .domain.mirror import StateMirror


@dataclass(slots=True)
class EntryRuntime:
    """Runtime container for a configured Actron Que entry."""

    client: RESTClient
    mirror: StateMirror
    controller: QueController
    channel: QueChannelClient
    coordinator: QueCoordinator
    config_entry: ConfigEntry
    serial: str
    version: str = ""
    debug: bool = False
    unsub_callbacks: list[Callable[[], None]] = field(default_factory=list)
    _shutdown_complete: bool = False


def require_runtime(hass: HomeAssistant, entry_id: str) -> EntryRuntime:
    """Return the runtime container stored for ``entry_id``."""

    domain_data = hass.data.get(DOMAIN)
    if not isinstance(domain_data, dict):
        raise LookupError("Actron Que runtime data is unavailable")  # noqa: TRY004
    runtime = domain_data.get(entry_id)
    if isinstance(runtime, EntryRuntime):
        return runtime
    raise LookupError("Actron Que runtime data is unavailable")


__all__ = ["EntryRuntime", "require_runtime"]
