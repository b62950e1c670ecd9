"""In-memory mirror of the unit's canonical state."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import replace
import threading
from time import monotonic as time_mod

from ..exceptions import NotReady
from .state import MirrorSnapshot, UnitState, ZoneState


class StateMirror:
    """Own the current unit and zone state and publish every change.

    ``apply`` swaps a single :class:`MirrorSnapshot` under a lock, so readers
    always see a unit and zone list that arrived together. Each new snapshot
    goes to the bound sink, normally the coordinator's
    ``async_set_updated_data``, which fans it out to listeners.
    """

    def __init__(self, *, monotonic: Callable[[], float] | None = None) -> None:
        """Initialise an empty mirror."""

        self._lock = threading.Lock()
        self._snapshot: MirrorSnapshot | None = None
        self._last_updated: float | None = None
        self._on_change: Callable[[MirrorSnapshot], None] | None = None
        self._monotonic = monotonic or time_mod

    @property
    def ready(self) -> bool:
        """Return True once the first snapshot has been applied."""

        return self._snapshot is not None

    @property
    def snapshot(self) -> MirrorSnapshot:
        """Return the current snapshot or raise ``NotReady``."""

        snapshot = self._snapshot
        if snapshot is None:
            raise NotReady("No snapshot has been applied yet")
        return snapshot

    @property
    def unit(self) -> UnitState:
        """Return the current unit state."""

        return self.snapshot.unit

    @property
    def zones(self) -> tuple[ZoneState, ...]:
        """Return the current operable zones ordered by index."""

        return self.snapshot.zones

    def zone(self, zone_index: int) -> ZoneState:
        """Return the zone with ``zone_index``; ``KeyError`` if not operable."""

        return self.snapshot.zone(zone_index)

    @property
    def last_updated(self) -> float | None:
        """Return the monotonic timestamp of the last accepted snapshot."""

        return self._last_updated

    def seconds_since_update(self) -> float | None:
        """Return seconds elapsed since the last accepted snapshot."""

        if self._last_updated is None:
            return None
        return max(0.0, self._monotonic() - self._last_updated)

    def bind(
        self, on_change: Callable[[MirrorSnapshot], None] | None
    ) -> Callable[[], None]:
        """Send every new snapshot to ``on_change``; return an unbinder."""

        self._on_change = on_change

        def unbind() -> None:
            if self._on_change is on_change:
                self._on_change = None

        return unbind

    def apply(
        self, unit: UnitState, zones: Iterable[ZoneState], *, notify: bool = True
    ) -> MirrorSnapshot:
        """Replace the whole state and publish it once.

        ``notify=False`` leaves publication to the caller, which the poll
        path uses to hand the snapshot back through the coordinator refresh.
        """

        ordered = tuple(sorted(zones, key=lambda zone: zone.zone_index))
        snapshot = MirrorSnapshot(unit=unit, zones=ordered)
        with self._lock:
            self._snapshot = snapshot
            self._last_updated = self._monotonic()
        if notify:
            self._notify(snapshot)
        return snapshot

    def apply_optimistic(
        self,
        *,
        unit: UnitState | None = None,
        zones: Iterable[ZoneState] = (),
    ) -> None:
        """Write a locally predicted change after a successful command.

        The unit and every zone in ``zones`` are swapped in together and
        published once. The accepted-update timestamp is left alone, and the
        next ``apply`` replaces the prediction wholesale.
        """

        changed = {zone.zone_index: zone for zone in zones}
        with self._lock:
            current = self._snapshot
            if current is None:
                raise NotReady("No snapshot has been applied yet")
            snapshot = replace(
                current,
                unit=unit if unit is not None else current.unit,
                zones=tuple(
                    changed.get(existing.zone_index, existing)
                    for existing in current.zones
                ),
            )
            self._snapshot = snapshot
        self._notify(snapshot)

    def _notify(self, snapshot: MirrorSnapshot) -> None:
        on_change = self._on_change
        if on_change is not None:
            on_change(snapshot)


__all__ = ["StateMirror"]
