"""Realtime SignalR channel for Actron Que status pushes.

The channel is an explicit state machine. One runner task owns every
transition and consumes events from a queue; timers and the per-connection
reader task only post events. Entering a state cancels all armed timers and
arms the timers that state owns, and every timer event carries a token so a
late event from a cancelled timer is ignored.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
import codecs
from contextlib import suppress
from dataclasses import dataclass
from enum import Enum
import logging
from typing import TYPE_CHECKING, Any

import aiohttp

from ..codecs.que_codec import decode_channel_frame, decode_snapshot, encode_subscribe
from ..const import (
    DOMAIN,
    MAX_CONSECUTIVE_ERRORS,
    RECONNECT_DELAY,
    RESUBSCRIBE_INTERVAL,
    WATCHDOG_WINDOW,
)
from ..exceptions import ChannelFault, MalformedSnapshot
from .sanitize import mask_identifier, redact_text
from .ws_health import ChannelHealthTracker

if TYPE_CHECKING:
    from ..api import RESTClient
    from ..domain.mirror import StateMirror

_LOGGER = logging.getLogger(__name__)


class ChannelState(str, Enum):
    """Lifecycle states of the realtime channel."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SUBSCRIBED = "subscribed"
    RECONNECTING = "reconnecting"
    GIVEN_UP = "given_up"


class _EventKind(Enum):
    START = "start"
    RETRY = "retry"
    MESSAGE = "message"
    CLOSED = "closed"
    WATCHDOG = "watchdog"
    RESUBSCRIBE = "resubscribe"


_TIMER_EVENTS = (_EventKind.RETRY, _EventKind.WATCHDOG, _EventKind.RESUBSCRIBE)


@dataclass(frozen=True, slots=True)
class _Event:
    kind: _EventKind
    token: int = 0
    data: str | None = None
    error: BaseException | None = None


async def _ws_payload_stream(
    ws: aiohttp.ClientWebSocketResponse, *, context: str
) -> AsyncIterator[str]:
    """Yield websocket payload strings."""

    async for msg in ws:
        if msg.type == aiohttp.WSMsgType.TEXT:
            yield msg.data
        elif msg.type == aiohttp.WSMsgType.BINARY:
            try:
                decoded = codecs.decode(msg.data, "utf-8")
            except UnicodeDecodeError:
                continue
            yield decoded
        elif msg.type == aiohttp.WSMsgType.ERROR:
            raise ChannelFault(f"{context} error: {ws.exception()}")
        elif msg.type in {aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSED}:
            raise ChannelFault(f"{context} closed")


class QueChannelClient:
    """Keep a subscribed push channel open and feed updates into the mirror."""

    def __init__(
        self,
        client: RESTClient,
        mirror: StateMirror,
        *,
        session: aiohttp.ClientSession | None = None,
        watchdog_window: float = WATCHDOG_WINDOW,
        resubscribe_interval: float = RESUBSCRIBE_INTERVAL,
        reconnect_delay: float = RECONNECT_DELAY,
        max_consecutive_errors: int = MAX_CONSECUTIVE_ERRORS,
        on_status: Callable[[ChannelState], None] | None = None,
    ) -> None:
        """Initialise the channel for the unit served by ``client``."""
        self._client = client
        self._mirror = mirror
        self._session = session or client.session
        self._serial = client.serial
        self._watchdog_window = watchdog_window
        self._resubscribe_interval = resubscribe_interval
        self._reconnect_delay = reconnect_delay
        self._max_consecutive_errors = max_consecutive_errors
        self._on_status = on_status

        self._state = ChannelState.DISCONNECTED
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[_Event] | None = None
        self._task: asyncio.Task | None = None
        self._reader_task: asyncio.Task | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._connection_id = 0
        self._timer_seq = 0
        self._timers: dict[_EventKind, tuple[int, asyncio.TimerHandle]] = {}
        self._consecutive_errors = 0
        self.connect_attempts = 0
        self.health = ChannelHealthTracker(serial=self._serial)

    # ------------------------------------------------------------------
    # Public control
    # ------------------------------------------------------------------
    @property
    def state(self) -> ChannelState:
        """Return the current lifecycle state."""

        return self._state

    @property
    def consecutive_errors(self) -> int:
        """Return the number of failed opens since the last success."""

        return self._consecutive_errors

    def start(self) -> asyncio.Task:
        """Start the runner task and request the first connection."""
        if self._task and not self._task.done():
            return self._task
        _LOGGER.debug("Channel: start requested for %s", mask_identifier(self._serial))
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._task = self._loop.create_task(
            self._runner(), name=f"{DOMAIN}-channel-{self._serial}"
        )
        self._post(_Event(_EventKind.START))
        return self._task

    async def stop(self) -> None:
        """Cancel tasks and timers and close the socket."""
        _LOGGER.debug("Channel: stop requested")
        if self._task:
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        self._cancel_timers()
        await self._teardown(reason="client stop")
        self._set_state(ChannelState.DISCONNECTED)

    def is_running(self) -> bool:
        """Return True if the runner task is active."""
        return bool(self._task and not self._task.done())

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------
    def _post(self, event: _Event) -> None:
        """Queue ``event`` for the runner task."""

        if self._queue is not None:
            self._queue.put_nowait(event)

    async def _runner(self) -> None:
        """Consume events one at a time until cancelled."""

        assert self._queue is not None
        try:
            while True:
                event = await self._queue.get()
                try:
                    await self._dispatch(event)
                except asyncio.CancelledError:
                    raise
                except Exception:
                    _LOGGER.exception(
                        "Channel: unexpected error handling %s event", event.kind.value
                    )
        finally:
            self._cancel_timers()

    async def _dispatch(self, event: _Event) -> None:
        """Apply ``event`` to the state machine."""

        if event.kind in _TIMER_EVENTS and not self._claim_timer(event):
            _LOGGER.debug("Channel: ignoring stale %s timer", event.kind.value)
            return

        state = self._state
        if event.kind is _EventKind.START:
            if state is ChannelState.DISCONNECTED:
                await self._connect()
        elif event.kind is _EventKind.RETRY:
            if state is not ChannelState.RECONNECTING:
                return
            if self._consecutive_errors > self._max_consecutive_errors:
                _LOGGER.error(
                    "Channel: giving up after %d consecutive connection failures; "
                    "reload the integration to retry",
                    self._consecutive_errors,
                )
                self._set_state(ChannelState.GIVEN_UP)
                return
            await self._connect()
        elif event.kind is _EventKind.MESSAGE:
            if state is ChannelState.SUBSCRIBED and event.token == self._connection_id:
                self._handle_frame(event.data or "")
        elif event.kind is _EventKind.CLOSED:
            if state is ChannelState.SUBSCRIBED and event.token == self._connection_id:
                _LOGGER.warning(
                    "Channel: connection lost (%s); reconnecting in %.0f s",
                    event.error or "closed by server",
                    self._reconnect_delay,
                )
                await self._restart(reason="connection lost", error=event.error)
        elif event.kind is _EventKind.WATCHDOG:
            if state is ChannelState.SUBSCRIBED:
                _LOGGER.warning(
                    "Channel: no message for %.0f s; reconnecting",
                    self._watchdog_window,
                )
                await self._restart(reason="watchdog", error=None)
        elif event.kind is _EventKind.RESUBSCRIBE:
            if state is ChannelState.SUBSCRIBED:
                await self._refresh_subscription()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def _set_state(self, state: ChannelState) -> None:
        """Enter ``state``, replacing every armed timer."""

        self._cancel_timers()
        previous = self._state
        self._state = state
        if state is ChannelState.SUBSCRIBED:
            self._arm(_EventKind.WATCHDOG, self._watchdog_window)
            self._arm(_EventKind.RESUBSCRIBE, self._resubscribe_interval)
        elif state is ChannelState.RECONNECTING:
            self._arm(_EventKind.RETRY, self._reconnect_delay)
        if previous is state:
            return
        _LOGGER.debug("Channel: %s -> %s", previous.value, state.value)
        self.health.update_status(state.value)
        if self._on_status is not None:
            try:
                self._on_status(state)
            except Exception:  # noqa: BLE001
                _LOGGER.exception("Channel: status callback failed")

    async def _connect(self) -> None:
        """Open the socket, subscribe and enter ``subscribed``."""

        self._set_state(ChannelState.CONNECTING)
        self._connection_id += 1
        connection_id = self._connection_id
        self.connect_attempts += 1
        try:
            token = await self._client.get_token()
            negotiation = await self._client.negotiate()
            url = self._client.channel_url(negotiation)
            _LOGGER.debug("Channel: connecting to %s", redact_text(url))
            self._ws = await self._session.ws_connect(
                url,
                headers={"Authorization": f"Bearer {token}"},
                heartbeat=None,
                autoclose=False,
            )
            await self._ws.send_str(encode_subscribe(self._serial))
        except asyncio.CancelledError:
            raise
        except Exception as err:  # noqa: BLE001
            await self._teardown(reason="open failed")
            self._consecutive_errors += 1
            self.health.record_failure(err)
            _LOGGER.warning(
                "Channel: connection attempt %d failed (%s: %s); retrying in %.0f s",
                self._consecutive_errors,
                type(err).__name__,
                redact_text(str(err)),
                self._reconnect_delay,
            )
            self._set_state(ChannelState.RECONNECTING)
            return

        _LOGGER.info("Channel: subscribed to %s", mask_identifier(self._serial))
        self._consecutive_errors = 0
        self.health.record_connected()
        self._set_state(ChannelState.SUBSCRIBED)
        assert self._loop is not None
        self._reader_task = self._loop.create_task(
            self._read_loop(self._ws, connection_id),
            name=f"{DOMAIN}-channel-reader-{connection_id}",
        )

    async def _restart(self, *, reason: str, error: BaseException | None) -> None:
        """Drop the current connection and schedule a reconnect."""

        await self._teardown(reason=reason)
        self.health.record_restart()
        if error is not None:
            self.health.last_error = f"{type(error).__name__}: {error}"
        self._set_state(ChannelState.RECONNECTING)

    async def _teardown(self, *, reason: str) -> None:
        """Stop the reader task and close the socket if open."""

        reader = self._reader_task
        self._reader_task = None
        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
            with suppress(asyncio.CancelledError):
                await reader
        ws = self._ws
        self._ws = None
        if ws is not None:
            with suppress(aiohttp.ClientError, RuntimeError, OSError):
                await ws.close(
                    code=aiohttp.WSCloseCode.GOING_AWAY, message=reason.encode()
                )

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------
    def _arm(self, kind: _EventKind, delay: float) -> None:
        """(Re)arm the timer for ``kind``."""

        self._cancel_timer(kind)
        assert self._loop is not None
        self._timer_seq += 1
        token = self._timer_seq
        handle = self._loop.call_later(delay, self._post, _Event(kind, token))
        self._timers[kind] = (token, handle)

    def _claim_timer(self, event: _Event) -> bool:
        """Return True and disarm if ``event`` is from the live timer."""

        current = self._timers.get(event.kind)
        if current is None or current[0] != event.token:
            return False
        del self._timers[event.kind]
        return True

    def _cancel_timer(self, kind: _EventKind) -> None:
        current = self._timers.pop(kind, None)
        if current is not None:
            current[1].cancel()

    def _cancel_timers(self) -> None:
        for kind in list(self._timers):
            self._cancel_timer(kind)

    # ------------------------------------------------------------------
    # Inbound frames
    # ------------------------------------------------------------------
    async def _read_loop(
        self, ws: aiohttp.ClientWebSocketResponse, connection_id: int
    ) -> None:
        """Forward frames from ``ws`` to the runner until it closes."""

        error: BaseException | None = None
        try:
            async for data in _ws_payload_stream(ws, context="channel"):
                self._post(_Event(_EventKind.MESSAGE, connection_id, data=data))
        except asyncio.CancelledError:
            raise
        except (ChannelFault, aiohttp.ClientError, OSError, RuntimeError) as err:
            error = err
        self._post(_Event(_EventKind.CLOSED, connection_id, error=error))

    def _handle_frame(self, text: str) -> None:
        """Reset the watchdog and apply any status update in ``text``."""

        self._arm(_EventKind.WATCHDOG, self._watchdog_window)
        try:
            status = decode_channel_frame(text)
            if status is None:
                self.health.mark_message(update=False)
                return
            unit, zones = decode_snapshot(status, serial=self._serial)
        except MalformedSnapshot as err:
            self.health.mark_message(update=False)
            _LOGGER.warning("Channel: dropping malformed update: %s", err)
            return
        self._mirror.apply(unit, zones)
        self.health.mark_message(update=True)

    async def _refresh_subscription(self) -> None:
        """Re-send ``subscribe`` on the open socket to renew the lease."""

        self._arm(_EventKind.RESUBSCRIBE, self._resubscribe_interval)
        ws = self._ws
        if ws is None or ws.closed:
            _LOGGER.info("Channel: re-subscribe skipped; socket is not open")
            return
        try:
            await ws.send_str(encode_subscribe(self._serial))
        except (aiohttp.ClientError, RuntimeError, OSError) as err:
            _LOGGER.info("Channel: re-subscribe failed (%s); skipping", err)
            return
        _LOGGER.debug("Channel: subscription refreshed")

    def diagnostics(self) -> dict[str, Any]:
        """Return channel health for diagnostics."""

        data = self.health.snapshot()
        data["state"] = self._state.value
        data["connect_attempts"] = self.connect_attempts
        return data


__all__ = ["ChannelState", "QueChannelClient"]
