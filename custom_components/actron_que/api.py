from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from time import monotonic as time_mod
from typing import Any
from urllib.parse import quote, urlencode

import aiohttp
from pydantic import ValidationError

from .backend.sanitize import mask_identifier, redact_text
from .codecs.que_codec import decode_status_response
from .codecs.que_models import NegotiateResponse, TokenResponse
from .const import (
    API_BASE,
    CHANNEL_PATH,
    CLIENT_ID,
    COMMAND_PATH,
    DEFAULT_TOKEN_TTL,
    NEGOTIATE_PATH,
    STATUS_PATH,
    TOKEN_EXPIRY_MARGIN,
    TOKEN_PATH,
    USER_AGENT,
)
from .exceptions import BackendAuthError, BackendRateLimitError, TransportError

_LOGGER = logging.getLogger(__name__)

# Toggle to preview bodies in debug logs (redacted). Leave False by default.
API_LOG_PREVIEW = False


@dataclass(frozen=True, slots=True)
class ChannelNegotiation:
    """Connection parameters returned by the SignalR negotiate call."""

    connection_token: str
    protocol_version: str


class RESTClient:
    """Thin async client for the Actron Que cloud (HA-safe)."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        serial: str,
        refresh_token: str,
        *,
        api_base: str = API_BASE,
    ) -> None:
        """Initialise the REST client with authentication context."""
        self._session = session
        self._serial = serial
        self._refresh_token = refresh_token
        self._api_base = api_base.rstrip("/") if api_base else API_BASE
        self._access_token: str | None = None
        self._token_expiry_monotonic: float = 0.0
        self._lock = asyncio.Lock()

    @property
    def api_base(self) -> str:
        """Expose API base for the realtime channel."""

        return self._api_base

    @property
    def serial(self) -> str:
        """Return the serial number of the managed unit."""

        return self._serial

    @property
    def session(self) -> aiohttp.ClientSession:
        """Return the shared aiohttp session."""

        return self._session

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Perform an authenticated HTTP request.

        Return JSON when possible, otherwise text. A 401 drops the cached
        token and retries once. Errors are logged WITHOUT secrets and raised
        as ``TransportError`` subclasses.
        """
        headers = kwargs.pop("headers", {})
        headers.setdefault("User-Agent", USER_AGENT)
        headers.setdefault("Accept", "application/json")
        timeout = kwargs.pop("timeout", aiohttp.ClientTimeout(total=25))

        url = path if path.startswith("http") else f"{self._api_base}{path}"
        _LOGGER.debug("HTTP %s %s", method, redact_text(url))

        for attempt in range(2):
            token = await self.get_token()
            headers["Authorization"] = f"Bearer {token}"
            try:
                async with self._session.request(
                    method, url, headers=headers, timeout=timeout, **kwargs
                ) as resp:
                    ctype = resp.headers.get("Content-Type", "")
                    try:
                        body_text = await resp.text()
                    except (aiohttp.ClientError, UnicodeDecodeError):
                        body_text = "<no body>"

                    if resp.status >= 400:
                        _LOGGER.error(
                            "HTTP error %s %s -> %s; body=%s",
                            method,
                            redact_text(url),
                            resp.status,
                            redact_text(body_text),
                        )
                    elif API_LOG_PREVIEW:
                        _LOGGER.debug(
                            "HTTP %s -> %s, ctype=%s, body[0:200]=%r",
                            redact_text(url),
                            resp.status,
                            ctype,
                            (redact_text(body_text) or "")[:200],
                        )

                    if resp.status == 401:
                        if attempt == 0:
                            self.invalidate_token()
                            continue
                        raise BackendAuthError("Unauthorized")
                    if resp.status == 429:
                        raise BackendRateLimitError("Rate limited")
                    if resp.status >= 400:
                        raise TransportError(
                            f"{method} {redact_text(url)} failed with status {resp.status}"
                        )

                    if "application/json" in ctype or (
                        body_text and body_text[:1] in ("{", "[")
                    ):
                        try:
                            return await resp.json(content_type=None)
                        except ValueError:
                            return body_text
                    return body_text

            except TransportError:
                raise
            except asyncio.CancelledError:
                raise
            except (aiohttp.ClientError, TimeoutError) as err:
                _LOGGER.error(
                    "Request %s %s failed (sanitized): %s",
                    method,
                    redact_text(url),
                    redact_text(str(err)),
                )
                raise TransportError(redact_text(str(err)) or type(err).__name__) from err
        raise BackendAuthError("Unauthorized")

    def invalidate_token(self) -> None:
        """Forget the cached bearer token."""

        self._access_token = None
        self._token_expiry_monotonic = 0.0

    async def get_token(self) -> str:
        """Return a cached bearer token, refreshing it near expiry."""
        if self._access_token and time_mod() < self._token_expiry_monotonic:
            return self._access_token

        async with self._lock:
            if self._access_token and time_mod() < self._token_expiry_monotonic:
                return self._access_token

            data = {
                "grant_type": "refresh_token",
                "refresh_token": self._refresh_token,
                "client_id": CLIENT_ID,
            }
            headers = {
                "Content-Type": "application/x-www-form-urlencoded",
                "Accept": "application/json",
                "User-Agent": USER_AGENT,
            }
            url = f"{self._api_base}{TOKEN_PATH}"
            _LOGGER.debug("Token POST %s for serial=%s", url, mask_identifier(self._serial))
            try:
                async with self._session.post(
                    url,
                    data=data,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=25),
                ) as resp:
                    _LOGGER.debug("Token resp status=%s", resp.status)

                    if resp.status in (400, 401):
                        raise BackendAuthError(
                            f"Refresh token rejected (status {resp.status})"
                        )
                    if resp.status == 429:
                        raise BackendRateLimitError("Rate limited on token endpoint")
                    if resp.status >= 400:
                        raise TransportError(
                            f"Token endpoint failed with status {resp.status}"
                        )
                    try:
                        js = await resp.json(content_type=None)
                    except ValueError as err:
                        _LOGGER.error("Token endpoint returned a non-JSON body")
                        raise TransportError(
                            "Token endpoint returned a non-JSON body"
                        ) from err
            except (aiohttp.ClientError, TimeoutError) as err:
                raise TransportError(redact_text(str(err)) or type(err).__name__) from err

            try:
                token_resp = TokenResponse.model_validate(js)
            except ValidationError as err:
                _LOGGER.error("No access_token in response JSON")
                raise BackendAuthError("No access_token in response") from err

            if isinstance(token_resp.expires_in, (int, float)):
                ttl = max(float(token_resp.expires_in) - TOKEN_EXPIRY_MARGIN, 0.0)
            else:
                ttl = DEFAULT_TOKEN_TTL - TOKEN_EXPIRY_MARGIN
            self._access_token = token_resp.access_token
            self._token_expiry_monotonic = time_mod() + ttl
            return token_resp.access_token

    # ----------------- Public API -----------------

    async def fetch_snapshot(self) -> dict[str, Any]:
        """Return the raw ``lastKnownState`` of the unit."""

        data = await self._request("GET", STATUS_PATH, params={"serial": self._serial})
        return decode_status_response(data)

    async def send_command(self, command: dict[str, Any]) -> Any:
        """Send a ``set-settings`` command body to the unit."""

        _LOGGER.debug(
            "Command for %s: %s",
            mask_identifier(self._serial),
            sorted(key for key in command if key != "type"),
        )
        return await self._request(
            "POST",
            COMMAND_PATH,
            params={"serial": self._serial},
            json={"command": command},
        )

    async def negotiate(self) -> ChannelNegotiation:
        """Negotiate a realtime channel connection token."""

        data = await self._request("GET", NEGOTIATE_PATH)
        try:
            parsed = NegotiateResponse.model_validate(data)
        except ValidationError as err:
            raise TransportError("Unexpected negotiate response") from err
        return ChannelNegotiation(
            connection_token=parsed.connection_token,
            protocol_version=parsed.protocol_version,
        )

    def channel_url(self, negotiation: ChannelNegotiation) -> str:
        """Return the websocket URL for ``negotiation``."""

        base = self._api_base.replace("https://", "wss://", 1).replace(
            "http://", "ws://", 1
        )
        query = urlencode(
            {
                "transport": "webSockets",
                "connectionToken": negotiation.connection_token,
                "clientProtocol": negotiation.protocol_version,
            },
            quote_via=quote,
        )
        return f"{base}{CHANNEL_PATH}?{query}"


__all__ = ["ChannelNegotiation", "RESTClient"]
