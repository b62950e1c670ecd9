from __future__ import annotations

import asyncio
import copy
from typing import Any, Callable

import aiohttp
import pytest

import custom_components.actron_que.api as api
from custom_components.actron_que.api import ChannelNegotiation
from custom_components.actron_que.const import (
    COMMAND_PATH,
    NEGOTIATE_PATH,
    STATUS_PATH,
    TOKEN_PATH,
)
from custom_components.actron_que.exceptions import (
    BackendAuthError,
    BackendRateLimitError,
    MalformedSnapshot,
    TransportError,
)

RESTClient = api.RESTClient
BASE = "https://que.example"
JSON = {"Content-Type": "application/json"}


def _patch_clock(monkeypatch: pytest.MonkeyPatch, clock: list[float]) -> None:
    """Drive the client's monotonic clock from ``clock[0]``."""

    monkeypatch.setattr(api, "time_mod", lambda: clock[0])


class MockResponse:
    def __init__(
        self,
        status: int,
        json_data: Any = None,
        *,
        headers: dict[str, str] | None = None,
        text_data: str | None = "",
        json_exc: Exception | None = None,
    ) -> None:
        self.status = status
        self._json = json_data
        self._json_exc = json_exc
        self._text = text_data
        self.headers = headers or {}

    async def __aenter__(self) -> MockResponse:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def text(self) -> str:
        return self._text or ""

    async def json(self, content_type: str | None = None) -> Any:
        if self._json_exc is not None:
            raise self._json_exc
        return self._json


def token_response(token: str = "tok-1", expires_in: Any = 3600) -> MockResponse:
    return MockResponse(
        200, {"access_token": token, "token_type": "bearer", "expires_in": expires_in}
    )


class FakeSession:
    def __init__(self) -> None:
        self._request_queue: list[Any] = []
        self._post_queue: list[Any] = []
        self.request_calls: list[tuple[str, str, dict[str, Any]]] = []
        self.post_calls: list[tuple[str, dict[str, Any]]] = []

    def queue_request(self, *responses: Any) -> None:
        self._request_queue.extend(responses)

    def queue_post(self, *responses: Any) -> None:
        self._post_queue.extend(responses)

    def _resolve(self, queue: list[Any], label: str) -> Any:
        if not queue:
            raise AssertionError(f"Unexpected {label} call with no queued response")
        result = queue.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def request(self, method: str, url: str, **kwargs: Any) -> Any:
        self.request_calls.append((method, url, copy.deepcopy(kwargs)))
        return self._resolve(self._request_queue, "request")

    def post(self, url: str, **kwargs: Any) -> Any:
        self.post_calls.append((url, copy.deepcopy(kwargs)))
        return self._resolve(self._post_queue, "post")


def make_client(session: FakeSession) -> RESTClient:
    return RESTClient(session, "SER123", "refresh-abc", api_base=f"{BASE}/")  # type: ignore[arg-type]


def test_token_is_cached_until_expiry_margin(monkeypatch: pytest.MonkeyPatch) -> None:
    clock = [1000.0]
    _patch_clock(monkeypatch, clock)

    async def _run() -> None:
        session = FakeSession()
        session.queue_post(token_response("t1"), token_response("t2"))
        client = make_client(session)

        assert await client.get_token() == "t1"
        clock[0] = 2799.0
        assert await client.get_token() == "t1"
        assert len(session.post_calls) == 1

        clock[0] = 2800.0
        assert await client.get_token() == "t2"
        assert len(session.post_calls) == 2

    asyncio.run(_run())


def test_token_request_uses_refresh_grant(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_clock(monkeypatch, [0.0])

    async def _run() -> None:
        session = FakeSession()
        session.queue_post(token_response())
        client = make_client(session)
        await client.get_token()

        url, kwargs = session.post_calls[0]
        assert url == f"{BASE}{TOKEN_PATH}"
        assert kwargs["data"] == {
            "grant_type": "refresh_token",
            "refresh_token": "refresh-abc",
            "client_id": "app",
        }
        assert kwargs["headers"]["Content-Type"] == "application/x-www-form-urlencoded"

    asyncio.run(_run())


def test_token_without_expiry_uses_default_ttl(monkeypatch: pytest.MonkeyPatch) -> None:
    clock = [0.0]
    _patch_clock(monkeypatch, clock)

    async def _run() -> None:
        session = FakeSession()
        session.queue_post(token_response("t1", None), token_response("t2"))
        client = make_client(session)

        await client.get_token()
        clock[0] = 1799.0
        assert await client.get_token() == "t1"
        clock[0] = 1800.0
        assert await client.get_token() == "t2"

    asyncio.run(_run())


def test_concurrent_token_requests_share_one_refresh(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _patch_clock(monkeypatch, [0.0])

    async def _run() -> None:
        session = FakeSession()
        session.queue_post(token_response("shared"))
        client = make_client(session)

        tokens = await asyncio.gather(*(client.get_token() for _ in range(3)))

        assert tokens == ["shared"] * 3
        assert len(session.post_calls) == 1

    asyncio.run(_run())


@pytest.mark.parametrize(
    ("response", "exc"),
    [
        (MockResponse(400, {"error": "invalid_grant"}), BackendAuthError),
        (MockResponse(401, {}), BackendAuthError),
        (MockResponse(429, {}), BackendRateLimitError),
        (MockResponse(503, {}), TransportError),
        (MockResponse(200, {"token_type": "bearer"}), BackendAuthError),
        (
            MockResponse(200, json_exc=ValueError("Expecting value"), text_data="<html>"),
            TransportError,
        ),
        (aiohttp.ClientConnectionError("down"), TransportError),
    ],
)
def test_token_failures(response: Any, exc: type[Exception]) -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_post(response)
        with pytest.raises(exc):
            await make_client(session).get_token()

    asyncio.run(_run())


def test_rate_limit_is_a_transport_error() -> None:
    assert issubclass(BackendRateLimitError, TransportError)
    assert issubclass(BackendAuthError, TransportError)


def test_fetch_snapshot_returns_last_known_state() -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_post(token_response("tok"))
        session.queue_request(
            MockResponse(
                200,
                {"lastKnownState": {"isOnline": True}},
                headers=JSON,
                text_data='{"lastKnownState": {"isOnline": true}}',
            )
        )
        client = make_client(session)

        assert await client.fetch_snapshot() == {"isOnline": True}

        method, url, kwargs = session.request_calls[0]
        assert method == "GET"
        assert url == f"{BASE}{STATUS_PATH}"
        assert kwargs["params"] == {"serial": "SER123"}
        assert kwargs["headers"]["Authorization"] == "Bearer tok"

    asyncio.run(_run())


def test_fetch_snapshot_without_state_is_malformed() -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_post(token_response())
        session.queue_request(MockResponse(200, {"serial": "x"}, headers=JSON))
        with pytest.raises(MalformedSnapshot):
            await make_client(session).fetch_snapshot()

    asyncio.run(_run())


def test_unauthorized_request_refreshes_token_once() -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_post(token_response("old"), token_response("new"))
        session.queue_request(
            MockResponse(401, text_data="expired"),
            MockResponse(200, {"lastKnownState": {}}, headers=JSON),
        )
        client = make_client(session)

        assert await client.fetch_snapshot() == {}
        assert len(session.post_calls) == 2
        auth_headers = [
            kwargs["headers"]["Authorization"] for _, _, kwargs in session.request_calls
        ]
        assert auth_headers == ["Bearer old", "Bearer new"]

    asyncio.run(_run())


def test_repeated_unauthorized_raises_auth_error() -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_post(token_response("a"), token_response("b"))
        session.queue_request(MockResponse(401), MockResponse(401))
        with pytest.raises(BackendAuthError):
            await make_client(session).fetch_snapshot()

    asyncio.run(_run())


@pytest.mark.parametrize(
    ("response", "exc"),
    [
        (MockResponse(429, text_data="slow down"), BackendRateLimitError),
        (MockResponse(500, text_data="oops"), TransportError),
        (aiohttp.ClientConnectionError("reset"), TransportError),
        (asyncio.TimeoutError(), TransportError),
    ],
)
def test_request_failures_are_mapped(response: Any, exc: type[Exception]) -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_post(token_response())
        session.queue_request(response)
        with pytest.raises(exc):
            await make_client(session).fetch_snapshot()

    asyncio.run(_run())


def test_error_logs_do_not_leak_tokens(caplog: pytest.LogCaptureFixture) -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_post(token_response("super-secret-token"))
        session.queue_request(
            MockResponse(500, text_data='{"access_token": "leaked-value-123"}')
        )
        with pytest.raises(TransportError):
            await make_client(session).fetch_snapshot()

    asyncio.run(_run())

    assert "leaked-value-123" not in caplog.text
    assert "super-secret-token" not in caplog.text


def test_send_command_wraps_body() -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_post(token_response())
        session.queue_request(MockResponse(200, text_data="OK"))
        command = {"UserAirconSettings.isOn": True, "type": "set-settings"}

        assert await make_client(session).send_command(command) == "OK"

        method, url, kwargs = session.request_calls[0]
        assert method == "POST"
        assert url == f"{BASE}{COMMAND_PATH}"
        assert kwargs["params"] == {"serial": "SER123"}
        assert kwargs["json"] == {"command": command}

    asyncio.run(_run())


def test_negotiate_parses_connection_token() -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_post(token_response())
        session.queue_request(
            MockResponse(
                200,
                {"ConnectionToken": "abc+/=", "ProtocolVersion": 1.5, "Url": "/x"},
                headers=JSON,
            )
        )
        client = make_client(session)

        negotiation = await client.negotiate()

        assert negotiation == ChannelNegotiation("abc+/=", "1.5")
        assert session.request_calls[0][1] == f"{BASE}{NEGOTIATE_PATH}"

    asyncio.run(_run())


def test_negotiate_rejects_unexpected_payload() -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_post(token_response())
        session.queue_request(MockResponse(200, {"Url": "/x"}, headers=JSON))
        with pytest.raises(TransportError):
            await make_client(session).negotiate()

    asyncio.run(_run())


def test_channel_url_quotes_connection_token() -> None:
    client = make_client(FakeSession())

    url = client.channel_url(ChannelNegotiation("abc+/=", "1.5"))

    assert url == (
        "wss://que.example/api/v0/messaging/app?transport=webSockets"
        "&connectionToken=abc%2B%2F%3D&clientProtocol=1.5"
    )
    assert client.api_base == BASE
    assert client.serial == "SER123"
