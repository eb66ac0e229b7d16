from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Callable

import httpx
from websockets.exceptions import ConnectionClosedOK

from wirechat.client.chat import ChatClient
from wirechat.client.session_store import SettingsStore
from wirechat.client.transcript import ChatEntry
from wirechat.config import ClientConfig

_CLOSE = object()


class FakeTimer:
    def __init__(self, when: float, callback: Callable[..., Any], args: tuple[Any, ...]) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeClock:
    """Manual clock standing in for the event loop's ``call_later``."""

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: list[FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback, args)
        self._timers.append(timer)
        return timer

    def pending(self) -> list[FakeTimer]:
        return [timer for timer in self._timers if not timer.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [timer for timer in self.pending() if timer.when <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self._timers.remove(timer)
            self.now = timer.when
            timer.callback(*timer.args)
        self._timers = self.pending()
        self.now = target


class FakeSocket:
    def __init__(self) -> None:
        self.sent: list[str] = []
        self.closed = False
        self._incoming: asyncio.Queue[Any] = asyncio.Queue()

    @property
    def sent_json(self) -> list[dict[str, Any]]:
        return [json.loads(item) for item in self.sent]

    async def send(self, message: str) -> None:
        if self.closed:
            raise ConnectionClosedOK(None, None)
        self.sent.append(message)

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._incoming.put_nowait(_CLOSE)

    def feed(self, frame: str | bytes | dict[str, Any]) -> None:
        if isinstance(frame, dict):
            frame = json.dumps(frame)
        self._incoming.put_nowait(frame)

    def drop(self) -> None:
        """Simulate the server closing the socket."""
        self.closed = True
        self._incoming.put_nowait(_CLOSE)

    def __aiter__(self) -> FakeSocket:
        return self

    async def __anext__(self) -> str | bytes:
        item = await self._incoming.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        return item


class FakeConnector:
    def __init__(self) -> None:
        self.urls: list[str] = []
        self.sockets: list[FakeSocket] = []
        self.failures: list[BaseException] = []

    @property
    def last(self) -> FakeSocket:
        return self.sockets[-1]

    async def __call__(self, url: str) -> FakeSocket:
        self.urls.append(url)
        if self.failures:
            raise self.failures.pop(0)
        socket = FakeSocket()
        self.sockets.append(socket)
        return socket


class RecordingView:
    def __init__(self) -> None:
        self.added: list[ChatEntry] = []
        self.deltas: list[str] = []
        self.clears = 0

    def entry_added(self, entry: ChatEntry) -> None:
        self.added.append(entry)

    def entry_extended(self, _entry: ChatEntry, delta: str) -> None:
        self.deltas.append(delta)

    def cleared(self) -> None:
        self.clears += 1


def gateway_handler(
    *,
    status: dict[str, Any] | None = None,
    providers: list[dict[str, Any]] | None = None,
    auth_required: bool = False,
    posts: list[dict[str, Any]] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """Build an httpx.MockTransport handler serving the gateway REST endpoints."""

    def _handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/api/status":
            return httpx.Response(200, json=status or {"status": "ok", "sessions": 1, "channels": ["web"]})
        if path == "/api/providers" and request.method == "GET":
            return httpx.Response(200, json={"providers": providers or []})
        if path == "/api/providers" and request.method == "POST":
            if posts is not None:
                posts.append(json.loads(request.content))
            return httpx.Response(200, json={"ok": True})
        if path == "/api/auth-check":
            return httpx.Response(200, json={"auth_required": auth_required})
        return httpx.Response(404, json={"message": "not found"})

    return _handler


def make_client(
    tmp_path: Path,
    *,
    handler: Callable[[httpx.Request], httpx.Response] | None = None,
    config: ClientConfig | None = None,
) -> tuple[ChatClient, FakeConnector, FakeClock, RecordingView]:
    connector = FakeConnector()
    clock = FakeClock()
    view = RecordingView()
    client = ChatClient(
        config or ClientConfig(gateway_url="http://gateway.test:3888"),
        SettingsStore(tmp_path / "settings.json"),
        view=view,
        connector=connector,
        transport=httpx.MockTransport(handler or gateway_handler()),
        loop=clock,
    )
    return client, connector, clock, view


async def settle(rounds: int = 10) -> None:
    """Let pending socket and refresh tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)
