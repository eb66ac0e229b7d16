"""Gateway socket lifecycle: connect, resume handshake, reconnect, send.

One ConnectionManager owns one socket at a time, the reader task pumping it,
and the single pending reconnect timer. Every connection attempt gets a
generation number; close/error handling for a superseded generation is
ignored, which is how a deliberate teardown avoids scheduling a reconnect.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Protocol

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from wirechat.client.events import init_request, parse_server_event, resume_request
from wirechat.client.router import EventRouter
from wirechat.client.scheduling import Scheduler, TimerHandle, resolve_scheduler
from wirechat.client.session_store import SessionStore
from wirechat.config import RECONNECT_DELAY_SECONDS
from wirechat.errors import EventDecodeError
from wirechat.log_utils import log_context, log_event, log_frames_enabled

logger = logging.getLogger(__name__)

# Gateway drops text frames above this size and closes the socket.
MAX_TEXT_BYTES = 32 * 1024
NOT_CONNECTED_MESSAGE = "Not connected. Use /reconnect to try again."


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class Socket(Protocol):
    async def send(self, message: str) -> None: ...

    async def close(self) -> None: ...

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...


Connector = Callable[[str], Awaitable[Socket]]


@dataclass(frozen=True)
class NotConnected:
    message: str = NOT_CONNECTED_MESSAGE


@dataclass(frozen=True)
class MessageTooLarge:
    size: int
    limit: int = MAX_TEXT_BYTES

    @property
    def message(self) -> str:
        return f"Message too large ({self.size} bytes, limit {self.limit})."


SendFailure = NotConnected | MessageTooLarge


async def open_websocket(url: str) -> Socket:
    return await websockets.connect(url, open_timeout=10)


async def _close_quietly(socket: Socket) -> None:
    with contextlib.suppress(ConnectionClosed, WebSocketException, OSError):
        await socket.close()


class ConnectionManager:
    def __init__(
        self,
        *,
        url_factory: Callable[[], str],
        sessions: SessionStore,
        router: EventRouter,
        connector: Connector | None = None,
        on_state_change: Callable[[ConnectionState], None] | None = None,
        reconnect_delay: float = RECONNECT_DELAY_SECONDS,
        loop: Scheduler | None = None,
    ) -> None:
        self._url_factory = url_factory
        self._sessions = sessions
        self._router = router
        self._connector = connector or open_websocket
        self._on_state_change = on_state_change
        self._reconnect_delay = reconnect_delay
        self._loop = loop
        self._state = ConnectionState.DISCONNECTED
        self._socket: Socket | None = None
        self._task: asyncio.Task[None] | None = None
        self._reconnect_handle: TimerHandle | None = None
        self._pending_closes: set[asyncio.Task[None]] = set()
        self._generation = 0
        self._closed = False

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    def connect(self) -> None:
        """Start a connection attempt unless one is already open or in flight."""
        if self._closed or self._state is not ConnectionState.DISCONNECTED:
            return
        self._generation += 1
        generation = self._generation
        url = self._url_factory()
        self._set_state(ConnectionState.CONNECTING)
        log_event(logger, "socket.connecting", generation=generation, url=url.split("?", 1)[0])
        self._task = asyncio.get_running_loop().create_task(
            self._run(generation, url), name=f"wirechat-socket-{generation}"
        )

    def reconnect_fresh(self) -> None:
        """Tear down the current socket without a scheduled retry and connect anew."""
        self._cancel_reconnect()
        self._generation += 1
        self._teardown_socket()
        self._set_state(ConnectionState.DISCONNECTED)
        self.connect()

    async def send(self, payload: dict[str, Any]) -> SendFailure | None:
        socket = self._socket
        if self._state is not ConnectionState.CONNECTED or socket is None:
            log_event(logger, "send.rejected", level=logging.WARNING, state=self._state.value)
            return NotConnected()
        text = json.dumps(payload)
        size = len(text.encode("utf-8"))
        if size > MAX_TEXT_BYTES:
            log_event(logger, "send.too_large", level=logging.WARNING, size=size)
            return MessageTooLarge(size=size)
        try:
            await socket.send(text)
        except (ConnectionClosed, OSError) as exc:
            # The reader task observes the same failure and schedules the reconnect.
            logger.warning("Send failed on closing socket: %s", exc)
            return NotConnected()
        if log_frames_enabled():
            logger.debug("frame.out %s", text)
        return None

    async def aclose(self) -> None:
        """Stop for good: no reconnects, socket closed, reader task finished."""
        self._closed = True
        self._cancel_reconnect()
        self._generation += 1
        task = self._task
        self._teardown_socket()
        self._set_state(ConnectionState.DISCONNECTED)
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self._pending_closes:
            await asyncio.gather(*self._pending_closes, return_exceptions=True)

    async def _run(self, generation: int, url: str) -> None:
        with log_context(connection=generation):
            try:
                socket = await self._connector(url)
            except (OSError, WebSocketException, asyncio.TimeoutError) as exc:
                log_event(logger, "socket.connect_failed", level=logging.WARNING, error=str(exc))
                self._handle_closed(generation)
                return
            if generation != self._generation:
                await _close_quietly(socket)
                return

            self._socket = socket
            self._set_state(ConnectionState.CONNECTED)
            log_event(logger, "socket.open")
            try:
                await self._send_handshake(socket)
                async for frame in socket:
                    if generation != self._generation:
                        break
                    self._handle_frame(frame)
            except ConnectionClosed as exc:
                log_event(logger, "socket.closed", code=exc.rcvd.code if exc.rcvd else None)
            except (OSError, WebSocketException) as exc:
                log_event(logger, "socket.error", level=logging.WARNING, error=str(exc))
            finally:
                self._handle_closed(generation)

    async def _send_handshake(self, socket: Socket) -> None:
        session_id = self._sessions.get()
        request = resume_request(session_id) if session_id else init_request()
        log_event(logger, "socket.handshake", type=request["type"], session_id=session_id)
        await socket.send(json.dumps(request))

    def _handle_frame(self, frame: str | bytes) -> None:
        text = frame.decode("utf-8", errors="replace") if isinstance(frame, bytes) else frame
        if log_frames_enabled():
            logger.debug("frame.in %s", text)
        try:
            event = parse_server_event(text)
        except EventDecodeError:
            self._router.report_undecodable(text)
            return
        try:
            self._router.route(event)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to handle %s event", event.type)

    def _handle_closed(self, generation: int) -> None:
        if generation != self._generation or self._closed:
            return
        self._socket = None
        self._task = None
        self._set_state(ConnectionState.DISCONNECTED)
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            return
        self._loop = resolve_scheduler(self._loop)
        self._reconnect_handle = self._loop.call_later(self._reconnect_delay, self._fire_reconnect)
        log_event(logger, "socket.reconnect_scheduled", delay=self._reconnect_delay)

    def _fire_reconnect(self) -> None:
        self._reconnect_handle = None
        self.connect()

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    def _teardown_socket(self) -> None:
        task, self._task = self._task, None
        socket, self._socket = self._socket, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        if socket is not None:
            closer = asyncio.get_running_loop().create_task(_close_quietly(socket))
            self._pending_closes.add(closer)
            closer.add_done_callback(self._pending_closes.discard)

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        self._state = state
        if self._on_state_change is not None:
            self._on_state_change(state)
