"""Composition root tying the connection, stream, and status pieces together."""

from __future__ import annotations

import logging
from typing import Callable

import httpx

from wirechat.client.ambient import AmbientStatus
from wirechat.client.connection import ConnectionManager, ConnectionState, Connector, NotConnected
from wirechat.client.events import chat_payload
from wirechat.client.gateway_api import GatewayAPI
from wirechat.client.router import EventRouter
from wirechat.client.scheduling import Scheduler
from wirechat.client.session_state import SessionUIState
from wirechat.client.session_store import GATEWAY_TOKEN_KEY, PROVIDER_KEY, SessionStore, SettingsStore
from wirechat.client.stream import StreamAggregator
from wirechat.client.thinking import ThinkingSignal, ThinkingState
from wirechat.client.transcript import Transcript, TranscriptView
from wirechat.config import ClientConfig, build_ws_url
from wirechat.log_utils import log_event

logger = logging.getLogger(__name__)

AUTH_REQUIRED_MESSAGE = "This gateway requires an API key. Enter it with /token <key>."


class ChatClient:
    def __init__(
        self,
        config: ClientConfig,
        settings: SettingsStore,
        *,
        view: TranscriptView | None = None,
        connector: Connector | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        loop: Scheduler | None = None,
        on_update: Callable[[], None] | None = None,
    ) -> None:
        self.config = config
        self.settings = settings
        self._on_update = on_update or (lambda: None)
        self._token = config.token or settings.get(GATEWAY_TOKEN_KEY)

        self.sessions = SessionStore(settings, on_change=self._on_session_change)
        self.state = SessionUIState(
            gateway_url=config.http_base,
            session_id=self.sessions.get(),
            selected_provider=config.provider or settings.get(PROVIDER_KEY),
        )
        self.transcript = Transcript(view=view)
        self.thinking = ThinkingSignal(on_change=self._on_thinking, debounce=config.thinking_debounce, loop=loop)
        self.aggregator = StreamAggregator(self.transcript, self.thinking)
        self.api = GatewayAPI(config.http_base, token=self._token, timeout=config.request_timeout, transport=transport)
        self.ambient = AmbientStatus(self.api, self.state, settings)
        self.router = EventRouter(
            sessions=self.sessions,
            aggregator=self.aggregator,
            thinking=self.thinking,
            transcript=self.transcript,
            refresh_status=self.ambient.schedule_refresh,
        )
        self.connection = ConnectionManager(
            url_factory=self.ws_url,
            sessions=self.sessions,
            router=self.router,
            connector=connector,
            on_state_change=self._on_connection_change,
            reconnect_delay=config.reconnect_delay,
            loop=loop,
        )

    @property
    def token(self) -> str | None:
        return self._token

    def ws_url(self) -> str:
        return build_ws_url(self.config.http_base, self._token)

    async def boot(self) -> None:
        """Start a background status refresh, check whether a key is needed, then connect."""
        self.ambient.schedule_refresh()
        if await self.ambient.check_auth() and not self._token:
            self.transcript.system(AUTH_REQUIRED_MESSAGE)
            return
        self.connection.connect()

    async def send_user_message(self, content: str) -> bool:
        content = content.strip()
        if not content:
            return False
        if self.connection.state is not ConnectionState.CONNECTED:
            self.transcript.error(NotConnected().message)
            return False

        self.transcript.begin_turn()
        self.aggregator.close()
        self.transcript.add("user", content)
        self.thinking.start()
        failure = await self.connection.send(chat_payload(content, self.state.selected_provider))
        if failure is not None:
            self.thinking.mark_inactive()
            self.transcript.error(failure.message)
            return False
        return True

    def reconnect(self) -> None:
        self.connection.reconnect_fresh()

    def clear_chat(self) -> None:
        self.thinking.mark_inactive()
        self.aggregator.close()
        self.transcript.clear()
        self.sessions.clear()
        self.connection.reconnect_fresh()

    def set_token(self, token: str) -> None:
        token = token.strip()
        self._token = token or None
        if token:
            self.settings.set(GATEWAY_TOKEN_KEY, token)
        self.api.set_token(self._token)
        log_event(logger, "token.updated", persisted=bool(token))
        self.connection.reconnect_fresh()

    def dismiss_update_notice(self) -> bool:
        status = self.state.status
        if status is None or not status.update_available:
            return False
        self.state.dismissed_update = status.latest_version_label
        self._on_update()
        return True

    async def aclose(self) -> None:
        self.thinking.mark_inactive()
        await self.connection.aclose()
        await self.ambient.aclose()
        await self.api.aclose()

    def _on_connection_change(self, state: ConnectionState) -> None:
        self.state.connection = state
        self._on_update()

    def _on_session_change(self, session_id: str | None) -> None:
        self.state.session_id = session_id
        self._on_update()

    def _on_thinking(self, state: ThinkingState) -> None:
        self.state.thinking = state
        self._on_update()
