"""Dispatch decoded gateway events to session, stream, and transcript state."""

from __future__ import annotations

import json
import logging
from typing import Callable

from wirechat.client.events import (
    ConnectedEvent,
    ErrorEvent,
    MessageEvent,
    ResumedEvent,
    ServerEvent,
    UnknownEvent,
)
from wirechat.client.session_store import SessionStore
from wirechat.client.stream import StreamAggregator
from wirechat.client.thinking import ThinkingSignal
from wirechat.client.transcript import Transcript
from wirechat.log_utils import log_event

logger = logging.getLogger(__name__)

EMPTY_RESPONSE = "(empty response)"


class EventRouter:
    def __init__(
        self,
        *,
        sessions: SessionStore,
        aggregator: StreamAggregator,
        thinking: ThinkingSignal,
        transcript: Transcript,
        refresh_status: Callable[[], None] | None = None,
    ) -> None:
        self._sessions = sessions
        self._aggregator = aggregator
        self._thinking = thinking
        self._transcript = transcript
        self._refresh_status = refresh_status or (lambda: None)

    def route(self, event: ServerEvent) -> None:
        if event.session_id:
            self._sessions.set(event.session_id)

        if isinstance(event, ConnectedEvent):
            if event.note:
                self._transcript.system(f"Connected ({event.note}).")
            self._refresh_status()
        elif isinstance(event, ResumedEvent):
            self._transcript.system(f"Session resumed ({event.history_length or 0} messages in history).")
            self._refresh_status()
        elif isinstance(event, MessageEvent):
            self._aggregator.feed(event.content or EMPTY_RESPONSE)
        elif isinstance(event, ErrorEvent):
            self._thinking.mark_inactive()
            code = event.code if event.code not in (None, "") else "error"
            message = event.message or "unknown error"
            log_event(logger, "gateway.error", level=logging.WARNING, code=code, message=message)
            self._transcript.error(f"{code}: {message}")
        elif isinstance(event, UnknownEvent):
            self._transcript.system(f"Event {event.type or 'unknown'}: {json.dumps(event.raw)}")

    def report_undecodable(self, raw: str) -> None:
        logger.warning("Undecodable frame (%d chars)", len(raw))
        self._transcript.system(f"Raw: {raw}")
