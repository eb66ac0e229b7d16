"""Gateway wire events: inbound tagged union and outbound request builders."""

from __future__ import annotations

import json
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from wirechat.errors import EventDecodeError


class _EventBase(BaseModel):
    model_config = ConfigDict(extra="allow")

    session_id: str | None = None


class ConnectedEvent(_EventBase):
    type: Literal["connected"] = "connected"
    note: str | None = None


class ResumedEvent(_EventBase):
    type: Literal["resumed"] = "resumed"
    history_length: int | None = None


class MessageEvent(_EventBase):
    type: Literal["message"] = "message"
    content: str | None = None


class ErrorEvent(_EventBase):
    type: Literal["error"] = "error"
    code: str | int | None = None
    message: str | None = None


class UnknownEvent(_EventBase):
    """Any event whose ``type`` is not recognised (or fails validation)."""

    type: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)


ServerEvent = Union[ConnectedEvent, ResumedEvent, MessageEvent, ErrorEvent, UnknownEvent]

_EVENT_MODELS: dict[str, type[_EventBase]] = {
    "connected": ConnectedEvent,
    "resumed": ResumedEvent,
    "message": MessageEvent,
    "error": ErrorEvent,
}


def parse_server_event(raw: str | bytes) -> ServerEvent:
    """Decode one inbound frame.

    Raises EventDecodeError when the frame is not a JSON object. A known
    ``type`` whose fields fail validation degrades to UnknownEvent rather than
    failing, so a newer gateway never breaks an older client.
    """
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    try:
        payload = json.loads(text)
    except ValueError as exc:
        raise EventDecodeError(text) from exc
    if not isinstance(payload, dict):
        raise EventDecodeError(text)

    session_id = payload.get("session_id")
    if not isinstance(session_id, str):
        session_id = None
    model = _EVENT_MODELS.get(str(payload.get("type")))
    if model is not None:
        try:
            return model.model_validate(payload)
        except ValidationError:
            pass
    event_type = payload.get("type")
    return UnknownEvent(
        type=event_type if isinstance(event_type, str) else None,
        session_id=session_id,
        raw=payload,
    )


def init_request() -> dict[str, Any]:
    return {"type": "init"}


def resume_request(session_id: str) -> dict[str, Any]:
    return {"type": "resume", "session_id": session_id}


def chat_payload(content: str, provider: str | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"content": content}
    if provider:
        payload["provider"] = provider
    return payload
