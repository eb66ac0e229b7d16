"""Reassembly of streamed assistant output into transcript entries.

The gateway does not declare a framing format for partial responses. A
``message`` payload counts as a stream chunk when at least one of its lines
looks like a JSON object (``{...}``) that decodes and carries a ``content``
key; otherwise the whole payload is a complete message.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from wirechat.client.thinking import ThinkingSignal
from wirechat.client.transcript import ChatEntry, Transcript
from wirechat.log_utils import log_frames_enabled

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChunkClassification:
    is_chunk: bool
    content: str


@dataclass
class StreamBuffer:
    accumulated_text: str
    target: ChatEntry


def _chunk_text(value: Any) -> str:
    return value if isinstance(value, str) else json.dumps(value)


def classify_payload(text: str) -> ChunkClassification:
    """Sniff a payload line by line for ``{"content": ...}`` chunk objects.

    Lines that do not decode, or decode without ``content``, are dropped and
    do not count toward the chunk decision.
    """
    parts: list[str] = []
    is_chunk = False
    for line in text.split("\n"):
        stripped = line.strip()
        if not stripped or not (stripped.startswith("{") and stripped.endswith("}")):
            continue
        try:
            data = json.loads(stripped)
        except ValueError:
            continue
        if isinstance(data, dict) and "content" in data:
            is_chunk = True
            parts.append(_chunk_text(data["content"]))
    if not is_chunk:
        return ChunkClassification(is_chunk=False, content=text)
    return ChunkClassification(is_chunk=True, content="".join(parts))


class StreamAggregator:
    """Turns raw ``message`` payloads into display-ready transcript updates."""

    def __init__(self, transcript: Transcript, thinking: ThinkingSignal) -> None:
        self._transcript = transcript
        self._thinking = thinking
        self._buffer: StreamBuffer | None = None

    @property
    def buffer(self) -> StreamBuffer | None:
        return self._buffer

    def feed(self, text: str) -> ChatEntry:
        result = classify_payload(text)
        if log_frames_enabled():
            logger.debug("stream.feed chunk=%s len=%d", result.is_chunk, len(result.content))

        if not result.is_chunk:
            self._buffer = None
            entry = self._transcript.add("assistant", result.content)
            self._thinking.mark_inactive()
            return entry

        self._thinking.mark_active()
        buffer = self._open_buffer()
        if buffer is None:
            entry = self._transcript.add("assistant", result.content)
            self._buffer = StreamBuffer(accumulated_text=result.content, target=entry)
            return entry
        buffer.accumulated_text += result.content
        self._transcript.extend(buffer.target, result.content)
        return buffer.target

    def close(self) -> None:
        """Forget the cached buffer; the next chunk looks its target up again."""
        self._buffer = None

    def _open_buffer(self) -> StreamBuffer | None:
        target = self._latest_assistant_entry()
        if target is None:
            self._buffer = None
            return None
        if self._buffer is None or self._buffer.target is not target:
            self._buffer = StreamBuffer(accumulated_text=target.text, target=target)
        return self._buffer

    def _latest_assistant_entry(self) -> ChatEntry | None:
        """Most recent assistant entry, provided it belongs to the current turn."""
        for entry in reversed(self._transcript.entries):
            if entry.kind == "assistant":
                return entry if entry.turn == self._transcript.turn else None
        return None
