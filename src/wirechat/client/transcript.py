"""In-memory chat transcript shared by the router, aggregator, and display."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Protocol

EntryKind = Literal["user", "assistant", "sys", "error"]


@dataclass
class ChatEntry:
    kind: EntryKind
    text: str
    turn: int = 0


class TranscriptView(Protocol):
    def entry_added(self, entry: ChatEntry) -> None: ...

    def entry_extended(self, entry: ChatEntry, delta: str) -> None: ...

    def cleared(self) -> None: ...


@dataclass
class Transcript:
    """Ordered displayed entries; an entry object is the handle used to extend it."""

    view: TranscriptView | None = None
    entries: list[ChatEntry] = field(default_factory=list)
    turn: int = 0

    def begin_turn(self) -> int:
        self.turn += 1
        return self.turn

    def add(self, kind: EntryKind, text: str) -> ChatEntry:
        entry = ChatEntry(kind=kind, text=text, turn=self.turn)
        self.entries.append(entry)
        if self.view is not None:
            self.view.entry_added(entry)
        return entry

    def extend(self, entry: ChatEntry, delta: str) -> None:
        entry.text += delta
        if self.view is not None:
            self.view.entry_extended(entry, delta)

    def clear(self) -> None:
        self.entries.clear()
        self.turn = 0
        if self.view is not None:
            self.view.cleared()

    def system(self, text: str) -> ChatEntry:
        return self.add("sys", text)

    def error(self, text: str) -> ChatEntry:
        return self.add("error", text)
