"""Shared rich console utilities for client output."""

from __future__ import annotations

from io import StringIO
from threading import Lock
from typing import Any

from prompt_toolkit.formatted_text import ANSI  # type: ignore
from prompt_toolkit.shortcuts import clear, print_formatted_text  # type: ignore
from rich.console import Console
from rich.text import Text

from wirechat.client.transcript import ChatEntry

_render_buffer = StringIO()
_render_console = Console(
    file=_render_buffer,
    force_terminal=True,
    color_system="standard",
    markup=False,
    highlight=False,
)
_render_lock = Lock()

_KIND_STYLES = {
    "sys": "magenta",
    "error": "red",
    "user": "cyan",
}


def _render_and_print(*args: Any, **kwargs: Any) -> None:
    if kwargs.get("end") is None:
        kwargs["end"] = "\n"
    with _render_lock:
        _render_buffer.seek(0)
        _render_buffer.truncate(0)
        _render_console.print(*args, **kwargs)
        output = _render_buffer.getvalue()
    if output:
        print_formatted_text(ANSI(output), end="")


def _render_text(text: str, style: str | None) -> Text:
    if "\x1b" in text:
        return Text.from_ansi(text)
    if style:
        return Text(text, style=style)
    return Text(text)


def print_system(text: str) -> None:
    _render_and_print(_render_text(f"[{text}]", _KIND_STYLES["sys"]))


def print_error(text: str) -> None:
    _render_and_print(_render_text(text, _KIND_STYLES["error"]))


def print_agent_text(text: str) -> None:
    _render_and_print(_render_text(text, None), end="")


class TerminalView:
    """Transcript view that writes entries to the terminal as they arrive.

    Assistant text is written without a trailing newline so streamed chunks
    continue the same line; the next entry closes it.
    """

    def __init__(self, *, echo_user: bool = False) -> None:
        self._echo_user = echo_user
        self._open_entry: ChatEntry | None = None

    def entry_added(self, entry: ChatEntry) -> None:
        self._close_open_line()
        if entry.kind == "assistant":
            print_agent_text(entry.text)
            self._open_entry = entry
        elif entry.kind == "sys":
            print_system(entry.text)
        elif entry.kind == "error":
            print_error(entry.text)
        elif self._echo_user:
            _render_and_print(_render_text(f"> {entry.text}", _KIND_STYLES["user"]))

    def entry_extended(self, entry: ChatEntry, delta: str) -> None:
        if entry is not self._open_entry:
            self._close_open_line()
            self._open_entry = entry
        print_agent_text(delta)

    def cleared(self) -> None:
        self._open_entry = None
        clear()

    def finish_line(self) -> None:
        self._close_open_line()

    def _close_open_line(self) -> None:
        if self._open_entry is not None:
            self._open_entry = None
            print_formatted_text("")
