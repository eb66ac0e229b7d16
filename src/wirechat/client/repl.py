"""Interactive REPL loop for the chat client."""

from __future__ import annotations

import logging
import sys

from prompt_toolkit import PromptSession  # type: ignore
from prompt_toolkit.patch_stdout import patch_stdout  # type: ignore
from prompt_toolkit.styles import Style  # type: ignore

from wirechat.client.chat import ChatClient
from wirechat.client.display import TerminalView
from wirechat.client.slash import handle_slash_command
from wirechat.client.status_box import build_status_toolbar, render_status_box

TOOLBAR_STYLE = Style.from_dict(
    {
        "bottom-toolbar": "noreverse bg:#202020 #aaaaaa",
        "toolbar.label": "#888888",
        "toolbar.value": "#dddddd",
        "toolbar.ok": "#4ade80 bold",
        "toolbar.off": "#f87171 bold",
        "toolbar.busy": "#facc15",
        "toolbar.notice": "#60a5fa",
    }
)


def build_prompt_session(client: ChatClient) -> PromptSession:
    return PromptSession(
        bottom_toolbar=lambda: build_status_toolbar(client.state),
        style=TOOLBAR_STYLE,
        refresh_interval=0.5,
    )


async def interactive_loop(client: ChatClient, view: TerminalView, session: PromptSession) -> None:
    """Read user lines until EOF; slash commands run locally, the rest go to the gateway."""
    print(render_status_box(client.state))

    with patch_stdout():
        while True:
            try:
                line = await session.prompt_async("> ")
            except EOFError:
                break
            except KeyboardInterrupt:
                print("", file=sys.stderr)
                continue

            view.finish_line()
            if not line.strip():
                continue

            if line.startswith("/"):
                await handle_slash_command(line, client)
                continue

            try:
                await client.send_user_message(line)
            except Exception as exc:  # noqa: BLE001
                logging.error("Send failed: %s", exc)
