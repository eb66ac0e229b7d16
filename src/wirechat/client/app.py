"""Interactive gateway chat client entrypoint."""

from __future__ import annotations

import argparse
import logging

from wirechat import __version__
from wirechat.client.chat import ChatClient
from wirechat.client.display import TerminalView
from wirechat.client.repl import build_prompt_session, interactive_loop
from wirechat.client.session_store import SettingsStore
from wirechat.config import ClientConfig, build_config, load_env_files
from wirechat.log_utils import build_log_config, configure_logging, log_event
from wirechat.paths import settings_file

logger = logging.getLogger(__name__)


async def run_client(config: ClientConfig) -> int:
    view = TerminalView()

    def _invalidate() -> None:
        app = session.app
        if app.is_running:
            app.invalidate()

    client = ChatClient(config, SettingsStore(settings_file()), view=view, on_update=_invalidate)
    session = build_prompt_session(client)
    log_event(logger, "client.start", gateway=config.http_base, version=__version__)
    try:
        await client.boot()
        await interactive_loop(client, view, session)
        return 0
    except KeyboardInterrupt:
        return 130
    finally:
        await client.aclose()
        log_event(logger, "client.stop")


async def main(argv: list[str]) -> int:
    parser = argparse.ArgumentParser(description="Chat with a gateway over its WebSocket channel.")
    parser.add_argument(
        "--gateway",
        type=str,
        help="Gateway base URL (default: $WIRECHAT_GATEWAY_URL or http://127.0.0.1:3888).",
    )
    parser.add_argument("--token", type=str, help="Gateway API key for this run (not persisted).")
    parser.add_argument("--provider", type=str, help="Provider id to send with messages.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv[1:])

    load_env_files()
    configure_logging(build_log_config())
    config = build_config(gateway_url=args.gateway, token=args.token, provider=args.provider)
    return await run_client(config)
