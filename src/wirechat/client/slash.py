"""Client-side slash command registry and dispatch."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from wirechat.client.chat import ChatClient
from wirechat.client.status_box import render_providers, render_status_box

logger = logging.getLogger(__name__)

SlashHandler = Callable[[ChatClient, str], Awaitable[bool] | bool]


@dataclass
class SlashCommandDef:
    description: str
    hint: str
    handler: SlashHandler


SLASH_HANDLERS: dict[str, SlashCommandDef] = {}


def register_slash_command(
    name: str, description: str, hint: str
) -> Callable[[SlashHandler], SlashHandler]:
    """Decorator to register a slash command."""

    def _decorator(func: SlashHandler) -> SlashHandler:
        SLASH_HANDLERS[name] = SlashCommandDef(description=description, hint=hint, handler=func)
        return func

    return _decorator


@register_slash_command("/help", description="Show available slash commands.", hint="/help")
def _handle_help(_client: ChatClient, _argument: str) -> bool:
    print("Available slash commands:")
    for entry in SLASH_HANDLERS.values():
        print(f"{entry.hint:<24} - {entry.description}")
    return True


@register_slash_command(
    "/status", description="Refresh and show gateway status.", hint="/status"
)
async def _handle_status(client: ChatClient, _argument: str) -> bool:
    await client.ambient.refresh()
    print(render_status_box(client.state))
    return True


@register_slash_command("/reconnect", description="Drop the socket and connect again.", hint="/reconnect")
def _handle_reconnect(client: ChatClient, _argument: str) -> bool:
    client.reconnect()
    print("[reconnecting]")
    return True


@register_slash_command(
    "/clear", description="Clear the chat and start a new session.", hint="/clear"
)
def _handle_clear(client: ChatClient, _argument: str) -> bool:
    client.clear_chat()
    return True


@register_slash_command("/providers", description="List gateway providers.", hint="/providers")
async def _handle_providers(client: ChatClient, _argument: str) -> bool:
    await client.ambient.load_providers()
    print(render_providers(client.state))
    return True


@register_slash_command(
    "/provider", description="Select the provider for new messages.", hint="/provider <id>"
)
async def _handle_provider(client: ChatClient, argument: str) -> bool:
    parts = argument.split()
    if not parts:
        print("Usage: /provider <id> (use /providers to list them)")
        return True
    if not client.state.providers:
        await client.ambient.load_providers()
    print(f"[{await client.ambient.select_provider(parts[0])}]")
    return True


@register_slash_command(
    "/activate",
    description="Configure a provider with an API key and make it default.",
    hint="/activate <id> <api-key>",
)
async def _handle_activate(client: ChatClient, argument: str) -> bool:
    parts = argument.split()
    if len(parts) != 2:
        print("Usage: /activate <id> <api-key>")
        return True
    ok, message = await client.ambient.activate_provider(parts[0], parts[1])
    if ok:
        client.transcript.system(message)
    else:
        client.transcript.error(message)
    return True


@register_slash_command(
    "/token", description="Set the gateway API key and reconnect.", hint="/token <key>"
)
def _handle_token(client: ChatClient, argument: str) -> bool:
    key = argument.strip()
    if not key:
        print("Usage: /token <key>")
        return True
    client.set_token(key)
    print("[gateway key saved, reconnecting]")
    return True


@register_slash_command("/dismiss", description="Hide the update notice for this run.", hint="/dismiss")
def _handle_dismiss(client: ChatClient, _argument: str) -> bool:
    if not client.dismiss_update_notice():
        print("[no update notice]")
    return True


@register_slash_command("/exit", description="Exit the client.", hint="/exit")
@register_slash_command("/quit", description="Exit the client.", hint="/quit")
def _handle_exit(_client: ChatClient, _argument: str) -> bool:
    print("[exiting]")
    raise SystemExit(0)


async def handle_slash_command(line: str, client: ChatClient) -> bool:
    """Dispatch client-side slash commands, returning True if handled."""
    trimmed = line.strip()
    if not trimmed.startswith("/"):
        return False

    parts = trimmed.split(maxsplit=1)
    command = parts[0] if parts else ""
    argument = parts[1].strip() if len(parts) > 1 else ""

    entry = SLASH_HANDLERS.get(command)
    if entry is None:
        print(f"[unknown slash command: {command}]")
        _handle_help(client, "")
        return True

    try:
        result = entry.handler(client, argument)
        if asyncio.iscoroutine(result):
            return bool(await result)
        return bool(result)
    except SystemExit:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.error("Slash command failed (%s): %s", command, exc)
        return True
