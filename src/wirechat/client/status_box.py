"""Status UI rendering for client components."""

from __future__ import annotations

from prompt_toolkit.utils import get_cwidth  # type: ignore

from wirechat.client.connection import ConnectionState
from wirechat.client.session_state import SessionUIState

UNAVAILABLE = "unavailable"

_CONNECTION_LABELS = {
    ConnectionState.CONNECTED: "Connected",
    ConnectionState.CONNECTING: "Connecting",
    ConnectionState.DISCONNECTED: "Disconnected",
}


def format_session(session_id: str | None) -> str:
    if not session_id:
        return "none"
    if len(session_id) <= 8:
        return session_id
    return f"{session_id[:8]}..."


def format_provider(state: SessionUIState) -> str:
    if not state.selected_provider:
        return "default"
    info = state.provider(state.selected_provider)
    if info is None:
        return state.selected_provider
    if info.active:
        return f"{info.id} (active, default)" if info.is_default else f"{info.id} (active)"
    return f"{info.id} (not configured)"


def _format_channels(state: SessionUIState) -> str:
    if state.status is None:
        return "-"
    if not state.status.channels:
        return "None configured"
    return ", ".join(state.status.channels)


def build_status_toolbar(state: SessionUIState) -> list[tuple[str, str]]:
    connection = _CONNECTION_LABELS[state.connection]
    conn_style = "class:toolbar.ok" if state.connection is ConnectionState.CONNECTED else "class:toolbar.off"

    gap = ("", "  ")
    parts: list[tuple[str, str]] = [
        (conn_style, connection),
        gap,
        ("class:toolbar.label", "Session: "),
        ("class:toolbar.value", format_session(state.session_id)),
        gap,
        ("class:toolbar.label", "Provider: "),
        ("class:toolbar.value", format_provider(state)),
    ]
    if state.thinking.active:
        parts.extend([gap, ("class:toolbar.busy", f"working {state.thinking.elapsed_seconds}s")])
    notice = state.update_notice
    if notice:
        parts.extend([gap, ("class:toolbar.notice", notice)])
    parts.extend(
        [
            gap,
            ("class:toolbar.label", "/help: "),
            ("class:toolbar.value", "commands"),
        ]
    )
    return parts


def render_status_box(state: SessionUIState) -> str:
    if state.status is not None:
        api_status = state.status.status
        sessions = str(state.status.sessions)
    else:
        api_status = UNAVAILABLE if state.status_checked else "checking"
        sessions = "-"

    lines = [
        "wirechat",
        "",
        f"Gateway: {state.gateway_url}",
        f"Connection: {_CONNECTION_LABELS[state.connection]}",
        f"Session: {format_session(state.session_id)}",
        f"API status: {api_status}",
        f"Sessions: {sessions}",
        f"Channels: {_format_channels(state)}",
        f"Provider: {format_provider(state)}",
    ]
    if state.auth_required:
        lines.append("Auth: gateway requires an API key (/token <key>)")
    notice = state.update_notice
    if notice:
        lines.append(f"{notice} (/dismiss to hide)")

    content_width = max(_display_width(line) for line in lines)
    padded_lines = [
        f" {_center_to_width(line, content_width) if idx == 0 else _pad_to_width(line, content_width)} "
        for idx, line in enumerate(lines)
    ]

    width = content_width + 2
    green = "\x1b[32m"
    bold = "\x1b[1m"
    reset = "\x1b[0m"

    top = f"{green}┌{'─' * width}┐{reset}"
    body: list[str] = []
    for idx, line in enumerate(padded_lines):
        content = f"{bold}{line}{reset}" if idx == 0 else line
        body.append(f"{green}│{reset}{content}{green}│{reset}")
    bottom = f"{green}└{'─' * width}┘{reset}"
    return "\n".join([top, *body, bottom, ""])


def render_providers(state: SessionUIState) -> str:
    if not state.providers_available:
        return f"Providers: {UNAVAILABLE}"
    if not state.providers:
        return "Providers: none"
    lines = ["Providers:"]
    for info in state.providers:
        marker = "*" if info.id == state.selected_provider else " "
        flags = []
        if info.is_default:
            flags.append("default")
        if not info.active and info.needs_api_key:
            flags.append("needs api key")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        lines.append(f" {marker} {info.id:<16} {info.label}{suffix}")
    return "\n".join(lines)


def _display_width(text: str) -> int:
    return get_cwidth(text)


def _pad_to_width(text: str, width: int) -> str:
    padding = max(0, width - _display_width(text))
    if padding:
        return f"{text}{' ' * padding}"
    return text


def _center_to_width(text: str, width: int) -> str:
    text_width = _display_width(text)
    if text_width >= width:
        return _pad_to_width(text, width)
    padding = width - text_width
    left = padding // 2
    right = padding - left
    return f"{' ' * left}{text}{' ' * right}"
