from __future__ import annotations

from wirechat.client.connection import ConnectionState
from wirechat.client.gateway_api import GatewayStatus, ProviderInfo
from wirechat.client.session_state import SessionUIState
from wirechat.client.status_box import (
    build_status_toolbar,
    format_provider,
    format_session,
    render_providers,
    render_status_box,
)
from wirechat.client.thinking import ThinkingState


def _toolbar_text(state: SessionUIState) -> str:
    return "".join(text for _style, text in build_status_toolbar(state))


def test_format_session_truncates_long_ids() -> None:
    assert format_session(None) == "none"
    assert format_session("abc") == "abc"
    assert format_session("0123456789abcdef") == "01234567..."


def test_toolbar_shows_connection_session_and_thinking() -> None:
    state = SessionUIState(
        gateway_url="http://gw",
        connection=ConnectionState.CONNECTED,
        session_id="0123456789abcdef",
        thinking=ThinkingState(active=True, elapsed_seconds=4),
    )

    text = _toolbar_text(state)

    assert text.startswith("Connected")
    assert "Session: 01234567..." in text
    assert "working 4s" in text


def test_toolbar_hides_idle_thinking() -> None:
    text = _toolbar_text(SessionUIState(gateway_url="http://gw"))

    assert text.startswith("Disconnected")
    assert "working" not in text


def test_status_box_before_and_after_refresh() -> None:
    state = SessionUIState(gateway_url="http://gw")
    assert "API status: checking" in render_status_box(state)

    state.status_checked = True
    assert "API status: unavailable" in render_status_box(state)

    state.status = GatewayStatus(status="ok", sessions=2, version="1.0.0", latest_version="v1.1.0")
    box = render_status_box(state)
    assert "API status: ok" in box
    assert "Channels: None configured" in box
    assert "Update available: v1.0.0 -> v1.1.0 (/dismiss to hide)" in box


def test_box_lines_share_one_width() -> None:
    state = SessionUIState(gateway_url="http://a-rather-long-gateway-host.example:3888")

    lines = [line for line in render_status_box(state).splitlines() if line]

    widths = {len(line) for line in lines[2:-1]}
    assert len(widths) == 1


def test_provider_labels() -> None:
    state = SessionUIState(
        gateway_url="http://gw",
        providers=[
            ProviderInfo(id="anthropic", active=True, is_default=True),
            ProviderInfo(id="gemini", display_name="Gemini", needs_api_key=True),
        ],
        providers_available=True,
        selected_provider="gemini",
    )

    assert format_provider(state) == "gemini (not configured)"
    listing = render_providers(state)
    assert " * gemini" in listing
    assert "Gemini (not configured) [needs api key]" in listing
    assert "anthropic" in listing and "[default]" in listing


def test_providers_unavailable() -> None:
    assert render_providers(SessionUIState(gateway_url="http://gw")) == "Providers: unavailable"
