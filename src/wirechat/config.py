"""Client configuration resolved from CLI flags, environment, and .env files."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote, urlsplit, urlunsplit

from dotenv import load_dotenv

from wirechat.paths import config_dir

DEFAULT_GATEWAY_URL = "http://127.0.0.1:3888"
RECONNECT_DELAY_SECONDS = 2.0
THINKING_DEBOUNCE_SECONDS = 1.5
REQUEST_TIMEOUT_SECONDS = 10.0


@dataclass
class ClientConfig:
    gateway_url: str = DEFAULT_GATEWAY_URL
    token: str | None = None
    provider: str | None = None
    reconnect_delay: float = RECONNECT_DELAY_SECONDS
    thinking_debounce: float = THINKING_DEBOUNCE_SECONDS
    request_timeout: float = REQUEST_TIMEOUT_SECONDS

    @property
    def http_base(self) -> str:
        return self.gateway_url.rstrip("/")


def load_env_files(env_file: Path | None = None) -> None:
    """Load the per-user .env, then a local one; real environment wins."""
    load_dotenv(env_file or config_dir() / ".env", override=False)
    load_dotenv(override=False)


def build_config(
    *,
    gateway_url: str | None = None,
    token: str | None = None,
    provider: str | None = None,
) -> ClientConfig:
    """Resolve configuration: explicit arguments beat ``WIRECHAT_*`` env vars."""
    return ClientConfig(
        gateway_url=gateway_url or os.getenv("WIRECHAT_GATEWAY_URL") or DEFAULT_GATEWAY_URL,
        token=token or os.getenv("WIRECHAT_GATEWAY_TOKEN") or None,
        provider=provider or os.getenv("WIRECHAT_PROVIDER") or None,
    )


def build_ws_url(gateway_url: str, token: str | None = None) -> str:
    """Map the HTTP gateway base to its ``/ws`` endpoint, adding ``?token=`` when set."""
    parts = urlsplit(gateway_url.rstrip("/"))
    scheme = {"https": "wss", "http": "ws"}.get(parts.scheme, parts.scheme or "ws")
    path = f"{parts.path.rstrip('/')}/ws"
    query = f"token={quote(token, safe='')}" if token else ""
    return urlunsplit((scheme, parts.netloc, path, query, ""))
