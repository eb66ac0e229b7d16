"""Lightweight UI state shared across client components."""

from __future__ import annotations

from dataclasses import dataclass, field

from wirechat.client.connection import ConnectionState
from wirechat.client.gateway_api import GatewayStatus, ProviderInfo
from wirechat.client.thinking import ThinkingState


@dataclass
class SessionUIState:
    gateway_url: str
    connection: ConnectionState = ConnectionState.DISCONNECTED
    session_id: str | None = None
    thinking: ThinkingState = field(default_factory=ThinkingState)
    status: GatewayStatus | None = None
    status_checked: bool = False
    providers: list[ProviderInfo] = field(default_factory=list)
    providers_available: bool = False
    selected_provider: str | None = None
    auth_required: bool = False
    # Per-run only; a restarted client shows the notice again.
    dismissed_update: str | None = None

    def provider(self, provider_id: str | None) -> ProviderInfo | None:
        for info in self.providers:
            if info.id == provider_id:
                return info
        return None

    @property
    def update_notice(self) -> str | None:
        status = self.status
        if status is None or not status.update_available:
            return None
        if self.dismissed_update == status.latest_version_label:
            return None
        return f"Update available: v{status.version} -> v{status.latest_version_label}"
