"""Gateway status, provider, and auth-check refreshes feeding the UI state.

Failures here only degrade the displayed status to "unavailable"; they never
reach the connection or session logic.
"""

from __future__ import annotations

import asyncio
import logging

from wirechat.client.gateway_api import GatewayAPI
from wirechat.client.session_state import SessionUIState
from wirechat.client.session_store import PROVIDER_KEY, SettingsStore
from wirechat.errors import GatewayRequestError
from wirechat.log_utils import log_event

logger = logging.getLogger(__name__)


class AmbientStatus:
    def __init__(self, api: GatewayAPI, state: SessionUIState, settings: SettingsStore) -> None:
        self._api = api
        self._state = state
        self._settings = settings
        self._tasks: set[asyncio.Task[None]] = set()

    def schedule_refresh(self) -> None:
        """Fire-and-forget refresh, safe to call from socket callbacks."""
        task = asyncio.get_running_loop().create_task(self.refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def refresh(self) -> None:
        try:
            self._state.status = await self._api.status()
        except GatewayRequestError as exc:
            log_event(logger, "status.unavailable", level=logging.WARNING, error=str(exc))
            self._state.status = None
        self._state.status_checked = True
        await self.load_providers()

    async def load_providers(self) -> None:
        try:
            providers = await self._api.providers()
        except GatewayRequestError as exc:
            log_event(logger, "providers.unavailable", level=logging.WARNING, error=str(exc))
            self._state.providers = []
            self._state.providers_available = False
            return
        self._state.providers = providers
        self._state.providers_available = True

        default = next((p.id for p in providers if p.is_default), None)
        saved = self._state.selected_provider or self._settings.get(PROVIDER_KEY) or default
        if saved and self._state.provider(saved) is not None:
            self._remember_provider(saved)

    async def select_provider(self, provider_id: str) -> str:
        """Select a provider for outgoing messages; active ones also become the gateway default."""
        info = self._state.provider(provider_id)
        if info is None:
            return f"Unknown provider: {provider_id}"
        self._remember_provider(provider_id)
        if not info.active:
            hint = " Use /activate <id> <api-key> to configure it." if info.needs_api_key else ""
            return f"Provider {provider_id} selected (not configured).{hint}"
        try:
            await self._api.select_provider(provider_id)
        except GatewayRequestError as exc:
            return f"Provider {provider_id} selected locally; gateway default unchanged ({exc.message})."
        await self.load_providers()
        return f"Provider {provider_id} selected."

    async def activate_provider(self, provider_id: str, api_key: str) -> tuple[bool, str]:
        try:
            await self._api.activate_provider(provider_id, api_key)
        except GatewayRequestError as exc:
            log_event(logger, "provider.activate_failed", level=logging.WARNING, provider=provider_id)
            if exc.status_code is not None:
                return False, exc.message
            return False, f"Failed to activate provider: {exc.message}"
        log_event(logger, "provider.activated", provider=provider_id)
        self._remember_provider(provider_id)
        await self.load_providers()
        return True, f"Provider {provider_id} activated."

    async def check_auth(self) -> bool:
        try:
            required = await self._api.auth_required()
        except GatewayRequestError as exc:
            log_event(logger, "auth_check.unavailable", level=logging.WARNING, error=str(exc))
            required = False
        self._state.auth_required = required
        return required

    async def aclose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _remember_provider(self, provider_id: str) -> None:
        self._state.selected_provider = provider_id
        self._settings.set(PROVIDER_KEY, provider_id)
