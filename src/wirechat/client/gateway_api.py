"""REST calls to the gateway's status, providers, and auth-check endpoints."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from wirechat.config import REQUEST_TIMEOUT_SECONDS
from wirechat.errors import GatewayRequestError

logger = logging.getLogger(__name__)


class GatewayStatus(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: str = "unknown"
    sessions: int = 0
    channels: list[str] = Field(default_factory=list)
    version: str | None = None
    latest_version: str | None = None

    @property
    def update_available(self) -> bool:
        return bool(self.version and self.latest_version)

    @property
    def latest_version_label(self) -> str:
        return (self.latest_version or "").lstrip("v")


class ProviderInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    display_name: str = ""
    active: bool = False
    is_default: bool = False
    needs_api_key: bool = False

    @property
    def label(self) -> str:
        name = self.display_name or self.id
        return name if self.active else f"{name} (not configured)"


class GatewayAPI:
    """Thin async wrapper; every method raises GatewayRequestError on failure."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)
        self.set_token(token)

    def set_token(self, token: str | None) -> None:
        if token:
            self._client.headers["Authorization"] = f"Bearer {token}"
        else:
            self._client.headers.pop("Authorization", None)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def status(self) -> GatewayStatus:
        payload = await self._request("GET", "/api/status")
        return self._validate(GatewayStatus, payload, "/api/status")

    async def providers(self) -> list[ProviderInfo]:
        payload = await self._request("GET", "/api/providers")
        raw = payload.get("providers") or []
        if not isinstance(raw, list):
            raise GatewayRequestError("/api/providers", "providers is not a list")
        return [self._validate(ProviderInfo, item, "/api/providers") for item in raw if isinstance(item, dict)]

    async def select_provider(self, provider_id: str) -> None:
        await self._request(
            "POST",
            "/api/providers",
            json={"provider_type": provider_id, "set_default": True},
            require_object=False,
        )

    async def activate_provider(self, provider_id: str, api_key: str) -> None:
        await self._request(
            "POST",
            "/api/providers",
            json={"provider_type": provider_id, "api_key": api_key, "set_default": True},
            require_object=False,
        )

    async def auth_required(self) -> bool:
        payload = await self._request("GET", "/api/auth-check")
        return bool(payload.get("auth_required", False))

    async def _request(
        self, method: str, path: str, *, require_object: bool = True, **kwargs: Any
    ) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise GatewayRequestError(path, str(exc) or type(exc).__name__) from exc

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.is_error:
            message = payload.get("message") if isinstance(payload, dict) else None
            raise GatewayRequestError(
                path,
                str(message or f"HTTP {response.status_code}"),
                status_code=response.status_code,
            )
        if not isinstance(payload, dict):
            if not require_object:
                return {}
            raise GatewayRequestError(path, "response is not a JSON object", status_code=response.status_code)
        return payload

    @staticmethod
    def _validate(model: type[Any], payload: Any, path: str) -> Any:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise GatewayRequestError(path, f"unexpected response shape: {exc.error_count()} errors") from exc
