"""Persisted key/value settings and the session identity built on them.

Each entry (session id, gateway token, selected provider) is an independent
opaque string stored in one small JSON file under the state directory, so a
restarted client picks up where the previous one left off.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from wirechat.log_utils import log_event

logger = logging.getLogger(__name__)

SESSION_ID_KEY = "session_id"
GATEWAY_TOKEN_KEY = "gateway_token"
PROVIDER_KEY = "provider"


@dataclass
class SettingsStore:
    """String entries persisted as a single JSON object."""

    path: Path
    _values: dict[str, str] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self._values = self._load()

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        if self._values.get(key) == value:
            return
        self._values[key] = value
        self._save()

    def remove(self, key: str) -> None:
        if self._values.pop(key, None) is not None:
            self._save()

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, exc)
            return {}
        if not isinstance(payload, dict):
            return {}
        return {str(k): v for k, v in payload.items() if isinstance(v, str)}

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".settings-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._values, fh, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class SessionStore:
    """Owns the opaque session identifier used for the resume handshake."""

    def __init__(self, settings: SettingsStore, *, on_change: Callable[[str | None], None] | None = None) -> None:
        self._settings = settings
        self._on_change = on_change

    def get(self) -> str | None:
        return self._settings.get(SESSION_ID_KEY) or None

    def set(self, session_id: str | None) -> None:
        if not session_id:
            self.clear()
            return
        changed = session_id != self.get()
        if changed:
            log_event(logger, "session.set", session_id=session_id)
        self._settings.set(SESSION_ID_KEY, session_id)
        if changed and self._on_change is not None:
            self._on_change(session_id)

    def clear(self) -> None:
        if self.get() is None:
            return
        log_event(logger, "session.clear")
        self._settings.remove(SESSION_ID_KEY)
        if self._on_change is not None:
            self._on_change(None)
