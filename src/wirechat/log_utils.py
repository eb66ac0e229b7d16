"""Logging setup for the client plus ``event key=value`` helpers.

The terminal belongs to the prompt, so records go to a rotating file in the
platform log directory; stderr output is opt-in.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
from dataclasses import dataclass, field
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping

from wirechat.paths import log_dir

DEFAULT_LOG_FILE = "client.log"
DEFAULT_LOG_MAX_BYTES = 2_000_000
DEFAULT_LOG_BACKUPS = 3
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_SCOPE: contextvars.ContextVar[Mapping[str, Any]] = contextvars.ContextVar("wirechat_log_scope", default={})
_LOG_FRAMES_ENABLED = False


@dataclass(frozen=True)
class LogConfig:
    log_file: Path
    level: int = logging.INFO
    stderr: bool = False
    log_frames: bool = False
    max_bytes: int = DEFAULT_LOG_MAX_BYTES
    backup_count: int = DEFAULT_LOG_BACKUPS
    # websockets and httpx are chatty below WARNING.
    logger_levels: Dict[str, int] = field(
        default_factory=lambda: {"websockets": logging.WARNING, "httpx": logging.WARNING}
    )


def _parse_level(value: str | None, default: int) -> int:
    if not value:
        return default
    if value.isdigit():
        return int(value)
    return logging._nameToLevel.get(value.upper(), default)


def parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_int(value: str | None, default: int) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


def build_log_config(*, log_file_name: str = DEFAULT_LOG_FILE, default_level: int = logging.INFO) -> LogConfig:
    """Read ``WIRECHAT_LOG_*`` overrides; the log dir is created on demand."""
    env_dir = os.getenv("WIRECHAT_LOG_DIR")
    directory = Path(env_dir) if env_dir else log_dir()
    directory.mkdir(parents=True, exist_ok=True)

    return LogConfig(
        log_file=directory / log_file_name,
        level=_parse_level(os.getenv("WIRECHAT_LOG_LEVEL"), default_level),
        stderr=parse_bool(os.getenv("WIRECHAT_LOG_STDERR"), False),
        log_frames=parse_bool(os.getenv("WIRECHAT_LOG_FRAMES"), False),
        max_bytes=_parse_int(os.getenv("WIRECHAT_LOG_MAX_BYTES"), DEFAULT_LOG_MAX_BYTES),
        backup_count=_parse_int(os.getenv("WIRECHAT_LOG_BACKUPS"), DEFAULT_LOG_BACKUPS),
    )


def configure_logging(config: LogConfig) -> None:
    """Replace any root handlers with the client's file (and optional stderr) handlers."""
    global _LOG_FRAMES_ENABLED
    _LOG_FRAMES_ENABLED = config.log_frames

    formatter = EventFormatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            config.log_file,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    ]
    if config.stderr:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setFormatter(formatter)
    logging.basicConfig(level=config.level, handlers=handlers, force=True)

    for name, level in config.logger_levels.items():
        logging.getLogger(name).setLevel(level)


def log_frames_enabled() -> bool:
    """Per-frame socket logging gate (``WIRECHAT_LOG_FRAMES``)."""
    return _LOG_FRAMES_ENABLED


@contextlib.contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Add fields to every record logged inside the block (and tasks it spawns)."""
    scope = dict(_SCOPE.get())
    scope.update((key, value) for key, value in fields.items() if value is not None)
    token = _SCOPE.set(scope)
    try:
        yield
    finally:
        _SCOPE.reset(token)


def log_event(logger: logging.Logger, event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    """Log a stable event name; ``fields`` are rendered after it as ``key=value``."""
    logger.log(level, event, extra={"event_fields": fields})


def _render(value: Any) -> str:
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"))
    text = str(value)
    if not text or any(ch.isspace() or ch in '="' for ch in text):
        return json.dumps(text)
    return text


class EventFormatter(logging.Formatter):
    """Standard formatting followed by the active scope and the event's fields."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = {**_SCOPE.get(), **getattr(record, "event_fields", {})}
        rendered = " ".join(
            f"{key}={_render(value)}" for key, value in sorted(fields.items()) if value is not None
        )
        return f"{line} {rendered}" if rendered else line
