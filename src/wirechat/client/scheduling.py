"""Timer scheduling seam shared by the reconnect and thinking timers."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """The slice of ``asyncio.AbstractEventLoop`` used for timers."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


def resolve_scheduler(loop: Scheduler | None) -> Scheduler:
    return loop if loop is not None else asyncio.get_running_loop()
