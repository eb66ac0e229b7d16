"""Debounced "agent is working" signal with an elapsed-seconds counter."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from wirechat.client.scheduling import Scheduler, TimerHandle, resolve_scheduler
from wirechat.config import THINKING_DEBOUNCE_SECONDS

logger = logging.getLogger(__name__)

TICK_SECONDS = 1.0


@dataclass(frozen=True)
class ThinkingState:
    active: bool = False
    elapsed_seconds: int = 0


class ThinkingSignal:
    """Busy flag for the agent.

    ``start()`` holds it on until a reply settles it; ``mark_active()`` keeps it
    on only until no activity has been seen for the debounce window.
    """

    def __init__(
        self,
        *,
        on_change: Callable[[ThinkingState], None] | None = None,
        debounce: float = THINKING_DEBOUNCE_SECONDS,
        loop: Scheduler | None = None,
    ) -> None:
        self._on_change = on_change
        self._debounce = debounce
        self._loop = loop
        self._state = ThinkingState()
        self._idle_handle: TimerHandle | None = None
        self._tick_handle: TimerHandle | None = None

    @property
    def state(self) -> ThinkingState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state.active

    def start(self) -> None:
        """Turn on without an inactivity deadline; stays on until a reply settles it."""
        self._cancel_idle()
        self._start_counter()

    def mark_active(self) -> None:
        self._start_counter()
        self._cancel_idle()
        self._idle_handle = self._scheduler().call_later(self._debounce, self._expire)

    def mark_inactive(self) -> None:
        self._cancel_idle()
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None
        if self._state != ThinkingState():
            self._set_state(ThinkingState())

    def _start_counter(self) -> None:
        if self._tick_handle is None:
            self._set_state(ThinkingState(active=True))
            self._tick_handle = self._scheduler().call_later(TICK_SECONDS, self._tick)

    def _cancel_idle(self) -> None:
        if self._idle_handle is not None:
            self._idle_handle.cancel()
            self._idle_handle = None

    def _expire(self) -> None:
        self._idle_handle = None
        logger.debug("Thinking signal idle after %.1fs", self._debounce)
        self.mark_inactive()

    def _tick(self) -> None:
        self._tick_handle = self._scheduler().call_later(TICK_SECONDS, self._tick)
        self._set_state(ThinkingState(active=True, elapsed_seconds=self._state.elapsed_seconds + 1))

    def _set_state(self, state: ThinkingState) -> None:
        self._state = state
        if self._on_change is not None:
            self._on_change(state)

    def _scheduler(self) -> Scheduler:
        self._loop = resolve_scheduler(self._loop)
        return self._loop
