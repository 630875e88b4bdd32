"""
Request queue and debounce scheduler.

Requests accumulate in a QueueState. Every enqueue (re)arms a single timer, so
the queue is processed `delay` seconds after the last request of a burst. When
the timer fires, the handle is cleared and the queue is swapped for an empty
one before the captured requests are handed on; anything enqueued while they
are being dispatched starts a new window.

There is no cap on burst size or total wait: a steady stream of enqueues keeps
postponing the firing.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Protocol

from purchase_validator.domain.models import ValidationRequest
from purchase_validator.utils.logging import get_logger, trace

DEBOUNCE_DELAY_SECONDS = 1.5


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class TimerLoop(Protocol):
    """The subset of the asyncio loop API the scheduler relies on."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        ...


@dataclass
class QueueState:
    """Queued requests plus the pending timer, if any."""

    requests: List[ValidationRequest] = field(default_factory=list)
    timer: Optional[TimerHandle] = None

    def drain(self) -> List[ValidationRequest]:
        """Capture the queued requests and leave an empty queue behind."""
        captured, self.requests = self.requests, []
        return captured


class DebounceScheduler:
    """
    Debounce enqueues into batched calls of `on_fire(requests)`.

    Parameters
    ----------
    on_fire : callable
        Receives the captured requests, in enqueue order.
    delay : float
        Quiet period in seconds after the last enqueue.
    state : QueueState, optional
        Queue and timer storage; a fresh one is created when omitted.
    loop : TimerLoop, optional
        Timer source. Defaults to the running asyncio loop at enqueue time.
    """

    def __init__(
        self,
        on_fire: Callable[[List[ValidationRequest]], None],
        delay: float = DEBOUNCE_DELAY_SECONDS,
        state: Optional[QueueState] = None,
        loop: Optional[TimerLoop] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._on_fire = on_fire
        self.delay = delay
        self.state = state if state is not None else QueueState()
        self._loop = loop
        self._log = logger or get_logger(__name__)

    @property
    def pending(self) -> bool:
        """Whether a firing is scheduled."""
        return self.state.timer is not None

    @property
    def queued(self) -> int:
        return len(self.state.requests)

    def enqueue(self, request: ValidationRequest) -> None:
        """Queue a request and restart the debounce timer."""
        self.state.requests.append(request)
        self._schedule()

    def _schedule(self) -> None:
        trace(
            self._log,
            "Validation scheduled",
            queued=len(self.state.requests),
            delay_seconds=self.delay,
        )
        if self.state.timer is not None:
            self.state.timer.cancel()
        loop = self._loop or asyncio.get_running_loop()
        self.state.timer = loop.call_later(self.delay, self._fire)

    def _fire(self) -> None:
        self.state.timer = None
        requests = self.state.drain()
        trace(self._log, "Running queued validations", requests=len(requests))
        self._on_fire(requests)

    def flush(self) -> None:
        """Fire now instead of waiting for the timer."""
        if self.state.timer is not None:
            self.state.timer.cancel()
        self._fire()

    def cancel(self) -> None:
        """Disarm the timer; queued requests stay queued for the next enqueue or flush."""
        if self.state.timer is not None:
            self.state.timer.cancel()
            self.state.timer = None


__all__ = ["DEBOUNCE_DELAY_SECONDS", "DebounceScheduler", "QueueState", "TimerLoop"]
