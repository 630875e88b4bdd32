"""
Pytest configuration for the purchase validator.

Provides fixtures for:
- A manually advanced clock standing in for the asyncio timer
- A recording transport whose calls the test answers explicitly
- Settings isolation from the developer's environment
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from purchase_validator.config import get_settings

_ENV_VARS = (
    "VALIDATOR_URL",
    "VALIDATOR_DEBOUNCE_MS",
    "VALIDATOR_HTTP_TIMEOUT",
    "APPLICATION_USERNAME",
    "LOG_LEVEL",
    "LOG_JSON",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """
    Run every test against default settings, ignoring any local `.env`.
    """
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@dataclass
class FakeTimer:
    when: float
    callback: Callable[..., Any]
    args: Tuple[Any, ...] = ()
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeClock:
    """Implements `call_later`; time only moves when a test calls `advance`."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: List[FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback, args)
        self.timers.append(timer)
        return timer

    @property
    def armed(self) -> List[FakeTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = sorted((t for t in self.armed if t.when <= target), key=lambda t: t.when)
            if not due:
                break
            timer = due[0]
            self.now = timer.when
            timer.fired = True
            timer.callback(*timer.args)
        self.now = target


@dataclass
class PostCall:
    endpoint: str
    body: Dict[str, Any]
    on_success: Callable[[Any], None]
    on_failure: Callable[..., None]

    def succeed(self, response: Any) -> None:
        self.on_success(response)

    def fail(self, status: int, message: str, raw_body: Optional[str] = None) -> None:
        self.on_failure(status, message, raw_body)


@dataclass
class FakeTransport:
    """Records every post; `respond_with` answers synchronously when set."""

    calls: List[PostCall] = field(default_factory=list)
    respond_with: Optional[Callable[[PostCall], None]] = None

    def post(self, endpoint, body, on_success, on_failure) -> None:
        call = PostCall(endpoint, body, on_success, on_failure)
        self.calls.append(call)
        if self.respond_with is not None:
            self.respond_with(call)

    def call_for(self, product_id: str) -> PostCall:
        matches = [c for c in self.calls if c.body["id"] == product_id]
        assert len(matches) == 1, f"expected one call for {product_id}, got {len(matches)}"
        return matches[0]


class CallbackRecorder:
    """A validation callback that remembers every `(ok, data)` it receives."""

    def __init__(self) -> None:
        self.calls: List[Tuple[bool, Any]] = []

    def __call__(self, ok: bool, data: Any) -> None:
        self.calls.append((ok, data))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def recorder_factory() -> Callable[[], CallbackRecorder]:
    return CallbackRecorder
