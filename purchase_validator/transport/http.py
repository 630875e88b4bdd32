"""
httpx-backed transport for the validation service.

`post` is callback-style to match the dispatcher contract: it schedules the
request on the running event loop and returns immediately. Each scheduled
request ends in exactly one call to `on_success` or `on_failure`.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional, Set

import httpx

from purchase_validator.config import get_settings
from purchase_validator.transport.abstract import (
    AbstractValidationTransport,
    FailureHandler,
    SuccessHandler,
)
from purchase_validator.utils.logging import get_logger, trace

log = get_logger(__name__)

INVALID_JSON_MESSAGE = "Invalid JSON response"


class HttpxTransport(AbstractValidationTransport):
    """
    POST products as JSON with an `httpx.AsyncClient`.

    A client passed in is used as-is and left open; otherwise one is created
    lazily with the configured timeout and closed by `aclose()`.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout = httpx.Timeout(timeout_seconds or get_settings().http_timeout_seconds)
        self._in_flight: Set[asyncio.Task[None]] = set()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"Accept": "application/json"},
            )
        return self._client

    def post(
        self,
        endpoint: str,
        body: dict[str, Any],
        on_success: SuccessHandler,
        on_failure: FailureHandler,
    ) -> None:
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._post(endpoint, body, on_success, on_failure))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _post(
        self,
        endpoint: str,
        body: dict[str, Any],
        on_success: SuccessHandler,
        on_failure: FailureHandler,
    ) -> None:
        try:
            response = await self._get_client().post(endpoint, json=body)
        except Exception as exc:  # noqa: BLE001 - httpx.InvalidURL is not an HTTPError
            trace(
                log,
                "Validation request failed before a response",
                endpoint=endpoint,
                error=repr(exc),
            )
            on_failure(0, str(exc) or exc.__class__.__name__, None)
            return

        if response.status_code != 200:
            on_failure(response.status_code, response.reason_phrase, response.text)
            return

        try:
            parsed = response.json()
        except ValueError:
            on_failure(response.status_code, INVALID_JSON_MESSAGE, response.text)
            return
        on_success(parsed)

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def drain(self) -> None:
        """Wait until every scheduled request has reported back."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight))

    async def aclose(self) -> None:
        """Drain pending requests and close the client if this transport created it."""
        await self.drain()
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None


__all__ = ["HttpxTransport", "INVALID_JSON_MESSAGE"]
