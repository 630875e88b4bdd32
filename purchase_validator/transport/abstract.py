"""
Interfaces for the collaborators the dispatcher consumes.

The dispatcher never talks to the network itself: it hands a JSON-ready body
to a ValidationTransport and gets called back with either the parsed response
or the failure details. Username resolution and the optional pre-validation
step are injected the same way.
"""

from __future__ import annotations

import abc
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from purchase_validator.domain.models import Product

SuccessHandler = Callable[[Any], None]
FailureHandler = Callable[[int, str, Optional[str]], None]
UsernameResolver = Callable[[Product], Optional[str]]


@runtime_checkable
class ValidationTransport(Protocol):
    """
    Callback-style POST primitive.

    Implementations must invoke exactly one of `on_success` or `on_failure`
    for every call to `post`.
    """

    def post(
        self,
        endpoint: str,
        body: dict[str, Any],
        on_success: SuccessHandler,
        on_failure: FailureHandler,
    ) -> None:
        """
        Send `body` to `endpoint`.

        Parameters
        ----------
        endpoint : str
            Validation service URL.
        body : dict
            Serialized product.
        on_success : callable
            Receives the parsed response body.
        on_failure : callable
            Receives `(status, message, raw_body)`.
        """
        ...


@runtime_checkable
class PrepareStep(Protocol):
    """Pre-validation hook (e.g. receipt refresh); must call `on_done()` once."""

    def __call__(self, product: Product, on_done: Callable[[], None]) -> None:
        ...


class AbstractValidationTransport(abc.ABC):
    """
    Optional ABC helper for class-based transports.
    """

    @abc.abstractmethod
    def post(
        self,
        endpoint: str,
        body: dict[str, Any],
        on_success: SuccessHandler,
        on_failure: FailureHandler,
    ) -> None:  # pragma: no cover - interface only
        """Send the body and report the result through one of the handlers."""
        raise NotImplementedError


__all__ = [
    "AbstractValidationTransport",
    "FailureHandler",
    "PrepareStep",
    "SuccessHandler",
    "UsernameResolver",
    "ValidationTransport",
]
