"""
Entry point for purchase validation.

`PurchaseValidator.validate(product, callback)` routes a product according to
the configured validator:

- no validator: the product is accepted immediately, `callback(True, product)`;
- a pre-validation step is set and has not run yet for this call: run it, then
  come back with `is_prepared=True`;
- a URL: queue the product; the debounce scheduler and batch dispatcher call
  back later, once per product id, shared by every waiter;
- a function: hand over `(product, callback)` to it.

Every call ends in exactly one callback invocation (barring process exit);
queued requests cannot be withdrawn.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from purchase_validator.config import get_settings
from purchase_validator.dispatcher import BatchDispatcher
from purchase_validator.domain.models import (
    CustomHandler,
    NoValidator,
    Product,
    RemoteEndpoint,
    ValidationCallback,
    ValidationOutcome,
    ValidationRequest,
    ValidatorConfig,
    outcome_from,
    validator_from,
)
from purchase_validator.scheduler import DebounceScheduler, QueueState, TimerLoop
from purchase_validator.transport.abstract import (
    PrepareStep,
    UsernameResolver,
    ValidationTransport,
)
from purchase_validator.transport.http import HttpxTransport
from purchase_validator.username import ApplicationUsernameResolver
from purchase_validator.utils.logging import get_logger

log = get_logger(__name__)


class PurchaseValidator:
    """
    Validate purchased products against a local function or a remote service.

    Parameters
    ----------
    validator : None | str | callable | ValidatorConfig
        Initial validator. Can be reassigned at any time via `.validator`.
    transport : ValidationTransport, optional
        Used for remote endpoints. Defaults to an HttpxTransport.
    resolver : callable, optional
        Application username resolver. Defaults to the configured username.
    prepare : PrepareStep, optional
        Runs once before each validation (e.g. to refresh receipts).
    delay : float, optional
        Debounce delay in seconds. Defaults to the configured value.
    state : QueueState, optional
        Queue storage for the scheduler.
    loop : TimerLoop, optional
        Timer source for the scheduler.
    """

    def __init__(
        self,
        validator: Any = None,
        transport: Optional[ValidationTransport] = None,
        resolver: Optional[UsernameResolver] = None,
        prepare: Optional[PrepareStep] = None,
        delay: Optional[float] = None,
        state: Optional[QueueState] = None,
        loop: Optional[TimerLoop] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._log = logger or log
        self._validator: ValidatorConfig = validator_from(validator)
        self.prepare = prepare
        self.transport = transport if transport is not None else HttpxTransport()
        self.dispatcher = BatchDispatcher(
            transport=self.transport,
            endpoint=self._current_endpoint,
            resolver=resolver if resolver is not None else ApplicationUsernameResolver.from_settings(),
            logger=self._log,
        )
        self.scheduler = DebounceScheduler(
            on_fire=self.dispatcher.dispatch_all,
            delay=delay if delay is not None else get_settings().debounce_seconds,
            state=state,
            loop=loop,
            logger=self._log,
        )

    @classmethod
    def from_settings(cls, **kwargs: Any) -> "PurchaseValidator":
        """Build a validator pointed at the configured VALIDATOR_URL."""
        return cls(validator=get_settings().validator_url, **kwargs)

    @property
    def validator(self) -> ValidatorConfig:
        return self._validator

    @validator.setter
    def validator(self, value: Any) -> None:
        self._validator = validator_from(value)

    def _current_endpoint(self) -> Optional[str]:
        if isinstance(self._validator, RemoteEndpoint):
            return self._validator.address
        return None

    def validate(
        self, product: Product, callback: ValidationCallback, is_prepared: bool = False
    ) -> None:
        """Validate `product`, reporting `(ok, data)` through `callback`."""
        config = self._validator
        if isinstance(config, NoValidator):
            callback(True, product)
            return

        if self.prepare is not None and is_prepared is not True:
            self.prepare(product, lambda: self.validate(product, callback, True))
            return

        if isinstance(config, RemoteEndpoint):
            self.scheduler.enqueue(ValidationRequest(product=product, callback=callback))
        elif isinstance(config, CustomHandler):
            config.handler(product, callback)

    async def validate_async(self, product: Product) -> ValidationOutcome:
        """Await the outcome of `validate` for one product."""
        future: asyncio.Future[ValidationOutcome] = asyncio.get_running_loop().create_future()

        def _complete(ok: Any, data: Any) -> None:
            if not future.done():
                future.set_result(outcome_from(ok, data))

        self.validate(product, _complete)
        return await future

    def flush(self) -> None:
        """Dispatch queued requests now rather than after the debounce delay."""
        self.scheduler.flush()


__all__ = ["PurchaseValidator"]
