"""
Batch dispatcher: one validation call per product, one result for all waiters.

Given the requests captured by a scheduler firing, the dispatcher:

1. groups them by product id, keeping the most recently queued product
   snapshot and every callback in queue order;
2. makes sure the product carries an application username when one can be
   resolved, and carries no `applicationUsername` key at all otherwise;
3. POSTs each product once to the validation endpoint;
4. delivers the same `(ok, data)` pair to every callback of the batch.

Batches are independent. Nothing is retried: each failure is delivered to the
callbacks of the batch it belongs to.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from purchase_validator.domain.models import (
    APPLICATION_USERNAME_KEY,
    Failed,
    Product,
    ProductBatch,
    ValidationOutcome,
    ValidationRequest,
    outcome_from,
)
from purchase_validator.errors import format_transport_error
from purchase_validator.transport.abstract import UsernameResolver, ValidationTransport
from purchase_validator.utils.logging import get_logger, trace, trace_exception

MISSING_ENDPOINT_MESSAGE = "No validation endpoint configured"


def group_by_product(requests: Iterable[ValidationRequest]) -> Dict[str, ProductBatch]:
    """
    Merge requests by product id.

    Insertion order follows the first request for each id. A later request
    for the same id replaces the stored product and appends its callback.
    """
    batches: Dict[str, ProductBatch] = {}
    for request in requests:
        batch = batches.get(request.product.id)
        if batch is None:
            batches[request.product.id] = ProductBatch(
                product=request.product, callbacks=[request.callback]
            )
        else:
            batch.callbacks.append(request.callback)
            # assume the most up to date product comes last
            batch.product = request.product
    return batches


def ensure_application_username(product: Product, resolver: Optional[UsernameResolver]) -> None:
    """Fill `additionalData.applicationUsername` from the resolver, or drop the key."""
    if product.additional_data is None:
        product.additional_data = {}
    data = product.additional_data
    if not data.get(APPLICATION_USERNAME_KEY) and resolver is not None:
        data[APPLICATION_USERNAME_KEY] = resolver(product)
    if not data.get(APPLICATION_USERNAME_KEY):
        data.pop(APPLICATION_USERNAME_KEY, None)


def outcome_from_response(body: Any) -> ValidationOutcome:
    """Read `{ok, data}` from a service response; anything else counts as a rejection."""
    if not isinstance(body, dict):
        return Failed(None)
    return outcome_from(body.get("ok"), body.get("data"))


class BatchDispatcher:
    """
    Issue one outbound validation per product batch and fan out the outcome.

    Parameters
    ----------
    transport : ValidationTransport
        Callback-style POST primitive.
    endpoint : callable
        Returns the current validation endpoint, or None when the validator
        is no longer a remote endpoint.
    resolver : callable, optional
        Application username resolver.
    """

    def __init__(
        self,
        transport: ValidationTransport,
        endpoint: Callable[[], Optional[str]],
        resolver: Optional[UsernameResolver] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.transport = transport
        self._endpoint = endpoint
        self.resolver = resolver
        self._log = logger or get_logger(__name__)

    def dispatch_all(self, requests: List[ValidationRequest]) -> None:
        """Group the captured requests and dispatch each batch."""
        batches = group_by_product(requests)
        trace(
            self._log,
            "Dispatching validation batches",
            requests=len(requests),
            batches=len(batches),
        )
        for product_id, batch in batches.items():
            self.dispatch(product_id, batch)

    def dispatch(self, product_id: str, batch: ProductBatch) -> None:
        """Send one batch; any error is delivered to that batch's callbacks only."""
        endpoint = self._endpoint()
        if not endpoint:
            self._deliver(product_id, batch, Failed(MISSING_ENDPOINT_MESSAGE))
            return

        delivered = False

        def on_success(body: Any) -> None:
            nonlocal delivered
            if delivered:
                return
            delivered = True
            trace(self._log, "Validator success", product_id=product_id, response=body)
            self._deliver(product_id, batch, outcome_from_response(body))

        def on_failure(status: int, message: str, raw_body: Optional[str] = None) -> None:
            nonlocal delivered
            if delivered:
                return
            delivered = True
            full_message = format_transport_error(status, message)
            trace(
                self._log,
                "Validator failed",
                product_id=product_id,
                status=status,
                error=full_message,
                body=raw_body,
            )
            self._deliver(product_id, batch, Failed(full_message))

        try:
            ensure_application_username(batch.product, self.resolver)
            self.transport.post(endpoint, batch.product.to_payload(), on_success, on_failure)
        except Exception as exc:  # noqa: BLE001 - one batch must not break the others
            on_failure(0, str(exc) or exc.__class__.__name__)
            trace_exception(self._log, "Validation dispatch failed", product_id=product_id)

    def _deliver(self, product_id: str, batch: ProductBatch, outcome: ValidationOutcome) -> None:
        ok, data = outcome.as_tuple()
        for callback in batch.callbacks:
            try:
                callback(ok, data)
            except Exception:  # noqa: BLE001 - remaining waiters still get the result
                trace_exception(self._log, "Validation callback raised", product_id=product_id)


__all__ = [
    "BatchDispatcher",
    "MISSING_ENDPOINT_MESSAGE",
    "ensure_application_username",
    "group_by_product",
    "outcome_from_response",
]
