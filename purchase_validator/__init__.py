"""
Purchase Validator - debounced, coalescing validation of in-app purchases.

Callers ask for a purchased product to be validated and get `(ok, data)` back
through a callback. Validation can be skipped (no validator), delegated to a
local function, or sent to a remote service. Remote validation is debounced and
coalesced: requests arriving close together are merged by product id, each
distinct product is POSTed once, and the single result is delivered to every
caller that asked for it.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from purchase_validator.config import Settings, get_settings
from purchase_validator.dispatcher import BatchDispatcher
from purchase_validator.domain.models import (
    CustomHandler,
    Failed,
    NoValidator,
    Ok,
    Product,
    RemoteEndpoint,
    ValidationOutcome,
    ValidationRequest,
)
from purchase_validator.errors import PurchaseValidatorError, ValidatorConfigError
from purchase_validator.runner import run_validations
from purchase_validator.scheduler import DEBOUNCE_DELAY_SECONDS, DebounceScheduler, QueueState
from purchase_validator.transport.http import HttpxTransport
from purchase_validator.utils.logging import configure_logging, get_logger
from purchase_validator.validator import PurchaseValidator

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Entry point
    "PurchaseValidator",
    "run_validations",
    # Core components
    "BatchDispatcher",
    "DEBOUNCE_DELAY_SECONDS",
    "DebounceScheduler",
    "QueueState",
    "HttpxTransport",
    # Domain
    "CustomHandler",
    "Failed",
    "NoValidator",
    "Ok",
    "Product",
    "RemoteEndpoint",
    "ValidationOutcome",
    "ValidationRequest",
    # Errors
    "PurchaseValidatorError",
    "ValidatorConfigError",
    # Logging
    "configure_logging",
    "get_logger",
]
