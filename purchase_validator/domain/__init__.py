"""
Domain package for the purchase validator.

Exports the product, request, batch and outcome models plus the validator
configuration variant. Keep this package focused on data definitions.
"""

from purchase_validator.domain.models import (
    APPLICATION_USERNAME_KEY,
    CustomHandler,
    Failed,
    NoValidator,
    Ok,
    Product,
    ProductBatch,
    RemoteEndpoint,
    ValidationCallback,
    ValidationOutcome,
    ValidationRequest,
    ValidatorConfig,
    outcome_from,
    validator_from,
)

__all__ = [
    "APPLICATION_USERNAME_KEY",
    "CustomHandler",
    "Failed",
    "NoValidator",
    "Ok",
    "Product",
    "ProductBatch",
    "RemoteEndpoint",
    "ValidationCallback",
    "ValidationOutcome",
    "ValidationRequest",
    "ValidatorConfig",
    "outcome_from",
    "validator_from",
]
