"""
Transport package for the purchase validator.

Holds the collaborator interfaces consumed by the dispatcher and the httpx
adapter used to reach a remote validation service.
"""

from purchase_validator.transport.abstract import (
    AbstractValidationTransport,
    FailureHandler,
    PrepareStep,
    SuccessHandler,
    UsernameResolver,
    ValidationTransport,
)
from purchase_validator.transport.http import HttpxTransport

__all__ = [
    "AbstractValidationTransport",
    "FailureHandler",
    "HttpxTransport",
    "PrepareStep",
    "SuccessHandler",
    "UsernameResolver",
    "ValidationTransport",
]
