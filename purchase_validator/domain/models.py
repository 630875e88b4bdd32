"""
Domain models for the purchase validator.

Defines the product record sent to the validation service, the queued
request and per-product batch shapes used by the scheduler and dispatcher,
the validation outcome, and the validator configuration variant.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from purchase_validator.errors import ValidatorConfigError

APPLICATION_USERNAME_KEY = "applicationUsername"

ValidationCallback = Callable[[bool, Any], None]


class Product(BaseModel):
    """
    A purchased product awaiting validation.

    Only `id` and `additional_data` are interpreted here. Every other field
    (price, alias, store-specific `transaction`, ...) travels to the
    validation service untouched.
    """

    id: str = Field(..., description="Stable product identifier.")
    additional_data: Optional[Dict[str, Any]] = Field(
        None,
        alias="additionalData",
        description="Free-form data sent along with the product.",
    )
    transaction: Any = Field(
        None, description="Store-dependent transaction details."
    )

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
    )

    def to_payload(self) -> Dict[str, Any]:
        """Serialize the product for the wire, omitting declared fields never set."""
        payload = self.model_dump(mode="json", by_alias=True)
        for name, info in type(self).model_fields.items():
            if name not in self.model_fields_set:
                payload.pop(info.alias or name, None)
        return payload


@dataclass(frozen=True)
class ValidationRequest:
    """A single caller's request, consumed once by the next scheduler firing."""

    product: Product
    callback: ValidationCallback


@dataclass
class ProductBatch:
    """All requests queued for one product id within a firing."""

    product: Product
    callbacks: List[ValidationCallback] = field(default_factory=list)


@dataclass(frozen=True)
class Ok:
    """Validation succeeded; `data` is what the service (or bypass) returned."""

    data: Any = None
    ok: ClassVar[bool] = True

    def as_tuple(self) -> Tuple[bool, Any]:
        return (True, self.data)


@dataclass(frozen=True)
class Failed:
    """Validation rejected or the call failed; `data` is the payload or message."""

    data: Any = None
    ok: ClassVar[bool] = False

    def as_tuple(self) -> Tuple[bool, Any]:
        return (False, self.data)


ValidationOutcome = Union[Ok, Failed]


def outcome_from(ok: Any, data: Any) -> ValidationOutcome:
    """Build an outcome from a callback-style `(ok, data)` pair."""
    return Ok(data) if ok else Failed(data)


@dataclass(frozen=True)
class NoValidator:
    """No validator configured: every product is accepted as-is."""


@dataclass(frozen=True)
class RemoteEndpoint:
    """Products are POSTed, coalesced, to this address."""

    address: str


@dataclass(frozen=True)
class CustomHandler:
    """A user function `(product, callback)` takes over validation entirely."""

    handler: Callable[[Product, ValidationCallback], None]


ValidatorConfig = Union[NoValidator, RemoteEndpoint, CustomHandler]


def validator_from(value: Any) -> ValidatorConfig:
    """
    Convert a raw validator setting into a ValidatorConfig.

    Accepts None or "" (no validator), a URL string, a callable, or an
    existing ValidatorConfig.
    """
    if isinstance(value, (NoValidator, RemoteEndpoint, CustomHandler)):
        return value
    if value is None or value == "":
        return NoValidator()
    if isinstance(value, str):
        return RemoteEndpoint(value)
    if callable(value):
        return CustomHandler(value)
    raise ValidatorConfigError(
        f"Unsupported validator {value!r}: expected None, a URL string or a callable."
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
