"""Exceptions raised by the purchase validator."""

from __future__ import annotations


class PurchaseValidatorError(Exception):
    """Base class for purchase validator errors."""


class ValidatorConfigError(PurchaseValidatorError, ValueError):
    """The configured validator is neither absent, a URL string nor a callable."""


def format_transport_error(status: int, message: str) -> str:
    """Human-readable message for a failed validation call, e.g. "Error 404: Not Found"."""
    return f"Error {status}: {message}"


__all__ = ["PurchaseValidatorError", "ValidatorConfigError", "format_transport_error"]
