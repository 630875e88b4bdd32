"""
Application username resolution.

The validation service can tie a purchase to an application-level account.
The username comes either from a fixed value or from a function of the
product being validated.
"""

from __future__ import annotations

from typing import Callable, Optional, Union

from purchase_validator.config import get_settings
from purchase_validator.domain.models import Product

UsernameSource = Union[None, str, Callable[[Product], Optional[str]]]


class ApplicationUsernameResolver:
    """Resolve the application username for a product, or None."""

    def __init__(self, source: UsernameSource = None) -> None:
        self.source = source

    @classmethod
    def from_settings(cls) -> "ApplicationUsernameResolver":
        return cls(get_settings().application_username)

    def __call__(self, product: Product) -> Optional[str]:
        if self.source is None:
            return None
        if isinstance(self.source, str):
            return self.source or None
        return self.source(product) or None


__all__ = ["ApplicationUsernameResolver", "UsernameSource"]
