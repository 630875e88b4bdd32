"""
Utilities package for the purchase validator.

Exports shared logging helpers. Keep this package lightweight and free of
domain-specific logic.
"""

from purchase_validator.utils.logging import (
    configure_logging,
    get_logger,
    trace,
    trace_exception,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "trace",
    "trace_exception",
]
