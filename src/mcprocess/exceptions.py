r"""
mcprocess.exceptions
====================

Error taxonomy shared by every component of the package.

All errors derive from :class:`McProcessError`. The concrete classes also
inherit from the matching builtin so that callers catching :class:`ValueError`
or :class:`IndexError` keep working.
"""

from __future__ import annotations

__all__ = [
    "McProcessError",
    "ConfigurationError",
    "BoundsError",
    "DimensionMismatchError",
    "ExhaustionError",
]


class McProcessError(Exception):
    """Base class for all package errors."""


class ConfigurationError(McProcessError, ValueError):
    r"""
    Invalid construction or call parameters.

    Raised for non-positive sample sizes, degenerate histogram bounds
    (``max_bin <= min_bin``), confidence levels outside :math:`(0, 1)` and
    similar misconfigurations.
    """


class BoundsError(McProcessError, IndexError):
    """A time, path or bin index lies outside its valid range."""


class DimensionMismatchError(McProcessError, ValueError):
    """Elementwise operation on vectors of unequal length."""


class ExhaustionError(McProcessError, RuntimeError):
    """A bounded random source was asked for more draws than provisioned."""
