"""Errors and warnings raised by the closed testing engine.

Configuration problems are fatal and are raised before any intersection
hypothesis is evaluated. Degenerate but repairable input is fixed in place
and reported through :mod:`warnings`.
"""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid graph, p-values or test configuration."""


class UnsupportedAdjustedPValueError(ConfigurationError):
    """Adjusted p-values were requested from a test that cannot produce them."""


class DegenerateInputWarning(UserWarning):
    """Input was repaired (non-zero diagonal, 0/0 weight normalisation)."""


class UnusedParameterWarning(UserWarning):
    """A supplied test parameter is not consumed by the selected test."""


__all__ = [
    "ConfigurationError",
    "UnsupportedAdjustedPValueError",
    "DegenerateInputWarning",
    "UnusedParameterWarning",
]
