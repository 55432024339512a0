"""Validation of the extra parameters handed to a weighted test.

Runs once, before any intersection hypothesis is evaluated, so that an
invalid configuration never wastes work on the closure.
"""

from __future__ import annotations

import logging
import warnings
from typing import Any, Mapping

from ..exceptions import ConfigurationError, UnusedParameterWarning
from ..weighted_tests.base import RESERVED_PARAMETERS, WeightedTest

logger = logging.getLogger(__name__)


def validate_test_parameters(
    test: WeightedTest,
    parameters: Mapping[str, Any],
    adjusted: bool,
) -> None:
    """Check supplied against declared test parameters.

    Parameters
    ----------
    test
        The weighted test strategy.
    parameters
        Extra keyword parameters supplied to the closed test.
    adjusted
        Whether adjusted p-values are requested.

    Raises
    ------
    ConfigurationError
        If the test is not a :class:`WeightedTest`, or a required parameter
        is missing.
    UnsupportedAdjustedPValueError
        If adjusted p-values are requested from a test that cannot compute
        them.

    Warns
    -----
    UnusedParameterWarning
        For every supplied parameter the test does not consume.
    """
    if not isinstance(test, WeightedTest):
        raise ConfigurationError(
            f"test must be a WeightedTest instance, got {type(test).__name__}; "
            "wrap plain functions with FunctionTest."
        )

    test.check_adjusted(adjusted)

    for name in parameters:
        if not test.consumes(name):
            warnings.warn(
                f"Parameter '{name}' will not be used by the {test.name}.",
                UnusedParameterWarning,
                stacklevel=3,
            )

    missing = sorted(
        name
        for name in test.required_parameters
        if name not in RESERVED_PARAMETERS and name not in parameters
    )
    if missing:
        raise ConfigurationError(
            f"The {test.name} requires parameter(s) "
            f"{', '.join(repr(m) for m in missing)}, which are missing."
        )

    logger.debug(
        "Validated parameters for %s: %s", test.name, sorted(parameters) or "none"
    )


__all__ = ["validate_test_parameters"]
