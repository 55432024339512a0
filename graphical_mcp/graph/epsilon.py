"""Parsing of symbolic epsilon edge weights.

Edges of a graphical procedure may carry an infinitesimally small weight
``epsilon`` (e.g. ``"\\epsilon"``, ``"1-\\epsilon"``, ``"0.5 + 2*eps"``). Such
an edge is stored as a pair ``(constant, coefficient)`` so that its numeric
value for a given epsilon is ``constant + coefficient * epsilon``.
"""

from __future__ import annotations

import re
from fractions import Fraction
from numbers import Real
from typing import Tuple, Union

import numpy as np

from ..exceptions import ConfigurationError

_NUMBER = r"(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?(?:\s*/\s*\d+(?:\.\d*)?)?"
_SYMBOL = r"(?:\\epsilon|epsilon|eps|ε)"
_TERM = re.compile(
    rf"\s*(?P<sign>[+-])?\s*(?P<number>{_NUMBER})?\s*\*?\s*(?P<symbol>{_SYMBOL})?\s*"
)

EdgeValue = Union[Real, str]


def _to_float(number: str) -> float:
    if "/" in number:
        num, den = (part.strip() for part in number.split("/"))
        return float(Fraction(num) / Fraction(den))
    return float(number)


def parse_edge_weight(value: EdgeValue) -> Tuple[float, float]:
    """Split an edge weight into its numeric part and epsilon coefficient.

    Parameters
    ----------
    value
        A real number or a linear expression in epsilon.

    Returns
    -------
    constant, coefficient : tuple of float

    Examples
    --------
    >>> parse_edge_weight("1-\\\\epsilon")
    (1.0, -1.0)
    >>> parse_edge_weight(0.25)
    (0.25, 0.0)
    """
    if isinstance(value, (Real, np.number)) and not isinstance(value, bool):
        return float(value), 0.0
    if not isinstance(value, str):
        raise ConfigurationError(f"Unsupported edge weight {value!r}.")

    text = value.strip()
    if not text:
        return 0.0, 0.0

    constant = 0.0
    coefficient = 0.0
    pos = 0
    first = True
    while pos < len(text):
        match = _TERM.match(text, pos)
        if match is None or match.end() == pos:
            raise ConfigurationError(f"Cannot parse edge weight {value!r}.")
        sign, number, symbol = match.group("sign", "number", "symbol")
        if number is None and symbol is None:
            raise ConfigurationError(f"Cannot parse edge weight {value!r}.")
        if sign is None and not first:
            raise ConfigurationError(f"Cannot parse edge weight {value!r}.")
        factor = -1.0 if sign == "-" else 1.0
        magnitude = _to_float(number) if number is not None else 1.0
        if symbol is None:
            constant += factor * magnitude
        else:
            coefficient += factor * magnitude
        pos = match.end()
        first = False

    return constant, coefficient


def parse_edge_matrix(matrix) -> Tuple[np.ndarray, np.ndarray]:
    """Parse a square array of edge weights into numeric and epsilon parts."""
    values = np.asarray(matrix, dtype=object)
    if values.ndim != 2:
        raise ConfigurationError(
            f"Transition matrix must be two-dimensional, got shape {values.shape}."
        )
    constant = np.zeros(values.shape, dtype=float)
    coefficient = np.zeros(values.shape, dtype=float)
    for (i, j), entry in np.ndenumerate(values):
        constant[i, j], coefficient[i, j] = parse_edge_weight(entry)
    return constant, coefficient


def format_edge_weight(constant: float, coefficient: float) -> Union[float, str]:
    """Inverse of :func:`parse_edge_weight` (numbers stay numbers)."""
    if coefficient == 0:
        return float(constant)
    eps = "\\epsilon" if coefficient in (1.0, -1.0) else f"{abs(coefficient):g}\\epsilon"
    if constant == 0:
        return eps if coefficient > 0 else f"-{eps}"
    return f"{constant:g}{'+' if coefficient > 0 else '-'}{eps}"


__all__ = ["parse_edge_weight", "parse_edge_matrix", "format_edge_weight"]
