"""Enumeration of the intersection hypotheses of a closed test.

Row ``r`` of :func:`enumerate_intersections` is the binary expansion of
``r + 1`` with the most significant bit in column 0. For three hypotheses
the order is::

    0 0 1
    0 1 0
    0 1 1
    1 0 0
    ...
    1 1 1

The last row is always the global intersection of all hypotheses.
"""

from __future__ import annotations

import numpy as np

from .. import config
from ..exceptions import ConfigurationError


def enumerate_intersections(n: int) -> np.ndarray:
    """All ``2**n - 1`` non-empty subsets of ``n`` hypotheses as 0/1 rows.

    Parameters
    ----------
    n : int
        Number of elementary hypotheses, ``1 <= n <= config.MAX_HYPOTHESES``.

    Returns
    -------
    np.ndarray
        Integer array of shape ``(2**n - 1, n)``.
    """
    n = int(n)
    if n < 1:
        raise ConfigurationError(f"Number of hypotheses must be positive, got {n}.")
    if n > config.MAX_HYPOTHESES:
        raise ConfigurationError(
            f"{n} hypotheses give {2**n - 1} intersection hypotheses; "
            f"the closed test is limited to {config.MAX_HYPOTHESES} hypotheses."
        )
    codes = np.arange(1, 2**n, dtype=np.int64)
    shifts = np.arange(n - 1, -1, -1, dtype=np.int64)
    return ((codes[:, None] >> shifts[None, :]) & 1).astype(np.int8)


def intersection_label(membership: np.ndarray, names) -> str:
    """Readable label such as ``{H1,H3}`` for one intersection row."""
    members = [str(names[i]) for i in np.flatnonzero(membership)]
    return "{" + ",".join(members) + "}"


__all__ = ["enumerate_intersections", "intersection_label"]
