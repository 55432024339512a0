"""Local weights of the intersection hypotheses of a graph.

For an intersection hypothesis ``H_J`` every hypothesis outside ``J`` is
removed from the graph with the rejection update of
:func:`~graphical_mcp.graph.graph_model.remove_node`; the weights left on the
members of ``J`` are the local weights of the weighted test of ``H_J``. Each
intersection is computed from scratch.

The result layout follows the classic ``generateWeights`` matrix: one row per
intersection hypothesis (order of
:func:`~graphical_mcp.closure.subsets.enumerate_intersections`), the first
``n`` columns are membership indicators and the last ``n`` columns the local
weights.

References
----------
Bretz F., Posch M., Glimm E., Klinglmueller F., Maurer W., Rohmeyer K.
(2011). Graphical approaches for multiple endpoint problems using weighted
Bonferroni, Simes or parametric tests. Biometrical Journal 53(6), 894-913.
"""

from __future__ import annotations

import logging
import warnings
from functools import singledispatch
from typing import Optional

import numpy as np

from .. import config
from ..exceptions import DegenerateInputWarning
from ..graph.graph_model import EntangledGraphMCP, GraphMCP, remove_node
from .subsets import enumerate_intersections

logger = logging.getLogger(__name__)


def intersection_weights(
    membership: np.ndarray, transition: np.ndarray, weights: np.ndarray
) -> np.ndarray:
    """Local weights of one intersection hypothesis.

    Parameters
    ----------
    membership
        0/1 indicator of the hypotheses in the intersection.
    transition
        Numeric ``(n, n)`` transition matrix.
    weights
        Initial node weights.

    Returns
    -------
    np.ndarray
        Length ``n``; zero outside the intersection.
    """
    membership = np.asarray(membership).astype(bool)
    w = np.asarray(weights, dtype=float)
    g = np.asarray(transition, dtype=float)
    for j in np.flatnonzero(~membership):
        w, g = remove_node(w, g, j)
    w = np.where(membership, w, 0.0)
    w[~np.isfinite(w)] = 0.0
    return w


@singledispatch
def generate_weights(graph, eps: Optional[float] = None) -> np.ndarray:
    """Membership indicators and local weights of every intersection hypothesis.

    Parameters
    ----------
    graph : GraphMCP or EntangledGraphMCP
        Graph of the procedure. Epsilon edges are substituted with ``eps``
        (default ``config.EPSILON``) first.
    eps : float, optional
        Value for epsilon edges.

    Returns
    -------
    np.ndarray
        Array of shape ``(2**n - 1, 2n)``.
    """
    raise TypeError(
        "generate_weights expects a GraphMCP or EntangledGraphMCP, "
        f"got {type(graph).__name__}."
    )


@generate_weights.register
def _(graph: GraphMCP, eps: Optional[float] = None) -> np.ndarray:
    graph = graph.substitute_epsilon(config.EPSILON if eps is None else eps)
    membership = enumerate_intersections(graph.n)
    local = np.vstack(
        [
            intersection_weights(row, graph.transition, graph.weights)
            for row in membership
        ]
    )
    return np.hstack([membership.astype(float), local])


@generate_weights.register
def _(graph: EntangledGraphMCP, eps: Optional[float] = None) -> np.ndarray:
    n = graph.n
    result = np.zeros((2**n - 1, 2 * n), dtype=float)
    for share, subgraph in zip(graph.split, graph.subgraphs):
        result += share * generate_weights(subgraph, eps)
    # A mixture of indicator columns is fractional when the split is not
    # exactly one; membership is binary.
    result[:, :n] = (result[:, :n] > 0).astype(float)
    return result


def upscale_weights(weights: np.ndarray) -> np.ndarray:
    """Rescale each row of ``weights`` to sum to one.

    Rows summing to zero stay zero (0/0 is treated as 0) and are reported
    with a :class:`~graphical_mcp.exceptions.DegenerateInputWarning`.
    """
    weights = np.asarray(weights, dtype=float)
    totals = weights.sum(axis=1, keepdims=True)
    with np.errstate(divide="ignore", invalid="ignore"):
        scaled = weights / totals
    degenerate = ~np.isfinite(scaled).all(axis=1)
    if np.any(degenerate):
        warnings.warn(
            f"{int(degenerate.sum())} intersection hypotheses have total weight 0; "
            "their upscaled weights are set to 0.",
            DegenerateInputWarning,
            stacklevel=2,
        )
    scaled[~np.isfinite(scaled)] = 0.0
    return scaled


__all__ = ["intersection_weights", "generate_weights", "upscale_weights"]
