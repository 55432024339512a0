"""Conversions between graphs, transition matrices and networkx digraphs.

The hypotheses names of :func:`matrix_to_graph` are taken from ``names``,
else from the row labels, else from the column labels of a
:class:`pandas.DataFrame`, else ``H1, H2, ...``.
"""

from __future__ import annotations

import logging
import warnings
from typing import Optional, Sequence

import networkx as nx
import numpy as np
import pandas as pd

from ..exceptions import ConfigurationError
from .epsilon import format_edge_weight, parse_edge_matrix
from .graph_model import EntangledGraphMCP, Graph, GraphMCP, default_names

logger = logging.getLogger(__name__)


def _labels(index: pd.Index) -> Optional[Sequence[str]]:
    if isinstance(index, pd.RangeIndex):
        return None
    return [str(label) for label in index]


def matrix_to_graph(
    matrix,
    weights: Optional[Sequence[float]] = None,
    names: Optional[Sequence[str]] = None,
) -> GraphMCP:
    """Create a :class:`GraphMCP` from a transition matrix.

    Parameters
    ----------
    matrix
        Square array-like or DataFrame. Entries may be numbers or linear
        expressions in epsilon (``"\\epsilon"``, ``"1-\\epsilon"``).
    weights
        Initial node weights; defaults to ``1/n`` for every node.
    names
        Node names; see module docstring for the fallback order.

    Returns
    -------
    GraphMCP

    Raises
    ------
    ConfigurationError
        If the matrix is not square. A non-zero diagonal is set to zero with a
        :class:`~graphical_mcp.exceptions.DegenerateInputWarning`.

    Examples
    --------
    >>> m = np.full((4, 4), 1 / 3)
    >>> np.fill_diagonal(m, 0)
    >>> matrix_to_graph(m).names
    ('H1', 'H2', 'H3', 'H4')
    """
    if isinstance(matrix, pd.DataFrame):
        if names is None:
            names = _labels(matrix.index) or _labels(matrix.columns)
        values = matrix.to_numpy(dtype=object)
    else:
        values = np.asarray(matrix, dtype=object)

    if values.ndim != 2 or values.shape[0] != values.shape[1]:
        raise ConfigurationError(
            f"Matrix has to be quadratic, got shape {values.shape}."
        )
    n = values.shape[0]
    transition, epsilon = parse_edge_matrix(values)

    if weights is None:
        weights = np.full(n, 1.0 / n)
    if names is None:
        names = default_names(n)

    return GraphMCP(
        names=tuple(names),
        weights=np.asarray(weights, dtype=float),
        transition=transition,
        epsilon=epsilon,
    )


def graph_to_matrix(graph: Graph, symbolic: bool = False) -> pd.DataFrame:
    """Transition matrix of ``graph`` labelled by node names.

    With ``symbolic=True`` epsilon edges are rendered as strings such as
    ``"1-\\epsilon"``; otherwise only the numeric part is returned. For an
    entangled graph the matrix of the first subgraph is returned.
    """
    if isinstance(graph, EntangledGraphMCP):
        warnings.warn(
            "graph_to_matrix only returns the transition matrix of the first subgraph.",
            UserWarning,
            stacklevel=2,
        )
        graph = graph.subgraphs[0]
    elif not isinstance(graph, GraphMCP):
        raise TypeError(
            "graph_to_matrix expects a GraphMCP or EntangledGraphMCP, "
            f"got {type(graph).__name__}."
        )

    if symbolic and graph.has_epsilon_edges:
        values = np.empty((graph.n, graph.n), dtype=object)
        for (i, j), constant in np.ndenumerate(graph.transition):
            values[i, j] = format_edge_weight(constant, graph.epsilon[i, j])
    else:
        values = np.array(graph.transition, copy=True)
    return pd.DataFrame(values, index=list(graph.names), columns=list(graph.names))


def graph_to_digraph(graph: GraphMCP) -> nx.DiGraph:
    """Convert ``graph`` to a :class:`networkx.DiGraph`.

    Nodes carry ``weight`` and ``rejected``; every edge with a non-zero
    numeric or epsilon part carries ``weight`` and ``epsilon``.
    """
    digraph = nx.DiGraph()
    for name, weight, rejected in zip(graph.names, graph.weights, graph.rejected):
        digraph.add_node(name, weight=float(weight), rejected=bool(rejected))
    rows, cols = np.nonzero((graph.transition != 0) | (graph.epsilon != 0))
    for i, j in zip(rows, cols):
        digraph.add_edge(
            graph.names[i],
            graph.names[j],
            weight=float(graph.transition[i, j]),
            epsilon=float(graph.epsilon[i, j]),
        )
    return digraph


def digraph_to_graph(digraph: nx.DiGraph) -> GraphMCP:
    """Inverse of :func:`graph_to_digraph`.

    Missing node weights default to 0, missing edge weights to 0.
    """
    names = [str(node) for node in digraph.nodes]
    position = {node: i for i, node in enumerate(digraph.nodes)}
    n = len(names)
    transition = np.zeros((n, n), dtype=float)
    epsilon = np.zeros((n, n), dtype=float)
    for u, v, data in digraph.edges(data=True):
        transition[position[u], position[v]] = float(data.get("weight", 0.0))
        epsilon[position[u], position[v]] = float(data.get("epsilon", 0.0))
    weights = [float(digraph.nodes[node].get("weight", 0.0)) for node in digraph.nodes]
    rejected = [bool(digraph.nodes[node].get("rejected", False)) for node in digraph.nodes]
    return GraphMCP(
        names=tuple(names),
        weights=weights,
        transition=transition,
        epsilon=epsilon,
        rejected=tuple(rejected),
    )


def bonferroni_holm(
    n: int,
    weights: Optional[Sequence[float]] = None,
    names: Optional[Sequence[str]] = None,
) -> GraphMCP:
    """Complete graph with equal edge weights ``1/(n-1)``.

    Tested with the weighted Bonferroni test, the closed procedure is the
    (weighted) Holm procedure.
    """
    if n < 1:
        raise ConfigurationError(f"Number of hypotheses must be positive, got {n}.")
    transition = np.zeros((n, n), dtype=float)
    if n > 1:
        transition[:] = 1.0 / (n - 1)
        np.fill_diagonal(transition, 0.0)
    logger.debug("Built Bonferroni-Holm graph with %d nodes.", n)
    return matrix_to_graph(transition, weights=weights, names=names)


__all__ = [
    "matrix_to_graph",
    "graph_to_matrix",
    "graph_to_digraph",
    "digraph_to_graph",
    "bonferroni_holm",
]
