"""Graph model of a graphical multiple testing procedure.

A :class:`GraphMCP` holds ``n`` elementary hypotheses (nodes), the initial
allocation of alpha over them (node weights) and the transition matrix that
describes how the local level of a rejected hypothesis is passed on to the
remaining ones. An :class:`EntangledGraphMCP` is a weighted mixture of
several such graphs over the same hypotheses.

Both classes are immutable; every transformation returns a new object.

References
----------
Bretz, F., Maurer, W., Brannath, W., Posch, M. (2009). A graphical approach
to sequentially rejective multiple test procedures. Statistics in Medicine,
28(4), 586-604.

Maurer, W., Bretz, F. (2013). Multiple testing in group sequential trials
using graphical approaches. Statistics in Biopharmaceutical Research, 5(4).
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple, Union

import numpy as np

from .. import config
from ..exceptions import ConfigurationError, DegenerateInputWarning


def _readonly(array: np.ndarray) -> np.ndarray:
    array = np.array(array, dtype=float, copy=True)
    array.setflags(write=False)
    return array


def remove_node(
    weights: np.ndarray, transition: np.ndarray, j: int
) -> Tuple[np.ndarray, np.ndarray]:
    """Apply the graphical rejection update for node ``j``.

    The weight of ``j`` is distributed along its outgoing edges and every
    path ``l -> j -> k`` is merged into a direct edge ``l -> k``:

        w_l  <- w_l + w_j * g_jl
        g_lk <- (g_lk + g_lj * g_jk) / (1 - g_lj * g_jl)

    Row and column ``j`` as well as the diagonal are zeroed. An
    indeterminate 0/0 edge update is set to 0.

    Returns
    -------
    weights, transition : np.ndarray
        New arrays; the inputs are not modified.
    """
    weights = np.asarray(weights, dtype=float)
    g = np.asarray(transition, dtype=float)

    new_weights = weights + weights[j] * g[j, :]
    new_weights[j] = 0.0

    numerator = g + np.outer(g[:, j], g[j, :])
    denominator = np.broadcast_to((1.0 - g[:, j] * g[j, :])[:, None], g.shape)
    with np.errstate(divide="ignore", invalid="ignore"):
        new_g = np.where(denominator != 0, numerator / denominator, 0.0)
    new_g[~np.isfinite(new_g)] = 0.0
    new_g[j, :] = 0.0
    new_g[:, j] = 0.0
    np.fill_diagonal(new_g, 0.0)
    return new_weights, new_g


# ============================================================
# Simple graph
# ============================================================


@dataclass(frozen=True, eq=False)
class GraphMCP:
    """Immutable graph of a graphical multiple test procedure.

    Attributes
    ----------
    names : tuple of str
        Node (hypothesis) names; default ``H1, ..., Hn``.
    weights : np.ndarray
        Initial node weights, non-negative, summing to at most one.
    transition : np.ndarray
        ``transition[i, j]`` is the fraction of the local level of node ``i``
        passed to node ``j`` once ``i`` is rejected. Row sums are expected to
        be at most one (not enforced).
    epsilon : np.ndarray
        Coefficients of symbolic epsilon edges; the effective weight of edge
        ``(i, j)`` is ``transition[i, j] + epsilon[i, j] * eps``.
    rejected : tuple of bool
        Nodes already rejected by a sequentially rejective step.
    """

    names: Tuple[str, ...]
    weights: np.ndarray
    transition: np.ndarray
    epsilon: Optional[np.ndarray] = None
    rejected: Optional[Tuple[bool, ...]] = None

    def __post_init__(self) -> None:
        transition = np.asarray(self.transition, dtype=float)
        if transition.ndim != 2 or transition.shape[0] != transition.shape[1]:
            raise ConfigurationError(
                f"Transition matrix has to be quadratic, got shape {transition.shape}."
            )
        n = transition.shape[0]

        names = tuple(str(name) for name in self.names)
        if len(names) != n:
            raise ConfigurationError(
                f"Expected {n} node names, got {len(names)}."
            )
        if len(set(names)) != n:
            raise ConfigurationError(f"Node names must be unique: {names}.")

        weights = np.asarray(self.weights, dtype=float).reshape(-1)
        if weights.shape[0] != n:
            raise ConfigurationError(
                f"Weights vector has length {weights.shape[0]}, "
                f"but the graph has {n} nodes."
            )
        if not np.all(np.isfinite(weights)) or np.any(weights < 0):
            raise ConfigurationError(
                f"Node weights must be finite and non-negative: {weights}."
            )
        if not np.all(np.isfinite(transition)):
            raise ConfigurationError("Transition matrix contains non-finite values.")

        if self.epsilon is None:
            epsilon = np.zeros((n, n), dtype=float)
        else:
            epsilon = np.asarray(self.epsilon, dtype=float)
            if epsilon.shape != (n, n):
                raise ConfigurationError(
                    f"Epsilon matrix has shape {epsilon.shape}, expected {(n, n)}."
                )

        if np.any(np.diag(transition) != 0) or np.any(np.diag(epsilon) != 0):
            warnings.warn(
                "Matrix has a diagonal not equal to zero. Loops are not allowed.",
                DegenerateInputWarning,
                stacklevel=3,
            )
            transition = transition.copy()
            epsilon = epsilon.copy()
            np.fill_diagonal(transition, 0.0)
            np.fill_diagonal(epsilon, 0.0)

        rejected = (
            (False,) * n
            if self.rejected is None
            else tuple(bool(flag) for flag in self.rejected)
        )
        if len(rejected) != n:
            raise ConfigurationError(
                f"Expected {n} rejection flags, got {len(rejected)}."
            )

        object.__setattr__(self, "names", names)
        object.__setattr__(self, "weights", _readonly(weights))
        object.__setattr__(self, "transition", _readonly(transition))
        object.__setattr__(self, "epsilon", _readonly(epsilon))
        object.__setattr__(self, "rejected", rejected)

    # ---------------- Accessors ----------------

    @property
    def n(self) -> int:
        return len(self.names)

    @property
    def has_epsilon_edges(self) -> bool:
        return bool(np.any(self.epsilon != 0))

    def index(self, node: Union[str, int]) -> int:
        """Position of ``node`` given by name or integer index."""
        if isinstance(node, (int, np.integer)) and not isinstance(node, bool):
            if not 0 <= node < self.n:
                raise IndexError(f"Node index {node} out of range for {self.n} nodes.")
            return int(node)
        try:
            return self.names.index(node)
        except ValueError:
            raise KeyError(f"Unknown node {node!r}; nodes are {self.names}.") from None

    def effective_transition(self, eps: float = 0.0) -> np.ndarray:
        """Numeric transition matrix with epsilon edges evaluated at ``eps``."""
        return self.transition + self.epsilon * eps

    # ---------------- Transformations ----------------

    def substitute_epsilon(self, eps: float = config.EPSILON) -> "GraphMCP":
        """Replace symbolic epsilon edges by the constant ``eps``.

        The result has no epsilon edges left, so substituting again returns an
        equal graph.
        """
        if not self.has_epsilon_edges:
            return self
        return GraphMCP(
            names=self.names,
            weights=self.weights,
            transition=self.effective_transition(eps),
            rejected=self.rejected,
        )

    def reject(self, node: Union[str, int]) -> "GraphMCP":
        """Reject ``node`` and update weights and edges of the remaining graph.

        Symbolic epsilon edges have to be substituted first
        (:meth:`substitute_epsilon`).
        """
        if self.has_epsilon_edges:
            raise ConfigurationError(
                "Graph has epsilon edges; call substitute_epsilon() before rejecting nodes."
            )
        j = self.index(node)
        weights, transition = remove_node(self.weights, self.transition, j)
        rejected = list(self.rejected)
        rejected[j] = True
        return GraphMCP(
            names=self.names,
            weights=weights,
            transition=transition,
            rejected=tuple(rejected),
        )

    def equals(self, other: object, atol: float = 1e-12) -> bool:
        """Value comparison (names, rejection flags, weights and edges)."""
        if not isinstance(other, GraphMCP):
            return False
        return (
            self.names == other.names
            and self.rejected == other.rejected
            and np.allclose(self.weights, other.weights, rtol=0, atol=atol)
            and np.allclose(self.transition, other.transition, rtol=0, atol=atol)
            and np.allclose(self.epsilon, other.epsilon, rtol=0, atol=atol)
        )

    def __repr__(self) -> str:
        return (
            f"GraphMCP(names={list(self.names)}, weights={self.weights.tolist()}, "
            f"rejected={[n for n, r in zip(self.names, self.rejected) if r]})"
        )


# ============================================================
# Entangled graph
# ============================================================


@dataclass(frozen=True, eq=False)
class EntangledGraphMCP:
    """Weighted mixture of graphs over the same hypotheses.

    Attributes
    ----------
    subgraphs : tuple of GraphMCP
        Component graphs; all share the same node names.
    split : np.ndarray
        Mixture weights of the components, non-negative and summing to one.
    """

    subgraphs: Tuple[GraphMCP, ...]
    split: np.ndarray = field(default=None)

    def __post_init__(self) -> None:
        subgraphs = tuple(self.subgraphs)
        if not subgraphs:
            raise ConfigurationError("An entangled graph needs at least one subgraph.")
        if not all(isinstance(g, GraphMCP) for g in subgraphs):
            raise ConfigurationError("Subgraphs of an entangled graph must be GraphMCP objects.")
        names = subgraphs[0].names
        for g in subgraphs[1:]:
            if g.names != names:
                raise ConfigurationError(
                    f"All subgraphs must share the same nodes: {names} != {g.names}."
                )

        k = len(subgraphs)
        split = (
            np.full(k, 1.0 / k)
            if self.split is None
            else np.asarray(self.split, dtype=float).reshape(-1)
        )
        if split.shape[0] != k:
            raise ConfigurationError(
                f"Split has length {split.shape[0]}, but there are {k} subgraphs."
            )
        if np.any(split < 0) or abs(split.sum() - 1.0) > config.SPLIT_TOLERANCE:
            raise ConfigurationError(
                f"Split weights must be non-negative and sum to 1, got {split.tolist()}."
            )

        object.__setattr__(self, "subgraphs", subgraphs)
        object.__setattr__(self, "split", _readonly(split))

    @property
    def names(self) -> Tuple[str, ...]:
        return self.subgraphs[0].names

    @property
    def n(self) -> int:
        return self.subgraphs[0].n

    @property
    def weights(self) -> np.ndarray:
        """Node weights of all subgraphs as a ``(k, n)`` matrix."""
        return np.vstack([g.weights for g in self.subgraphs])

    @property
    def rejected(self) -> Tuple[bool, ...]:
        return tuple(
            all(flags) for flags in zip(*(g.rejected for g in self.subgraphs))
        )

    @property
    def has_epsilon_edges(self) -> bool:
        return any(g.has_epsilon_edges for g in self.subgraphs)

    def index(self, node: Union[str, int]) -> int:
        return self.subgraphs[0].index(node)

    def substitute_epsilon(self, eps: float = config.EPSILON) -> "EntangledGraphMCP":
        if not self.has_epsilon_edges:
            return self
        return EntangledGraphMCP(
            subgraphs=tuple(g.substitute_epsilon(eps) for g in self.subgraphs),
            split=self.split,
        )

    def reject(self, node: Union[str, int]) -> "EntangledGraphMCP":
        """Reject ``node`` in every subgraph."""
        return EntangledGraphMCP(
            subgraphs=tuple(g.reject(node) for g in self.subgraphs),
            split=self.split,
        )

    def equals(self, other: object, atol: float = 1e-12) -> bool:
        if not isinstance(other, EntangledGraphMCP):
            return False
        return (
            len(self.subgraphs) == len(other.subgraphs)
            and np.allclose(self.split, other.split, rtol=0, atol=atol)
            and all(a.equals(b, atol) for a, b in zip(self.subgraphs, other.subgraphs))
        )

    def __repr__(self) -> str:
        return (
            f"EntangledGraphMCP(names={list(self.names)}, "
            f"k={len(self.subgraphs)}, split={self.split.tolist()})"
        )


Graph = Union[GraphMCP, EntangledGraphMCP]


def reject_nodes(graph: Graph, nodes: Iterable[Union[str, int]]) -> Graph:
    """Reject several nodes one after the other."""
    for node in nodes:
        graph = graph.reject(node)
    return graph


def default_names(n: int) -> Tuple[str, ...]:
    return tuple(f"H{i}" for i in range(1, n + 1))


__all__ = [
    "GraphMCP",
    "EntangledGraphMCP",
    "Graph",
    "remove_node",
    "reject_nodes",
    "default_names",
]
