"""Weighted parametric test for (partially) known correlations.

Under the global null hypothesis the transformed p-values
``(Phi^{-1}(1 - p_1), ..., Phi^{-1}(1 - p_m))`` are assumed to follow a
multivariate normal distribution with correlation matrix ``correlation``.
This is the case for one-sided z-tests whose statistics are correlated
through overlapping observations (comparisons with a common control,
group-sequential analyses, ...).

Unknown correlations are marked with ``NaN``. The hypotheses split into
blocks given by the connected components of the known-correlation graph;
within a block all correlations must be known. The multivariate normal
probability is integrated per block and blocks are combined with the
Bonferroni inequality, so no integration runs over an unknown correlation.

Hypotheses with weight 0 are dropped before the test.

References
----------
Bretz F., Posch M., Glimm E., Klinglmueller F., Maurer W., Rohmeyer K.
(2011). Graphical approaches for multiple endpoint problems using weighted
Bonferroni, Simes or parametric tests. Biometrical Journal 53(6), 894-913.
"""

from __future__ import annotations

import logging
from typing import List

import networkx as nx
import numpy as np
from scipy.stats import multivariate_normal, norm

from .. import config
from ..exceptions import ConfigurationError
from .base import TestContext, TestResult, WeightedTest

logger = logging.getLogger(__name__)


def correlation_blocks(correlation: np.ndarray) -> List[np.ndarray]:
    """Blocks of hypotheses connected by known (non-NaN) correlations.

    Raises
    ------
    ConfigurationError
        If a block contains an unknown correlation, in which case the test of
        the intersection is not uniquely defined.
    """
    correlation = np.asarray(correlation, dtype=float)
    m = correlation.shape[0]
    known = ~np.isnan(correlation)
    graph = nx.Graph()
    graph.add_nodes_from(range(m))
    rows, cols = np.nonzero(np.triu(known, k=1))
    graph.add_edges_from(zip(rows.tolist(), cols.tolist()))

    blocks = []
    for component in nx.connected_components(graph):
        block = np.array(sorted(component), dtype=int)
        if not known[np.ix_(block, block)].all():
            raise ConfigurationError(
                "The correlation has to be specified for complete blocks; "
                f"hypotheses {block.tolist()} are connected by known correlations "
                "but some of their pairwise correlations are unknown."
            )
        blocks.append(block)
    return blocks


def _block_exceedance(upper: np.ndarray, correlation: np.ndarray) -> float:
    """``1 - P(Z_k <= upper_k for all k)`` for standard normal ``Z`` with ``correlation``."""
    if np.any(upper == -np.inf):
        return 1.0
    finite = np.isfinite(upper)
    if not np.any(finite):
        return 0.0
    upper = upper[finite]
    correlation = correlation[np.ix_(finite, finite)]
    if upper.size == 1:
        return float(norm.sf(upper[0]))
    probability = multivariate_normal(
        mean=np.zeros(upper.size),
        cov=correlation,
        allow_singular=True,
        seed=config.PARAMETRIC_SEED,
        abseps=config.PARAMETRIC_ABSEPS,
        releps=config.PARAMETRIC_RELEPS,
    ).cdf(upper)
    return float(min(max(1.0 - probability, 0.0), 1.0))


def weighted_parametric_pvalue(
    pvalues: np.ndarray, weights: np.ndarray, correlation: np.ndarray
) -> float:
    """Adjusted p-value of the weighted parametric test of one intersection.

    For every candidate ``i`` the level at which ``p_i`` sits exactly on the
    rejection boundary is

        e_i = sum_blocks P(exists k in block: p_k <= w_k p_i / w_i) / sum(w)

    and the adjusted p-value is ``min(min_i e_i, 1)``. When no correlation is
    known (``NaN`` off the diagonal) this reduces to the weighted Bonferroni
    test.
    """
    pvalues = np.asarray(pvalues, dtype=float)
    weights = np.asarray(weights, dtype=float)
    correlation = np.asarray(correlation, dtype=float)

    keep = weights > 0
    pvalues, weights = pvalues[keep], weights[keep]
    correlation = correlation[np.ix_(keep, keep)]
    if pvalues.size == 0:
        return 1.0

    total = weights.sum()
    blocks = correlation_blocks(correlation)
    logger.debug(
        "Parametric test: %d hypotheses in %d correlation blocks.",
        pvalues.size,
        len(blocks),
    )

    levels = np.empty(pvalues.size, dtype=float)
    for i in range(pvalues.size):
        exceedance = 0.0
        for block in blocks:
            local = weights[block] * pvalues[i] / weights[i]
            if block.size > 1:
                upper = norm.isf(np.minimum(1.0, local))
                exceedance += _block_exceedance(
                    upper, correlation[np.ix_(block, block)]
                )
            else:
                exceedance += float(local[0])
        levels[i] = exceedance / total

    return float(min(levels.min(), 1.0))


class ParametricTest(WeightedTest):
    """Weighted parametric test; requires the ``correlation`` parameter.

    ``correlation`` is the full ``(n, n)`` correlation matrix of all
    elementary hypotheses (``NaN`` for unknown entries); it is restricted to
    the intersection under test.

    Examples
    --------
    >>> unknown = np.full((3, 3), np.nan)
    >>> np.fill_diagonal(unknown, 1.0)
    >>> parametric_test(pvalues=[0.1, 0.2, 0.05], weights=[0.5, 0.5, 0],
    ...                 correlation=unknown)
    0.2
    """

    name = "weighted parametric test"
    required_parameters = frozenset({"correlation"})

    def evaluate(self, context: TestContext) -> TestResult:
        correlation = np.asarray(context.parameters["correlation"], dtype=float)
        if correlation.ndim != 2 or correlation.shape[0] != correlation.shape[1]:
            raise ConfigurationError(
                f"Correlation matrix has to be quadratic, got shape {correlation.shape}."
            )
        adjusted_p = weighted_parametric_pvalue(
            context.pvalues, context.weights, context.restrict(correlation)
        )
        if context.adjusted:
            return adjusted_p
        return bool(adjusted_p <= context.alpha)


parametric_test = ParametricTest()


__all__ = [
    "ParametricTest",
    "parametric_test",
    "weighted_parametric_pvalue",
    "correlation_blocks",
]
