"""Weighted Simes test (Benjamini and Hochberg, 1997).

For every ``j`` in the intersection let ``J_j = {i : p_i <= p_j}``. The
intersection is rejected at level alpha if ``p_j <= alpha * sum(w_i, i in
J_j)`` for some ``j``; the adjusted p-value is
``min_j p_j / sum(w_i, i in J_j)``.

:class:`SimesOnSubsetsTest` applies the Simes test only to intersections that
lie completely inside one of a given list of subsets (for example endpoints
with positively dependent test statistics) and the Bonferroni test otherwise.

References
----------
Benjamini, Y., Hochberg, Y. (1997). Multiple hypotheses testing with
weights. Scandinavian Journal of Statistics, 24(3), 407-418.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from .base import TestContext, TestResult, WeightedTest
from .bonferroni import bonferroni_test


def weighted_simes_pvalue(pvalues: np.ndarray, weights: np.ndarray) -> float:
    """``min_j p_j / sum(w_i : p_i <= p_j)``; ``0/0`` counts as 0."""
    pvalues = np.asarray(pvalues, dtype=float)
    weights = np.asarray(weights, dtype=float)
    if pvalues.size == 0:
        return float("inf")
    # cumulative weight of all hypotheses with p-value <= p_j
    cumulative = np.array([weights[pvalues <= p].sum() for p in pvalues])
    with np.errstate(divide="ignore", invalid="ignore"):
        ratios = pvalues / cumulative
    ratios[np.isnan(ratios)] = 0.0
    return float(np.min(ratios))


class SimesTest(WeightedTest):
    """Weighted Simes test of an intersection hypothesis.

    Examples
    --------
    >>> simes_test(pvalues=[0.1, 0.2, 0.05], weights=[0.5, 0.5, 0])
    0.2
    """

    name = "weighted Simes test"

    def evaluate(self, context: TestContext) -> TestResult:
        adjusted_p = weighted_simes_pvalue(context.pvalues, context.weights)
        if context.adjusted:
            return adjusted_p
        return bool(adjusted_p <= context.alpha)


class SimesOnSubsetsTest(WeightedTest):
    """Simes test on intersections inside one of ``subsets``, Bonferroni otherwise.

    The required parameter ``subsets`` is a list of collections of hypothesis
    indices (0-based) or names, e.g. ``[["H1", "H2"], ["H3", "H4"]]``.
    """

    name = "Simes-on-subsets test"
    required_parameters = frozenset({"subsets"})

    def _simes_applies(self, context: TestContext) -> bool:
        for group in context.parameters["subsets"]:
            group = set(group)
            indices = {int(g) for g in group if isinstance(g, (int, np.integer))}
            labels = {g for g in group if isinstance(g, str)}
            if all(i in indices for i in context.subset) or all(
                name in labels for name in context.names
            ):
                return True
        return False

    def evaluate(self, context: TestContext) -> TestResult:
        if self._simes_applies(context):
            return simes_test.evaluate(context)
        return bonferroni_test.evaluate(context)

    def explain(self, context: TestContext, result: TestResult) -> Optional[str]:
        method = "Simes" if self._simes_applies(context) else "Bonferroni"
        return f"Subset {{{','.join(context.names)}}} -> {method}"


simes_test = SimesTest()
simes_on_subsets_test = SimesOnSubsetsTest()


__all__ = [
    "SimesTest",
    "SimesOnSubsetsTest",
    "simes_test",
    "simes_on_subsets_test",
    "weighted_simes_pvalue",
]
