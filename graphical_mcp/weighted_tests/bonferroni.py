"""Weighted Bonferroni test.

The intersection ``H_J`` is rejected at level alpha if ``p_j <= alpha * w_j``
for at least one ``j`` in ``J``; the adjusted p-value is ``min(p_j / w_j)``.
Hypotheses with weight 0 can never reject (``p / 0 = inf``).
"""

from __future__ import annotations

import numpy as np

from .base import TestContext, TestResult, WeightedTest


def weighted_bonferroni_pvalue(pvalues: np.ndarray, weights: np.ndarray) -> float:
    """``min(p / w)`` with zero-weight hypotheses ignored (``inf`` if none left)."""
    pvalues = np.asarray(pvalues, dtype=float)
    weights = np.asarray(weights, dtype=float)
    positive = weights > 0
    if not np.any(positive):
        return float("inf")
    return float(np.min(pvalues[positive] / weights[positive]))


class BonferroniTest(WeightedTest):
    """Weighted Bonferroni test of an intersection hypothesis.

    Examples
    --------
    >>> bonferroni_test(pvalues=[0.1, 0.2, 0.05], weights=[0.5, 0.5, 0])
    0.2
    >>> bonferroni_test(pvalues=[0.1, 0.2, 0.05], weights=[0.5, 0.5, 0], adjusted=False)
    False
    """

    name = "weighted Bonferroni test"

    def evaluate(self, context: TestContext) -> TestResult:
        if context.adjusted:
            return weighted_bonferroni_pvalue(context.pvalues, context.weights)
        return bool(
            np.any(
                (context.pvalues <= context.alpha * context.weights)
                & (context.weights > 0)
            )
        )


bonferroni_test = BonferroniTest()


__all__ = ["BonferroniTest", "bonferroni_test", "weighted_bonferroni_pvalue"]
