"""Trimmed weighted Simes test for two hypotheses, Bonferroni otherwise.

For an intersection of exactly two hypotheses ``H_1, H_2`` the trimmed
Simes test rejects if

* ``p_1 <= alpha w_1`` and ``p_2 <= 1 - alpha w_2``, or
* ``p_2 <= alpha w_2`` and ``p_1 <= 1 - alpha w_1``, or
* ``max(p_1, p_2) <= alpha``.

It controls the type I error for arbitrarily correlated one-sided test
statistics. Adjusted p-values are not defined for this test, so the closed
test has to run with ``adjusted=False``.

References
----------
Brannath, W., Bretz, F., Maurer, W., Sarkar, S. (2009). Trimmed weighted
Simes test for two one-sided hypotheses with arbitrarily correlated test
statistics. Biometrical Journal, 51(6), 885-898.
"""

from __future__ import annotations

from .base import TestContext, TestResult, WeightedTest
from .bonferroni import bonferroni_test


class TrimmedSimesTest(WeightedTest):
    """Trimmed Simes test for pairs of hypotheses, weighted Bonferroni otherwise."""

    name = "trimmed Simes test"
    supports_adjusted = False

    def evaluate(self, context: TestContext) -> TestResult:
        self.check_adjusted(context.adjusted)
        if context.size != 2:
            return bonferroni_test.evaluate(context)
        p1, p2 = context.pvalues
        w1, w2 = context.weights
        alpha = context.alpha
        return bool(
            (p1 <= alpha * w1 and p2 <= 1 - alpha * w2)
            or (p2 <= alpha * w2 and p1 <= 1 - alpha * w1)
            or max(p1, p2) <= alpha
        )


trimmed_simes_test = TrimmedSimesTest()


__all__ = ["TrimmedSimesTest", "trimmed_simes_test"]
