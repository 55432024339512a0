"""Closed testing of a graphical multiple test procedure.

:func:`closed_test` evaluates a weighted test on every intersection
hypothesis of the closure and applies the closure principle:

* an elementary hypothesis ``H_i`` is rejected iff every intersection
  hypothesis containing ``H_i`` is rejected;
* the adjusted p-value of ``H_i`` is the maximum adjusted p-value over all
  intersection hypotheses containing ``H_i`` (clipped to 1).

Pipeline
--------

    Step 1: validate p-values, alpha and test parameters
    Step 2: substitute epsilon edges
    Step 3: local weights of all 2**n - 1 intersections (optionally upscaled)
    Step 4: weighted test per intersection (joblib map)
    Step 5: closure principle, rejected graph, result table

References
----------
Marcus, R., Peritz, E., Gabriel, K. R. (1976). On closed testing procedures
with special reference to ordered analysis of variance. Biometrika 63(3).

Bretz F., Posch M., Glimm E., Klinglmueller F., Maurer W., Rohmeyer K.
(2011). Graphical approaches for multiple endpoint problems using weighted
Bonferroni, Simes or parametric tests. Biometrical Journal 53(6), 894-913.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Optional, Tuple

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from .. import config
from ..exceptions import ConfigurationError
from ..graph.graph_model import EntangledGraphMCP, Graph, GraphMCP, reject_nodes
from ..weighted_tests.base import TestContext, TestResult, WeightedTest
from .parameters import validate_test_parameters
from .subsets import intersection_label
from .weights import generate_weights, upscale_weights

logger = logging.getLogger(__name__)


# =============================================================================
# Result objects
# =============================================================================


@dataclass(frozen=True)
class SubsetExplanation:
    """Diagnostic record for one intersection hypothesis (verbose runs)."""

    names: Tuple[str, ...]
    pvalues: Tuple[float, ...]
    weights: Tuple[float, ...]
    rejected: bool
    adjusted_pvalue: Optional[float] = None
    note: Optional[str] = None

    def __str__(self) -> str:
        label = "{" + ",".join(self.names) + "}"
        status = "rejected" if self.rejected else "not rejected"
        if self.adjusted_pvalue is not None:
            text = f"Subset {label}: {status} (adj-p: {round(self.adjusted_pvalue, 5)})"
        else:
            pvalues = ", ".join(f"{p:g}" for p in self.pvalues)
            weights = ", ".join(f"{round(w, 4):g}" for w in self.weights)
            text = f"Subset {label}: {status} [pvalues=({pvalues}), weights=({weights})]"
        if self.note:
            text = f"{text} [{self.note}]"
        return text


@dataclass(frozen=True, eq=False)
class ClosureResult:
    """Outcome of :func:`closed_test`.

    Attributes
    ----------
    graph_before : GraphMCP or EntangledGraphMCP
        The graph as passed to the closed test.
    graph_after : GraphMCP or EntangledGraphMCP
        Epsilon-substituted graph with every rejected hypothesis removed.
    alpha : float
        Family-wise significance level.
    pvalues : np.ndarray
        Unadjusted p-values as given.
    rejected : np.ndarray
        Boolean rejection decision per elementary hypothesis.
    adjusted_pvalues : np.ndarray
        Adjusted p-value per elementary hypothesis; NaN when adjusted
        p-values were not requested.
    intersections : pd.DataFrame
        One row per intersection hypothesis: membership columns (one per
        hypothesis), local weights (``w_<name>``), ``rejected`` and
        ``adjusted_p``.
    explanations : tuple of SubsetExplanation
        Per-intersection diagnostics; empty unless ``verbose=True``.
    """

    graph_before: Graph
    graph_after: Graph
    alpha: float
    pvalues: np.ndarray
    rejected: np.ndarray
    adjusted_pvalues: np.ndarray
    intersections: pd.DataFrame
    explanations: Tuple[SubsetExplanation, ...] = ()

    @property
    def graphs(self) -> Tuple[Graph, Graph]:
        return self.graph_before, self.graph_after

    @property
    def names(self) -> Tuple[str, ...]:
        return self.graph_before.names

    @property
    def output(self) -> str:
        """Readable explanation of every intersection test (verbose runs)."""
        return "\n".join(["Info:"] + [str(e) for e in self.explanations])

    def to_frame(self) -> pd.DataFrame:
        """Per-hypothesis summary table."""
        return pd.DataFrame(
            {
                "pvalue": self.pvalues,
                "rejected": self.rejected,
                "adjusted_p": self.adjusted_pvalues,
            },
            index=pd.Index(self.names, name="hypothesis"),
        )

    def __repr__(self) -> str:
        rejected = [n for n, r in zip(self.names, self.rejected) if r]
        return f"ClosureResult(alpha={self.alpha}, rejected={rejected})"


# =============================================================================
# Parallelism control
# =============================================================================


def _get_n_jobs(n_tasks: int, n_jobs: Optional[int] = None) -> int:
    """Resolve the number of parallel workers.

    An explicit ``n_jobs`` wins; otherwise ``config.N_JOBS_ENV_VAR`` is
    consulted, and small closures run sequentially.
    """
    if n_jobs is not None:
        return int(n_jobs)
    env = os.environ.get(config.N_JOBS_ENV_VAR)
    if env is not None:
        try:
            return max(int(env), 1)
        except ValueError:
            logger.warning(
                "Ignoring non-integer %s=%r.", config.N_JOBS_ENV_VAR, env
            )
    if n_tasks < config.MIN_SUBSETS_FOR_PARALLEL:
        return 1
    return -1  # joblib: use all available cores


# =============================================================================
# Validation
# =============================================================================


def _validate_inputs(graph: Any, pvalues: Any, alpha: float) -> np.ndarray:
    if not isinstance(graph, (GraphMCP, EntangledGraphMCP)):
        raise ConfigurationError(
            f"graph must be a GraphMCP or EntangledGraphMCP, got {type(graph).__name__}."
        )
    pvalues = np.asarray(pvalues, dtype=float).reshape(-1)
    if pvalues.size != graph.n:
        raise ConfigurationError(
            f"Got {pvalues.size} p-values for a graph with {graph.n} hypotheses."
        )
    if not np.all(np.isfinite(pvalues)) or np.any((pvalues < 0) | (pvalues > 1)):
        raise ConfigurationError(f"p-values must lie in [0, 1], got {pvalues.tolist()}.")
    if not 0 < alpha < 1:
        raise ConfigurationError(f"alpha must lie in (0, 1), got {alpha}.")
    return pvalues


# =============================================================================
# Intersection tests
# =============================================================================


def _evaluate_intersection(
    test: WeightedTest, context: TestContext
) -> Tuple[bool, float, Optional[str]]:
    """Run ``test`` on one intersection; returns (rejected, adjusted p, note)."""
    result: TestResult = test.evaluate(context)
    if context.adjusted:
        adjusted_p = float(result)
        rejected = bool(adjusted_p <= context.alpha)
    else:
        adjusted_p = float("nan")
        rejected = bool(result)
    note = test.explain(context, result) if context.verbose else None
    return rejected, adjusted_p, note


def _intersection_table(
    names: Tuple[str, ...],
    membership: np.ndarray,
    weights: np.ndarray,
    rejected: np.ndarray,
    adjusted_p: np.ndarray,
) -> pd.DataFrame:
    table = pd.DataFrame(membership.astype(int), columns=list(names))
    for k, name in enumerate(names):
        table[f"w_{name}"] = weights[:, k]
    table["rejected"] = rejected
    table["adjusted_p"] = adjusted_p
    table.index = pd.Index(
        [intersection_label(row, names) for row in membership], name="intersection"
    )
    return table


# =============================================================================
# Closed test
# =============================================================================


def closed_test(
    graph: Graph,
    pvalues,
    test: WeightedTest,
    alpha: float = config.SIGNIFICANCE_ALPHA,
    eps: float = config.EPSILON,
    upscale: bool = config.UPSCALE,
    verbose: bool = False,
    adjusted: bool = config.ADJUSTED_PVALUES,
    n_jobs: Optional[int] = None,
    **test_parameters: Any,
) -> ClosureResult:
    """Graph based closed multiple test procedure.

    Parameters
    ----------
    graph : GraphMCP or EntangledGraphMCP
        Graph of the procedure.
    pvalues : array-like
        Unadjusted p-values, one per hypothesis. Note the assumptions of the
        selected test (e.g. the parametric test assumes p-values of one-sided
        z-tests).
    test : WeightedTest
        Weighted test for the intersection hypotheses (see
        :mod:`graphical_mcp.weighted_tests`).
    alpha : float
        Family-wise significance level.
    eps : float
        Value substituted for epsilon edges.
    upscale : bool
        If False each intersection ``H_J`` is tested at the possibly reduced
        level ``alpha * sum(w_J)``; if True the local weights are upscaled to
        sum to one.
    verbose : bool
        Collect a :class:`SubsetExplanation` per intersection.
    adjusted : bool
        Compute adjusted p-values. Tests such as the trimmed Simes test only
        support ``adjusted=False``; for the Simes test this saves work.
    n_jobs : int, optional
        joblib workers for the intersection tests; see :func:`_get_n_jobs`.
    **test_parameters
        Test specific parameters (e.g. ``correlation``, ``subsets``).

    Returns
    -------
    ClosureResult

    Raises
    ------
    ConfigurationError
        Invalid graph, p-values or alpha, a missing required test parameter,
        or adjusted p-values requested from a test that cannot compute them.
        Raised before any intersection is tested.

    Examples
    --------
    >>> from graphical_mcp.graph import bonferroni_holm
    >>> from graphical_mcp.weighted_tests import bonferroni_test
    >>> result = closed_test(bonferroni_holm(4), [0.01, 0.015, 0.04, 0.04], bonferroni_test)
    >>> result.rejected.tolist()
    [True, True, False, False]
    """
    t0 = time.perf_counter()
    pvalues = _validate_inputs(graph, pvalues, alpha)
    validate_test_parameters(test, test_parameters, adjusted)

    names = graph.names
    n = graph.n
    working = graph.substitute_epsilon(eps)

    matrix = generate_weights(working, eps)
    membership = matrix[:, :n].astype(bool)
    weights = matrix[:, n:]
    if upscale:
        weights = upscale_weights(weights)
    n_intersections = membership.shape[0]

    logger.info(
        "Closed test: %d hypotheses, %d intersection hypotheses, %s (alpha=%g).",
        n,
        n_intersections,
        test.name,
        alpha,
    )

    rows = [i for i in range(n_intersections) if membership[i].any()]
    contexts = []
    for i in rows:
        members = np.flatnonzero(membership[i])
        contexts.append(
            TestContext(
                pvalues=pvalues[members],
                weights=weights[i, members],
                alpha=alpha,
                adjusted=adjusted,
                verbose=verbose,
                subset=members,
                names=tuple(names[j] for j in members),
                parameters=test_parameters,
            )
        )

    workers = _get_n_jobs(len(contexts), n_jobs)
    outcomes = Parallel(n_jobs=workers, prefer="threads")(
        delayed(_evaluate_intersection)(test, context) for context in contexts
    )

    subset_rejected = np.zeros(n_intersections, dtype=bool)
    subset_adjusted = np.full(n_intersections, np.nan)
    explanations = []
    for i, context, (rejected_i, adjusted_i, note) in zip(rows, contexts, outcomes):
        subset_rejected[i] = rejected_i
        subset_adjusted[i] = adjusted_i
        if verbose:
            explanation = SubsetExplanation(
                names=context.names,
                pvalues=tuple(float(p) for p in context.pvalues),
                weights=tuple(float(w) for w in context.weights),
                rejected=rejected_i,
                adjusted_pvalue=adjusted_i if adjusted else None,
                note=note,
            )
            logger.debug("%s", explanation)
            explanations.append(explanation)

    # Closure principle
    rejected = np.array(
        [bool(subset_rejected[membership[:, k]].all()) for k in range(n)], dtype=bool
    )
    if adjusted:
        adjusted_pvalues = np.array(
            [subset_adjusted[membership[:, k]].max() for k in range(n)], dtype=float
        )
        adjusted_pvalues = np.minimum(adjusted_pvalues, 1.0)
    else:
        adjusted_pvalues = np.full(n, np.nan)

    graph_after = reject_nodes(working, [names[k] for k in np.flatnonzero(rejected)])

    result = ClosureResult(
        graph_before=graph,
        graph_after=graph_after,
        alpha=alpha,
        pvalues=pvalues,
        rejected=rejected,
        adjusted_pvalues=adjusted_pvalues,
        intersections=_intersection_table(
            names, membership, weights, subset_rejected, subset_adjusted
        ),
        explanations=tuple(explanations),
    )

    logger.info(
        "Closed test rejected %d/%d hypotheses [%.2fs].",
        int(rejected.sum()),
        n,
        time.perf_counter() - t0,
    )
    return result


__all__ = ["closed_test", "ClosureResult", "SubsetExplanation"]
