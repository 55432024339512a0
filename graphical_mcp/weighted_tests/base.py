"""Strategy interface for weighted tests of intersection hypotheses.

A weighted test receives the p-values and local weights of the hypotheses in
one intersection ``H_J`` and returns

* the minimal alpha at which ``H_J`` can be rejected (``adjusted=True``), or
* the rejection decision at level ``alpha`` (``adjusted=False``).

Tests declare the extra named parameters they consume. The closed test
validates supplied against declared parameters before the first
intersection is evaluated.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, FrozenSet, Iterable, Mapping, Optional, Tuple, Union

import numpy as np

from .. import config
from ..exceptions import UnsupportedAdjustedPValueError

TestResult = Union[float, bool]

# Parameters always provided by the closed test itself.
RESERVED_PARAMETERS: FrozenSet[str] = frozenset(
    {"pvalues", "weights", "alpha", "adjusted", "verbose", "subset", "names"}
)


@dataclass(frozen=True)
class TestContext:
    """Everything a weighted test sees for one intersection hypothesis.

    Attributes
    ----------
    pvalues, weights : np.ndarray
        Values of the hypotheses in the intersection, in hypothesis order.
    alpha : float
        Overall significance level.
    adjusted : bool
        Return an adjusted p-value instead of a decision.
    verbose : bool
        Diagnostic mode; tests may provide a note via ``explain``.
    subset : np.ndarray
        0-based indices of the intersection in the full hypothesis list.
    names : tuple of str
        Names of the hypotheses in the intersection.
    parameters : Mapping
        Extra test parameters as supplied to the closed test.
    """

    __test__ = False

    pvalues: np.ndarray
    weights: np.ndarray
    alpha: float = config.SIGNIFICANCE_ALPHA
    adjusted: bool = config.ADJUSTED_PVALUES
    verbose: bool = False
    subset: Optional[np.ndarray] = None
    names: Tuple[str, ...] = ()
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        pvalues = np.asarray(self.pvalues, dtype=float).reshape(-1)
        weights = np.asarray(self.weights, dtype=float).reshape(-1)
        if pvalues.shape != weights.shape:
            raise ValueError(
                f"Got {pvalues.size} p-values but {weights.size} weights."
            )
        subset = (
            np.arange(pvalues.size)
            if self.subset is None
            else np.asarray(self.subset, dtype=int).reshape(-1)
        )
        names = self.names or tuple(f"H{i + 1}" for i in subset)
        object.__setattr__(self, "pvalues", pvalues)
        object.__setattr__(self, "weights", weights)
        object.__setattr__(self, "subset", subset)
        object.__setattr__(self, "names", tuple(names))

    @property
    def size(self) -> int:
        return int(self.pvalues.size)

    def restrict(self, matrix) -> np.ndarray:
        """Slice a full ``(n, n)`` parameter matrix to the intersection."""
        matrix = np.asarray(matrix, dtype=float)
        return matrix[np.ix_(self.subset, self.subset)]


class WeightedTest(ABC):
    """Weighted test of an intersection hypothesis.

    Subclasses set the class attributes and implement :meth:`evaluate`.
    """

    __test__ = False

    name: ClassVar[str] = "weighted test"
    required_parameters: ClassVar[FrozenSet[str]] = frozenset()
    optional_parameters: ClassVar[FrozenSet[str]] = frozenset()
    supports_adjusted: ClassVar[bool] = True

    @abstractmethod
    def evaluate(self, context: TestContext) -> TestResult:
        """Adjusted p-value (``context.adjusted``) or rejection decision."""

    def explain(self, context: TestContext, result: TestResult) -> Optional[str]:
        """Optional diagnostic note for verbose closed tests."""
        return None

    def consumes(self, parameter: str) -> bool:
        return parameter in self.required_parameters or parameter in self.optional_parameters

    def check_adjusted(self, adjusted: bool) -> None:
        if adjusted and not self.supports_adjusted:
            raise UnsupportedAdjustedPValueError(
                f"Alpha level is needed and adjusted p-values can not be "
                f"calculated for the {self.name}; use adjusted=False."
            )

    def __call__(
        self,
        pvalues,
        weights,
        alpha: float = config.SIGNIFICANCE_ALPHA,
        adjusted: bool = config.ADJUSTED_PVALUES,
        verbose: bool = False,
        subset=None,
        **parameters: Any,
    ) -> TestResult:
        """Evaluate the test directly on one intersection hypothesis."""
        context = TestContext(
            pvalues=pvalues,
            weights=weights,
            alpha=alpha,
            adjusted=adjusted,
            verbose=verbose,
            subset=subset,
            parameters=parameters,
        )
        return self.evaluate(context)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class FunctionTest(WeightedTest):
    """Adapter turning a plain function into a :class:`WeightedTest`.

    The function is called as
    ``func(pvalues, weights, alpha, adjusted, verbose, **parameters)`` where
    ``parameters`` holds the declared extra parameters (and ``subset`` /
    ``names`` when declared as required or optional).

    Examples
    --------
    >>> def weighted_min(pvalues, weights, alpha, adjusted, verbose, **kw):
    ...     ratio = float(np.min(pvalues / weights))
    ...     return ratio if adjusted else ratio <= alpha
    >>> test = FunctionTest(weighted_min, name="weighted minimum")
    """

    def __init__(
        self,
        func: Callable[..., TestResult],
        required: Iterable[str] = (),
        optional: Iterable[str] = (),
        supports_adjusted: bool = True,
        name: Optional[str] = None,
    ) -> None:
        self.func = func
        self.required_parameters = frozenset(required)
        self.optional_parameters = frozenset(optional)
        self.supports_adjusted = supports_adjusted
        self.name = name or getattr(func, "__name__", "function test")

    def evaluate(self, context: TestContext) -> TestResult:
        self.check_adjusted(context.adjusted)
        kwargs = {
            key: value
            for key, value in context.parameters.items()
            if self.consumes(key)
        }
        if self.consumes("subset"):
            kwargs["subset"] = context.subset
        if self.consumes("names"):
            kwargs["names"] = context.names
        return self.func(
            context.pvalues,
            context.weights,
            context.alpha,
            context.adjusted,
            context.verbose,
            **kwargs,
        )

    def __repr__(self) -> str:
        return f"FunctionTest({self.name!r})"


__all__ = [
    "TestContext",
    "TestResult",
    "WeightedTest",
    "FunctionTest",
    "RESERVED_PARAMETERS",
]
