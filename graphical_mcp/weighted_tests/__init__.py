"""Weighted tests for the intersection hypotheses of a closed test.

Modules
-------
base
    Strategy interface, evaluation context and function adapter
bonferroni
    Weighted Bonferroni test
simes
    Weighted Simes test and Simes-on-subsets hybrid
parametric
    Weighted parametric test for (partially) known correlations
trimmed_simes
    Trimmed Simes test for pairs, Bonferroni otherwise
"""

from .base import (
    RESERVED_PARAMETERS,
    FunctionTest,
    TestContext,
    TestResult,
    WeightedTest,
)
from .bonferroni import BonferroniTest, bonferroni_test
from .simes import SimesOnSubsetsTest, SimesTest, simes_on_subsets_test, simes_test
from .parametric import ParametricTest, parametric_test
from .trimmed_simes import TrimmedSimesTest, trimmed_simes_test

__all__ = [
    # Interface
    "WeightedTest",
    "TestContext",
    "TestResult",
    "FunctionTest",
    "RESERVED_PARAMETERS",
    # Tests
    "BonferroniTest",
    "SimesTest",
    "SimesOnSubsetsTest",
    "ParametricTest",
    "TrimmedSimesTest",
    "bonferroni_test",
    "simes_test",
    "simes_on_subsets_test",
    "parametric_test",
    "trimmed_simes_test",
]
