"""
Graph based closed multiple test procedures.

This package provides:
- Simple and entangled graphs of weighted multiple test procedures
- Local weights of every intersection hypothesis of the closure
- Weighted Bonferroni, Simes, parametric and trimmed Simes tests
- The closed test with rejections and adjusted p-values
"""

from .exceptions import (
    ConfigurationError,
    DegenerateInputWarning,
    UnsupportedAdjustedPValueError,
    UnusedParameterWarning,
)
from .graph import (
    EntangledGraphMCP,
    GraphMCP,
    bonferroni_holm,
    digraph_to_graph,
    graph_to_digraph,
    graph_to_matrix,
    matrix_to_graph,
)
from .closure import ClosureResult, closed_test, generate_weights
from .weighted_tests import (
    FunctionTest,
    WeightedTest,
    bonferroni_test,
    parametric_test,
    simes_on_subsets_test,
    simes_test,
    trimmed_simes_test,
)

__all__ = [
    "ConfigurationError",
    "DegenerateInputWarning",
    "UnsupportedAdjustedPValueError",
    "UnusedParameterWarning",
    "GraphMCP",
    "EntangledGraphMCP",
    "matrix_to_graph",
    "graph_to_matrix",
    "graph_to_digraph",
    "digraph_to_graph",
    "bonferroni_holm",
    "closed_test",
    "ClosureResult",
    "generate_weights",
    "WeightedTest",
    "FunctionTest",
    "bonferroni_test",
    "simes_test",
    "simes_on_subsets_test",
    "parametric_test",
    "trimmed_simes_test",
]
