"""Closure principle evaluation for graphical multiple test procedures.

Modules
-------
subsets
    Enumeration of the 2**n - 1 intersection hypotheses
weights
    Local weights of every intersection (simple and entangled graphs)
parameters
    Declared-vs-supplied test parameter validation
evaluator
    The closed test and its result object
"""

from .subsets import enumerate_intersections, intersection_label
from .weights import generate_weights, intersection_weights, upscale_weights
from .parameters import validate_test_parameters
from .evaluator import ClosureResult, SubsetExplanation, closed_test

__all__ = [
    "enumerate_intersections",
    "intersection_label",
    "generate_weights",
    "intersection_weights",
    "upscale_weights",
    "validate_test_parameters",
    "closed_test",
    "ClosureResult",
    "SubsetExplanation",
]
