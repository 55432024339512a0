import os
import sys

import numpy as np
import pytest

# Ensure the project root is on sys.path so tests can import ``graphical_mcp``
# when running directly from the repository without installing the package.
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from graphical_mcp.graph import GraphMCP, bonferroni_holm, matrix_to_graph  # noqa: E402


@pytest.fixture
def holm4() -> GraphMCP:
    """Bonferroni-Holm graph with four hypotheses (edges 1/3, weights 1/4)."""
    return bonferroni_holm(4)


@pytest.fixture
def empty5() -> GraphMCP:
    """Five hypotheses without edges: plain weighted Bonferroni."""
    return matrix_to_graph(np.zeros((5, 5)))


@pytest.fixture
def fixed_sequence3() -> GraphMCP:
    """Fixed-sequence graph H1 -> H2 -> H3 with all weight on H1."""
    transition = np.array(
        [
            [0.0, 1.0, 0.0],
            [0.0, 0.0, 1.0],
            [0.0, 0.0, 0.0],
        ]
    )
    return matrix_to_graph(transition, weights=[1.0, 0.0, 0.0])


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(20240611)


@pytest.fixture
def random_graph(rng: np.random.Generator):
    """Factory for random graphs with weights summing to <= 1 and row sums <= 1."""

    def _make(n: int) -> GraphMCP:
        weights = rng.dirichlet(np.ones(n + 1))[:n]
        transition = rng.random((n, n))
        np.fill_diagonal(transition, 0.0)
        transition *= rng.uniform(0.3, 1.0, size=(n, 1)) / transition.sum(axis=1, keepdims=True)
        return matrix_to_graph(transition, weights=weights)

    return _make
