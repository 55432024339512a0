"""Tests for subsets.py and weights.py: closure enumeration and local weights.

Covers:
1. Canonical order and size of the intersection hypotheses
2. Local weights of standard graphs (Holm, fixed sequence, empty graph)
3. Weight conservation on random graphs
4. Upscaling with the 0/0 guard
5. Entangled mixtures with binary membership columns
"""

from __future__ import annotations

import numpy as np
import pytest

from graphical_mcp import config
from graphical_mcp.closure import (
    enumerate_intersections,
    generate_weights,
    intersection_label,
    intersection_weights,
    upscale_weights,
)
from graphical_mcp.exceptions import ConfigurationError, DegenerateInputWarning
from graphical_mcp.graph import EntangledGraphMCP, GraphMCP, bonferroni_holm, matrix_to_graph


# =============================================================================
# Subset enumeration
# =============================================================================


class TestEnumerateIntersections:
    def test_order_for_three_hypotheses(self) -> None:
        expected = np.array(
            [
                [0, 0, 1],
                [0, 1, 0],
                [0, 1, 1],
                [1, 0, 0],
                [1, 0, 1],
                [1, 1, 0],
                [1, 1, 1],
            ]
        )
        np.testing.assert_array_equal(enumerate_intersections(3), expected)

    @pytest.mark.parametrize("n", [1, 2, 5, 8])
    def test_all_non_empty_subsets_once(self, n: int) -> None:
        rows = enumerate_intersections(n)
        assert rows.shape == (2**n - 1, n)
        assert rows.sum(axis=1).min() == 1
        assert len({tuple(r) for r in rows}) == 2**n - 1
        assert rows[-1].all()

    def test_invalid_sizes(self, monkeypatch: pytest.MonkeyPatch) -> None:
        with pytest.raises(ConfigurationError):
            enumerate_intersections(0)
        monkeypatch.setattr(config, "MAX_HYPOTHESES", 4)
        with pytest.raises(ConfigurationError, match="limited to 4"):
            enumerate_intersections(5)

    def test_label(self) -> None:
        assert intersection_label(np.array([1, 0, 1]), ("A", "B", "C")) == "{A,C}"


# =============================================================================
# Local weights
# =============================================================================


def _row(matrix: np.ndarray, n: int, members) -> np.ndarray:
    target = np.zeros(n)
    target[list(members)] = 1
    index = np.flatnonzero((matrix[:, :n] == target).all(axis=1))[0]
    return matrix[index, n:]


class TestGenerateWeights:
    def test_holm_weights_are_uniform_in_each_intersection(self) -> None:
        matrix = generate_weights(bonferroni_holm(4))
        assert matrix.shape == (15, 8)
        for membership, local in zip(matrix[:, :4], matrix[:, 4:]):
            size = membership.sum()
            np.testing.assert_allclose(local[membership == 1], 1 / size)
            assert np.all(local[membership == 0] == 0)

    def test_fixed_sequence(self, fixed_sequence3: GraphMCP) -> None:
        matrix = generate_weights(fixed_sequence3)
        np.testing.assert_allclose(_row(matrix, 3, [1, 2]), [0, 1, 0])
        np.testing.assert_allclose(_row(matrix, 3, [0, 2]), [1, 0, 0])
        np.testing.assert_allclose(_row(matrix, 3, [2]), [0, 0, 1])

    def test_empty_graph_keeps_initial_weights(self, empty5: GraphMCP) -> None:
        matrix = generate_weights(empty5)
        membership, local = matrix[:, :5], matrix[:, 5:]
        np.testing.assert_allclose(local, membership * 0.2)

    def test_single_row_from_scratch(self) -> None:
        graph = bonferroni_holm(3)
        local = intersection_weights(np.array([1, 1, 0]), graph.transition, graph.weights)
        np.testing.assert_allclose(local, [0.5, 0.5, 0.0])

    def test_epsilon_edges_are_substituted(self) -> None:
        graph = matrix_to_graph(
            [[0, 1, 0], [0, 0, "1-\\epsilon"], [0, "\\epsilon", 0]],
            weights=[1.0, 0.0, 0.0],
        )
        matrix = generate_weights(graph, eps=0.01)
        np.testing.assert_allclose(_row(matrix, 3, [0, 2]), [1.0, 0.0, 0.0])
        np.testing.assert_allclose(_row(matrix, 3, [2]), [0.0, 0.0, 0.99])

    @pytest.mark.parametrize("n", [3, 4, 5])
    def test_weight_conservation(self, random_graph, n: int) -> None:
        for _ in range(5):
            graph = random_graph(n)
            matrix = generate_weights(graph)
            local = matrix[:, n:]
            assert np.all(local >= -1e-12)
            assert np.all(local.sum(axis=1) <= graph.weights.sum() + 1e-12)
            # the global intersection keeps the initial weights
            np.testing.assert_allclose(local[-1], graph.weights)

    def test_rejects_unknown_graph_type(self) -> None:
        with pytest.raises(TypeError):
            generate_weights(np.eye(3))


class TestUpscale:
    def test_rows_sum_to_one_or_zero(self) -> None:
        graph = matrix_to_graph(
            [[0, 1, 0], [0, 0, 0], [0, 0, 0]], weights=[1.0, 0.0, 0.0]
        )
        local = generate_weights(graph)[:, 3:]
        with pytest.warns(DegenerateInputWarning, match="total weight 0"):
            scaled = upscale_weights(local)
        totals = scaled.sum(axis=1)
        assert not np.any(np.isnan(scaled))
        zero = local.sum(axis=1) == 0
        np.testing.assert_allclose(totals[~zero], 1.0)
        np.testing.assert_allclose(totals[zero], 0.0)

    def test_empty_graph_upscales_to_holm(self, empty5: GraphMCP) -> None:
        scaled = upscale_weights(generate_weights(empty5)[:, 5:])
        np.testing.assert_allclose(scaled, generate_weights(bonferroni_holm(5))[:, 5:])


# =============================================================================
# Entangled graphs
# =============================================================================


class TestEntangledWeights:
    @pytest.fixture
    def entangled(self) -> EntangledGraphMCP:
        first = matrix_to_graph(
            np.diag([1.0, 1.0, 1.0, 1.0], k=1), weights=[1, 0, 0, 0, 0]
        )
        second = bonferroni_holm(5)
        return EntangledGraphMCP(subgraphs=(first, second), split=[1 / 3, 2 / 3])

    def test_mixture_of_subgraph_weights(self, entangled: EntangledGraphMCP) -> None:
        matrix = generate_weights(entangled)
        expected = sum(
            share * generate_weights(g)[:, 5:]
            for share, g in zip(entangled.split, entangled.subgraphs)
        )
        np.testing.assert_allclose(matrix[:, 5:], expected)

    def test_membership_is_binary(self, entangled: EntangledGraphMCP) -> None:
        matrix = generate_weights(entangled)
        assert np.isin(matrix[:, :5], [0.0, 1.0]).all()
        np.testing.assert_array_equal(matrix[:, :5], enumerate_intersections(5))
