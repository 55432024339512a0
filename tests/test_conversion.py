"""Tests for epsilon.py and conversion.py: matrix / networkx round trips."""

from __future__ import annotations

import networkx as nx
import numpy as np
import pandas as pd
import pytest

from graphical_mcp.exceptions import ConfigurationError, DegenerateInputWarning
from graphical_mcp.graph import (
    EntangledGraphMCP,
    bonferroni_holm,
    digraph_to_graph,
    graph_to_digraph,
    graph_to_matrix,
    matrix_to_graph,
    parse_edge_weight,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("\\epsilon", (0.0, 1.0)),
        ("2\\epsilon", (0.0, 2.0)),
        ("1-\\epsilon", (1.0, -1.0)),
        ("0.5 + 0.25*eps", (0.5, 0.25)),
        ("1/3", (1 / 3, 0.0)),
        ("-ε", (0.0, -1.0)),
        ("1e-3", (1e-3, 0.0)),
        ("", (0.0, 0.0)),
    ],
)
def test_parse_edge_weight(text: str, expected: tuple[float, float]) -> None:
    constant, coefficient = parse_edge_weight(text)
    assert constant == pytest.approx(expected[0])
    assert coefficient == pytest.approx(expected[1])


@pytest.mark.parametrize("text", ["abc", "1 2", "0.5 +", "epsilon*epsilon"])
def test_parse_edge_weight_rejects_garbage(text: str) -> None:
    with pytest.raises(ConfigurationError):
        parse_edge_weight(text)


def test_numbers_pass_through() -> None:
    assert parse_edge_weight(0.25) == (0.25, 0.0)
    assert parse_edge_weight(np.float64(1.0)) == (1.0, 0.0)


class TestMatrixToGraph:
    def test_default_names_and_weights(self) -> None:
        m = np.full((4, 4), 1 / 3)
        np.fill_diagonal(m, 0)
        graph = matrix_to_graph(m)
        assert graph.names == ("H1", "H2", "H3", "H4")
        np.testing.assert_allclose(graph.weights, [0.25] * 4)

    def test_names_from_dataframe_labels(self) -> None:
        frame = pd.DataFrame(
            [[0, 1], [1, 0]], index=["efficacy", "safety"], columns=["a", "b"]
        )
        assert matrix_to_graph(frame).names == ("efficacy", "safety")

        frame = pd.DataFrame([[0, 1], [1, 0]], columns=["x", "y"])
        assert matrix_to_graph(frame).names == ("x", "y")

    def test_non_square_matrix_is_fatal(self) -> None:
        with pytest.raises(ConfigurationError, match="quadratic"):
            matrix_to_graph(np.zeros((3, 2)))

    def test_diagonal_is_zeroed(self) -> None:
        with pytest.warns(DegenerateInputWarning):
            graph = matrix_to_graph(np.ones((3, 3)) * 0.5)
        assert np.all(np.diag(graph.transition) == 0)


class TestRoundTrip:
    def test_graph_matrix_graph(self) -> None:
        graph = bonferroni_holm(4, weights=[0.4, 0.3, 0.2, 0.1], names=list("ABCD"))
        matrix = graph_to_matrix(graph)
        assert list(matrix.index) == ["A", "B", "C", "D"]
        again = matrix_to_graph(matrix, weights=graph.weights)
        assert again.equals(graph)

    def test_symbolic_matrix_round_trip(self) -> None:
        matrix = [[0, "1-\\epsilon", "\\epsilon"], [0, 0, 1], [1, 0, 0]]
        graph = matrix_to_graph(matrix)
        symbolic = graph_to_matrix(graph, symbolic=True)
        assert symbolic.loc["H1", "H2"] == "1-\\epsilon"
        assert symbolic.loc["H1", "H3"] == "\\epsilon"
        assert matrix_to_graph(symbolic).equals(graph)

    def test_digraph_round_trip(self) -> None:
        graph = bonferroni_holm(3).reject("H2")
        digraph = graph_to_digraph(graph)
        assert isinstance(digraph, nx.DiGraph)
        assert digraph.nodes["H2"]["rejected"] is True
        assert digraph.has_edge("H1", "H3")
        assert not digraph.has_edge("H1", "H2")
        assert digraph_to_graph(digraph).equals(graph)

    def test_entangled_matrix_warns(self) -> None:
        graph = EntangledGraphMCP(subgraphs=(bonferroni_holm(3), bonferroni_holm(3)))
        with pytest.warns(UserWarning, match="first subgraph"):
            matrix = graph_to_matrix(graph)
        assert matrix.shape == (3, 3)
