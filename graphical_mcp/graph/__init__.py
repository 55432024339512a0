"""Graph model of graphical multiple test procedures.

Modules
-------
graph_model
    Immutable simple and entangled graphs, epsilon substitution, rejection
epsilon
    Parsing of symbolic epsilon edge weights
conversion
    Transition matrix / networkx conversions and standard graphs
"""

from .graph_model import (
    EntangledGraphMCP,
    Graph,
    GraphMCP,
    default_names,
    reject_nodes,
    remove_node,
)
from .epsilon import parse_edge_weight
from .conversion import (
    bonferroni_holm,
    digraph_to_graph,
    graph_to_digraph,
    graph_to_matrix,
    matrix_to_graph,
)

__all__ = [
    "GraphMCP",
    "EntangledGraphMCP",
    "Graph",
    "default_names",
    "reject_nodes",
    "remove_node",
    "parse_edge_weight",
    "matrix_to_graph",
    "graph_to_matrix",
    "graph_to_digraph",
    "digraph_to_graph",
    "bonferroni_holm",
]
