from __future__ import annotations

from pathlib import Path
from typing import TextIO, Union

import networkx as nx

from qrouting.lib.graph import CapacityGraph


def to_networkx(graph: CapacityGraph, attr: str = "capacity") -> nx.DiGraph:
    """
    Convert a CapacityGraph to a NetworkX DiGraph.

    Every vertex is kept, including isolated ones, and each edge carries its
    residual capacity under ``attr``.

    Args:
        graph: The graph to convert.
        attr: Name of the edge attribute holding the capacity.

    Returns:
        A NetworkX DiGraph.
    """
    nx_graph = nx.DiGraph()
    nx_graph.add_nodes_from(graph.nodes())
    for src, dst, capacity in graph.edges():
        nx_graph.add_edge(src, dst, **{attr: capacity})
    return nx_graph


def from_networkx(nx_graph: nx.DiGraph, attr: str = "capacity") -> CapacityGraph:
    """
    Build a CapacityGraph from a NetworkX DiGraph with integer nodes.

    Nodes must be non-negative integers; vertices missing from ``nx_graph``
    below its largest node are added as isolated vertices.

    Raises:
        ValueError: If a node is not a non-negative integer, or an edge has
            no ``attr`` attribute.
    """
    for node in nx_graph.nodes:
        if not isinstance(node, int) or node < 0:
            raise ValueError(f"Node '{node}' is not a non-negative integer.")

    graph = CapacityGraph(1 + max(nx_graph.nodes, default=-1))
    for src, dst, data in nx_graph.edges(data=True):
        if attr not in data:
            raise ValueError(f"Edge ({src}, {dst}) has no '{attr}' attribute.")
        graph.add_edge(src, dst, data[attr])
    return graph


def write_dot(
    graph: CapacityGraph, out: Union[str, Path, TextIO], name: str = "G"
) -> None:
    """
    Write the graph in Graphviz DOT format, with capacities as edge labels.

    Args:
        graph: The graph to export.
        out: A path or an open text stream.
        name: The digraph name.
    """
    if isinstance(out, (str, Path)):
        with open(out, "w", encoding="utf-8") as stream:
            write_dot(graph, stream, name)
        return

    out.write(f"digraph {name} {{\n")
    for node in graph.nodes():
        out.write(f"  {node};\n")
    for src, dst, capacity in graph.weights():
        out.write(f'  {src} -> {dst} [label="{capacity:g}"];\n')
    out.write("}\n")
