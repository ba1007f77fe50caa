from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Sequence, Tuple

#: Vertices are non-negative integers 0..num_nodes-1.
NodeID = int

#: Residual capacity of an edge, in EPR pairs per second.
Capacity = float

#: (src, dst, weight) triple used for construction and weight snapshots.
WeightTuple = Tuple[NodeID, NodeID, Capacity]


class CapacityGraph:
    """
    A directed graph whose edges carry a residual capacity.

    The adjacency is held as ``{src: {dst: capacity}}``; the capacity is also
    the edge cost used by shortest-path searches. This class enforces:
      - The vertex set is fixed at construction (``0..num_nodes-1``).
      - At most one edge per ordered (src, dst) pair, no self-loops.
      - Capacities are non-negative and only ever decrease.
      - An edge whose capacity drops to zero is removed, so searches never
        traverse it.
    """

    def __init__(self, num_nodes: int = 0) -> None:
        """
        Initialize a graph with ``num_nodes`` isolated vertices.

        Args:
            num_nodes: Number of vertices.

        Raises:
            ValueError: If ``num_nodes`` is negative.
        """
        if num_nodes < 0:
            raise ValueError(f"Number of nodes must be non-negative: {num_nodes}.")
        self._succ: Dict[NodeID, Dict[NodeID, Capacity]] = {
            node: {} for node in range(num_nodes)
        }
        self._pred: Dict[NodeID, Dict[NodeID, Capacity]] = {
            node: {} for node in range(num_nodes)
        }

    @classmethod
    def from_weights(cls, edge_weights: Iterable[WeightTuple]) -> CapacityGraph:
        """
        Build a graph from (src, dst, weight) triples.

        The number of vertices is one more than the largest vertex identifier.

        Args:
            edge_weights: Directed edges and their capacities.

        Returns:
            CapacityGraph: The new graph.
        """
        edge_weights = list(edge_weights)
        for src, dst, _ in edge_weights:
            if src < 0 or dst < 0:
                raise ValueError(f"Invalid vertex in edge ({src}, {dst}).")
        num_nodes = 1 + max(
            (max(src, dst) for src, dst, _ in edge_weights), default=-1
        )
        graph = cls(num_nodes)
        for src, dst, weight in edge_weights:
            graph.add_edge(src, dst, weight)
        return graph

    def copy(self) -> CapacityGraph:
        """Return an independent copy of the graph."""
        other = CapacityGraph()
        other._succ = {node: dict(nbrs) for node, nbrs in self._succ.items()}
        other._pred = {node: dict(nbrs) for node, nbrs in self._pred.items()}
        return other

    #
    # Structure
    #
    def add_edge(self, src: NodeID, dst: NodeID, capacity: Capacity) -> None:
        """
        Add a directed edge with the given capacity.

        Raises:
            ValueError: If a vertex is unknown, the edge is a self-loop or
                already exists, or the capacity is negative.
        """
        if src not in self._succ:
            raise ValueError(f"Source node '{src}' does not exist.")
        if dst not in self._succ:
            raise ValueError(f"Target node '{dst}' does not exist.")
        if src == dst:
            raise ValueError(f"Self-loop on node '{src}' is not allowed.")
        if dst in self._succ[src]:
            raise ValueError(f"Edge ({src}, {dst}) already exists.")
        if capacity < 0:
            raise ValueError(f"Edge ({src}, {dst}) has negative capacity {capacity}.")
        self._succ[src][dst] = capacity
        self._pred[dst][src] = capacity

    def remove_edge(self, src: NodeID, dst: NodeID) -> None:
        """
        Remove the directed edge (src, dst).

        Raises:
            ValueError: If the edge does not exist.
        """
        if not self.has_edge(src, dst):
            raise ValueError(f"No edge from '{src}' to '{dst}' to remove.")
        del self._succ[src][dst]
        del self._pred[dst][src]

    def has_node(self, node: NodeID) -> bool:
        return node in self._succ

    def has_edge(self, src: NodeID, dst: NodeID) -> bool:
        return src in self._succ and dst in self._succ[src]

    def capacity(self, src: NodeID, dst: NodeID) -> Capacity:
        """Residual capacity of (src, dst), zero if the edge is gone."""
        if not self.has_edge(src, dst):
            return 0.0
        return self._succ[src][dst]

    def successors(self, node: NodeID) -> Dict[NodeID, Capacity]:
        """Outgoing neighbors of ``node`` mapped to edge capacities (do not modify)."""
        return self._succ[node]

    def nodes(self) -> Iterator[NodeID]:
        return iter(self._succ)

    def edges(self) -> Iterator[WeightTuple]:
        """Iterate over (src, dst, capacity) for every edge."""
        for src, nbrs in self._succ.items():
            for dst, capacity in nbrs.items():
                yield src, dst, capacity

    #
    # Queries
    #
    def num_nodes(self) -> int:
        return len(self._succ)

    def num_edges(self) -> int:
        return sum(len(nbrs) for nbrs in self._succ.values())

    def in_degree(self) -> Tuple[int, int]:
        """Return the (min, max) in-degree across vertices, (0, 0) if empty."""
        return _min_max(len(nbrs) for nbrs in self._pred.values())

    def out_degree(self) -> Tuple[int, int]:
        """Return the (min, max) out-degree across vertices, (0, 0) if empty."""
        return _min_max(len(nbrs) for nbrs in self._succ.values())

    def total_capacity(self) -> Capacity:
        return sum(capacity for _, _, capacity in self.edges())

    def weights(self) -> List[WeightTuple]:
        """Snapshot of all edges as (src, dst, capacity), sorted by (src, dst)."""
        return sorted(self.edges())

    #
    # Capacity primitives
    #
    def bottleneck(self, src: NodeID, path: Sequence[NodeID]) -> Capacity:
        """
        Minimum residual capacity along ``src -> path[0] -> ... -> path[-1]``.

        Args:
            src: The first vertex of the path.
            path: The hops after ``src``.

        Returns:
            Capacity: The bottleneck, or 0.0 if any edge is missing or the
            path is empty.
        """
        if not path:
            return 0.0
        return min(self.capacity(u, v) for u, v in _hops(src, path))

    def check_capacity(
        self, src: NodeID, path: Sequence[NodeID], amount: Capacity
    ) -> bool:
        """Return True if every edge along the path exists and can carry ``amount``."""
        if not path or not all(self.has_edge(u, v) for u, v in _hops(src, path)):
            return False
        return self.bottleneck(src, path) >= amount

    def remove_capacity_from_path(
        self, src: NodeID, path: Sequence[NodeID], amount: Capacity
    ) -> None:
        """
        Decrement every edge along the path by ``amount``.

        Edges left with exactly zero capacity are removed. The path is checked
        first, so either all edges are decremented or none is.

        Raises:
            ValueError: If the path is empty, an edge is missing, or the
                bottleneck is below ``amount``.
        """
        if amount < 0:
            raise ValueError(f"Cannot remove negative capacity {amount}.")
        if not self.check_capacity(src, path, amount):
            raise ValueError(
                f"Path {[src, *path]} cannot carry {amount} "
                f"(bottleneck {self.bottleneck(src, path)})."
            )
        for u, v in _hops(src, path):
            residual = self._succ[u][v] - amount
            if residual <= 0:
                self.remove_edge(u, v)
            else:
                self._succ[u][v] = residual
                self._pred[v][u] = residual

    def remove_smallest_capacity_edge(
        self, src: NodeID, path: Sequence[NodeID]
    ) -> None:
        """
        Remove the edge with the smallest capacity along the path.

        Ties go to the edge closest to ``src``.

        Raises:
            ValueError: If the path is empty or an edge is missing.
        """
        if not path:
            raise ValueError("Cannot remove an edge from an empty path.")
        u, v = min(_hops(src, path), key=lambda edge: self.capacity(*edge))
        self.remove_edge(u, v)

    def __repr__(self) -> str:
        return f"CapacityGraph(nodes={self.num_nodes()}, edges={self.num_edges()})"


def _hops(src: NodeID, path: Sequence[NodeID]) -> Iterator[Tuple[NodeID, NodeID]]:
    """Yield the (u, v) edges of ``src -> path[0] -> ... -> path[-1]``."""
    prev = src
    for node in path:
        yield prev, node
        prev = node


def _min_max(values: Iterable[int]) -> Tuple[int, int]:
    values = list(values)
    if not values:
        return 0, 0
    return min(values), max(values)
