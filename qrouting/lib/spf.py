from __future__ import annotations

from heapq import heappop, heappush
from typing import Dict, Iterator, List, Optional, Set, Tuple

from qrouting.lib.graph import Capacity, CapacityGraph, NodeID

#: A path as the list of hops after the source vertex.
Hops = List[NodeID]

#: Directed edge (src, dst).
EdgeKey = Tuple[NodeID, NodeID]


def spf(
    graph: CapacityGraph,
    src_node: NodeID,
    excluded_edges: Optional[Set[EdgeKey]] = None,
    excluded_nodes: Optional[Set[NodeID]] = None,
) -> Tuple[Dict[NodeID, Capacity], Dict[NodeID, NodeID]]:
    """
    Dijkstra's Shortest Path First from ``src_node``, using edge capacities as costs.

    Implemented using a min-priority queue. Edges with no residual capacity
    are never traversed. Ties are broken in favor of the first path found, so
    the result is deterministic for a given graph.

    Args:
        graph: The graph to search.
        src_node: Source node identifier.
        excluded_edges: Edges to ignore.
        excluded_nodes: Nodes to ignore (the source itself is never ignored).

    Returns:
        costs: Reachable nodes mapped into the cost of the shortest path to them.
        pred: Reachable nodes (except the source) mapped into their predecessor.
    """
    excluded_edges = excluded_edges or set()
    excluded_nodes = excluded_nodes or set()

    costs: Dict[NodeID, Capacity] = {src_node: 0.0}
    pred: Dict[NodeID, NodeID] = {}
    done: Set[NodeID] = set()
    min_pq = [(0.0, src_node)]

    while min_pq:
        src_to_node_cost, node_id = heappop(min_pq)
        if node_id in done:
            # stale queue entry
            continue
        done.add(node_id)

        for neighbor_id, capacity in graph.successors(node_id).items():
            if capacity <= 0 or neighbor_id in excluded_nodes:
                continue
            if (node_id, neighbor_id) in excluded_edges:
                continue

            src_to_neigh_cost = src_to_node_cost + capacity
            if neighbor_id not in costs or src_to_neigh_cost < costs[neighbor_id]:
                costs[neighbor_id] = src_to_neigh_cost
                pred[neighbor_id] = node_id
                heappush(min_pq, (src_to_neigh_cost, neighbor_id))

    return costs, pred


def resolve_path(
    pred: Dict[NodeID, NodeID], src_node: NodeID, dst_node: NodeID
) -> Optional[Hops]:
    """
    Walk the predecessor table back from ``dst_node`` to ``src_node``.

    Returns:
        The hops after ``src_node`` ending with ``dst_node``, an empty list if
        both are the same node, or None if ``dst_node`` is unreachable.
    """
    if dst_node == src_node:
        return []
    if dst_node not in pred:
        return None

    hops = []
    node = dst_node
    while node != src_node:
        hops.append(node)
        node = pred[node]
    hops.reverse()
    return hops


def shortest_path(
    graph: CapacityGraph,
    src_node: NodeID,
    dst_node: NodeID,
    excluded_edges: Optional[Set[EdgeKey]] = None,
    excluded_nodes: Optional[Set[NodeID]] = None,
) -> Optional[Tuple[Capacity, Hops]]:
    """
    Return (cost, hops) of the shortest path between two nodes, or None.
    """
    costs, pred = spf(graph, src_node, excluded_edges, excluded_nodes)
    hops = resolve_path(pred, src_node, dst_node)
    if not hops:
        return None
    return costs[dst_node], hops


def path_cost(graph: CapacityGraph, src_node: NodeID, hops: Hops) -> Capacity:
    """Sum of the edge costs along ``src_node -> hops``."""
    cost = 0.0
    prev = src_node
    for node in hops:
        cost += graph.capacity(prev, node)
        prev = node
    return cost


def ksp(
    graph: CapacityGraph,
    src_node: NodeID,
    dst_node: NodeID,
    max_k: Optional[int] = None,
) -> Iterator[Tuple[Capacity, Hops]]:
    """
    Implementation of Yen's algorithm for the k shortest loopless paths.

    Paths are yielded as (cost, hops) in non-decreasing cost order. The graph
    must not be modified while the generator is being consumed.

    Args:
        graph: The graph to search.
        src_node: Source node identifier.
        dst_node: Destination node identifier.
        max_k: Stop after this many paths (unbounded if None).
    """
    first = shortest_path(graph, src_node, dst_node)
    if first is None:
        return

    shortest_paths: List[Tuple[Capacity, Hops]] = [first]  # container A
    candidates: List[Tuple[Capacity, int, Hops]] = []  # container B, heap-based
    visited = {tuple(first[1])}
    candidate_id = 0
    yield first

    while True:
        if max_k and len(shortest_paths) >= max_k:
            break

        _, last_hops = shortest_paths[-1]
        last_full = [src_node, *last_hops]

        for idx in range(len(last_full) - 1):
            spur_node = last_full[idx]
            root_path = last_full[: idx + 1]

            # remove the edges leaving the spur node that previous paths
            # sharing this root already used, and the root nodes themselves
            excluded_edges: Set[EdgeKey] = set()
            for _, hops in shortest_paths:
                full = [src_node, *hops]
                if full[: idx + 1] == root_path and len(full) > idx + 1:
                    excluded_edges.add((full[idx], full[idx + 1]))
            excluded_nodes = set(root_path[:-1])

            spur = shortest_path(
                graph, spur_node, dst_node, excluded_edges, excluded_nodes
            )
            if spur is None:
                continue

            spur_cost, spur_hops = spur
            total_hops = root_path[1:] + spur_hops
            key = tuple(total_hops)
            if key in visited:
                continue
            visited.add(key)

            total_cost = path_cost(graph, src_node, root_path[1:]) + spur_cost
            heappush(candidates, (total_cost, candidate_id, total_hops))
            candidate_id += 1

        if not candidates:
            break

        # select the best candidate
        cost, _, hops = heappop(candidates)
        shortest_paths.append((cost, hops))
        yield cost, hops
