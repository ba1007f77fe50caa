from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, List, Sequence

from qrouting.exceptions import MalformedRequestError
from qrouting.lib.graph import CapacityGraph, NodeID
from qrouting.lib.rates import DEFAULT_RATE_MODEL, RateModel
from qrouting.lib.spf import shortest_path
from qrouting.logging import get_logger

logger = get_logger(__name__)


@dataclass
class FlowDescriptor:
    """
    A fixed-rate point-to-point demand, e.g. for QKD or sensing.

    Attributes:
        src_node: The source vertex.
        dst_node: The destination vertex.
        net_rate: Requested end-to-end rate, in EPR/s.
        path: Hops from source to destination, not including the source.
            Empty if the flow is not routed.
        gross_rate: Rate consumed on every edge of the path, in EPR/s.
        dijkstra: Number of shortest-path searches run for this flow.
    """

    src_node: NodeID
    dst_node: NodeID
    net_rate: float
    path: List[NodeID] = field(default_factory=list, init=False)
    gross_rate: float = field(default=0.0, init=False)
    dijkstra: int = field(default=0, init=False)

    @property
    def routed(self) -> bool:
        return bool(self.path)

    def achieved_net_rate(
        self,
        measurement_probability: float,
        rate_model: RateModel = DEFAULT_RATE_MODEL,
    ) -> float:
        """Net rate delivered by the current path and gross rate."""
        if not self.path:
            return 0.0
        return rate_model.net_rate(
            self.gross_rate, len(self.path), measurement_probability
        )

    def clear(self) -> None:
        """Mark the flow as unrouted, keeping the search counter."""
        self.path = []
        self.gross_rate = 0.0

    def move_path_rate_from(self, other: FlowDescriptor) -> None:
        """
        Take over the routing outputs of ``other``, which is left unrouted.

        Useful when a candidate flow was routed on a scratch descriptor and
        the result must be credited to the original request.
        """
        self.path = other.path
        self.gross_rate = other.gross_rate
        self.dijkstra = other.dijkstra
        other.path = []
        other.gross_rate = 0.0
        other.dijkstra = 0

    def __str__(self) -> str:
        path = ",".join(str(node) for node in self.path)
        return (
            f"{self.src_node}->{self.dst_node}, net rate {self.net_rate}, "
            f"path [{path}], gross rate {self.gross_rate}, "
            f"dijkstra {self.dijkstra}"
        )


#: Feasibility check on a flow whose tentative path and gross rate are set.
FlowCheckFunction = Callable[[FlowDescriptor], bool]


def accept_all(flow: FlowDescriptor) -> bool:
    return True


def validate_flows(graph: CapacityGraph, flows: Sequence[FlowDescriptor]) -> None:
    """
    Check every flow before anything is routed.

    Raises:
        MalformedRequestError: On the first flow with equal endpoints, an
            unknown vertex, or a negative or non-finite rate.
    """
    for idx, flow in enumerate(flows):
        if flow.src_node == flow.dst_node:
            raise MalformedRequestError(
                f"Flow #{idx} has the same source and destination: {flow.src_node}"
            )
        for role, node in (("source", flow.src_node), ("destination", flow.dst_node)):
            if not graph.has_node(node):
                raise MalformedRequestError(
                    f"Flow #{idx} has an invalid {role} vertex: {node} "
                    f"(the network has {graph.num_nodes()} nodes)"
                )
        if not (flow.net_rate >= 0 and math.isfinite(flow.net_rate)):
            raise MalformedRequestError(
                f"Flow #{idx} has an invalid net rate: {flow.net_rate}"
            )


def route_flow(
    graph: CapacityGraph,
    flow: FlowDescriptor,
    measurement_probability: float,
    check_func: FlowCheckFunction = accept_all,
    rate_model: RateModel = DEFAULT_RATE_MODEL,
) -> bool:
    """
    Route a single, already validated flow and consume its capacity.

    The search runs on a scratch copy of the graph: whenever the current
    shortest path cannot carry the required gross rate, its smallest-capacity
    edge is dropped from the copy and the search is repeated. The real graph
    is only modified once a path is found and accepted by ``check_func``.

    Args:
        graph: The network graph, modified in place on admission.
        flow: The flow, whose outputs are overwritten.
        measurement_probability: Probability of a successful swap.
        check_func: Last-word feasibility check on the tentative path.
        rate_model: Gross/net rate relationship.

    Returns:
        bool: True if the flow was admitted.
    """
    flow.clear()
    flow.dijkstra = 0

    work_graph = graph.copy()
    while True:
        flow.dijkstra += 1
        found = shortest_path(work_graph, flow.src_node, flow.dst_node)
        if found is None:
            logger.debug(f"Flow {flow.src_node}->{flow.dst_node}: no path left")
            return False

        _, hops = found
        gross_rate = rate_model.gross_rate(
            flow.net_rate, len(hops), measurement_probability
        )
        # an infinite gross rate means no pair survives the swaps on this path
        if not math.isinf(gross_rate) and work_graph.check_capacity(
            flow.src_node, hops, gross_rate
        ):
            break

        work_graph.remove_smallest_capacity_edge(flow.src_node, hops)

    flow.path = hops
    flow.gross_rate = gross_rate
    if not check_func(flow):
        logger.debug(f"Flow {flow.src_node}->{flow.dst_node}: rejected by check")
        flow.clear()
        return False

    graph.remove_capacity_from_path(flow.src_node, flow.path, flow.gross_rate)
    logger.debug(f"Flow admitted: {flow}")
    return True


def route_flows(
    graph: CapacityGraph,
    flows: Sequence[FlowDescriptor],
    measurement_probability: float,
    check_func: FlowCheckFunction = accept_all,
    rate_model: RateModel = DEFAULT_RATE_MODEL,
) -> int:
    """
    Route flows one by one, in the given order, starting from current capacities.

    Capacity consumed by a flow is visible to all the flows after it, so the
    outcome depends on the order. All flows are validated before any of them
    is routed.

    Raises:
        MalformedRequestError: If any flow is ill-formed; the graph is then
            left untouched.

    Returns:
        int: Number of admitted flows.
    """
    validate_flows(graph, flows)

    admitted = 0
    for flow in flows:
        if route_flow(graph, flow, measurement_probability, check_func, rate_model):
            admitted += 1

    logger.debug(f"Admitted {admitted} flows out of {len(flows)}")
    return admitted
