"""Quantum network whose edges are characterized by their EPR generation capacity."""

from __future__ import annotations

from pathlib import Path
from typing import (
    Callable,
    Iterable,
    List,
    Optional,
    Sequence,
    Set,
    TextIO,
    Tuple,
    Union,
)

import networkx as nx

from qrouting.config import ROUTING_CONFIG
from qrouting.exceptions import ConfigurationError
from qrouting.lib.app import AppDescriptor, route_apps
from qrouting.lib.flow import FlowCheckFunction, FlowDescriptor, accept_all, route_flows
from qrouting.lib.graph import CapacityGraph, NodeID, WeightTuple
from qrouting.lib.io import to_networkx, write_dot
from qrouting.lib.rates import DEFAULT_RATE_MODEL, RateModel
from qrouting.logging import get_logger

logger = get_logger(__name__)

#: Draws one edge weight per call, in EPR/s.
WeightSampler = Callable[[], float]


class CapacityNetwork:
    """
    A quantum network where edges carry a capacity in EPR pairs per second.

    Links are directional and the two directions may have different
    capacities. Two kinds of demands can be routed:

      - flows (:class:`FlowDescriptor`): a source, a destination and a net
        rate; they model QKD, sensing and metrology applications that need a
        constant end-to-end rate;
      - apps (:class:`AppDescriptor`): a host, candidate peers and a
        priority; they model elastic applications such as distributed
        quantum computing.

    Every admitted demand permanently consumes capacity. Routing is
    sequential, so results depend on the order of the demands. The network
    is not thread-safe: use one instance per thread or serialize calls.
    """

    def __init__(
        self,
        graph: CapacityGraph,
        measurement_probability: Optional[float] = None,
        rate_model: RateModel = DEFAULT_RATE_MODEL,
    ) -> None:
        """
        Wrap an existing graph.

        Args:
            graph: The graph, owned by the network from now on.
            measurement_probability: Initial value, default from ROUTING_CONFIG.
            rate_model: Gross/net rate relationship used by the routers.
        """
        self._graph = graph
        self._measurement_probability = ROUTING_CONFIG.measurement_probability
        self.rate_model = rate_model
        if measurement_probability is not None:
            self.measurement_probability = measurement_probability

    @classmethod
    def from_edges(
        cls,
        edges: Iterable[Tuple[NodeID, NodeID]],
        weight_sampler: WeightSampler,
        make_bidirectional: bool,
    ) -> CapacityNetwork:
        """
        Create a network with the given links and random weights.

        Args:
            edges: The (src, dst) links.
            weight_sampler: Called once per link to draw its capacity.
            make_bidirectional: If True, each (A, B) link becomes both A->B
                and B->A, with the same weight. A link already covered by an
                earlier one, such as (B, A) after (A, B), is skipped and draws
                no weight.

        Raises:
            ValueError: On a self-loop, a negative vertex, or a repeated
                directed link when ``make_bidirectional`` is False.
        """
        edge_weights: List[WeightTuple] = []
        seen: Set[Tuple[NodeID, NodeID]] = set()
        for src, dst in edges:
            if make_bidirectional and (src, dst) in seen:
                logger.debug(f"Skipping link ({src}, {dst}), already mirrored")
                continue
            weight = weight_sampler()
            edge_weights.append((src, dst, weight))
            seen.add((src, dst))
            if make_bidirectional:
                edge_weights.append((dst, src, weight))
                seen.add((dst, src))
        return cls(CapacityGraph.from_weights(edge_weights))

    @classmethod
    def from_weights(cls, edge_weights: Iterable[WeightTuple]) -> CapacityNetwork:
        """Create a network with the given unidirectional (src, dst, weight) edges."""
        return cls(CapacityGraph.from_weights(edge_weights))

    @property
    def graph(self) -> CapacityGraph:
        return self._graph

    @property
    def measurement_probability(self) -> float:
        return self._measurement_probability

    @measurement_probability.setter
    def measurement_probability(self, value: float) -> None:
        if not 0 <= value <= 1:
            logger.warning(f"Rejected measurement probability {value}")
            raise ConfigurationError(
                f"Invalid measurement probability: {value} (must be in [0,1])"
            )
        self._measurement_probability = value

    #
    # Structural queries
    #
    def num_nodes(self) -> int:
        return self._graph.num_nodes()

    def num_edges(self) -> int:
        return self._graph.num_edges()

    def in_degree(self) -> Tuple[int, int]:
        """Return the (min, max) in-degree of the graph."""
        return self._graph.in_degree()

    def out_degree(self) -> Tuple[int, int]:
        """Return the (min, max) out-degree of the graph."""
        return self._graph.out_degree()

    def total_capacity(self) -> float:
        """Total EPR capacity across all the edges."""
        return self._graph.total_capacity()

    def weights(self) -> List[WeightTuple]:
        """Current weights as (src, dst, weight), one per edge."""
        return self._graph.weights()

    def to_networkx(self) -> nx.DiGraph:
        return to_networkx(self._graph)

    def to_dot(self, out: Union[str, Path, TextIO]) -> None:
        """Save to a Graphviz DOT file."""
        write_dot(self._graph, out, ROUTING_CONFIG.dot_graph_name)

    #
    # Routing
    #
    def route(
        self,
        flows: Sequence[FlowDescriptor],
        check_func: FlowCheckFunction = accept_all,
    ) -> int:
        """
        Route the flows one by one, in the order given, from current capacities.

        Admitted flows get their path and gross rate set, and their capacity
        is removed from the network.

        Args:
            flows: The flows to route (modified in place).
            check_func: A flow is admitted only if this returns True for its
                tentative path; the default accepts every flow.

        Raises:
            MalformedRequestError: If any flow is ill-formed, in which case
                the network is not changed.

        Returns:
            int: Number of admitted flows.
        """
        return route_flows(
            self._graph,
            flows,
            self._measurement_probability,
            check_func,
            self.rate_model,
        )

    def route_apps(
        self,
        apps: Sequence[AppDescriptor],
        quantum: Optional[float] = None,
        k: Optional[int] = None,
    ) -> float:
        """
        Share the remaining capacity among elastic apps by priority.

        Args:
            apps: The apps to serve (modified in place).
            quantum: Gross rate credited per round to a priority-1 app.
            k: Maximum paths per (host, peer) k-shortest-paths search.

        Raises:
            ConfigurationError: If ``quantum`` or ``k`` is invalid.
            MalformedRequestError: If any app is ill-formed, in which case
                the network is not changed.

        Returns:
            float: Total gross rate allocated.
        """
        return route_apps(
            self._graph,
            apps,
            self._measurement_probability,
            ROUTING_CONFIG.app_quantum if quantum is None else quantum,
            ROUTING_CONFIG.app_k if k is None else k,
            self.rate_model,
        )

    def __repr__(self) -> str:
        return (
            f"CapacityNetwork(nodes={self.num_nodes()}, edges={self.num_edges()}, "
            f"measurement_probability={self._measurement_probability})"
        )
