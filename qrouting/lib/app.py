from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Sequence, Tuple

from qrouting.exceptions import ConfigurationError, MalformedRequestError
from qrouting.lib.graph import CapacityGraph, NodeID
from qrouting.lib.rates import DEFAULT_RATE_MODEL, RateModel
from qrouting.lib.spf import Hops, ksp
from qrouting.logging import get_logger

logger = get_logger(__name__)


class AppAllocation(NamedTuple):
    """
    Rate allocated to an app along one path.

    Attributes:
        net_rate: End-to-end rate delivered, in EPR/s.
        gross_rate: Rate consumed on every edge of the path, in EPR/s.
        path: Hops from the host to the peer, not including the host.
    """

    net_rate: float
    gross_rate: float
    path: Tuple[NodeID, ...]


@dataclass
class AppDescriptor:
    """
    An elastic application hosted on one node and entangled with any of its peers.

    Attributes:
        host: The vertex that hosts the computation.
        peers: The possible entanglement peers.
        priority: Weight of the app in the fair allocation.
        allocations: Paths allocated so far, with their rates.
        yen: Number of k-shortest-path searches run for this app.
        deficit: Gross rate owed to the app (working state across rounds).
    """

    host: NodeID
    peers: Sequence[NodeID]
    priority: float = 1.0
    allocations: List[AppAllocation] = field(default_factory=list, init=False)
    yen: int = field(default=0, init=False)
    deficit: float = field(default=0.0, init=False)

    def __post_init__(self) -> None:
        self.peers = tuple(self.peers)

    @property
    def net_rate(self) -> float:
        return sum(alloc.net_rate for alloc in self.allocations)

    @property
    def gross_rate(self) -> float:
        return sum(alloc.gross_rate for alloc in self.allocations)

    def allocate(self, net_rate: float, gross_rate: float, path: Hops) -> None:
        """Record an allocation, merging it with an existing one on the same path."""
        key = tuple(path)
        for idx, alloc in enumerate(self.allocations):
            if alloc.path == key:
                self.allocations[idx] = AppAllocation(
                    alloc.net_rate + net_rate, alloc.gross_rate + gross_rate, key
                )
                return
        self.allocations.append(AppAllocation(net_rate, gross_rate, key))

    def __str__(self) -> str:
        peers = ",".join(str(peer) for peer in self.peers)
        allocs = "; ".join(
            f"[{','.join(str(n) for n in alloc.path)}] "
            f"net {alloc.net_rate} gross {alloc.gross_rate}"
            for alloc in self.allocations
        )
        return (
            f"host {self.host}, peers {{{peers}}}, priority {self.priority}, "
            f"paths {{{allocs}}}, yen {self.yen}, deficit {self.deficit}"
        )


def validate_apps(graph: CapacityGraph, apps: Sequence[AppDescriptor]) -> None:
    """
    Check every app before anything is routed.

    Raises:
        MalformedRequestError: On the first app with an unknown host or peer,
            a peer equal to the host, no peers, or a non-positive priority.
    """
    for idx, app in enumerate(apps):
        if not graph.has_node(app.host):
            raise MalformedRequestError(
                f"App #{idx} has an invalid host vertex: {app.host} "
                f"(the network has {graph.num_nodes()} nodes)"
            )
        if not app.peers:
            raise MalformedRequestError(f"App #{idx} has no peers")
        for peer in app.peers:
            if peer == app.host:
                raise MalformedRequestError(
                    f"App #{idx} lists its host {app.host} among the peers"
                )
            if not graph.has_node(peer):
                raise MalformedRequestError(
                    f"App #{idx} has an invalid peer vertex: {peer}"
                )
        if not (app.priority > 0 and math.isfinite(app.priority)):
            raise MalformedRequestError(
                f"App #{idx} has an invalid priority: {app.priority}"
            )


def _candidate_paths(graph: CapacityGraph, app: AppDescriptor, k: int) -> List[Hops]:
    """Up to ``k`` shortest paths towards every peer, cheapest first."""
    candidates = []
    for order, peer in enumerate(app.peers):
        app.yen += 1
        for rank, (cost, hops) in enumerate(ksp(graph, app.host, peer, max_k=k)):
            candidates.append((cost, order, rank, hops))
    candidates.sort(key=lambda candidate: candidate[:3])
    return [hops for *_, hops in candidates]


def _usable_bottleneck(
    graph: CapacityGraph,
    app: AppDescriptor,
    hops: Hops,
    measurement_probability: float,
    rate_model: RateModel,
) -> float:
    """Bottleneck of the path, or 0.0 if no pair survives the swaps along it."""
    bottleneck = graph.bottleneck(app.host, hops)
    if bottleneck <= 0:
        return 0.0
    if rate_model.net_rate(bottleneck, len(hops), measurement_probability) <= 0:
        return 0.0
    return bottleneck


def _rounds_ahead(
    graph: CapacityGraph,
    planned: Sequence[Tuple[AppDescriptor, List[Hops]]],
    quantum: float,
    measurement_probability: float,
    rate_model: RateModel,
) -> int:
    """
    Number of rounds that can be credited at once.

    As long as the credit handed to all active apps together stays below the
    smallest bottleneck of their cheapest usable paths, every round would
    spend each app's credit on that same path, so these rounds can be
    collapsed into one.
    """
    bottlenecks = []
    for app, paths in planned:
        for hops in paths:
            bottleneck = _usable_bottleneck(
                graph, app, hops, measurement_probability, rate_model
            )
            if bottleneck > 0:
                bottlenecks.append(bottleneck)
                break
    if not bottlenecks:
        return 1
    owed = sum(max(app.deficit, 0.0) for app, _ in planned)
    per_round = sum(quantum * app.priority for app, _ in planned)
    return max(1, math.floor((min(bottlenecks) - owed) / per_round))


def _serve(
    graph: CapacityGraph,
    app: AppDescriptor,
    k: int,
    measurement_probability: float,
    rate_model: RateModel,
    paths: Optional[List[Hops]] = None,
) -> bool:
    """
    Spend the app's deficit on the cheapest paths with spare capacity.

    Args:
        paths: Candidates found on the current graph, searched afresh if None.

    Returns:
        bool: False if the app ran out of paths before its deficit was spent.
    """
    while app.deficit > 0:
        if paths is None:
            paths = _candidate_paths(graph, app, k)
        served = False
        for hops in paths:
            bottleneck = _usable_bottleneck(
                graph, app, hops, measurement_probability, rate_model
            )
            if bottleneck <= 0:
                continue
            served = True
            gross_rate = min(app.deficit, bottleneck)
            graph.remove_capacity_from_path(app.host, hops, gross_rate)
            net_rate = rate_model.net_rate(
                gross_rate, len(hops), measurement_probability
            )
            app.allocate(net_rate, gross_rate, hops)
            app.deficit -= gross_rate
            logger.debug(
                f"App on {app.host}: +{gross_rate} gross ({net_rate} net) "
                f"along {hops}"
            )
            if app.deficit <= 0:
                break
        if not served:
            return False
        paths = None
    return True


def route_apps(
    graph: CapacityGraph,
    apps: Sequence[AppDescriptor],
    measurement_probability: float,
    quantum: float,
    k: int,
    rate_model: RateModel = DEFAULT_RATE_MODEL,
) -> float:
    """
    Allocate the remaining capacity to elastic apps with deficit round robin.

    In every round each active app, in the given order, is credited
    ``quantum * priority`` of gross rate and spends it on the cheapest of the
    up-to-``k`` shortest paths towards each of its peers. An app that cannot
    find any path with capacity left drops out; the call returns when no app
    is active. Allocations, search counters, and deficits accumulate over
    repeated calls.

    Consecutive rounds in which no app would exhaust its cheapest path are
    credited in one step, so the number of searches depends on the number of
    paths used rather than on the capacities.

    Args:
        graph: The network graph, modified in place.
        apps: The apps to serve.
        measurement_probability: Probability of a successful swap.
        quantum: Gross rate credited per round to an app with priority 1.
        k: Maximum number of paths per (host, peer) search.
        rate_model: Gross/net rate relationship.

    Raises:
        ConfigurationError: If ``quantum`` or ``k`` is not positive.
        MalformedRequestError: If any app is ill-formed; the graph is then
            left untouched.

    Returns:
        float: Total gross rate allocated in this call.
    """
    if not (quantum > 0 and math.isfinite(quantum)):
        logger.warning(f"Rejected app quantum {quantum}")
        raise ConfigurationError(f"Invalid app quantum: {quantum}")
    if k < 1:
        logger.warning(f"Rejected number of paths per search {k}")
        raise ConfigurationError(f"Invalid number of paths per search: {k}")
    validate_apps(graph, apps)

    gross_before = sum(app.gross_rate for app in apps)
    active = list(apps)
    rounds = 0
    while active:
        planned = [(app, _candidate_paths(graph, app, k)) for app in active]
        ahead = _rounds_ahead(
            graph, planned, quantum, measurement_probability, rate_model
        )
        rounds += ahead

        still_active = []
        graph_changed = False
        for app, paths in planned:
            share = quantum * app.priority
            app.deficit += ahead * share
            gross_before_serve = app.gross_rate
            # paths found before an earlier app allocated may be outdated
            if _serve(
                graph,
                app,
                k,
                measurement_probability,
                rate_model,
                None if graph_changed else paths,
            ):
                still_active.append(app)
            else:
                # unmet demand carries over, up to one round's worth
                app.deficit = min(app.deficit, share)
            graph_changed = graph_changed or app.gross_rate != gross_before_serve
        active = still_active

    allocated = sum(app.gross_rate for app in apps) - gross_before
    logger.debug(f"Served {len(apps)} apps in {rounds} rounds")
    return allocated
