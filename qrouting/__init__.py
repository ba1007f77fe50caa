"""qrouting: capacity-aware routing on quantum networks.

Edges carry a rate of EPR-pair generation. Fixed-rate flows and elastic
multi-peer apps are admitted one at a time, each consuming capacity.

Example:
    from qrouting import CapacityNetwork, FlowDescriptor

    net = CapacityNetwork.from_weights([(0, 1, 10.0), (1, 2, 8.0)])
    flows = [FlowDescriptor(0, 2, 5.0)]
    net.route(flows)
    assert flows[0].path == [1, 2]
"""

from __future__ import annotations

from qrouting import logging
from qrouting._version import __version__
from qrouting.algorithms import RoutingAlgorithm, all_algorithms
from qrouting.config import ROUTING_CONFIG, RoutingConfig
from qrouting.exceptions import (
    ConfigurationError,
    MalformedRequestError,
    QRoutingError,
)
from qrouting.lib.app import AppAllocation, AppDescriptor
from qrouting.lib.flow import FlowDescriptor
from qrouting.lib.rates import RateModel
from qrouting.network import CapacityNetwork

__all__ = [
    "__version__",
    "logging",
    "AppAllocation",
    "AppDescriptor",
    "CapacityNetwork",
    "ConfigurationError",
    "FlowDescriptor",
    "MalformedRequestError",
    "QRoutingError",
    "RateModel",
    "RoutingAlgorithm",
    "ROUTING_CONFIG",
    "RoutingConfig",
    "all_algorithms",
]
