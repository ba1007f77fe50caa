"""Graph model and routing algorithms behind :class:`qrouting.CapacityNetwork`."""

from qrouting.lib.app import AppAllocation, AppDescriptor, route_apps
from qrouting.lib.flow import FlowDescriptor, route_flows
from qrouting.lib.graph import CapacityGraph
from qrouting.lib.rates import RateModel

__all__ = [
    "AppAllocation",
    "AppDescriptor",
    "CapacityGraph",
    "FlowDescriptor",
    "RateModel",
    "route_apps",
    "route_flows",
]
