"""Configuration defaults for qrouting components."""

from dataclasses import dataclass


@dataclass
class RoutingConfig:
    """Defaults used when a router call does not override them."""

    # Measurement probability of a newly built network
    measurement_probability: float = 1.0

    # Gross rate (EPR/s) credited to an app per round, scaled by its priority
    app_quantum: float = 1.0

    # Paths enumerated by Yen's algorithm per (host, peer) search
    app_k: int = 3

    # Graph name written in DOT exports
    dot_graph_name: str = "G"


# Global configuration instance
ROUTING_CONFIG = RoutingConfig()
