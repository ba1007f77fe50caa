"""Shared graphs for the routing tests.

Capacities double as costs, so the cheapest path is the one through the
smallest capacities.
"""

from __future__ import annotations

import random

import pytest

from qrouting.lib.graph import CapacityGraph
from qrouting.logging import reset_logging


@pytest.fixture
def single_edge():
    #      [10]
    #  0 ───────► 1
    return CapacityGraph.from_weights([(0, 1, 10.0)])


@pytest.fixture
def line1():
    #      [5]       [3]
    #  0 ───────► 1 ───────► 2
    return CapacityGraph.from_weights([(0, 1, 5.0), (1, 2, 3.0)])


@pytest.fixture
def square1():
    #      [1]       [1]
    #  0 ───────► 1 ───────► 3
    #  │                     ▲
    #  │   [2]       [2]     │
    #  └────────► 2 ─────────┘
    return CapacityGraph.from_weights(
        [(0, 1, 1.0), (1, 3, 1.0), (0, 2, 2.0), (2, 3, 2.0)]
    )


@pytest.fixture
def triangle1():
    #      [3]       [3]
    #  0 ───────► 1 ───────► 2
    #  │                     ▲
    #  └─────────[1]─────────┘
    return CapacityGraph.from_weights([(0, 1, 3.0), (1, 2, 3.0), (0, 2, 1.0)])


@pytest.fixture
def random_graph():
    # a ring keeps every node reachable, random chords add alternatives
    rng = random.Random(12345)
    edges = {(src, (src + 1) % 20) for src in range(20)}
    for src in range(20):
        for dst in rng.sample(range(20), 3):
            if src != dst:
                edges.add((src, dst))
    return CapacityGraph.from_weights(
        (src, dst, round(rng.uniform(1.0, 10.0), 3)) for src, dst in sorted(edges)
    )


@pytest.fixture
def fresh_logging():
    """Start and end the test without a qrouting handler or level."""
    reset_logging()
    yield
    reset_logging()
