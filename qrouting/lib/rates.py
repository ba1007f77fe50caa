"""Relationship between the gross rate consumed on a path and its net rate.

A path of ``h`` hops needs ``h - 1`` entanglement swaps at the intermediate
nodes, each of which succeeds with the measurement probability ``p``. The
default model therefore uses::

    net = gross * p ** (h - 1)

Routers only go through :class:`RateModel`, so a different relationship can
be plugged into :class:`qrouting.network.CapacityNetwork` without touching
the routing code.
"""

from __future__ import annotations

import math


class RateModel:
    """Swapping-based gross/net conversion.

    Subclasses override :meth:`success_probability`; both conversions follow
    from it.
    """

    def success_probability(
        self, num_hops: int, measurement_probability: float
    ) -> float:
        """Probability that an EPR pair survives all swaps on a path of ``num_hops``."""
        if num_hops <= 1:
            return 1.0
        return measurement_probability ** (num_hops - 1)

    def net_rate(
        self, gross_rate: float, num_hops: int, measurement_probability: float
    ) -> float:
        """Net rate delivered end-to-end when ``gross_rate`` is consumed."""
        return gross_rate * self.success_probability(num_hops, measurement_probability)

    def gross_rate(
        self, net_rate: float, num_hops: int, measurement_probability: float
    ) -> float:
        """
        Gross rate to consume so that ``net_rate`` is delivered.

        Returns:
            float: The gross rate, ``math.inf`` if the net rate is positive
            and no pair can survive the path.
        """
        success = self.success_probability(num_hops, measurement_probability)
        if net_rate <= 0:
            return 0.0
        if success <= 0:
            return math.inf
        return net_rate / success


#: Model used when none is given.
DEFAULT_RATE_MODEL = RateModel()
