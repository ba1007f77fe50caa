"""Names of the selection policies built on top of the routers.

Policies that pick an edge node for a demand (at random, by shortest path,
or by best fit, each optionally restricted to feasible candidates) are
identified by a :class:`RoutingAlgorithm` member and by a lowercase name used
in experiment configurations.
"""

from __future__ import annotations

from enum import IntEnum
from types import MappingProxyType
from typing import List, Mapping

from qrouting.exceptions import ConfigurationError
from qrouting.logging import get_logger

logger = get_logger(__name__)


class RoutingAlgorithm(IntEnum):
    """Node/path selection policies."""

    RANDOM = 1
    SPF = 2
    BEST_FIT = 3
    RANDOM_FEAS = 4
    SPF_FEAS = 5
    BEST_FIT_FEAS = 6

    @property
    def feasibility_checked(self) -> bool:
        """True for the variants that only consider feasible candidates."""
        return self in _FEASIBLE

    def __str__(self) -> str:
        return _NAMES[self]

    @classmethod
    def from_string(cls, name: str) -> RoutingAlgorithm:
        """
        Look up a policy by name.

        Raises:
            ConfigurationError: If the name is unknown; the message lists
                the valid names.
        """
        try:
            return _BY_NAME[name]
        except KeyError:
            valid = ",".join(_NAMES[algo] for algo in all_algorithms())
            logger.warning(f"Unknown routing algorithm requested: {name}")
            raise ConfigurationError(
                f"invalid routing algorithm: {name} (valid options are: {valid})"
            ) from None


def all_algorithms() -> List[RoutingAlgorithm]:
    return list(RoutingAlgorithm)


_NAMES: Mapping[RoutingAlgorithm, str] = MappingProxyType(
    {
        RoutingAlgorithm.RANDOM: "random",
        RoutingAlgorithm.SPF: "spf",
        RoutingAlgorithm.BEST_FIT: "bestfit",
        RoutingAlgorithm.RANDOM_FEAS: "randomfeas",
        RoutingAlgorithm.SPF_FEAS: "spffeas",
        RoutingAlgorithm.BEST_FIT_FEAS: "bestfitfeas",
    }
)

_BY_NAME: Mapping[str, RoutingAlgorithm] = MappingProxyType(
    {name: algo for algo, name in _NAMES.items()}
)

_FEASIBLE = frozenset(
    {
        RoutingAlgorithm.RANDOM_FEAS,
        RoutingAlgorithm.SPF_FEAS,
        RoutingAlgorithm.BEST_FIT_FEAS,
    }
)
