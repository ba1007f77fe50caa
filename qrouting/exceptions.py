"""Exceptions raised by qrouting.

Both concrete errors derive from ``ValueError`` so callers that only guard
against bad input values keep working.
"""


class QRoutingError(Exception):
    """Base class for qrouting errors."""


class ConfigurationError(QRoutingError, ValueError):
    """Invalid network or router setting, e.g. a probability outside [0, 1]."""


class MalformedRequestError(QRoutingError, ValueError):
    """A flow or app descriptor that cannot be routed on this network at all.

    Raised before any capacity is consumed by the call that detected it.
    """
