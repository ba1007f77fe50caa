"""Logging for the routers.

All qrouting loggers live under the ``qrouting`` namespace. Importing the
package only attaches a :class:`logging.NullHandler`, so an embedding
application keeps full control; scripts and notebooks call
:func:`configure_logging` to get output on stderr.

Levels used by the package:
  - DEBUG: one message per admitted flow, per app allocation, per batch.
  - WARNING: rejected configuration values (measurement probability,
    app quantum, number of paths, algorithm names).
"""

import logging
import sys
from typing import Optional, TextIO

PACKAGE_LOGGER_NAME = "qrouting"

DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
_package_logger.addHandler(logging.NullHandler())

# Handler installed by configure_logging, if any
_handler: Optional[logging.Handler] = None


def configure_logging(
    level: int = logging.WARNING,
    format_string: str = DEFAULT_FORMAT,
    stream: Optional[TextIO] = None,
) -> logging.Handler:
    """Send qrouting messages at ``level`` and above to ``stream``.

    Only one handler is ever installed: calling this again replaces the
    level, format and stream of the previous call.

    Args:
        level: Threshold for the whole package (default: WARNING).
        format_string: Format of each record.
        stream: Destination, stderr if None.

    Returns:
        The installed handler.
    """
    global _handler

    if _handler is not None:
        _package_logger.removeHandler(_handler)
    _handler = logging.StreamHandler(sys.stderr if stream is None else stream)
    _handler.setFormatter(logging.Formatter(format_string))
    _package_logger.addHandler(_handler)
    _package_logger.setLevel(level)
    return _handler


def get_logger(name: str) -> logging.Logger:
    """Return a logger in the ``qrouting`` namespace.

    Names outside the namespace, such as ``"flows"``, are nested under it.
    """
    if name != PACKAGE_LOGGER_NAME and not name.startswith(PACKAGE_LOGGER_NAME + "."):
        name = f"{PACKAGE_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def set_log_level(level: int) -> None:
    """Set the threshold of every qrouting logger at once."""
    _package_logger.setLevel(level)


def log_routing_decisions(enabled: bool = True) -> None:
    """Toggle the per-flow and per-app DEBUG messages."""
    set_log_level(logging.DEBUG if enabled else logging.WARNING)


def reset_logging() -> None:
    """Remove the handler of :func:`configure_logging` and clear the level."""
    global _handler

    if _handler is not None:
        _package_logger.removeHandler(_handler)
        _handler = None
    _package_logger.setLevel(logging.NOTSET)
