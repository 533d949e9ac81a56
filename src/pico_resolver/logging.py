"""Logging helpers for pico-resolver.

Every logger used by the library hangs off the ``pico_resolver`` namespace,
so applications can tune model-selection chatter independently of their own
logs.  ``get_logger()`` returns a namespaced logger and
``configure_logging()`` attaches a single formatted handler.
"""

import logging
import os
import sys
from typing import Optional, Union

ROOT_LOGGER_NAME = "pico_resolver"

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
"""str: Default log format used by ``configure_logging``."""

LOG_LEVEL_ENV = "PICO_RESOLVER_LOG_LEVEL"


def get_logger(name: str) -> logging.Logger:
    """Get a logger inside the pico_resolver namespace.

    Args:
        name: Logger name, usually ``__name__``. Names outside the namespace
            are nested under it.

    Returns:
        The ``logging.Logger`` instance.
    """
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def _level_from_env(default: int) -> int:
    raw = os.getenv(LOG_LEVEL_ENV)
    if not raw:
        return default
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw.upper())
    return level if isinstance(level, int) else default


def configure_logging(
    level: Optional[Union[int, str]] = None, handler: Optional[logging.Handler] = None
) -> logging.Logger:
    """Configure the pico_resolver logger tree.

    Calling it more than once never stacks handlers.

    Args:
        level: Logging level or level name. When omitted, the
            ``PICO_RESOLVER_LOG_LEVEL`` environment variable is used, then
            ``INFO``.
        handler: Custom handler. If None, a ``StreamHandler`` on stderr.

    Returns:
        The namespace root logger.
    """
    if level is None:
        level = _level_from_env(logging.INFO)
    elif isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)

    if not root_logger.handlers:
        if handler is None:
            handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        root_logger.addHandler(handler)
    return root_logger
