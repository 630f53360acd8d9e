"""Centralized logging configuration for the ``pesaledger`` package.

``configure_logging(...)`` attaches a single ``StreamHandler`` to the package
root logger and is called once by entrypoints (the API app, Alembic). Library
modules only ever call ``logging.getLogger(__name__)``.
"""

import logging
import os
import sys
from typing import IO, Optional, Union

_PKG_LOGGER_NAME = "pesaledger"
_CONFIGURED = False


def _parse_level(level: Optional[Union[int, str]]) -> int:
    if level is None:
        level = os.getenv("PESALEDGER_LOG_LEVEL", "INFO")
    if isinstance(level, int):
        return level
    level = level.strip().upper()
    if level.isdigit():
        return int(level)
    numeric = getattr(logging, level, None)
    return numeric if isinstance(numeric, int) else logging.INFO


def configure_logging(
    level: Optional[Union[int, str]] = None,
    fmt: Optional[str] = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Configure the package root logger exactly once."""
    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(fmt or "%(asctime)s %(name)s %(levelname)s %(message)s"))
    logger.setLevel(_parse_level(level))
    logger.addHandler(handler)

    _CONFIGURED = True


# Silent until an entrypoint configures handlers.
logging.getLogger(_PKG_LOGGER_NAME).addHandler(logging.NullHandler())
