"""Logging setup for the command-line entry points."""

from __future__ import annotations

import logging
from typing import Final

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
# Alembic announces its migration context at INFO on every startup.
QUIET_LOGGERS: Final[tuple[str, ...]] = ("alembic.runtime.migration",)


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Configure the root logger for CLI output.

    Library loggers in :data:`QUIET_LOGGERS` stay at WARNING unless ``level``
    asks for DEBUG. ``force=True`` replaces handlers installed earlier.
    """

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    library_level = level if level <= logging.DEBUG else max(level, logging.WARNING)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
