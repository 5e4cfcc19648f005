"""Logging utilities for prdkit.

Library code logs through the ``prdkit`` stdlib logger; once
:func:`configure_logging` has run, records are forwarded to the active
reporter so plain, rich and JSON output all see the same diagnostics.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from .reporting import get_reporter

_LOGGER_NAME = "prdkit"

__all__ = [
    "get_logger",
    "configure_logging",
    "ReporterHandler",
]


def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)


class ReporterHandler(logging.Handler):
    """Route log records to the active reporter by level."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
        except (TypeError, ValueError):
            self.handleError(record)
            return
        rep = get_reporter()
        lvl = record.levelno
        if lvl >= logging.ERROR:
            rep.error(msg)
        elif lvl >= logging.WARNING:
            rep.warning(msg)
        elif lvl >= logging.INFO:
            rep.status(msg)
        else:
            rep.verbose(msg)


_FILE_FORMAT = "%(asctime)s %(levelname)-7s %(message)s"


def configure_logging(
    verbosity: int = 0, log_file: Optional[Union[str, Path]] = None
) -> None:
    """Route the ``prdkit`` logger to the reporter and, optionally, a file.

    The log file is truncated first and receives every record that passes
    the logger level, independent of the reporter backend.
    """
    logger = get_logger()
    logger.setLevel(logging.DEBUG if verbosity >= 1 else logging.INFO)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    handler = ReporterHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, mode="w", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

