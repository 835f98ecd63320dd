"""Logging setup for rangeframe.

Every module logs through ``logging.getLogger(__name__)``, so all records live under the ``rangeframe``
logger namespace. They are debug-level and describe how a call was carried out: group counts from
``rangeframe.partitioning``, scaled bounds from ``rangeframe.scaling``, thread pool fan-out from
``rangeframe.bounds`` and the aggregation being computed from ``rangeframe.rolling``.
"""

from __future__ import annotations

import logging
import typing

PACKAGE_LOGGER = "rangeframe"

LOG_LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}


def _in_package(record: logging.LogRecord) -> bool:
    return record.name == PACKAGE_LOGGER or record.name.startswith(PACKAGE_LOGGER + ".")


def setup_logger(
    level: str = "debug",
    exclude_prefix: typing.Iterable[str] | None = None,
    rangeframe_only: bool = True,
) -> None:
    """Routes rangeframe's log records through the root logger's handlers.

    Handlers installed on the root logger (``logging.basicConfig`` adds a stderr handler when there are
    none) have their filters replaced, so calling this again reconfigures rather than stacks filters.

    Args:
        level: Case-insensitive level name, one of ``DEBUG``, ``INFO``, ``WARNING`` (or ``WARN``), ``ERROR``.
        exclude_prefix: Logger name prefixes to silence, e.g. ``["rangeframe.aggregation"]``.
        rangeframe_only: Drop records from loggers outside the ``rangeframe`` namespace.

    Raises:
        ValueError: If ``level`` is not a recognized level name.
    """
    numeric_level = LOG_LEVELS.get(level.upper()) if level else None
    if numeric_level is None:
        raise ValueError(f"Invalid log level '{level}'. Valid options: {sorted(LOG_LEVELS)}")

    logging.basicConfig(level=numeric_level)
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    excluded = tuple(exclude_prefix or ())
    for handler in root_logger.handlers:
        handler.filters.clear()
        if rangeframe_only:
            handler.addFilter(_in_package)
        if excluded:
            handler.addFilter(lambda record: not record.name.startswith(excluded))
