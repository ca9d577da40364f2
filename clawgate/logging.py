"""Logging setup shared by the clawgate CLI and the validation service."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "clawgate"

CONSOLE_FORMAT = "[clawgate] %(levelname)s %(message)s"
DETAILED_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the clawgate hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def log_level(*, verbose: bool = False, quiet: bool = False) -> int:
    """DEBUG when verbose, WARNING when quiet, INFO otherwise; verbose wins."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    service: bool = False,
    log_file: str | Path | None = None,
) -> logging.Logger:
    """Send clawgate records to stderr and, optionally, to a file.

    Console lines carry timestamps and logger names in service mode. The
    file sink always records debug detail regardless of the console level.
    """
    level = log_level(verbose=verbose, quiet=quiet)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file is not None else level)
    logger.propagate = False
    _drop_handlers(logger)

    console_format = DETAILED_FORMAT if service else CONSOLE_FORMAT
    _attach(logger, logging.StreamHandler(sys.stderr), level, console_format)
    if log_file is not None:
        sink = logging.FileHandler(Path(log_file), encoding="utf-8")
        _attach(logger, sink, logging.DEBUG, DETAILED_FORMAT)
    return logger


def _attach(logger: logging.Logger, handler: logging.Handler, level: int, fmt: str) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)


def _drop_handlers(logger: logging.Logger) -> None:
    # Repeated CLI invocations in one process must not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


__all__ = ["CONSOLE_FORMAT", "DETAILED_FORMAT", "configure_logging", "get_logger", "log_level"]
