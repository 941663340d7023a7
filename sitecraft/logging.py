"""Logging utilities for sitecraft commands and services."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:  # pragma: no cover
    from .models import Issue

_LOGGER_NAME = "sitecraft"
_LEVEL_ENV = "SITECRAFT_LOG_LEVEL"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the sitecraft hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def resolve_level(*, verbose: bool = False, quiet: bool = False) -> int:
    """Pick the log level: flags first, then ``SITECRAFT_LOG_LEVEL``, then INFO."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    configured = os.getenv(_LEVEL_ENV, "").strip().upper()
    level = logging.getLevelName(configured) if configured else logging.INFO
    return level if isinstance(level, int) else logging.INFO


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure the sitecraft logger: stderr output plus an optional file sink.

    Console output goes to stderr so command output on stdout stays parseable.
    """
    level = resolve_level(verbose=verbose, quiet=quiet)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[sitecraft] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


def log_issues(logger: logging.Logger, issues: Iterable["Issue"], *, context: str) -> int:
    """Log each degraded-output issue at warning level; return how many there were."""
    count = 0
    for issue in issues:
        location = f" [{issue.path}]" if issue.path else ""
        logger.warning("%s: %s%s: %s", context, issue.kind.value, location, issue.detail)
        count += 1
    return count


__all__ = ["configure_logging", "get_logger", "log_issues", "resolve_level"]
