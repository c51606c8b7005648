"""Loguru logging configuration for the envlock CLI.

The root CLI callback calls :func:`setup_logging` with ``ENVLOCK_LOG_LEVEL``
and ``ENVLOCK_LOG_DIR`` before any command runs.  The default level is
``WARNING`` so a plain ``envlock load`` prints only its report, plus the
parse-time warning for public fields built from secrets.

Logs go to stderr because stdout carries the report (and, for ``run``, is
handed to the child).  Log records name fields, resolver kinds and programs;
resolved values never reach a sink, so the file sink needs no redaction.
"""

import sys
from pathlib import Path

from loguru import logger

_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"


def setup_logging(log_level: str = "WARNING", log_dir: str | None = None) -> None:
    """Configure Loguru sinks for the CLI.

    Args:
        log_level: Minimum log level to emit.
        log_dir: Optional directory for log files.  When set, a rotating
            file sink is added (rotated every 24 hours, retained 7 days).
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level.upper(),
        format=_LOG_FORMAT,
        serialize=False,
    )

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path / "envlock.log",
            level=log_level.upper(),
            format=_LOG_FORMAT,
            rotation="24h",
            retention="7 days",
        )
