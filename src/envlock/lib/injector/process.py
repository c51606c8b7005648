"""Launch a child process with the resolved environment attached.

The engine never prints injected values: they go straight into the child's
environment, and the child inherits the terminal's stdio.  Launching is
refused unless the report is clean.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from envlock.lib.report.types import ValidationReport

EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127


class InjectionRefusedError(Exception):
    """Raised when asked to launch a command with a failing report."""

    def __init__(self, report: ValidationReport) -> None:
        self.report = report
        super().__init__(f"refusing to launch: {report.error_count} field(s) failed validation")


class LaunchError(Exception):
    """Raised when the child process cannot be started.

    Args:
        message: Human-readable error description (names the command only).
        exit_code: Shell-convention exit code to report (126 or 127).
    """

    def __init__(self, message: str, exit_code: int) -> None:
        self.message = message
        self.exit_code = exit_code
        super().__init__(message)


def build_child_env(report: ValidationReport, base_env: Mapping[str, str] | None = None) -> dict[str, str]:
    """Merge every resolved value over the base environment.

    Args:
        report: A validation report.
        base_env: Environment to start from; defaults to ``os.environ``.

    Returns:
        The child environment.
    """
    env = dict(os.environ if base_env is None else base_env)
    env.update(report.environment())
    return env


def launch(
    report: ValidationReport,
    command: Sequence[str],
    *,
    base_env: Mapping[str, str] | None = None,
) -> int:
    """Run a command with the report's values injected and wait for it.

    Once the child has started the call cannot be cancelled: an interrupt is
    delivered to the child by the terminal and the parent keeps waiting for
    the child's exit status.

    Args:
        report: A validation report; must be ``ok``.
        command: Program and arguments.
        base_env: Environment to start from; defaults to ``os.environ``.

    Returns:
        The child's exit code (``128 + signal`` if it was killed by a signal).

    Raises:
        InjectionRefusedError: If the report has any error.
        LaunchError: If the command cannot be started.
        ValueError: If ``command`` is empty.
    """
    if not report.ok:
        raise InjectionRefusedError(report)
    if not command:
        msg = "command must not be empty"
        raise ValueError(msg)

    env = build_child_env(report, base_env)
    program = command[0]
    logger.info(f"Launching {program!r} with {len(report.environment())} injected variable(s)")

    try:
        proc = subprocess.Popen(list(command), env=env)  # noqa: S603 - user-supplied command is the point
    except FileNotFoundError:
        msg = f"command not found: {program}"
        raise LaunchError(msg, EXIT_NOT_FOUND) from None
    except PermissionError:
        msg = f"command not executable: {program}"
        raise LaunchError(msg, EXIT_NOT_EXECUTABLE) from None

    while True:
        try:
            returncode = proc.wait()
            break
        except KeyboardInterrupt:
            logger.debug("Interrupt received; waiting for child to exit")

    if returncode < 0:
        logger.debug(f"Child terminated by signal {-returncode}")
        return 128 - returncode
    return returncode
