"""Injector library — run a command with the resolved environment.

Public API:
    - launch: Validate-gated child process launch
    - build_child_env: Host environment plus resolved values
    - InjectionRefusedError: Raised when the report is not ok
    - LaunchError: Raised when the command cannot be started
"""

from envlock.lib.injector.process import (
    EXIT_NOT_EXECUTABLE,
    EXIT_NOT_FOUND,
    InjectionRefusedError,
    LaunchError,
    build_child_env,
    launch,
)

__all__ = [
    "EXIT_NOT_EXECUTABLE",
    "EXIT_NOT_FOUND",
    "InjectionRefusedError",
    "LaunchError",
    "build_child_env",
    "launch",
]
