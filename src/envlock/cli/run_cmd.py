"""CLI command for running a program with the validated environment injected.

``envlock run -- <command> [args...]`` validates first and refuses to start the
command when any field fails, printing the redacted report to stderr.
Otherwise it exits with the command's own exit status.
"""

from __future__ import annotations

from pathlib import Path  # noqa: TC003 - Typer needs Path at runtime
from typing import Annotated

import typer

from envlock.cli.load_cmd import EXIT_INVALID, build_report_or_exit, validate_env_name
from envlock.core.config import get_settings
from envlock.lib.injector import LaunchError
from envlock.lib.report import render_report
from envlock.services.load_service import run_with_report


def run(
    command: Annotated[
        list[str],
        typer.Argument(help="Command and arguments to run (put them after --)", metavar="COMMAND [ARGS]..."),
    ],
    schema: Annotated[
        Path | None,
        typer.Option("--schema", "-s", help="Schema file (default: ENVLOCK_SCHEMA_PATH or .env.schema)"),
    ] = None,
    env: Annotated[
        str | None,
        typer.Option("--env", help="Environment overlay to merge (.env.<name> beside the schema)", callback=validate_env_name),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="On failure print only failing names and error kinds"),
    ] = False,
) -> None:
    """Validate, then run COMMAND with every resolved value in its environment."""
    settings = get_settings()
    report = build_report_or_exit(schema, env, settings)

    if not report.ok:
        output = render_report(report, mask=settings.mask_token, quiet=quiet)
        if output:
            typer.echo(output, err=True)
        if not quiet:
            typer.echo("envlock: not running command because validation failed", err=True)
        raise typer.Exit(code=EXIT_INVALID)

    try:
        code = run_with_report(report, command)
    except LaunchError as exc:
        typer.echo(f"envlock: {exc.message}", err=True)
        raise typer.Exit(code=exc.exit_code) from None

    raise typer.Exit(code=code)
