"""CLI command for validating the environment and printing a redacted report.

``envlock load`` exits 0 when every field resolves and validates, 1 when any
field fails, and 2 when the schema itself is unusable.
"""

from __future__ import annotations

import asyncio
from pathlib import Path  # noqa: TC003 - Typer needs Path at runtime
from typing import Annotated

import typer
from loguru import logger

from envlock.core.config import Settings, get_settings
from envlock.lib.report import ReportFormat, ValidationReport, render_report
from envlock.lib.schema import SchemaParseError
from envlock.services.load_service import load_report

EXIT_INVALID = 1
EXIT_SCHEMA_ERROR = 2


def validate_env_name(value: str | None) -> str | None:
    """Validate the --env option: a plain name selecting ``.env.<name>``."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if "/" in value or "\\" in value or value.startswith("."):
        raise typer.BadParameter("environment must be a plain name (no path separators or leading dot)")
    return value


def build_report_or_exit(schema: Path | None, env: str | None, settings: Settings) -> ValidationReport:
    """Load the report for the CLI, exiting with status 2 on a schema error."""
    schema_path = schema if schema is not None else Path(settings.schema_path)
    environment = env if env is not None else settings.environment
    try:
        return asyncio.run(load_report(schema_path, settings=settings, environment=environment))
    except SchemaParseError as exc:
        logger.debug(f"Schema error in {exc.source}")
        typer.echo(f"Schema error: {exc}", err=True)
        raise typer.Exit(code=EXIT_SCHEMA_ERROR) from None


def load(
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
        typer.Option("--quiet", "-q", help="No output on success; only failing names and error kinds on failure"),
    ] = False,
    output_format: Annotated[
        ReportFormat,
        typer.Option("--format", help="Report format", case_sensitive=False),
    ] = ReportFormat.PRETTY,
) -> None:
    """Validate the environment against the schema and print a redacted report."""
    settings = get_settings()
    report = build_report_or_exit(schema, env, settings)

    output = render_report(report, mask=settings.mask_token, quiet=quiet, output_format=output_format)
    if output:
        typer.echo(output)

    if not report.ok:
        raise typer.Exit(code=EXIT_INVALID)
