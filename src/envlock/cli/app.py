"""Typer CLI root application."""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as package_version

import typer

from envlock.core.config import get_settings
from envlock.core.logging import setup_logging

app = typer.Typer(name="envlock", help="Validate environment variables against a schema without leaking secrets")


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)


@app.command()
def version() -> None:
    """Print the installed envlock version."""
    try:
        typer.echo(package_version("envlock"))
    except PackageNotFoundError:
        typer.echo("unknown")


def _register_subcommands() -> None:
    """Register the load and run commands."""
    from envlock.cli.load_cmd import load
    from envlock.cli.run_cmd import run

    app.command("load")(load)
    app.command(
        "run",
        context_settings={"allow_interspersed_args": False, "ignore_unknown_options": True},
    )(run)


_register_subcommands()


def main() -> None:
    """Console script entry point."""
    app()
