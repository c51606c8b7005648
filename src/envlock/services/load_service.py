"""Load and run pipelines.

``load``: schema → overlay merge → resolution → validation → report.
``run``: the same report, then a validate-gated launch of the child command.
"""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from pathlib import Path

from loguru import logger

from envlock.core.config import Settings
from envlock.lib.injector import launch
from envlock.lib.report import ValidationReport, build_report
from envlock.lib.resolver import BaseResolver, ResolutionEngine, build_resolvers
from envlock.lib.schema import SchemaDocument, load_schema


async def resolve_report(
    document: SchemaDocument,
    *,
    settings: Settings,
    host_env: Mapping[str, str] | None = None,
    resolvers: Mapping[str, BaseResolver] | None = None,
) -> ValidationReport:
    """Resolve and validate every field of a parsed document.

    Args:
        document: The parsed (and merged) schema.
        settings: Engine settings (timeout, concurrency).
        host_env: Host environment snapshot; defaults to ``os.environ``.
        resolvers: Resolver plugins; defaults to every registered kind.

    Returns:
        A fresh report for this invocation.
    """
    env = dict(os.environ if host_env is None else host_env)
    if resolvers is None:
        resolvers = build_resolvers(timeout=settings.command_timeout)
    engine = ResolutionEngine(resolvers, max_concurrency=settings.max_concurrency)
    resolutions = await engine.resolve_all(document, env)
    report = build_report(document, resolutions)
    logger.info(f"Validated {len(report.fields)} field(s): {'ok' if report.ok else f'{report.error_count} error(s)'}")
    return report


async def load_report(
    schema_path: Path,
    *,
    settings: Settings,
    environment: str | None = None,
    host_env: Mapping[str, str] | None = None,
    resolvers: Mapping[str, BaseResolver] | None = None,
) -> ValidationReport:
    """Parse a schema file (plus overlay) and build its validation report.

    Raises:
        SchemaParseError: If the schema or overlay is unusable; no report is
            produced.
    """
    document = load_schema(schema_path, environment)
    return await resolve_report(document, settings=settings, host_env=host_env, resolvers=resolvers)


def run_with_report(
    report: ValidationReport,
    command: Sequence[str],
    *,
    host_env: Mapping[str, str] | None = None,
) -> int:
    """Launch ``command`` with the report's environment.

    Raises:
        InjectionRefusedError: If the report is not ok.
        LaunchError: If the command cannot be started.
    """
    return launch(report, command, base_env=host_env)
