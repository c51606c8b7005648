"""Concurrent, dependency-ordered resolution of every field in a schema.

Fields start as soon as all of their interpolation dependencies are done, so
unrelated fields never wait on each other.  External calls are bounded by a
semaphore.  Each field's result is written exactly once; a field only sees
the values of its own dependencies.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from envlock.lib.report.types import GuardedValue, RevealIntent
from envlock.lib.resolver.base import BaseResolver, ResolutionContext, ResolutionError
from envlock.lib.resolver.environment import interpolate
from envlock.lib.schema.expressions import Call
from envlock.lib.schema.graph import build_sorter

if TYPE_CHECKING:
    from envlock.lib.schema.types import FieldDeclaration, SchemaDocument


@dataclass(frozen=True)
class FieldResolution:
    """Outcome of resolving one field.

    Attributes:
        value: The wrapped value, or None when absent or failed.
        error: Resolution failure message, or None.
        source: Where the value came from (``env``, ``literal``, a resolver
            kind, or ``none``).
    """

    value: GuardedValue | None = None
    error: str | None = None
    source: str = "none"


class ResolutionEngine:
    """Resolve all fields of a document against a host environment.

    Args:
        resolvers: Resolver plugins keyed by call kind.
        max_concurrency: Maximum number of plugin calls in flight.
    """

    def __init__(self, resolvers: Mapping[str, BaseResolver], max_concurrency: int = 8) -> None:
        if max_concurrency < 1:
            msg = f"max_concurrency must be at least 1, got {max_concurrency}"
            raise ValueError(msg)
        self._resolvers = dict(resolvers)
        self._max_concurrency = max_concurrency

    async def resolve_all(self, document: SchemaDocument, host_env: Mapping[str, str]) -> dict[str, FieldResolution]:
        """Resolve every field in the document.

        Args:
            document: The parsed schema.
            host_env: Snapshot of the host environment.

        Returns:
            Resolution results keyed by field name.

        Raises:
            SchemaParseError: If the document has a dependency cycle.
        """
        # Masking decisions are fixed before any value exists.
        sensitivity = {name: document.is_sensitive(name) for name in document.names}
        env = dict(host_env)
        semaphore = asyncio.Semaphore(self._max_concurrency)
        sorter = build_sorter(document)
        declarations = {d.name: d for d in document}
        results: dict[str, FieldResolution] = {}
        pending: dict[asyncio.Task[FieldResolution], str] = {}

        try:
            while sorter.is_active():
                for name in sorter.get_ready():
                    declaration = declarations[name]
                    deps = {dep: results[dep] for dep in document.dependencies(name)}
                    task = asyncio.create_task(
                        self._resolve_field(declaration, sensitivity[name], deps, env, semaphore),
                        name=f"resolve:{name}",
                    )
                    pending[task] = name
                done, _ = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    name = pending.pop(task)
                    results[name] = task.result()
                    sorter.done(name)
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        failed = sum(1 for r in results.values() if r.error)
        logger.info(f"Resolved {len(results)} field(s), {failed} resolution error(s)")
        return results

    async def _resolve_field(
        self,
        declaration: FieldDeclaration,
        sensitive: bool,
        deps: Mapping[str, FieldResolution],
        host_env: Mapping[str, str],
        semaphore: asyncio.Semaphore,
    ) -> FieldResolution:
        name = declaration.name

        override = host_env.get(name)
        if override:
            return FieldResolution(value=GuardedValue(override, sensitive=sensitive), source="env")

        expression = declaration.expression
        if expression is None:
            return FieldResolution()

        for dep, result in deps.items():
            if result.value is None:
                reason = "failed to resolve" if result.error else "has no value"
                return FieldResolution(error=f"depends on {dep}, which {reason}")

        context = ResolutionContext(
            field_name=name,
            sensitive=sensitive,
            host_env=host_env,
            values={dep: result.value.reveal(RevealIntent.INTERPOLATE) for dep, result in deps.items() if result.value},
        )

        try:
            if isinstance(expression, Call):
                raw = await self._call(expression, context, semaphore)
                source = expression.kind
            else:
                raw = interpolate(expression, context)
                source = "literal"
        except ResolutionError as exc:
            logger.debug(f"Resolution failed for {name}")
            return FieldResolution(error=str(exc))
        except Exception as exc:  # noqa: BLE001 - plugin failures are per-field
            logger.warning(f"Resolver raised {exc.__class__.__name__} for {name}")
            return FieldResolution(error=f"resolver failed unexpectedly ({exc.__class__.__name__})")

        if raw == "":
            return FieldResolution(source=source)
        return FieldResolution(value=GuardedValue(raw, sensitive=sensitive), source=source)

    async def _call(self, call: Call, context: ResolutionContext, semaphore: asyncio.Semaphore) -> str:
        resolver = self._resolvers.get(call.kind)
        if resolver is None:
            known = ", ".join(sorted(self._resolvers)) or "none"
            msg = f"unknown resolver {call.kind!r} (available: {known})"
            raise ResolutionError(msg)
        args = [interpolate(arg, context) for arg in call.args]
        async with semaphore:
            return await resolver.resolve(args, context)
