"""Interpolation dependency graph.

Fields that reference other declared fields through ``${NAME}`` must resolve
after them.  The graph is checked once the document is complete; a cycle is
fatal and is reported before any value is resolved.
"""

from __future__ import annotations

from graphlib import CycleError, TopologicalSorter
from typing import TYPE_CHECKING

from loguru import logger

from envlock.lib.schema.errors import SchemaParseError

if TYPE_CHECKING:
    from envlock.lib.schema.types import SchemaDocument


def build_sorter(document: SchemaDocument) -> TopologicalSorter[str]:
    """Build a prepared topological sorter over the document's fields.

    Args:
        document: The parsed (and merged) schema document.

    Returns:
        A sorter on which ``prepare()`` has already been called.

    Raises:
        SchemaParseError: If interpolation references form a cycle.
    """
    sorter: TopologicalSorter[str] = TopologicalSorter()
    for declaration in document:
        sorter.add(declaration.name, *document.dependencies(declaration.name))
    try:
        sorter.prepare()
    except CycleError as exc:
        cycle = list(exc.args[1]) if len(exc.args) > 1 else []
        chain = " -> ".join(cycle) if cycle else "unknown"
        first = cycle[0] if cycle else None
        declaration = document.get(first) if first else None
        msg = f"interpolation dependency cycle: {chain}"
        raise SchemaParseError(
            msg,
            line=declaration.line if declaration else None,
            field=first,
            source=document.source,
        ) from None
    return sorter


def check_dependencies(document: SchemaDocument) -> None:
    """Validate the dependency graph of a finished document.

    Raises on cycles and logs a warning for public fields that interpolate a
    secret, since their rendered value would carry secret material.

    Raises:
        SchemaParseError: If interpolation references form a cycle.
    """
    build_sorter(document)
    for declaration in document:
        if document.is_sensitive(declaration.name):
            continue
        leaked = [dep for dep in document.dependencies(declaration.name) if document.is_sensitive(dep)]
        if leaked:
            logger.warning(
                f"Public field {declaration.name} interpolates sensitive field(s) {', '.join(leaked)}; "
                "its rendered value will be scrubbed"
            )
