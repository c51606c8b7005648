"""Environment overlays.

Selecting environment ``staging`` merges ``.env.staging`` (next to the schema
file) over the schema.  An overlay entry for a declared field replaces its
value expression and any directive it repeats; an entry for an undeclared key
appends a new field.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from loguru import logger

from envlock.lib.schema.errors import SchemaParseError
from envlock.lib.schema.graph import check_dependencies
from envlock.lib.schema.parser import parse_schema
from envlock.lib.schema.types import FieldDeclaration, SchemaDocument


def overlay_path(schema_path: Path, environment: str) -> Path:
    """Return the overlay file path for an environment name."""
    return schema_path.parent / f".env.{environment}"


def merge_overlay(base: SchemaDocument, overlay: SchemaDocument) -> SchemaDocument:
    """Merge an overlay document over a base schema.

    Args:
        base: The parsed schema.
        overlay: The parsed overlay (``parse_schema(..., overlay=True)``).

    Returns:
        A new document; ``base`` and ``overlay`` are left untouched.

    Raises:
        SchemaParseError: If the merged document has a dependency cycle.
    """
    merged: dict[str, FieldDeclaration] = {f.name: f for f in base}
    order = list(base.names)

    for entry in overlay:
        current = merged.get(entry.name)
        if current is None:
            merged[entry.name] = replace(entry, declaration_order=len(order))
            order.append(entry.name)
            logger.debug(f"Overlay adds field {entry.name}")
            continue

        changes: dict[str, object] = {
            "value_expression": entry.value_expression,
            "expression": entry.expression,
            "line": entry.line,
        }
        if "type" in entry.explicit_directives:
            changes["type_constraint"] = entry.type_constraint
        if "sensitive" in entry.explicit_directives:
            changes["sensitivity"] = entry.sensitivity
        if "required" in entry.explicit_directives:
            changes["required"] = entry.required
        changes["explicit_directives"] = current.explicit_directives | entry.explicit_directives
        merged[entry.name] = replace(current, **changes)

    document = SchemaDocument(
        fields=tuple(merged[name] for name in order),
        defaults=base.defaults,
        source=base.source if overlay.source is None else f"{base.source} + {overlay.source}",
    )
    check_dependencies(document)
    return document


def load_schema(schema_path: Path, environment: str | None = None) -> SchemaDocument:
    """Read and parse a schema file, merging the selected environment overlay.

    Args:
        schema_path: Path of the schema file.
        environment: Optional environment name selecting ``.env.<name>``.

    Returns:
        The merged schema document.

    Raises:
        SchemaParseError: If a file is missing or unreadable, or parsing or
            merging fails.
    """
    base = parse_schema(_read(schema_path), source=str(schema_path))
    if not environment:
        return base

    path = overlay_path(schema_path, environment)
    if not path.is_file():
        msg = f"overlay for environment {environment!r} not found"
        raise SchemaParseError(msg, source=str(path))
    overlay = parse_schema(_read(path), source=str(path), defaults=base.defaults, overlay=True)
    logger.info(f"Merging overlay {path} ({len(overlay)} entries)")
    return merge_overlay(base, overlay)


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        msg = "schema file not found"
        raise SchemaParseError(msg, source=str(path)) from None
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"cannot read file: {exc.__class__.__name__}"
        raise SchemaParseError(msg, source=str(path)) from None
