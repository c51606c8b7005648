"""Schema library — parsing, overlays and dependency ordering.

Public API:
    - parse_schema: Parse schema text into a SchemaDocument
    - load_schema: Read a schema file and merge an environment overlay
    - merge_overlay: Merge an overlay document over a schema
    - build_sorter: Dependency-ordered topological sorter (raises on cycles)
    - SchemaDocument / FieldDeclaration / SchemaDefaults: Parsed schema types
    - RequiredPolicy: Declared required-ness
    - SchemaParseError: Fatal schema error
    - Template / Call / Reference: Parsed value expressions
"""

from envlock.lib.schema.errors import SchemaParseError
from envlock.lib.schema.expressions import (
    Call,
    ExpressionSyntaxError,
    Reference,
    Template,
    ValueExpression,
    parse_value_expression,
)
from envlock.lib.schema.graph import build_sorter, check_dependencies
from envlock.lib.schema.overlay import load_schema, merge_overlay, overlay_path
from envlock.lib.schema.parser import parse_schema
from envlock.lib.schema.types import FieldDeclaration, RequiredPolicy, SchemaDefaults, SchemaDocument

__all__ = [
    "Call",
    "ExpressionSyntaxError",
    "FieldDeclaration",
    "Reference",
    "RequiredPolicy",
    "SchemaDefaults",
    "SchemaDocument",
    "SchemaParseError",
    "Template",
    "ValueExpression",
    "build_sorter",
    "check_dependencies",
    "load_schema",
    "merge_overlay",
    "overlay_path",
    "parse_schema",
    "parse_value_expression",
]
