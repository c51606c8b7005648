"""Data types for parsed schemas."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum

from envlock.core.sensitivity import Sensitivity, effective_sensitivity
from envlock.lib.schema.expressions import ValueExpression
from envlock.lib.validator.constraints import DEFAULT_CONSTRAINT, TypeConstraint


class RequiredPolicy(StrEnum):
    """Declared required-ness of a field."""

    TRUE = "true"
    FALSE = "false"
    INFER = "infer"


@dataclass(frozen=True)
class SchemaDefaults:
    """Document-level defaults set by ``@defaultSensitive`` / ``@defaultRequired``.

    Attributes:
        default_sensitive: Default sensitivity, or None when the document does
            not set one (fields are then sensitive).
        default_required: Policy applied to fields without ``@required``.
    """

    default_sensitive: bool | None = None
    default_required: RequiredPolicy = RequiredPolicy.TRUE


@dataclass(frozen=True)
class FieldDeclaration:
    """One schema entry.

    Attributes:
        name: Variable name (case-sensitive).
        type_constraint: Parsed ``@type`` constraint.
        sensitivity: Declared sensitivity (``inherited`` when not annotated).
        required: Required policy after applying the document default.
        value_expression: Unparsed right-hand side of the field line.
        expression: Parsed right-hand side, None when empty.
        declaration_order: 0-based position in the document.
        line: 1-based line number of the field line.
        explicit_directives: Directive names written on this field.
    """

    name: str
    type_constraint: TypeConstraint = DEFAULT_CONSTRAINT
    sensitivity: Sensitivity = Sensitivity.INHERITED
    required: RequiredPolicy = RequiredPolicy.TRUE
    value_expression: str = ""
    expression: ValueExpression | None = None
    declaration_order: int = 0
    line: int = 0
    explicit_directives: frozenset[str] = field(default_factory=frozenset)

    @property
    def has_default(self) -> bool:
        return self.expression is not None

    @property
    def is_required(self) -> bool:
        """Required-ness with ``infer`` resolved: fields without a default are required."""
        if self.required is RequiredPolicy.INFER:
            return not self.has_default
        return self.required is RequiredPolicy.TRUE

    @property
    def references(self) -> tuple[str, ...]:
        if self.expression is None:
            return ()
        return self.expression.references


@dataclass(frozen=True)
class SchemaDocument:
    """An ordered collection of field declarations plus document defaults."""

    fields: tuple[FieldDeclaration, ...] = ()
    defaults: SchemaDefaults = field(default_factory=SchemaDefaults)
    source: str | None = None

    def __iter__(self) -> Iterator[FieldDeclaration]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, name: object) -> bool:
        return any(f.name == name for f in self.fields)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def get(self, name: str) -> FieldDeclaration | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def is_sensitive(self, name: str) -> bool:
        """Effective sensitivity of a declared field, computed from the schema alone."""
        declaration = self.get(name)
        if declaration is None:
            msg = f"Unknown field: {name}"
            raise KeyError(msg)
        return effective_sensitivity(declaration.sensitivity, self.defaults.default_sensitive)

    def dependencies(self, name: str) -> tuple[str, ...]:
        """Declared fields referenced by a field's expression."""
        declaration = self.get(name)
        if declaration is None:
            return ()
        return tuple(ref for ref in declaration.references if ref in self)
