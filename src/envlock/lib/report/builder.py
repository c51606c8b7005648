"""Turn resolution results into a validated :class:`ValidationReport`."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from envlock.lib.report.types import ErrorKind, FieldError, ResolvedField, RevealIntent, ValidationReport
from envlock.lib.validator.constraints import validate_value

if TYPE_CHECKING:
    from envlock.lib.resolver.engine import FieldResolution
    from envlock.lib.schema.types import FieldDeclaration, SchemaDocument

MISSING_MESSAGE = "required value is missing"


def evaluate_field(declaration: FieldDeclaration, resolution: FieldResolution, sensitive: bool) -> ResolvedField:
    """Validate one resolved field.

    Args:
        declaration: The field's schema declaration.
        resolution: The engine's result for the field.
        sensitive: The field's effective sensitivity.

    Returns:
        The field with exactly one outcome: a resolution error, a missing
        required value, a validation error, or a validated value (or an
        absent optional value).
    """
    if resolution.error is not None:
        return ResolvedField(
            declaration=declaration,
            effective_sensitivity=sensitive,
            resolution_error=FieldError(ErrorKind.RESOLUTION_ERROR, resolution.error),
        )

    value = resolution.value
    if value is None:
        error = FieldError(ErrorKind.MISSING_REQUIRED, MISSING_MESSAGE) if declaration.is_required else None
        return ResolvedField(declaration=declaration, effective_sensitivity=sensitive, validation_error=error)

    outcome = validate_value(value.reveal(RevealIntent.VALIDATE), declaration.type_constraint)
    if not outcome.ok:
        return ResolvedField(
            declaration=declaration,
            effective_sensitivity=sensitive,
            raw_value=value,
            validation_error=FieldError(ErrorKind.VALIDATION_ERROR, outcome.error or "invalid value"),
        )
    return ResolvedField(
        declaration=declaration,
        effective_sensitivity=sensitive,
        raw_value=value,
        validated_value=outcome.value,
    )


def build_report(document: SchemaDocument, resolutions: Mapping[str, FieldResolution]) -> ValidationReport:
    """Validate every field and collect the results in declaration order.

    Every field is evaluated; one failing field never stops the others.
    """
    fields = tuple(
        evaluate_field(declaration, resolutions[declaration.name], document.is_sensitive(declaration.name))
        for declaration in sorted(document, key=lambda d: d.declaration_order)
    )
    return ValidationReport(fields=fields, source=document.source)
