"""Field sensitivity classification.

A field is either explicitly annotated (``@sensitive`` / ``@sensitive=false``)
or inherits the schema's ``@defaultSensitive`` value.  When the schema sets no
default, fields are sensitive.

Classification only looks at the schema.  It never inspects a resolved value,
so it is available before resolution starts and a failed resolution cannot
change whether a field is masked.
"""

import enum

SECURE_DEFAULT = True


class Sensitivity(enum.StrEnum):
    """Declared sensitivity of a schema field."""

    SENSITIVE = "sensitive"
    NOT_SENSITIVE = "not_sensitive"
    INHERITED = "inherited"


def effective_sensitivity(declared: Sensitivity, default_sensitive: bool | None) -> bool:
    """Return whether a field must be masked.

    Args:
        declared: The field's own annotation.
        default_sensitive: The document-level default, or None when unset.

    Returns:
        True if the field's value must never appear in human-readable output.
    """
    if declared is Sensitivity.SENSITIVE:
        return True
    if declared is Sensitivity.NOT_SENSITIVE:
        return False
    if default_sensitive is None:
        return SECURE_DEFAULT
    return default_sensitive


def sensitivity_label(sensitive: bool) -> str:
    """Short marker printed next to a field name in reports."""
    return "secret" if sensitive else "public"
