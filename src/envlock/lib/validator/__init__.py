"""Validator library — type constraints for resolved values.

Public API:
    - TypeConstraint: Parsed ``@type`` directive
    - ConstraintKind: Recognized type kinds
    - parse_type_constraint: Parse a ``@type`` directive value
    - validate_value: Pure validation of one raw value
    - ValidationOutcome: Valid typed value or invalid reason
    - describe_shape: Content-free description of a value
"""

from envlock.lib.validator.constraints import (
    DEFAULT_CONSTRAINT,
    ConstraintKind,
    ConstraintViolation,
    InvalidConstraintError,
    TypeConstraint,
    ValidationOutcome,
    describe_shape,
    parse_type_constraint,
    split_arguments,
    unquote,
    validate_value,
)

__all__ = [
    "DEFAULT_CONSTRAINT",
    "ConstraintKind",
    "ConstraintViolation",
    "InvalidConstraintError",
    "TypeConstraint",
    "ValidationOutcome",
    "describe_shape",
    "parse_type_constraint",
    "split_arguments",
    "unquote",
    "validate_value",
]
