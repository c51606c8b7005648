"""Type constraints and value validation.

A ``@type=...`` directive is parsed into a :class:`TypeConstraint`.  Values are
then checked with :func:`validate_value`, which is pure and total: every raw
string yields exactly one :class:`ValidationOutcome`, valid with a typed value
or invalid with a reason.

Reasons describe the expected constraint and the *shape* of the value
(length, character class), never its content.
"""

import math
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

_URL_ADAPTER: TypeAdapter[AnyUrl] = TypeAdapter(AnyUrl)

_PORT_RE = re.compile(r"[0-9]+")
_PORT_MAX_DIGITS = 5
_NUMBER_RE = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")
_TYPE_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)(?:\((.*)\))?$", re.DOTALL)


class ConstraintKind(StrEnum):
    """Recognized value type kinds."""

    STRING = "string"
    URL = "url"
    PORT = "port"
    BOOLEAN = "boolean"
    ENUM = "enum"
    NUMBER = "number"


# Sub-constraint keys accepted per kind, with the parser for their value.
_OPTION_PARSERS: dict[ConstraintKind, dict[str, Callable[[str], Any]]] = {
    ConstraintKind.STRING: {
        "startsWith": str,
        "contains": str,
        "minLength": lambda v: _parse_non_negative_int(v),
        "maxLength": lambda v: _parse_non_negative_int(v),
        "matches": lambda v: _compile_pattern(v),
    },
    ConstraintKind.NUMBER: {
        "min": lambda v: _parse_float(v),
        "max": lambda v: _parse_float(v),
        "isInt": lambda v: _parse_bool_option(v),
    },
    ConstraintKind.URL: {},
    ConstraintKind.PORT: {},
    ConstraintKind.BOOLEAN: {},
}


class InvalidConstraintError(ValueError):
    """Raised when a ``@type`` directive cannot be parsed."""


class ConstraintViolation(Exception):
    """Raised internally by a kind checker when a value does not satisfy it."""


@dataclass(frozen=True)
class TypeConstraint:
    """A parsed type constraint.

    Attributes:
        kind: The constraint kind.
        options: Sub-constraints as ``(key, value)`` pairs in declaration order.
        choices: Allowed literals for ``enum`` constraints.
    """

    kind: ConstraintKind = ConstraintKind.STRING
    options: tuple[tuple[str, Any], ...] = ()
    choices: tuple[str, ...] = ()

    def option(self, key: str) -> Any:
        for k, v in self.options:
            if k == key:
                return v
        return None

    def describe(self) -> str:
        """Human-readable form, e.g. ``enum(dev,prod)`` or ``string(startsWith=sk_)``."""
        if self.kind is ConstraintKind.ENUM:
            return f"enum({','.join(self.choices)})"
        if not self.options:
            return self.kind.value
        rendered = []
        for key, value in self.options:
            if isinstance(value, re.Pattern):
                value = value.pattern
            elif isinstance(value, bool):
                value = "true" if value else "false"
            elif isinstance(value, float) and value.is_integer():
                value = int(value)
            rendered.append(f"{key}={value}")
        return f"{self.kind.value}({', '.join(rendered)})"


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of validating one raw value."""

    value: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


DEFAULT_CONSTRAINT = TypeConstraint()


def parse_type_constraint(text: str) -> TypeConstraint:
    """Parse the value of a ``@type`` directive.

    Args:
        text: Directive value such as ``port``, ``enum(a,b)`` or
            ``string(startsWith=sk_, minLength=10)``.

    Returns:
        The parsed constraint.

    Raises:
        InvalidConstraintError: On unknown kinds, unknown or malformed
            sub-constraints, or an empty enum.
    """
    match = _TYPE_RE.match(text.strip())
    if not match:
        msg = f"malformed type {text!r}"
        raise InvalidConstraintError(msg)
    name, arg_text = match.group(1), match.group(2)
    try:
        kind = ConstraintKind(name)
    except ValueError:
        known = ", ".join(k.value for k in ConstraintKind)
        msg = f"unknown type {name!r} (known: {known})"
        raise InvalidConstraintError(msg) from None

    args = split_arguments(arg_text) if arg_text is not None and arg_text.strip() else []

    if kind is ConstraintKind.ENUM:
        choices = tuple(unquote(a.strip()) for a in args)
        if not choices:
            msg = "enum type requires at least one value"
            raise InvalidConstraintError(msg)
        if len(set(choices)) != len(choices):
            msg = "enum type lists a value more than once"
            raise InvalidConstraintError(msg)
        return TypeConstraint(kind=kind, choices=choices)

    parsers = _OPTION_PARSERS[kind]
    options: list[tuple[str, Any]] = []
    seen: set[str] = set()
    for arg in args:
        key, sep, raw = arg.partition("=")
        key = key.strip()
        if not sep:
            msg = f"{kind.value} option {arg.strip()!r} must be written key=value"
            raise InvalidConstraintError(msg)
        if key not in parsers:
            allowed = ", ".join(parsers) or "none"
            msg = f"unknown {kind.value} option {key!r} (allowed: {allowed})"
            raise InvalidConstraintError(msg)
        if key in seen:
            msg = f"{kind.value} option {key!r} given twice"
            raise InvalidConstraintError(msg)
        seen.add(key)
        options.append((key, parsers[key](unquote(raw.strip()))))
    return TypeConstraint(kind=kind, options=tuple(options))


def split_arguments(text: str) -> list[str]:
    """Split a comma-separated argument list at top level.

    Commas inside single or double quotes or nested parentheses do not split.
    Backslash escapes inside double quotes are skipped over, not decoded.
    """
    parts: list[str] = []
    buf: list[str] = []
    depth = 0
    quote: str | None = None
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            buf.append(ch)
            if ch == "\\" and quote == '"' and i + 1 < len(text):
                buf.append(text[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
            buf.append(ch)
        elif ch == "(":
            depth += 1
            buf.append(ch)
        elif ch == ")":
            depth -= 1
            buf.append(ch)
        elif ch == "," and depth == 0:
            parts.append("".join(buf))
            buf = []
        else:
            buf.append(ch)
        i += 1
    if quote:
        msg = "unterminated quote in argument list"
        raise InvalidConstraintError(msg)
    parts.append("".join(buf))
    return parts


def unquote(text: str) -> str:
    """Strip one level of matching single or double quotes."""
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        return text[1:-1]
    return text


def validate_value(raw: str, constraint: TypeConstraint) -> ValidationOutcome:
    """Validate a raw string against a constraint.

    Args:
        raw: The resolved raw value.
        constraint: The field's type constraint.

    Returns:
        A valid outcome carrying the typed value, or an invalid outcome whose
        error names the constraint and the shape of the value.
    """
    checker = _CHECKERS[constraint.kind]
    try:
        return ValidationOutcome(value=checker(raw, constraint))
    except ConstraintViolation as exc:
        return ValidationOutcome(error=f"expected {constraint.describe()}, got {describe_shape(raw)}: {exc}")


def describe_shape(raw: str) -> str:
    """Describe a value without revealing it."""
    if raw == "":
        return "empty string"
    if raw != raw.strip():
        return f"{len(raw)}-character string with surrounding whitespace"
    if raw.isdigit():
        return f"{len(raw)}-digit numeric string"
    if raw.isalpha():
        return f"{len(raw)}-character alphabetic string"
    return f"{len(raw)}-character string"


def _check_string(raw: str, constraint: TypeConstraint) -> str:
    prefix = constraint.option("startsWith")
    if prefix is not None and not raw.startswith(prefix):
        msg = "does not have the required prefix"
        raise ConstraintViolation(msg)
    needle = constraint.option("contains")
    if needle is not None and needle not in raw:
        msg = "does not contain the required substring"
        raise ConstraintViolation(msg)
    min_length = constraint.option("minLength")
    if min_length is not None and len(raw) < min_length:
        msg = f"shorter than {min_length} characters"
        raise ConstraintViolation(msg)
    max_length = constraint.option("maxLength")
    if max_length is not None and len(raw) > max_length:
        msg = f"longer than {max_length} characters"
        raise ConstraintViolation(msg)
    pattern = constraint.option("matches")
    if pattern is not None and not pattern.fullmatch(raw):
        msg = "does not match the required pattern"
        raise ConstraintViolation(msg)
    return raw


def _check_url(raw: str, constraint: TypeConstraint) -> str:
    if raw != raw.strip() or not raw:
        msg = "not a well-formed absolute URL"
        raise ConstraintViolation(msg)
    try:
        _URL_ADAPTER.validate_python(raw)
    except PydanticValidationError:
        msg = "not a well-formed absolute URL"
        raise ConstraintViolation(msg) from None
    return raw


def _check_port(raw: str, constraint: TypeConstraint) -> int:
    if not _PORT_RE.fullmatch(raw):
        msg = "not a decimal integer"
        raise ConstraintViolation(msg)
    # int() refuses digit strings past the interpreter's conversion limit
    digits = raw.lstrip("0") or "0"
    if len(digits) > _PORT_MAX_DIGITS:
        msg = "out of range [1, 65535]"
        raise ConstraintViolation(msg)
    port = int(digits)
    if not 1 <= port <= 65535:
        msg = "out of range [1, 65535]"
        raise ConstraintViolation(msg)
    return port


def _check_boolean(raw: str, constraint: TypeConstraint) -> bool:
    if raw == "true":
        return True
    if raw == "false":
        return False
    msg = "must be exactly 'true' or 'false'"
    raise ConstraintViolation(msg)


def _check_enum(raw: str, constraint: TypeConstraint) -> str:
    if raw not in constraint.choices:
        msg = "not one of the allowed values"
        raise ConstraintViolation(msg)
    return raw


def _check_number(raw: str, constraint: TypeConstraint) -> int | float:
    if not _NUMBER_RE.fullmatch(raw):
        msg = "not a number"
        raise ConstraintViolation(msg)
    number = float(raw)
    if not math.isfinite(number):
        msg = "not a finite number"
        raise ConstraintViolation(msg)
    if constraint.option("isInt"):
        if not number.is_integer():
            msg = "not an integer"
            raise ConstraintViolation(msg)
    lower = constraint.option("min")
    if lower is not None and number < lower:
        msg = "below the minimum"
        raise ConstraintViolation(msg)
    upper = constraint.option("max")
    if upper is not None and number > upper:
        msg = "above the maximum"
        raise ConstraintViolation(msg)
    return int(number) if number.is_integer() else number


_CHECKERS: dict[ConstraintKind, Callable[[str, TypeConstraint], Any]] = {
    ConstraintKind.STRING: _check_string,
    ConstraintKind.URL: _check_url,
    ConstraintKind.PORT: _check_port,
    ConstraintKind.BOOLEAN: _check_boolean,
    ConstraintKind.ENUM: _check_enum,
    ConstraintKind.NUMBER: _check_number,
}


def _parse_non_negative_int(value: str) -> int:
    if not (value.isascii() and value.isdigit()):
        msg = f"expected a non-negative integer, got {value!r}"
        raise InvalidConstraintError(msg)
    return int(value)


def _parse_float(value: str) -> float:
    if not _NUMBER_RE.fullmatch(value):
        msg = f"expected a number, got {value!r}"
        raise InvalidConstraintError(msg)
    return float(value)


def _parse_bool_option(value: str) -> bool:
    if value in ("true", ""):
        return True
    if value == "false":
        return False
    msg = f"expected true or false, got {value!r}"
    raise InvalidConstraintError(msg)


def _compile_pattern(value: str) -> re.Pattern[str]:
    try:
        return re.compile(value)
    except re.error as exc:
        msg = f"invalid regular expression: {exc}"
        raise InvalidConstraintError(msg) from None
