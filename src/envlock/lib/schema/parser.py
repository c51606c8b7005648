"""Schema document parser.

Turns schema text into a :class:`SchemaDocument`.  Directive comments directly
above a ``KEY=value`` line annotate that field::

    # @defaultSensitive=false
    # @defaultRequired=infer

    # @type=enum(dev, staging, prod)
    NODE_ENV=dev

    # @type=string(startsWith=sk_) @sensitive
    STRIPE_KEY=exec("op read op://prod/stripe/key")

Document defaults must come before the first field.  The defaults in effect
are threaded explicitly through the parse; nothing is kept at module level.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from loguru import logger

from envlock.core.sensitivity import Sensitivity
from envlock.lib.schema.errors import SchemaParseError
from envlock.lib.schema.expressions import ExpressionSyntaxError, parse_value_expression
from envlock.lib.schema.graph import check_dependencies
from envlock.lib.schema.types import FieldDeclaration, RequiredPolicy, SchemaDefaults, SchemaDocument
from envlock.lib.validator.constraints import (
    DEFAULT_CONSTRAINT,
    InvalidConstraintError,
    parse_type_constraint,
)

FIELD_DIRECTIVES = frozenset({"type", "sensitive", "required"})
DOCUMENT_DIRECTIVES = frozenset({"defaultSensitive", "defaultRequired"})
KNOWN_DIRECTIVES = FIELD_DIRECTIVES | DOCUMENT_DIRECTIVES

_FIELD_RE = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=(.*)$", re.DOTALL)
_DIRECTIVE_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@dataclass(frozen=True)
class Directive:
    """One ``@name`` or ``@name=value`` token from a comment line."""

    name: str
    value: str | None
    line: int


@dataclass
class _ParseState:
    source: str | None
    defaults: SchemaDefaults
    overlay: bool
    fields: list[FieldDeclaration] = field(default_factory=list)
    pending: list[Directive] = field(default_factory=list)
    seen_defaults: set[str] = field(default_factory=set)

    def error(self, message: str, *, line: int | None = None, name: str | None = None) -> SchemaParseError:
        return SchemaParseError(message, line=line, field=name, source=self.source)


def parse_schema(
    text: str,
    *,
    source: str | None = None,
    defaults: SchemaDefaults | None = None,
    overlay: bool = False,
) -> SchemaDocument:
    """Parse schema text into a document.

    Args:
        text: Full schema text.
        source: Path or label used in error messages.
        defaults: Starting document defaults (an overlay is parsed with the
            defaults of the schema it overlays).
        overlay: Parse as an overlay: document-default directives are
            rejected and the dependency check is left to the merge.

    Returns:
        The parsed schema document.

    Raises:
        SchemaParseError: On any malformed line, unknown or misplaced
            directive, duplicate field, invalid type or dependency cycle.
    """
    state = _ParseState(source=source, defaults=defaults or SchemaDefaults(), overlay=overlay)

    if text.startswith("\ufeff"):
        text = text[1:]

    for lineno, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            if state.pending:
                logger.debug(f"Discarding detached directives above line {lineno}")
            state.pending = []
            continue
        if line.startswith("#"):
            _handle_comment(state, line[1:], lineno)
            continue
        match = _FIELD_RE.match(line)
        if not match:
            raise state.error("expected KEY=value, a comment, or a blank line", line=lineno)
        _handle_field(state, match.group(1), match.group(2), lineno)

    if state.pending:
        logger.debug("Discarding directives at end of document with no field below them")

    document = SchemaDocument(fields=tuple(state.fields), defaults=state.defaults, source=source)
    if not overlay:
        check_dependencies(document)
    logger.debug(f"Parsed {len(document)} field(s) from {source or '<schema>'}")
    return document


def parse_directives(comment: str, lineno: int) -> list[Directive]:
    """Extract directive tokens from the text of a comment line.

    A comment is a directive comment only if its first non-blank character is
    ``@``; any other comment is documentation and yields no directives.  In a
    directive comment, a ``#`` token ends the directives.

    Raises:
        ValueError: On malformed directive tokens.
    """
    text = comment.strip()
    if not text.startswith("@"):
        return []

    directives: list[Directive] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch.isspace():
            i += 1
            continue
        if ch == "#":
            break
        if ch != "@":
            msg = "unexpected text in directive comment"
            raise ValueError(msg)
        name_match = _DIRECTIVE_NAME_RE.match(text, i + 1)
        if not name_match:
            msg = "directive name expected after '@'"
            raise ValueError(msg)
        name = name_match.group(0)
        i = name_match.end()
        value: str | None = None
        if i < len(text) and text[i] == "=":
            i, value = _scan_directive_value(text, i + 1)
            if value == "":
                msg = f"@{name}= has an empty value"
                raise ValueError(msg)
        elif i < len(text) and not text[i].isspace():
            msg = f"unexpected character after @{name}"
            raise ValueError(msg)
        directives.append(Directive(name=name, value=value, line=lineno))
    return directives


def _scan_directive_value(text: str, start: int) -> tuple[int, str]:
    depth = 0
    quote: str | None = None
    i = start
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch.isspace() and depth <= 0:
            break
        i += 1
    if quote or depth > 0:
        msg = "unterminated directive value"
        raise ValueError(msg)
    value = text[start:i]
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1]
    return i, value


def _handle_comment(state: _ParseState, comment: str, lineno: int) -> None:
    try:
        directives = parse_directives(comment, lineno)
    except ValueError as exc:
        raise state.error(str(exc), line=lineno) from None

    for directive in directives:
        if directive.name not in KNOWN_DIRECTIVES:
            raise state.error(f"unknown directive @{directive.name}", line=lineno)
        if directive.name in DOCUMENT_DIRECTIVES:
            _apply_document_directive(state, directive)
        else:
            state.pending.append(directive)


def _apply_document_directive(state: _ParseState, directive: Directive) -> None:
    if state.overlay:
        raise state.error(f"@{directive.name} is not allowed in an overlay", line=directive.line)
    if state.fields:
        raise state.error(
            f"@{directive.name} must appear before the first field declaration",
            line=directive.line,
        )
    if directive.name in state.seen_defaults:
        raise state.error(f"@{directive.name} set more than once", line=directive.line)
    state.seen_defaults.add(directive.name)

    if directive.name == "defaultSensitive":
        value = _parse_bool(directive, state)
        state.defaults = SchemaDefaults(
            default_sensitive=value,
            default_required=state.defaults.default_required,
        )
    else:
        policy = _parse_required(directive, state)
        state.defaults = SchemaDefaults(
            default_sensitive=state.defaults.default_sensitive,
            default_required=policy,
        )


def _handle_field(state: _ParseState, name: str, rhs: str, lineno: int) -> None:
    if any(f.name == name for f in state.fields):
        raise state.error("duplicate field declaration", line=lineno, name=name)

    directives = state.pending
    state.pending = []

    seen: set[str] = set()
    type_constraint = DEFAULT_CONSTRAINT
    sensitivity = Sensitivity.INHERITED
    required = state.defaults.default_required

    for directive in directives:
        if directive.name in seen:
            raise state.error(f"@{directive.name} given more than once", line=directive.line, name=name)
        seen.add(directive.name)
        if directive.name == "type":
            if directive.value is None:
                raise state.error("@type requires a value", line=directive.line, name=name)
            try:
                type_constraint = parse_type_constraint(directive.value)
            except InvalidConstraintError as exc:
                raise state.error(str(exc), line=directive.line, name=name) from None
        elif directive.name == "sensitive":
            is_sensitive = _parse_bool(directive, state, name)
            sensitivity = Sensitivity.SENSITIVE if is_sensitive else Sensitivity.NOT_SENSITIVE
        elif directive.name == "required":
            required = _parse_required(directive, state, name)

    try:
        expression = parse_value_expression(rhs)
    except ExpressionSyntaxError as exc:
        raise state.error(str(exc), line=lineno, name=name) from None

    state.fields.append(
        FieldDeclaration(
            name=name,
            type_constraint=type_constraint,
            sensitivity=sensitivity,
            required=required,
            value_expression=rhs.strip(),
            expression=expression,
            declaration_order=len(state.fields),
            line=lineno,
            explicit_directives=frozenset(seen),
        )
    )


def _parse_bool(directive: Directive, state: _ParseState, name: str | None = None) -> bool:
    if directive.value is None or directive.value == "true":
        return True
    if directive.value == "false":
        return False
    raise state.error(
        f"@{directive.name} must be true or false, got {directive.value!r}",
        line=directive.line,
        name=name,
    )


def _parse_required(directive: Directive, state: _ParseState, name: str | None = None) -> RequiredPolicy:
    if directive.value is None:
        return RequiredPolicy.TRUE
    try:
        return RequiredPolicy(directive.value)
    except ValueError:
        raise state.error(
            f"@{directive.name} must be true, false or infer, got {directive.value!r}",
            line=directive.line,
            name=name,
        ) from None
