"""Value expression grammar.

The right-hand side of ``KEY=...`` is one of:

- empty: look up ``KEY`` in the host environment
- ``'single quoted'``: literal, no interpolation
- ``"double quoted"``: literal with ``${NAME}`` interpolation and backslash escapes
- ``kind(arg, ...)``: call dispatched to the resolver registered as ``kind``
- anything else: unquoted literal with ``${NAME}`` interpolation; `` #`` starts
  an inline comment

The parser only knows the grammar.  Call kinds are opaque strings here, so new
resolvers never require parser changes.
"""

import re
from dataclasses import dataclass

from envlock.lib.validator.constraints import split_arguments

NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_CALL_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_-]*)\(")

_ESCAPES = {'"': '"', "\\": "\\", "n": "\n", "t": "\t", "$": "$"}


class ExpressionSyntaxError(ValueError):
    """Raised when a value expression does not follow the grammar."""


@dataclass(frozen=True)
class Reference:
    """A ``${NAME}`` reference inside a template."""

    name: str


@dataclass(frozen=True)
class Template:
    """Literal text with optional ``${NAME}`` references."""

    parts: tuple[str | Reference, ...]

    @property
    def references(self) -> tuple[str, ...]:
        names: list[str] = []
        for part in self.parts:
            if isinstance(part, Reference) and part.name not in names:
                names.append(part.name)
        return tuple(names)

    @property
    def is_literal(self) -> bool:
        return not self.references

    def literal_text(self) -> str:
        """Return the text of a reference-free template."""
        return "".join(p for p in self.parts if isinstance(p, str))


@dataclass(frozen=True)
class Call:
    """A ``kind(arg, ...)`` call to a resolver plugin."""

    kind: str
    args: tuple[Template, ...]

    @property
    def references(self) -> tuple[str, ...]:
        names: list[str] = []
        for arg in self.args:
            for name in arg.references:
                if name not in names:
                    names.append(name)
        return tuple(names)


ValueExpression = Template | Call


def parse_value_expression(text: str) -> ValueExpression | None:
    """Parse the right-hand side of a field line.

    Args:
        text: Everything after the ``=`` sign.

    Returns:
        The parsed expression, or None for an empty right-hand side.

    Raises:
        ExpressionSyntaxError: On unterminated quotes or calls, bad
            references, or trailing text after a quoted value or call.
    """
    s = text.strip()
    if not s:
        return None

    if s[0] in ("'", '"'):
        end = _closing_quote(s, 0)
        _expect_only_comment(s[end + 1 :])
        return _parse_quoted(s[: end + 1])

    call = _CALL_RE.match(s)
    if call:
        open_idx = call.end() - 1
        close_idx = _closing_paren(s, open_idx)
        _expect_only_comment(s[close_idx + 1 :])
        inner = s[open_idx + 1 : close_idx]
        return Call(kind=call.group(1), args=_parse_call_args(inner))

    return parse_template(strip_inline_comment(s).rstrip())


def parse_template(text: str, *, escapes: bool = False) -> Template:
    """Split text into literal parts and ``${NAME}`` references.

    Args:
        text: Template text (without surrounding quotes).
        escapes: Decode backslash escapes (double-quoted strings only).
    """
    parts: list[str | Reference] = []
    buf: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if escapes and ch == "\\" and i + 1 < len(text):
            nxt = text[i + 1]
            buf.append(_ESCAPES.get(nxt, "\\" + nxt))
            i += 2
            continue
        if ch == "$" and text.startswith("${", i):
            close = text.find("}", i + 2)
            if close == -1:
                msg = "unterminated ${ reference"
                raise ExpressionSyntaxError(msg)
            name = text[i + 2 : close].strip()
            if not NAME_RE.match(name):
                msg = f"invalid reference name {name!r}"
                raise ExpressionSyntaxError(msg)
            if buf:
                parts.append("".join(buf))
                buf = []
            parts.append(Reference(name))
            i = close + 1
            continue
        buf.append(ch)
        i += 1
    if buf or not parts:
        parts.append("".join(buf))
    return Template(parts=tuple(parts))


def strip_inline_comment(text: str) -> str:
    """Drop a trailing `` # comment`` from an unquoted value."""
    idx = text.find(" #")
    tab_idx = text.find("\t#")
    if tab_idx != -1 and (idx == -1 or tab_idx < idx):
        idx = tab_idx
    return text if idx == -1 else text[:idx]


def _parse_quoted(token: str) -> Template:
    body = token[1:-1]
    if token[0] == "'":
        return Template(parts=(body,))
    return parse_template(body, escapes=True)


def _parse_call_args(inner: str) -> tuple[Template, ...]:
    if not inner.strip():
        return ()
    try:
        raw_args = split_arguments(inner)
    except ValueError as exc:
        raise ExpressionSyntaxError(str(exc)) from None
    args: list[Template] = []
    for raw in raw_args:
        arg = raw.strip()
        if not arg:
            msg = "empty argument in call"
            raise ExpressionSyntaxError(msg)
        if arg[0] in ("'", '"'):
            end = _closing_quote(arg, 0)
            if end != len(arg) - 1:
                msg = "unexpected text after quoted argument"
                raise ExpressionSyntaxError(msg)
            args.append(_parse_quoted(arg))
        else:
            args.append(parse_template(arg))
    return tuple(args)


def _closing_quote(s: str, start: int) -> int:
    quote = s[start]
    i = start + 1
    while i < len(s):
        if quote == '"' and s[i] == "\\":
            i += 2
            continue
        if s[i] == quote:
            return i
        i += 1
    msg = f"unterminated {quote} quote"
    raise ExpressionSyntaxError(msg)


def _closing_paren(s: str, open_idx: int) -> int:
    depth = 0
    i = open_idx
    while i < len(s):
        ch = s[i]
        if ch in ("'", '"'):
            i = _closing_quote(s, i) + 1
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    msg = "unterminated call: missing ')'"
    raise ExpressionSyntaxError(msg)


def _expect_only_comment(rest: str) -> None:
    rest = rest.strip()
    if rest and not rest.startswith("#"):
        msg = "unexpected text after closing quote or call"
        raise ExpressionSyntaxError(msg)
