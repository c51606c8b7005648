"""Runtime result types for one load/run invocation.

Resolved values are held in :class:`GuardedValue`, which stores the raw string
in a pydantic ``SecretStr`` and only hands it out for a declared
:class:`RevealIntent`.  Human-readable output goes through
:meth:`GuardedValue.display`, which applies the masking decision fixed when
the value was wrapped.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from pydantic import SecretStr

from envlock.lib.schema.types import FieldDeclaration


class RevealIntent(enum.StrEnum):
    """Reasons a raw value may be unwrapped."""

    VALIDATE = "validate"
    INTERPOLATE = "interpolate"
    INJECT = "inject"
    REDACT = "redact"


class GuardedValue:
    """A resolved value whose masking decision is fixed at construction.

    ``str()`` and ``repr()`` never include the raw value, whatever the
    sensitivity.  :meth:`display` is the only path to human-readable text.
    """

    __slots__ = ("_secret", "_sensitive")

    def __init__(self, raw: str, *, sensitive: bool) -> None:
        self._secret = SecretStr(raw)
        self._sensitive = sensitive

    @property
    def sensitive(self) -> bool:
        return self._sensitive

    def reveal(self, intent: RevealIntent) -> str:
        """Return the raw value for a declared non-display purpose.

        Raises:
            TypeError: If ``intent`` is not a :class:`RevealIntent`.
        """
        if not isinstance(intent, RevealIntent):
            msg = "reveal() requires a RevealIntent"
            raise TypeError(msg)
        return self._secret.get_secret_value()

    def display(self, mask: str) -> str:
        """Text for human-readable output: the mask when sensitive, else the value."""
        if self._sensitive:
            return mask
        return self._secret.get_secret_value()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GuardedValue):
            return NotImplemented
        return self._sensitive == other._sensitive and self._secret == other._secret

    def __hash__(self) -> int:
        return hash((self._sensitive, self._secret.get_secret_value()))

    def __str__(self) -> str:
        return str(self._secret)

    def __repr__(self) -> str:
        return f"GuardedValue(sensitive={self._sensitive}, value={self._secret!s})"


class ErrorKind(enum.StrEnum):
    """Per-field, non-fatal error kinds."""

    RESOLUTION_ERROR = "ResolutionError"
    VALIDATION_ERROR = "ValidationError"
    MISSING_REQUIRED = "MissingRequired"


@dataclass(frozen=True)
class FieldError:
    """A per-field error.  ``message`` never contains the field's raw value."""

    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class ResolvedField:
    """A field declaration paired with its resolution and validation results.

    Attributes:
        declaration: The schema declaration.
        effective_sensitivity: Masking decision, computed from the schema
            before resolution.
        raw_value: Resolved value, or None when absent.
        resolution_error: Set when the value could not be resolved.
        validated_value: Typed value when validation passed.
        validation_error: Set on a type mismatch or a missing required value.
    """

    declaration: FieldDeclaration
    effective_sensitivity: bool
    raw_value: GuardedValue | None = None
    resolution_error: FieldError | None = None
    validated_value: Any = field(default=None, repr=False)
    validation_error: FieldError | None = None

    @property
    def name(self) -> str:
        return self.declaration.name

    @property
    def required(self) -> bool:
        return self.declaration.is_required

    @property
    def error(self) -> FieldError | None:
        return self.resolution_error or self.validation_error

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def is_present(self) -> bool:
        return self.raw_value is not None


@dataclass(frozen=True)
class ValidationReport:
    """All resolved fields of one invocation, in declaration order."""

    fields: tuple[ResolvedField, ...] = ()
    source: str | None = None

    @property
    def ok(self) -> bool:
        return all(f.ok for f in self.fields)

    @property
    def errors(self) -> list[tuple[str, FieldError]]:
        return [(f.name, f.error) for f in self.fields if f.error is not None]

    @property
    def error_count(self) -> int:
        return sum(1 for f in self.fields if f.error is not None)

    def get(self, name: str) -> ResolvedField | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def environment(self) -> dict[str, str]:
        """Every resolved value keyed by name, for a child process environment."""
        return {f.name: f.raw_value.reveal(RevealIntent.INJECT) for f in self.fields if f.raw_value is not None}

    def sensitive_values(self) -> list[str]:
        """Non-empty raw values of sensitive fields, longest first, for scrubbing output."""
        values = {
            f.raw_value.reveal(RevealIntent.REDACT)
            for f in self.fields
            if f.effective_sensitivity and f.raw_value is not None
        }
        return sorted((v for v in values if v), key=len, reverse=True)
