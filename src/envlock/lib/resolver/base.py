"""Abstract resolver interface for pluggable value sources."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field


class ResolutionError(Exception):
    """Raised when a field's value cannot be obtained.

    Per-field and non-fatal: the engine records it on the field and keeps
    resolving the rest of the schema.  Messages must not contain resolved
    values.

    Args:
        message: Human-readable error description.
        resolver: Kind of the resolver that failed, when applicable.
    """

    def __init__(self, message: str, resolver: str | None = None) -> None:
        self.message = message
        self.resolver = resolver
        super().__init__(f"{resolver}(): {message}" if resolver else message)


@dataclass(frozen=True)
class ResolutionContext:
    """What a resolver may see while resolving one field.

    Attributes:
        field_name: Name of the field being resolved.
        sensitive: Whether the field is masked; resolvers use it to decide
            how much diagnostic detail is safe to put in error messages.
        host_env: The host process environment (read-only).
        values: Raw values of the field's resolved dependencies only.
    """

    field_name: str
    sensitive: bool
    host_env: Mapping[str, str] = field(default_factory=dict)
    values: Mapping[str, str] = field(default_factory=dict)


class BaseResolver(ABC):
    """Abstract resolver interface. All value-source plugins must implement this."""

    @property
    @abstractmethod
    def kind(self) -> str:
        """Call name that dispatches to this resolver, e.g. ``exec``."""

    @abstractmethod
    async def resolve(self, args: list[str], context: ResolutionContext) -> str:
        """Produce the raw value for one field.

        Args:
            args: Call arguments, already interpolated.
            context: Field name, sensitivity, host environment and
                dependency values.

        Returns:
            The raw string value.

        Raises:
            ResolutionError: If the value cannot be obtained.
        """
