"""Fatal schema errors."""


class SchemaParseError(Exception):
    """Raised when a schema (or overlay) cannot be turned into a usable document.

    Covers malformed lines, unknown or misplaced directives, duplicate fields,
    invalid type constraints and dependency cycles.  Aborts the invocation
    before any value is resolved.

    Args:
        message: Human-readable error description.
        line: 1-based line number of the offending line, when known.
        field: Name of the offending field, when known.
        source: Path or label of the document being parsed.
    """

    def __init__(
        self,
        message: str,
        *,
        line: int | None = None,
        field: str | None = None,
        source: str | None = None,
    ) -> None:
        self.message = message
        self.line = line
        self.field = field
        self.source = source
        super().__init__(self._format())

    def _format(self) -> str:
        location = self.source or "<schema>"
        if self.line is not None:
            location = f"{location}:{self.line}"
        if self.field:
            return f"{location}: {self.field}: {self.message}"
        return f"{location}: {self.message}"
