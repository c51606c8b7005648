"""Unit tests for report building."""

from envlock.lib.report import ErrorKind, GuardedValue, build_report, evaluate_field
from envlock.lib.report.builder import MISSING_MESSAGE
from envlock.lib.resolver import FieldResolution
from envlock.lib.schema import parse_schema


class TestEvaluateField:
    """Tests for evaluate_field()."""

    def test_valid_value(self) -> None:
        """A valid value keeps its raw and typed forms."""
        declaration = parse_schema("# @type=port\nPORT=\n").get("PORT")
        resolved = evaluate_field(declaration, FieldResolution(value=GuardedValue("8080", sensitive=False)), False)
        assert resolved.ok
        assert resolved.validated_value == 8080
        assert resolved.is_present

    def test_validation_error(self) -> None:
        """A type mismatch is a ValidationError that keeps the raw value."""
        declaration = parse_schema("# @type=port\nPORT=\n").get("PORT")
        resolved = evaluate_field(declaration, FieldResolution(value=GuardedValue("70000", sensitive=False)), False)
        assert resolved.error.kind is ErrorKind.VALIDATION_ERROR
        assert resolved.validated_value is None
        assert resolved.raw_value is not None

    def test_oversized_port_is_a_field_error(self) -> None:
        """A garbled host value fails its own field instead of the whole report."""
        document = parse_schema("# @type=port\nDB_PORT=\nNAME=\n")
        report = build_report(
            document,
            {
                "DB_PORT": FieldResolution(value=GuardedValue("9" * 5000, sensitive=True)),
                "NAME": FieldResolution(value=GuardedValue("app", sensitive=True)),
            },
        )
        assert [(name, err.kind) for name, err in report.errors] == [("DB_PORT", ErrorKind.VALIDATION_ERROR)]

    def test_missing_required(self) -> None:
        """An absent required value is MissingRequired."""
        declaration = parse_schema("DATABASE_PASSWORD=\n").get("DATABASE_PASSWORD")
        resolved = evaluate_field(declaration, FieldResolution(), True)
        assert resolved.error.kind is ErrorKind.MISSING_REQUIRED
        assert resolved.error.message == MISSING_MESSAGE

    def test_absent_optional(self) -> None:
        """An absent optional value is fine."""
        declaration = parse_schema("# @required=false\nSENTRY_DSN=\n").get("SENTRY_DSN")
        resolved = evaluate_field(declaration, FieldResolution(), True)
        assert resolved.ok
        assert not resolved.is_present
        assert not resolved.required

    def test_resolution_error(self) -> None:
        """Resolution errors are reported as such, not as missing values."""
        declaration = parse_schema("TOKEN=\n").get("TOKEN")
        resolved = evaluate_field(declaration, FieldResolution(error="exec(): command not found: 'op'"), True)
        assert resolved.error.kind is ErrorKind.RESOLUTION_ERROR
        assert resolved.resolution_error.message == "exec(): command not found: 'op'"
        assert resolved.validation_error is None


class TestBuildReport:
    """Tests for build_report()."""

    def test_every_field_evaluated_in_order(self) -> None:
        """One failing field does not stop the others; order follows the schema."""
        document = parse_schema("# @type=port\nPORT=\nNAME=\nTOKEN=\n", source="app.schema")
        report = build_report(
            document,
            {
                "TOKEN": FieldResolution(value=GuardedValue("t", sensitive=True)),
                "NAME": FieldResolution(),
                "PORT": FieldResolution(value=GuardedValue("abc", sensitive=True)),
            },
        )
        assert [f.name for f in report.fields] == ["PORT", "NAME", "TOKEN"]
        assert not report.ok
        assert report.error_count == 2
        assert [(name, err.kind) for name, err in report.errors] == [
            ("PORT", ErrorKind.VALIDATION_ERROR),
            ("NAME", ErrorKind.MISSING_REQUIRED),
        ]
        assert report.source == "app.schema"

    def test_environment_contains_present_values(self) -> None:
        """The child environment holds every present raw value."""
        document = parse_schema("# @required=false\nA=\nB=\n")
        report = build_report(
            document,
            {"A": FieldResolution(), "B": FieldResolution(value=GuardedValue("b", sensitive=True))},
        )
        assert report.ok
        assert report.environment() == {"B": "b"}

    def test_sensitive_values_longest_first(self) -> None:
        """Sensitive raw values are listed longest first for scrubbing."""
        document = parse_schema("# @defaultSensitive=false\n\n# @sensitive\nA=\n# @sensitive\nB=\nC=\n")
        report = build_report(
            document,
            {
                "A": FieldResolution(value=GuardedValue("ab", sensitive=True)),
                "B": FieldResolution(value=GuardedValue("abcd", sensitive=True)),
                "C": FieldResolution(value=GuardedValue("public", sensitive=False)),
            },
        )
        assert report.sensitive_values() == ["abcd", "ab"]
