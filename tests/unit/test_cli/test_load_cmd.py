"""Unit tests for the load CLI command."""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from pathlib import Path

import pytest
from typer.testing import CliRunner

from envlock.cli.app import app

runner = CliRunner()

SECRET = "sk_live_0a1b2c3d4e"

SCHEMA = """\
# @type=enum(dev, staging, prod) @sensitive=false
NODE_ENV=dev

# @type=port @sensitive=false
PORT=3000

# @type=string(startsWith=sk_)
STRIPE_KEY=

DATABASE_PASSWORD=
"""


def _strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from text."""
    return re.sub(r"\x1b\[[0-9;]*m", "", text)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host variables and engine settings from leaking into the schema."""
    for name in ("NODE_ENV", "PORT", "STRIPE_KEY", "DATABASE_PASSWORD", "ENVLOCK_SCHEMA_PATH", "ENVLOCK_ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ENVLOCK_LOG_LEVEL", "WARNING")


class TestLoadCommand:
    """Tests for `envlock load`."""

    def test_success(self, write_schema: Callable[..., Path], monkeypatch: pytest.MonkeyPatch) -> None:
        """A valid environment exits 0 and prints a redacted report."""
        path = write_schema(SCHEMA)
        monkeypatch.setenv("STRIPE_KEY", SECRET)
        monkeypatch.setenv("DATABASE_PASSWORD", "hunter2")
        result = runner.invoke(app, ["load", "--schema", str(path)])
        output = _strip_ansi(result.output)
        assert result.exit_code == 0
        assert "NODE_ENV: dev" in output
        assert "PORT: 3000" in output
        assert "Result: PASS (0 errors)" in output
        assert SECRET not in output
        assert "hunter2" not in output

    def test_missing_required_exits_1(self, write_schema: Callable[..., Path], monkeypatch: pytest.MonkeyPatch) -> None:
        """A missing secret fails with exit code 1 and stays masked."""
        path = write_schema(SCHEMA)
        monkeypatch.setenv("STRIPE_KEY", SECRET)
        result = runner.invoke(app, ["load", "--schema", str(path)])
        output = _strip_ansi(result.output)
        assert result.exit_code == 1
        assert "DATABASE_PASSWORD: ******** (MissingRequired" in output
        assert "Result: FAIL (1 error)" in output
        assert SECRET not in output

    def test_invalid_port(self, write_schema: Callable[..., Path], monkeypatch: pytest.MonkeyPatch) -> None:
        """An out-of-range port is a validation error."""
        path = write_schema(SCHEMA)
        monkeypatch.setenv("PORT", "70000")
        monkeypatch.setenv("STRIPE_KEY", SECRET)
        monkeypatch.setenv("DATABASE_PASSWORD", "hunter2")
        result = runner.invoke(app, ["load", "--schema", str(path)])
        assert result.exit_code == 1
        assert "PORT: 70000 (ValidationError: expected port" in _strip_ansi(result.output)

    def test_quiet_success_is_silent(self, write_schema: Callable[..., Path], monkeypatch: pytest.MonkeyPatch) -> None:
        """--quiet prints nothing when everything passes."""
        path = write_schema(SCHEMA)
        monkeypatch.setenv("STRIPE_KEY", SECRET)
        monkeypatch.setenv("DATABASE_PASSWORD", "hunter2")
        result = runner.invoke(app, ["load", "--schema", str(path), "--quiet"])
        assert result.exit_code == 0
        assert result.output == ""

    def test_quiet_failure(self, write_schema: Callable[..., Path]) -> None:
        """--quiet lists only failing names and error kinds."""
        path = write_schema(SCHEMA)
        result = runner.invoke(app, ["load", "-s", str(path), "-q"])
        assert result.exit_code == 1
        assert _strip_ansi(result.output).splitlines() == [
            "STRIPE_KEY: MissingRequired",
            "DATABASE_PASSWORD: MissingRequired",
        ]

    def test_json_format(self, write_schema: Callable[..., Path], monkeypatch: pytest.MonkeyPatch) -> None:
        """--format json prints a machine-readable report."""
        path = write_schema(SCHEMA)
        monkeypatch.setenv("STRIPE_KEY", SECRET)
        result = runner.invoke(app, ["load", "--schema", str(path), "--format", "json"])
        assert result.exit_code == 1
        payload = json.loads(result.stdout)
        assert payload["ok"] is False
        assert {f["name"]: f["value"] for f in payload["fields"]}["STRIPE_KEY"] == "********"
        assert SECRET not in result.stdout

    def test_environment_overlay(self, write_schema: Callable[..., Path], monkeypatch: pytest.MonkeyPatch) -> None:
        """--env merges the matching overlay."""
        path = write_schema(SCHEMA)
        write_schema("NODE_ENV=prod\nPORT=443\n", name=".env.prod")
        monkeypatch.setenv("STRIPE_KEY", SECRET)
        monkeypatch.setenv("DATABASE_PASSWORD", "hunter2")
        result = runner.invoke(app, ["load", "--schema", str(path), "--env", "prod"])
        output = _strip_ansi(result.output)
        assert result.exit_code == 0
        assert "NODE_ENV: prod" in output
        assert "PORT: 443" in output

    def test_environment_from_settings(self, write_schema: Callable[..., Path], monkeypatch: pytest.MonkeyPatch) -> None:
        """ENVLOCK_ENVIRONMENT selects the overlay when --env is not given."""
        path = write_schema(SCHEMA)
        write_schema("NODE_ENV=staging\n", name=".env.staging")
        monkeypatch.setenv("ENVLOCK_ENVIRONMENT", "staging")
        monkeypatch.setenv("STRIPE_KEY", SECRET)
        monkeypatch.setenv("DATABASE_PASSWORD", "hunter2")
        result = runner.invoke(app, ["load", "--schema", str(path)])
        assert result.exit_code == 0
        assert "NODE_ENV: staging" in _strip_ansi(result.output)

    def test_schema_path_from_settings(self, write_schema: Callable[..., Path], monkeypatch: pytest.MonkeyPatch) -> None:
        """ENVLOCK_SCHEMA_PATH is used when --schema is not given."""
        path = write_schema("# @sensitive=false\nGREETING=hello\n", name="custom.schema")
        monkeypatch.setenv("ENVLOCK_SCHEMA_PATH", str(path))
        result = runner.invoke(app, ["load"])
        assert result.exit_code == 0
        assert "GREETING: hello" in _strip_ansi(result.output)

    def test_missing_overlay_exits_2(self, write_schema: Callable[..., Path]) -> None:
        """A missing overlay is a schema error."""
        path = write_schema(SCHEMA)
        result = runner.invoke(app, ["load", "--schema", str(path), "--env", "qa"])
        assert result.exit_code == 2
        assert "Schema error" in _strip_ansi(result.output)

    def test_cycle_exits_2(self, write_schema: Callable[..., Path]) -> None:
        """A dependency cycle is reported as a schema error with no report."""
        path = write_schema('A="${B}"\nB="${A}"\n')
        result = runner.invoke(app, ["load", "--schema", str(path)])
        output = _strip_ansi(result.output)
        assert result.exit_code == 2
        assert "interpolation dependency cycle" in output
        assert "Result:" not in output

    def test_missing_schema_file(self, tmp_path: Path) -> None:
        """A missing schema file exits 2."""
        result = runner.invoke(app, ["load", "--schema", str(tmp_path / "absent")])
        assert result.exit_code == 2
        assert "schema file not found" in _strip_ansi(result.output)

    def test_bad_environment_name(self, write_schema: Callable[..., Path]) -> None:
        """Environment names with path separators are rejected as usage errors."""
        path = write_schema(SCHEMA)
        result = runner.invoke(app, ["load", "--schema", str(path), "--env", "../etc"])
        assert result.exit_code == 2
        assert "Result:" not in _strip_ansi(result.output)


class TestVersionCommand:
    """Tests for `envlock version`."""

    def test_version_prints_something(self) -> None:
        """version always prints a line and exits 0."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert result.output.strip()
