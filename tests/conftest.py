"""Shared test fixtures for schema files, engine settings and log sinks."""

import shlex
import sys
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from loguru import logger

from envlock.core.config import Settings

# Shell-quoted interpreter path, usable inside exec("...") expressions.
PYTHON = shlex.quote(sys.executable)

SchemaWriter = Callable[..., Path]


@pytest.fixture
def settings() -> Settings:
    """Test engine settings with a short command timeout."""
    return Settings(command_timeout=5.0, max_concurrency=4)


@pytest.fixture
def python_cmd() -> str:
    """Shell-quoted path of the running interpreter, for exec(...) expressions."""
    return PYTHON


@pytest.fixture
def write_schema(tmp_path: Path) -> SchemaWriter:
    """Return a helper that writes a schema (or overlay) file into tmp_path."""

    def _write(text: str, name: str = ".env.schema") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture(autouse=True)
def _reset_logging() -> Generator[None]:
    """Restore a single stderr sink after tests that reconfigure Loguru."""
    yield
    logger.remove()
    logger.add(sys.stderr, level="WARNING")
