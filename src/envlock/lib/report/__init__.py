"""Report library — per-invocation results and their redacted rendering.

Public API:
    - GuardedValue / RevealIntent: Value wrapper that masks by construction
    - ResolvedField / ValidationReport: Per-field and aggregate results
    - ErrorKind / FieldError: Non-fatal per-field errors
    - build_report / evaluate_field: Validate resolution results
    - render_report: Redacted pretty/JSON/quiet rendering
    - ReportFormat: Output format enum
"""

from envlock.lib.report.builder import build_report, evaluate_field
from envlock.lib.report.renderer import (
    DEFAULT_MASK,
    MIN_SCRUB_LENGTH,
    ReportFormat,
    render_json,
    render_pretty,
    render_quiet,
    render_report,
    summary_line,
)
from envlock.lib.report.types import (
    ErrorKind,
    FieldError,
    GuardedValue,
    ResolvedField,
    RevealIntent,
    ValidationReport,
)

__all__ = [
    "DEFAULT_MASK",
    "ErrorKind",
    "FieldError",
    "GuardedValue",
    "MIN_SCRUB_LENGTH",
    "ReportFormat",
    "ResolvedField",
    "RevealIntent",
    "ValidationReport",
    "build_report",
    "evaluate_field",
    "render_json",
    "render_pretty",
    "render_quiet",
    "render_report",
    "summary_line",
]
