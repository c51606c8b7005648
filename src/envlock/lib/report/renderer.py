"""Redacted rendering of validation reports.

Sensitive values are replaced by a fixed-width mask token in every output
mode, whatever their validation outcome.  Public values and error messages
are additionally scrubbed of any sensitive value they happen to contain.
"""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Any

from envlock.core.sensitivity import sensitivity_label
from envlock.lib.report.types import ResolvedField, ValidationReport

DEFAULT_MASK = "********"
UNSET = "<unset>"
MISSING = "<missing>"
MIN_SCRUB_LENGTH = 4


class ReportFormat(StrEnum):
    """Output formats for ``load``."""

    PRETTY = "pretty"
    JSON = "json"


class _Scrubber:
    """Replaces sensitive raw values found inside otherwise public text.

    Values shorter than :data:`MIN_SCRUB_LENGTH` are left alone: masking
    every ``"1"`` or ``"dev"`` in public text would reveal the secret by
    where the mask lands.  Such values are still masked in their own field.
    """

    def __init__(self, report: ValidationReport, mask: str) -> None:
        self._secrets = [s for s in report.sensitive_values() if len(s) >= MIN_SCRUB_LENGTH]
        self._mask = mask

    def __call__(self, text: str) -> str:
        for secret in self._secrets:
            if secret in text:
                text = text.replace(secret, self._mask)
        return text


def render_report(
    report: ValidationReport,
    *,
    mask: str = DEFAULT_MASK,
    quiet: bool = False,
    output_format: ReportFormat = ReportFormat.PRETTY,
) -> str:
    """Render a report for humans or tools.

    Args:
        report: The validation report.
        mask: Token printed instead of sensitive values.
        quiet: Print nothing on success; on failure print only
            ``NAME: ErrorKind`` lines.
        output_format: ``pretty`` text or ``json``.

    Returns:
        The rendered text, possibly empty (quiet success).
    """
    if quiet:
        return "\n".join(render_quiet(report))
    if output_format is ReportFormat.JSON:
        return render_json(report, mask=mask)
    return "\n".join(render_pretty(report, mask=mask))


def render_quiet(report: ValidationReport) -> list[str]:
    """Failing field names and error kinds only; nothing on success."""
    return [f"{name}: {error.kind.value}" for name, error in report.errors]


def render_pretty(report: ValidationReport, *, mask: str = DEFAULT_MASK) -> list[str]:
    """One line per field in declaration order, then a summary line."""
    scrub = _Scrubber(report, mask)
    lines = [f"envlock: {report.source}"] if report.source else []
    for resolved in report.fields:
        status = "PASS" if resolved.ok else "FAIL"
        label = sensitivity_label(resolved.effective_sensitivity)
        line = f"  {status}  {label:<6}  {resolved.name}: {display_value(resolved, mask, scrub)}"
        if resolved.error is not None:
            line += f" ({resolved.error.kind.value}: {scrub(resolved.error.message)})"
        lines.append(line)
    lines.append(summary_line(report))
    return lines


def render_json(report: ValidationReport, *, mask: str = DEFAULT_MASK) -> str:
    """The same redacted information as :func:`render_pretty`, as JSON."""
    scrub = _Scrubber(report, mask)
    fields: list[dict[str, Any]] = []
    for resolved in report.fields:
        value: str | None = None
        if resolved.effective_sensitivity:
            value = mask
        elif resolved.raw_value is not None:
            value = scrub(resolved.raw_value.display(mask))
        error = resolved.error
        fields.append(
            {
                "name": resolved.name,
                "sensitive": resolved.effective_sensitivity,
                "status": "pass" if resolved.ok else "fail",
                "value": value,
                "error": {"kind": error.kind.value, "message": scrub(error.message)} if error else None,
            }
        )
    payload = {
        "source": report.source,
        "ok": report.ok,
        "error_count": report.error_count,
        "fields": fields,
    }
    return json.dumps(payload, indent=2)


def display_value(resolved: ResolvedField, mask: str, scrub: _Scrubber) -> str:
    """Text shown for a field's value.

    Sensitive fields always show the mask, including when their value is
    missing, so output never reveals whether a secret is set.
    """
    if resolved.effective_sensitivity:
        return mask
    if resolved.raw_value is None:
        return MISSING if resolved.required else UNSET
    return scrub(resolved.raw_value.display(mask))


def summary_line(report: ValidationReport) -> str:
    count = report.error_count
    noun = "error" if count == 1 else "errors"
    return f"Result: {'PASS' if report.ok else 'FAIL'} ({count} {noun})"
