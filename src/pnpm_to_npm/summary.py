"""Human-readable conversion summary for the terminal."""

from __future__ import annotations

from typing import Any

LINE_WIDTH = 60


def _pretty_line(text: str = "") -> str:
    if not text:
        return "=" * LINE_WIDTH
    padded = f" {text} "
    return padded.center(LINE_WIDTH, "=")


def render_summary(report: dict[str, Any]) -> str:
    """Return a plain-text block with file sizes, entry counts and warnings."""
    source = report.get("source", {})
    output = report.get("output", {})
    totals = report.get("totals", {})

    lines = []
    lines.append(f"\tpnpm-lock.yaml: {source.get('bytes', 0)} bytes")
    lines.append(f"\tpackage-lock.json: {output.get('bytes', 0)} bytes")
    lines.append(
        f"\tpackages: {totals.get('packages', 0)} "
        f"(dev: {totals.get('dev', 0)}, optional: {totals.get('optional', 0)}, "
        f"links: {totals.get('links', 0)})"
    )

    warnings = report.get("warnings") or []
    if warnings:
        lines.append(f"\tunresolved peer dependencies: {len(warnings)}")
        for warning in warnings:
            found = warning.get("found")
            detail = f"found {found}" if found else "missing"
            lines.append(
                f"\t  - {warning.get('dependent')} -> {warning.get('name')}@"
                f"{warning.get('range')} ({detail})"
            )

    lines.append(_pretty_line())
    lines.append(_pretty_line("package-lock.json SUCCESS"))
    if output.get("path"):
        lines.append(_pretty_line(f"available at {output['path']}"))
    lines.append(_pretty_line())
    return "\n".join(lines) + "\n"
