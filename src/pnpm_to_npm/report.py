"""Conversion statistics and schema-friendly output."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .converter import ConversionResult


@dataclass(frozen=True)
class FileStats:
    """Sizes of the source and written lockfiles plus the conversion result."""

    source: Path
    output: Path | None
    source_size: int
    output_size: int
    result: ConversionResult


def aggregate(stats: FileStats) -> dict[str, Any]:
    """Summarise a conversion as a JSON-friendly dict.

    ``totals`` counts entries by kind; ``warnings`` lists unresolved peers.
    """
    warnings = [w.to_dict() for w in stats.result.warnings]
    return {
        "source": {"path": str(stats.source), "bytes": stats.source_size},
        "output": {
            "path": str(stats.output) if stats.output else None,
            "bytes": stats.output_size,
        },
        "lockfileVersion": stats.result.document.lockfile_version,
        "totals": stats.result.document.totals,
        "hasWarnings": bool(warnings),
        "warnings": warnings,
    }
