"""Core conversion entrypoints.

``convert_lockfile`` does no I/O of its own: text in, document out.
``convert_location`` wraps it with the filesystem work (reading manifests,
validating and writing package-lock.json) for the CLI and library callers.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from collections.abc import Callable, Mapping
from typing import Union

from .config import Settings
from .converter import ConversionResult, convert
from .discovery import LockfileLocation
from .models.graph import LockfileGraph
from .models.package_lock import NpmLockfile
from .parsers.package_json import ProjectManifest
from .parsers.package_json import parse as parse_package_json
from .parsers.pnpm_lock import parse as parse_pnpm_lock
from .report import FileStats
from .validators.package_lock import validate_document

logger = logging.getLogger(__name__)


ManifestSource = Union[
    Mapping[str, ProjectManifest], Callable[[LockfileGraph], Mapping[str, ProjectManifest]]
]


def convert_lockfile(
    text: str,
    *,
    settings: Settings | None = None,
    manifests: ManifestSource | None = None,
) -> ConversionResult:
    """Parse pnpm lockfile text and convert it into an npm lockfile document.

    ``manifests`` maps importer paths to their package.json identity, or is a
    callable that builds that mapping from the parsed graph.

    Raises ``LockfileError`` subclasses for malformed input.
    """
    settings = settings or Settings()
    graph = parse_pnpm_lock(text)
    logger.debug(
        "Parsed lockfile %s: %d importer(s), %d package(s)",
        graph.lockfile_version,
        len(graph.importers),
        len(graph.packages),
    )
    if callable(manifests):
        manifests = manifests(graph)
    return convert(
        graph,
        manifests=manifests,
        registry=settings.registry,
        lockfile_version=settings.lockfile_version,
        max_depth=settings.max_depth,
    )


def serialize(document: NpmLockfile, indent: int = 2) -> str:
    """Render a document the way npm writes package-lock.json."""
    return json.dumps(document.to_dict(), indent=indent or None) + "\n"


def read_manifests(graph: LockfileGraph, base_dir: Path) -> dict[str, ProjectManifest]:
    """Read package.json of every importer, keyed by importer path."""
    manifests: dict[str, ProjectManifest] = {}
    for importer in graph.importers:
        path = (base_dir / importer.path / "package.json").resolve()
        manifests[importer.path] = parse_package_json(path)
        logger.debug("Manifest for importer %s: %s", importer.path, manifests[importer.path])
    return manifests


def convert_location(
    location: LockfileLocation,
    *,
    settings: Settings | None = None,
    output: Path | None = None,
    write: bool = True,
) -> FileStats:
    """Convert the lockfile at ``location`` and write package-lock.json beside it.

    Returns sizes of both files plus the conversion result. With ``write``
    false nothing is written and the output size is the serialized length.
    """
    settings = settings or Settings()
    text = location.lockfile.read_text(encoding="utf-8")
    logger.info("Converting %s", location.lockfile)

    result = convert_lockfile(
        text,
        settings=settings,
        manifests=lambda graph: read_manifests(graph, location.base_dir),
    )
    for warning in result.warnings:
        logger.warning("Unresolved peer dependency: %s", warning)

    if settings.validate_output:
        validate_document(result.document.to_dict())

    content = serialize(result.document, settings.indent)
    target: Path | None = None
    if write:
        target = output or location.output
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        logger.info("Wrote %s", target)

    return FileStats(
        source=location.lockfile,
        output=target,
        source_size=location.lockfile.stat().st_size,
        output_size=len(content.encode("utf-8")),
        result=result,
    )
