"""Parse package.json for the identity of a project."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ProjectManifest:
    """Name and version declared by a project's package.json."""

    name: str | None = None
    version: str | None = None


def parse(path: Path) -> ProjectManifest:
    """Return the manifest at ``path``; an absent file yields an empty manifest.

    Raises ``ValueError`` if the file exists but is not a JSON object.
    """
    import json

    if not path.is_file():
        return ProjectManifest()

    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")

    name = data.get("name")
    version = data.get("version")
    return ProjectManifest(
        name=str(name) if name else None,
        version=str(version) if version else None,
    )
