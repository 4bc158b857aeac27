"""Data models for the pnpm source graph and the npm target document."""

from __future__ import annotations

from .graph import (
    Dependency,
    Importer,
    LockfileGraph,
    PackageNode,
    Resolution,
    Specifier,
)
from .install_entry import InstallEntry
from .package_lock import NpmLockfile

__all__ = [
    "Dependency",
    "Importer",
    "InstallEntry",
    "LockfileGraph",
    "NpmLockfile",
    "PackageNode",
    "Resolution",
    "Specifier",
]
