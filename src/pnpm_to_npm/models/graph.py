"""In-memory dependency graph decoded from a pnpm lockfile."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from collections.abc import Iterator, Mapping

ROOT_IMPORTER = "."

KIND_REGULAR = "regular"
KIND_OPTIONAL = "optional"
KIND_PEER = "peer"
_VALID_KINDS = {KIND_REGULAR, KIND_OPTIONAL, KIND_PEER}

LINK_PREFIX = "link:"


def is_link(reference: str) -> bool:
    return reference.startswith(LINK_PREFIX)


@dataclass(frozen=True)
class Specifier:
    """One dependency declared by an importer."""

    name: str
    specifier: str
    reference: str

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Specifier name must be non-empty")
        if not self.reference:
            raise ValueError(f"Specifier {self.name} has no resolved reference")

    @property
    def is_link(self) -> bool:
        return is_link(self.reference)


@dataclass(frozen=True)
class Importer:
    """One installable project root: the repository root or a workspace member."""

    path: str
    dependencies: tuple[Specifier, ...] = ()
    dev_dependencies: tuple[Specifier, ...] = ()
    optional_dependencies: tuple[Specifier, ...] = ()

    @property
    def is_root(self) -> bool:
        return self.path == ROOT_IMPORTER

    def sections(self) -> Iterator[tuple[str, tuple[Specifier, ...]]]:
        """Yield (section, specifiers) with production sections first."""
        yield "dependencies", self.dependencies
        yield "optionalDependencies", self.optional_dependencies
        yield "devDependencies", self.dev_dependencies


@dataclass(frozen=True)
class Resolution:
    """Where a package came from and how to verify it."""

    integrity: str | None = None
    tarball: str | None = None
    directory: str | None = None
    repo: str | None = None
    commit: str | None = None

    @property
    def is_git(self) -> bool:
        return bool(self.repo and self.commit)

    @property
    def is_directory(self) -> bool:
        return bool(self.directory)


@dataclass(frozen=True)
class Dependency:
    """Outgoing edge of a package node."""

    name: str
    key: str
    kind: str = KIND_REGULAR

    def __post_init__(self) -> None:
        if self.kind not in _VALID_KINDS:
            raise ValueError(f"Invalid dependency kind: {self.kind}")


@dataclass(frozen=True)
class PackageNode:
    """One fully resolved package instance.

    ``key`` is the pnpm package id, which may carry a peer suffix. Nodes with
    the same ``name`` and ``version`` but different keys share a tarball but
    resolve their peers differently, so each is its own instance.
    """

    key: str
    name: str
    version: str
    resolution: Resolution
    dependencies: tuple[Dependency, ...] = ()
    peer_dependencies: Mapping[str, str] = field(default_factory=dict)
    optional_peers: frozenset[str] = frozenset()
    os: tuple[str, ...] = ()
    cpu: tuple[str, ...] = ()
    engines: Mapping[str, str] = field(default_factory=dict)
    requires_build: bool = False
    deprecated: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError(f"Package {self.key} has no name")
        if not self.version:
            raise ValueError(f"Package {self.key} has no version")
        object.__setattr__(self, "peer_dependencies", MappingProxyType(dict(self.peer_dependencies)))
        object.__setattr__(self, "engines", MappingProxyType(dict(self.engines)))

    @property
    def unresolved_peers(self) -> dict[str, str]:
        """Peer requirements that pnpm did not resolve to a concrete edge."""
        resolved = {dep.name for dep in self.dependencies if dep.kind == KIND_PEER}
        return {
            name: rng for name, rng in self.peer_dependencies.items() if name not in resolved
        }


@dataclass(frozen=True)
class LockfileGraph:
    """Parsed pnpm lockfile: importers in declaration order and resolved packages."""

    lockfile_version: str
    importers: tuple[Importer, ...]
    packages: Mapping[str, PackageNode]

    def __post_init__(self) -> None:
        object.__setattr__(self, "packages", MappingProxyType(dict(self.packages)))

    @property
    def root(self) -> Importer:
        for importer in self.importers:
            if importer.is_root:
                return importer
        return self.importers[0]

    @property
    def workspaces(self) -> tuple[Importer, ...]:
        root = self.root
        return tuple(importer for importer in self.importers if importer is not root)

    def importer(self, path: str) -> Importer | None:
        for importer in self.importers:
            if importer.path == path:
                return importer
        return None

    def node(self, key: str) -> PackageNode:
        return self.packages[key]
