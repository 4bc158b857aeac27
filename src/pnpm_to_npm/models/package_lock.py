"""npm package-lock.json document model."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from collections.abc import Iterable, Mapping

from .install_entry import InstallEntry

SUPPORTED_LOCKFILE_VERSIONS = (2, 3)
_NODE_MODULES = "node_modules/"
_NESTED = "/node_modules/"


@dataclass(frozen=True)
class NpmLockfile:
    """Immutable npm lockfile: entries keyed by placement path, sorted by path."""

    name: str | None
    version: str | None
    lockfile_version: int
    entries: Mapping[str, InstallEntry]

    def __post_init__(self) -> None:
        if self.lockfile_version not in SUPPORTED_LOCKFILE_VERSIONS:
            raise ValueError(f"Unsupported npm lockfileVersion: {self.lockfile_version}")
        ordered = {path: self.entries[path] for path in sorted(self.entries)}
        for path, entry in ordered.items():
            if entry.path != path:
                raise ValueError(f"Entry keyed {path!r} reports path {entry.path!r}")
        object.__setattr__(self, "entries", MappingProxyType(ordered))

    @classmethod
    def from_entries(
        cls,
        *,
        name: str | None,
        version: str | None,
        lockfile_version: int,
        entries: Iterable[InstallEntry],
    ) -> NpmLockfile:
        mapping: dict[str, InstallEntry] = {}
        for entry in entries:
            if entry.path in mapping:
                raise ValueError(f"Duplicate placement path: {entry.path}")
            mapping[entry.path] = entry
        return cls(name=name, version=version, lockfile_version=lockfile_version, entries=mapping)

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {}
        if self.name:
            data["name"] = self.name
        if self.version:
            data["version"] = self.version
        data["lockfileVersion"] = self.lockfile_version
        data["requires"] = True
        data["packages"] = {path: entry.to_dict() for path, entry in self.entries.items()}
        if self.lockfile_version == 2:
            data["dependencies"] = self.legacy_dependencies()
        return data

    @property
    def totals(self) -> dict[str, int]:
        packages = [e for e in self.entries.values() if not e.project and not e.link]
        return {
            "entries": len(self.entries),
            "packages": len(packages),
            "dev": sum(1 for e in packages if e.dev),
            "optional": sum(1 for e in packages if e.optional),
            "links": sum(1 for e in self.entries.values() if e.link),
        }

    def entries_named(self, name: str) -> list[InstallEntry]:
        return [e for e in self.entries.values() if e.name == name and not e.project]

    def legacy_dependencies(self) -> dict[str, dict[str, object]]:
        """Build the nested ``dependencies`` tree read by npm 6.

        Only entries under the root node_modules are representable there;
        workspace-local node_modules are left out, as npm does.
        """
        tree: dict[str, dict[str, object]] = {}
        for path, entry in self.entries.items():
            if entry.project or not path.startswith(_NODE_MODULES):
                continue
            names = path[len(_NODE_MODULES):].split(_NESTED)
            level = tree
            for parent in names[:-1]:
                holder = level.setdefault(parent, {})
                level = holder.setdefault("dependencies", {})  # type: ignore[assignment]
            node = level.setdefault(names[-1], {})
            node.update(_legacy_node(entry))
        return tree


def _legacy_node(entry: InstallEntry) -> dict[str, object]:
    if entry.link:
        return {"version": f"file:{entry.resolved}"}

    node: dict[str, object] = {}
    if entry.package_name and entry.package_name != entry.name:
        node["version"] = f"npm:{entry.package_name}@{entry.version}"
    else:
        node["version"] = entry.version
    if entry.resolved:
        node["resolved"] = entry.resolved
    if entry.integrity:
        node["integrity"] = entry.integrity
    if entry.dev:
        node["dev"] = True
    if entry.optional or entry.dev_optional:
        node["optional"] = True
    requires = {**entry.dependencies, **entry.optional_dependencies}
    if requires:
        node["requires"] = requires
    return node
