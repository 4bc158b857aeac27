"""Install entry model: one row of an npm lockfile ``packages`` map."""

from __future__ import annotations

from dataclasses import dataclass, field
from collections.abc import Mapping


@dataclass(frozen=True)
class InstallEntry:
    """A package (or project) placed at a node_modules-relative path.

    ``name`` is the install name (the directory under node_modules), while
    ``package_name`` is the name in the package's own manifest. They differ
    for aliased dependencies.
    """

    path: str
    name: str
    version: str | None = None
    package_name: str | None = None
    resolved: str | None = None
    integrity: str | None = None
    dev: bool = False
    optional: bool = False
    dev_optional: bool = False
    peer: bool = False
    link: bool = False
    project: bool = False
    requires_build: bool = False
    dependencies: Mapping[str, str] = field(default_factory=dict)
    dev_dependencies: Mapping[str, str] = field(default_factory=dict)
    optional_dependencies: Mapping[str, str] = field(default_factory=dict)
    peer_dependencies: Mapping[str, str] = field(default_factory=dict)
    optional_peers: tuple[str, ...] = ()
    workspaces: tuple[str, ...] = ()
    engines: Mapping[str, str] = field(default_factory=dict)
    os: tuple[str, ...] = ()
    cpu: tuple[str, ...] = ()
    deprecated: str | None = None

    def __post_init__(self) -> None:
        if self.link and not self.resolved:
            raise ValueError(f"Link entry {self.path} must resolve to a project path")
        if not self.link and not self.project and not self.version:
            raise ValueError(f"Entry {self.path} must have a version")
        if self.dev and self.dev_optional:
            raise ValueError(f"Entry {self.path} cannot be both dev and devOptional")

    def to_dict(self) -> dict[str, object]:
        if self.link:
            return {"resolved": self.resolved, "link": True}

        data: dict[str, object] = {}
        display_name = self.package_name or self.name
        if display_name and (self.project or display_name != self.name):
            data["name"] = display_name
        if self.version:
            data["version"] = self.version
        if self.resolved:
            data["resolved"] = self.resolved
        if self.integrity:
            data["integrity"] = self.integrity
        for key, flag in (
            ("dev", self.dev),
            ("optional", self.optional),
            ("devOptional", self.dev_optional),
            ("peer", self.peer),
            ("hasInstallScript", self.requires_build),
        ):
            if flag:
                data[key] = True
        if self.workspaces:
            data["workspaces"] = list(self.workspaces)
        for key, deps in (
            ("dependencies", self.dependencies),
            ("devDependencies", self.dev_dependencies),
            ("optionalDependencies", self.optional_dependencies),
            ("peerDependencies", self.peer_dependencies),
        ):
            if deps:
                data[key] = dict(deps)
        if self.optional_peers:
            data["peerDependenciesMeta"] = {
                name: {"optional": True} for name in self.optional_peers
            }
        if self.engines:
            data["engines"] = dict(self.engines)
        if self.os:
            data["os"] = list(self.os)
        if self.cpu:
            data["cpu"] = list(self.cpu)
        if self.deprecated:
            data["deprecated"] = self.deprecated
        return data
