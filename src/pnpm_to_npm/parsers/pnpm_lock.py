"""Parse pnpm-lock.yaml into a dependency graph.

Three on-disk dialects are understood:

- 5.x (pnpm 6/7): keys look like ``/name/1.2.3`` or ``/@scope/name/1.2.3_peer@1.0.0``,
  specifiers live in a separate ``specifiers`` map.
- 6.x (pnpm 8): keys look like ``/name@1.2.3(peer@1.0.0)``, importer entries carry
  inline ``specifier`` and ``version``.
- 9.x (pnpm 9+): keys drop the leading slash; package metadata stays in
  ``packages`` while per-instance edges move to ``snapshots``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..errors import MalformedLockfile, MissingResolution
from ..models.graph import (
    KIND_OPTIONAL,
    KIND_PEER,
    KIND_REGULAR,
    ROOT_IMPORTER,
    Dependency,
    Importer,
    LockfileGraph,
    PackageNode,
    Resolution,
    Specifier,
    is_link,
)

SUPPORTED_MAJORS = (5, 6, 9)

_IMPORTER_SECTIONS = (
    ("dependencies", "dependencies"),
    ("devDependencies", "dev_dependencies"),
    ("optionalDependencies", "optional_dependencies"),
)


@dataclass(frozen=True)
class _Dialect:
    major: int

    def dependency_key(self, name: str, reference: str) -> str:
        """Translate a dependency reference into the key of its package entry."""
        if is_link(reference):
            return reference
        base = reference.split("(", 1)[0]
        if self.major == 5:
            if reference.startswith("/") or "/" in base:
                return reference
            return f"/{name}/{reference}"
        if self.major == 6:
            if reference.startswith("/") or "/" in base:
                return reference
            return f"/{name}@{reference}"
        # 9.x: aliases are written as ``real-name@version``
        if "://" in base or base.startswith("file:"):
            return f"{name}@{reference}"
        if "@" in base[1:]:
            return reference
        return f"{name}@{reference}"

    def split_key(self, key: str) -> tuple[str, str]:
        """Return (name, version) encoded in a package key, peer suffix removed."""
        body = key[1:] if key.startswith("/") else key
        if self.major == 5:
            parts = body.split("/")
            if body.startswith("@"):
                if len(parts) < 3:
                    return "", ""
                name, version = "/".join(parts[:2]), parts[2]
            else:
                if len(parts) < 2:
                    return "", ""
                name, version = parts[0], parts[1]
            return name, version.split("_", 1)[0]

        body = body.split("(", 1)[0]
        idx = body.find("@", 1)
        if idx <= 0:
            return "", ""
        return body[:idx], body[idx + 1:]


def parse(text: str) -> LockfileGraph:
    """Decode pnpm lockfile text into a ``LockfileGraph``.

    Raises:
        MalformedLockfile: on invalid YAML, unsupported versions, or dangling edges.
        MissingResolution: when a package lacks a version, resolution or integrity.
    """
    import yaml

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise MalformedLockfile(f"Invalid YAML in pnpm lockfile: {exc}") from exc

    if not isinstance(data, dict):
        raise MalformedLockfile("pnpm lockfile must be a YAML mapping")

    lockfile_version = _read_lockfile_version(data)
    dialect = _Dialect(major=int(lockfile_version.split(".", 1)[0]))

    importers = _parse_importers(data, dialect)
    packages = _parse_packages(data, dialect)
    _check_edges(importers, packages)

    return LockfileGraph(
        lockfile_version=lockfile_version,
        importers=importers,
        packages=packages,
    )


def _read_lockfile_version(data: dict[str, Any]) -> str:
    raw = data.get("lockfileVersion")
    if raw is None or isinstance(raw, bool):
        raise MalformedLockfile("pnpm lockfile is missing 'lockfileVersion'")
    version = str(raw).strip().strip("'\"")
    try:
        major = int(version.split(".", 1)[0])
    except ValueError as exc:
        raise MalformedLockfile(f"Unrecognised lockfileVersion: {raw!r}") from exc
    if major not in SUPPORTED_MAJORS:
        supported = ", ".join(f"{m}.x" for m in SUPPORTED_MAJORS)
        raise MalformedLockfile(
            f"Unsupported lockfileVersion {version} (supported: {supported})"
        )
    return version


def _mapping(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedLockfile(f"{where} must be a mapping")
    return value


def _parse_importers(data: dict[str, Any], dialect: _Dialect) -> tuple[Importer, ...]:
    raw_importers = data.get("importers")
    if raw_importers is None:
        return (_parse_importer(ROOT_IMPORTER, data, dialect),)

    importers = [
        _parse_importer(str(path), _mapping(body, f"importer {path!r}"), dialect)
        for path, body in _mapping(raw_importers, "'importers'").items()
    ]
    if not importers:
        raise MalformedLockfile("'importers' must declare at least one project")
    # root first, workspaces keep their declaration order
    importers.sort(key=lambda importer: not importer.is_root)
    return tuple(importers)


def _parse_importer(path: str, body: dict[str, Any], dialect: _Dialect) -> Importer:
    specifiers = _mapping(body.get("specifiers"), f"specifiers of {path!r}")
    sections: dict[str, tuple[Specifier, ...]] = {}
    for section, attr in _IMPORTER_SECTIONS:
        entries: list[Specifier] = []
        for name, value in _mapping(body.get(section), f"{section} of {path!r}").items():
            name = str(name)
            if isinstance(value, dict):
                requested = value.get("specifier", specifiers.get(name, ""))
                reference = value.get("version")
            else:
                requested = specifiers.get(name, "")
                reference = value
            if reference is None or reference == "":
                raise MalformedLockfile(f"{section}.{name} of {path!r} has no resolved version")
            entries.append(
                Specifier(
                    name=name,
                    specifier=str(requested),
                    reference=dialect.dependency_key(name, str(reference)),
                )
            )
        sections[attr] = tuple(entries)
    return Importer(path=path, **sections)


def _parse_packages(data: dict[str, Any], dialect: _Dialect) -> dict[str, PackageNode]:
    packages = _mapping(data.get("packages"), "'packages'")
    if dialect.major < 9:
        return {
            str(key): _build_node(str(key), _mapping(body, f"package {key!r}"), {}, dialect)
            for key, body in packages.items()
        }

    snapshots = _mapping(data.get("snapshots"), "'snapshots'")
    nodes: dict[str, PackageNode] = {}
    for key, snapshot in snapshots.items():
        key = str(key)
        base = key.split("(", 1)[0]
        if base not in packages:
            raise MalformedLockfile(f"Snapshot {key!r} has no matching entry in 'packages'")
        meta = _mapping(packages[base], f"package {base!r}")
        nodes[key] = _build_node(key, meta, _mapping(snapshot, f"snapshot {key!r}"), dialect)
    return nodes


def _build_node(
    key: str,
    meta: dict[str, Any],
    snapshot: dict[str, Any],
    dialect: _Dialect,
) -> PackageNode:
    key_name, key_version = dialect.split_key(key)
    name = str(meta.get("name") or key_name)
    version = str(meta.get("version") or key_version)
    if not name or not version:
        raise MissingResolution(f"Package {key!r} does not declare a name and version")

    resolution = _parse_resolution(key, meta.get("resolution"))

    # 9.x keeps edges in the snapshot, older dialects inline them
    edges = snapshot if dialect.major >= 9 else meta
    peers = {str(k): str(v) for k, v in _mapping(meta.get("peerDependencies"), key).items()}
    peers_meta = _mapping(meta.get("peerDependenciesMeta"), key)
    optional_peers = frozenset(
        str(peer)
        for peer, info in peers_meta.items()
        if isinstance(info, dict) and info.get("optional")
    )

    dependencies: list[Dependency] = []
    for dep_name, reference in _mapping(edges.get("dependencies"), key).items():
        dep_name = str(dep_name)
        kind = KIND_PEER if dep_name in peers else KIND_REGULAR
        dependencies.append(
            Dependency(dep_name, dialect.dependency_key(dep_name, str(reference)), kind)
        )
    for dep_name, reference in _mapping(edges.get("optionalDependencies"), key).items():
        dep_name = str(dep_name)
        dependencies.append(
            Dependency(dep_name, dialect.dependency_key(dep_name, str(reference)), KIND_OPTIONAL)
        )

    deprecated = meta.get("deprecated")
    return PackageNode(
        key=key,
        name=name,
        version=version,
        resolution=resolution,
        dependencies=tuple(dependencies),
        peer_dependencies=peers,
        optional_peers=optional_peers,
        os=tuple(str(v) for v in meta.get("os") or ()),
        cpu=tuple(str(v) for v in meta.get("cpu") or ()),
        engines={str(k): str(v) for k, v in _mapping(meta.get("engines"), key).items()},
        requires_build=bool(meta.get("requiresBuild", False)),
        deprecated=str(deprecated) if deprecated else None,
    )


def _parse_resolution(key: str, raw: Any) -> Resolution:
    if not isinstance(raw, dict) or not raw:
        raise MissingResolution(f"Package {key!r} has no resolution")

    resolution = Resolution(
        integrity=_opt_str(raw.get("integrity")),
        tarball=_opt_str(raw.get("tarball")),
        directory=_opt_str(raw.get("directory")),
        repo=_opt_str(raw.get("repo")),
        commit=_opt_str(raw.get("commit")),
    )
    if not resolution.integrity and not (resolution.is_git or resolution.is_directory):
        raise MissingResolution(f"Package {key!r} has no integrity digest")
    return resolution


def _opt_str(value: Any) -> str | None:
    return str(value) if value else None


def _check_edges(importers: tuple[Importer, ...], packages: dict[str, PackageNode]) -> None:
    for importer in importers:
        for section, specifiers in importer.sections():
            for spec in specifiers:
                if not spec.is_link and spec.reference not in packages:
                    raise MalformedLockfile(
                        f"Importer {importer.path!r} {section}.{spec.name} references "
                        f"{spec.reference!r}, which is not in the lockfile"
                    )
    for node in packages.values():
        for dep in node.dependencies:
            if not is_link(dep.key) and dep.key not in packages:
                raise MalformedLockfile(
                    f"Package {node.key!r} depends on {dep.key!r}, which is not in the lockfile"
                )
