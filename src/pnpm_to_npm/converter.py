"""Convert a parsed pnpm graph into an npm lockfile document.

Placement simulates npm's node_modules layout. Every scope (the repository
root, a workspace directory, or a placed package) is an owner path whose
node_modules holds at most one entry per name. A dependency is reused when
the entry visible from the dependent is the same pnpm instance (peer variants
of one version are distinct), otherwise it is placed in the shallowest scope
below the conflicting one. Peer dependencies resolve from the scope holding
the dependent and are never nested under it. An edge back to a package on its
own ancestry ends that branch. Resolving a name through a scope pins that
name there, so later placements can never shadow a dependency that was
already resolved.

dev/optional/peer flags are computed afterwards as reachability over the
placed tree.
"""

from __future__ import annotations

import posixpath
from collections import deque
from dataclasses import dataclass, field
from collections.abc import Iterable, Mapping

from .errors import CyclicHardDependency, UnresolvedPeerDependency
from .models.graph import (
    KIND_OPTIONAL,
    KIND_PEER,
    KIND_REGULAR,
    LINK_PREFIX,
    Importer,
    LockfileGraph,
    PackageNode,
    is_link,
)
from .models.install_entry import InstallEntry
from .models.package_lock import NpmLockfile
from .parsers.package_json import ProjectManifest
from .parsers.semver import satisfies

DEFAULT_REGISTRY = "https://registry.npmjs.org/"
DEFAULT_MAX_DEPTH = 64

ROOT_SCOPE = ""

# importer sections, as edge kinds from a project scope
_PROD = "prod"
_DEV = "dev"
_OPT = "optional"
_SECTION_KINDS = {
    "dependencies": _PROD,
    "devDependencies": _DEV,
    "optionalDependencies": _OPT,
}


@dataclass(frozen=True)
class ConversionResult:
    """Target document plus the non-fatal problems found while building it."""

    document: NpmLockfile
    warnings: tuple[UnresolvedPeerDependency, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return self.document.to_dict()


@dataclass
class _Placement:
    path: str
    name: str
    version: str
    ident: str
    node: PackageNode | None = None
    link_target: str | None = None


@dataclass(frozen=True)
class _Edge:
    owner: str
    dependent: str
    name: str
    key: str
    kind: str
    hard: bool
    ancestry: tuple[str, ...] = ()


@dataclass
class _Tree:
    """Arena of scopes and placements indexed by path.

    Placements are compared by ``ident``: the pnpm node key, or the link
    reference. Peer variants of one ``name@version`` are different idents.
    """

    parents: dict[str, str | None] = field(default_factory=lambda: {ROOT_SCOPE: None})
    children: dict[str, dict[str, str]] = field(default_factory=lambda: {ROOT_SCOPE: {}})
    pins: dict[str, dict[str, str]] = field(default_factory=dict)
    placements: dict[str, _Placement] = field(default_factory=dict)

    def add_scope(self, owner: str, parent: str) -> None:
        self.parents.setdefault(owner, parent)
        self.children.setdefault(owner, {})

    def chain(self, owner: str) -> list[str]:
        """Scopes visible from ``owner``, root first."""
        scopes: list[str] = []
        current: str | None = owner
        while current is not None:
            scopes.append(current)
            current = self.parents[current]
        scopes.reverse()
        return scopes

    def visible(self, owner: str, name: str) -> _Placement | None:
        for scope in reversed(self.chain(owner)):
            path = self.children[scope].get(name)
            if path is not None:
                return self.placements[path]
        return None

    def resolve(
        self, owner: str, name: str, ident: str, private: bool = True
    ) -> tuple[str | None, bool]:
        """Return (path, created) for ``ident`` required as ``name`` from ``owner``.

        The caller fills in a placement for newly created paths. With
        ``private`` false the owner scope is never given its own conflicting
        copy; ``(None, False)`` is returned instead.
        """
        chain = self.chain(owner)
        start = 0
        for idx in range(len(chain) - 1, -1, -1):
            path = self.children[chain[idx]].get(name)
            if path is None:
                continue
            if self.placements[path].ident == ident:
                self._pin(chain[idx + 1:], name, ident)
                return path, False
            if idx == len(chain) - 1:
                # the owner scope already holds another instance
                return (path if private else None), False
            start = idx + 1
            break

        target: int | None = None
        for idx in range(start, len(chain)):
            pinned = self.pins.get(chain[idx], {}).get(name)
            if pinned is None or pinned == ident:
                target = idx
                break
        if target is None:
            if not private:
                return None, False
            target = len(chain) - 1

        scope = chain[target]
        path = _child_path(scope, name)
        self.children[scope][name] = path
        self.add_scope(path, scope)
        self._pin(chain[target + 1:], name, ident)
        return path, True

    def _pin(self, scopes: Iterable[str], name: str, ident: str) -> None:
        for scope in scopes:
            self.pins.setdefault(scope, {}).setdefault(name, ident)


def _child_path(scope: str, name: str) -> str:
    if scope == ROOT_SCOPE:
        return f"node_modules/{name}"
    return f"{scope}/node_modules/{name}"


def _importer_scope(importer: Importer) -> str:
    return ROOT_SCOPE if importer.is_root else importer.path


def _link_target(scope: str, reference: str) -> str:
    target = posixpath.normpath(posixpath.join(scope, reference[len(LINK_PREFIX):]))
    return "" if target == "." else target


class LockfileConverter:
    """Build an ``NpmLockfile`` from a ``LockfileGraph``.

    A converter instance is single-use: call ``convert()`` once.
    """

    def __init__(
        self,
        graph: LockfileGraph,
        *,
        manifests: Mapping[str, ProjectManifest] | None = None,
        registry: str = DEFAULT_REGISTRY,
        lockfile_version: int = 3,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be positive")
        self.graph = graph
        self.manifests = dict(manifests or {})
        self.registry = registry.rstrip("/") + "/"
        self.lockfile_version = lockfile_version
        self.max_depth = max_depth

        self._tree = _Tree()
        self._roots: list[tuple[str, str]] = []
        self._edges: dict[str, list[tuple[str, str]]] = {}
        self._expanded: set[tuple[str, str]] = set()
        self._pending_peers: list[tuple[str, PackageNode]] = []
        self._warnings: list[UnresolvedPeerDependency] = []

    def convert(self) -> ConversionResult:
        queue = self._seed()
        while queue:
            self._place(queue.popleft(), queue)
        self._resolve_peers()
        flags = self._compute_flags()

        entries = list(self._project_entries())
        for placement in self._tree.placements.values():
            entries.append(self._install_entry(placement, flags))

        root = self.manifests.get(self.graph.root.path)
        document = NpmLockfile.from_entries(
            name=root.name if root else None,
            version=root.version if root else None,
            lockfile_version=self.lockfile_version,
            entries=entries,
        )
        return ConversionResult(document=document, warnings=tuple(self._warnings))

    # ---- placement -----------------------------------------------------------------------

    def _seed(self) -> deque[_Edge]:
        queue: deque[_Edge] = deque()
        for importer in self.graph.workspaces:
            self._tree.add_scope(importer.path, ROOT_SCOPE)
            name = self.workspace_name(importer)
            ident = f"{LINK_PREFIX}{importer.path}"
            path, created = self._tree.resolve(ROOT_SCOPE, name, ident)
            if created:
                self._tree.placements[path] = _Placement(
                    path, name, ident, ident, link_target=importer.path
                )

        for importer in self.graph.importers:
            scope = _importer_scope(importer)
            for section, specifiers in importer.sections():
                for spec in specifiers:
                    queue.append(
                        _Edge(
                            owner=scope,
                            dependent=scope,
                            name=spec.name,
                            key=spec.reference,
                            kind=_SECTION_KINDS[section],
                            hard=section != "optionalDependencies",
                        )
                    )
        return queue

    def _place(self, edge: _Edge, queue: deque[_Edge]) -> None:
        if is_link(edge.key):
            target = _link_target(edge.owner, edge.key)
            ident = f"{LINK_PREFIX}{target}"
            path, created = self._tree.resolve(edge.owner, edge.name, ident)
            if created:
                self._tree.placements[path] = _Placement(
                    path, edge.name, ident, ident, link_target=target
                )
            self._record(edge, path)
            return

        if len(edge.ancestry) > self.max_depth:
            if edge.hard:
                chain = edge.ancestry + (edge.key,)
                if edge.key in edge.ancestry:
                    chain = chain[edge.ancestry.index(edge.key):]
                raise CyclicHardDependency(
                    f"Dependency chain nests deeper than {self.max_depth} levels: "
                    + " -> ".join(chain)
                )
            return

        node = self.graph.node(edge.key)
        if edge.key in edge.ancestry:
            # a cycle ends here; link to the ancestor instance when it is visible
            found = self._tree.visible(edge.owner, edge.name)
            if found is not None and found.ident == node.key:
                self._record(edge, found.path)
            return

        path, created = self._tree.resolve(
            edge.owner, edge.name, node.key, private=edge.kind != KIND_PEER
        )
        if path is None:
            self._peer_conflict(edge, node)
            return
        if created:
            self._tree.placements[path] = _Placement(
                path, edge.name, node.version, node.key, node=node
            )
        self._record(edge, path)

        if self._tree.placements[path].ident != node.key:
            return
        if (path, node.key) in self._expanded:
            return
        self._expanded.add((path, node.key))
        ancestry = edge.ancestry + (node.key,)
        parent = self._tree.parents[path]
        for dep in node.dependencies:
            queue.append(
                _Edge(
                    # peers come from the dependent's surroundings, never its own node_modules
                    owner=parent if dep.kind == KIND_PEER and parent is not None else path,
                    dependent=path,
                    name=dep.name,
                    key=dep.key,
                    kind=dep.kind,
                    hard=edge.hard and dep.kind == KIND_REGULAR,
                    ancestry=ancestry,
                )
            )
        if node.unresolved_peers:
            self._pending_peers.append((path, node))

    def _record(self, edge: _Edge, path: str) -> None:
        # importer edges are the only ones without ancestry
        if not edge.ancestry:
            self._roots.append((path, edge.kind))
        else:
            self._edges.setdefault(edge.dependent, []).append((path, edge.kind))

    def _peer_conflict(self, edge: _Edge, peer: PackageNode) -> None:
        dependent = self.graph.node(edge.ancestry[-1])
        found = self._tree.visible(edge.owner, edge.name)
        self._warnings.append(
            UnresolvedPeerDependency(
                dependent=f"{dependent.name}@{dependent.version}",
                path=edge.dependent,
                name=edge.name,
                range=dependent.peer_dependencies.get(edge.name, peer.version),
                found=found.version if found is not None else None,
            )
        )

    def _resolve_peers(self) -> None:
        for path, node in self._pending_peers:
            scope = self._tree.parents[path]
            for name, rng in node.unresolved_peers.items():
                found = self._tree.visible(scope, name) if scope is not None else None
                if found is not None and (
                    found.link_target is not None
                    or (found.node is not None and satisfies(found.node.version, rng))
                ):
                    self._edges.setdefault(path, []).append((found.path, KIND_PEER))
                    continue
                if found is None and name in node.optional_peers:
                    continue
                self._warnings.append(
                    UnresolvedPeerDependency(
                        dependent=f"{node.name}@{node.version}",
                        path=path,
                        name=name,
                        range=rng,
                        found=found.version if found is not None else None,
                    )
                )

    # ---- classification ------------------------------------------------------------------

    def _reach(self, sections: set[str], kinds: set[str]) -> set[str]:
        seen: set[str] = set()
        todo = deque(path for path, section in self._roots if section in sections)
        while todo:
            path = todo.popleft()
            if path in seen:
                continue
            seen.add(path)
            for child, kind in self._edges.get(path, ()):
                if kind in kinds and child not in seen:
                    todo.append(child)
        return seen

    def _compute_flags(self) -> dict[str, tuple[bool, bool, bool, bool]]:
        """Return path -> (dev, optional, dev_optional, peer)."""
        every_kind = {KIND_REGULAR, KIND_OPTIONAL, KIND_PEER}
        non_dev = self._reach({_PROD, _OPT}, every_kind)
        non_optional = self._reach({_PROD, _DEV}, {KIND_REGULAR, KIND_PEER})
        non_peer = self._reach({_PROD, _DEV, _OPT}, {KIND_REGULAR, KIND_OPTIONAL})
        prod_required = self._reach({_PROD}, {KIND_REGULAR, KIND_PEER})

        flags: dict[str, tuple[bool, bool, bool, bool]] = {}
        for path in self._tree.placements:
            dev = path not in non_dev
            optional = path not in non_optional
            dev_optional = not dev and not optional and path not in prod_required
            flags[path] = (dev, optional, dev_optional, path not in non_peer)
        return flags

    # ---- document ------------------------------------------------------------------------

    def workspace_name(self, importer: Importer) -> str:
        manifest = self.manifests.get(importer.path)
        if manifest is not None and manifest.name:
            return manifest.name
        for other in self.graph.importers:
            scope = _importer_scope(other)
            for _, specifiers in other.sections():
                for spec in specifiers:
                    if spec.is_link and _link_target(scope, spec.reference) == importer.path:
                        return spec.name
        return posixpath.basename(importer.path)

    def _project_entries(self) -> Iterable[InstallEntry]:
        for importer in self.graph.importers:
            manifest = self.manifests.get(importer.path)
            sections = {
                section: {spec.name: spec.specifier or self._spec_version(spec.reference)
                          for spec in specifiers}
                for section, specifiers in importer.sections()
            }
            if importer.is_root:
                name = manifest.name if manifest and manifest.name else None
                path = ROOT_SCOPE
            else:
                name = self.workspace_name(importer)
                path = importer.path
            yield InstallEntry(
                path=path,
                name=name or "",
                package_name=name,
                version=manifest.version if manifest else None,
                project=True,
                dependencies=sections["dependencies"],
                dev_dependencies=sections["devDependencies"],
                optional_dependencies=sections["optionalDependencies"],
                workspaces=tuple(w.path for w in self.graph.workspaces) if importer.is_root else (),
            )

    def _spec_version(self, key: str) -> str:
        if is_link(key):
            return key
        node = self.graph.node(key)
        return node.version

    def _dependency_spec(self, name: str, key: str) -> str:
        if is_link(key):
            return key
        node = self.graph.node(key)
        if node.name != name:
            return f"npm:{node.name}@{node.version}"
        return node.version

    def _resolved(self, node: PackageNode) -> str:
        res = node.resolution
        if res.tarball:
            return res.tarball
        if res.is_git:
            return f"git+{res.repo}#{res.commit}"
        if res.directory:
            return f"file:{res.directory}"
        basename = node.name.rsplit("/", 1)[-1]
        return f"{self.registry}{node.name}/-/{basename}-{node.version}.tgz"

    def _install_entry(
        self,
        placement: _Placement,
        flags: Mapping[str, tuple[bool, bool, bool, bool]],
    ) -> InstallEntry:
        node = placement.node
        if node is None:
            return InstallEntry(
                path=placement.path,
                name=placement.name,
                resolved=placement.link_target,
                link=True,
            )

        dev, optional, dev_optional, peer = flags[placement.path]
        return InstallEntry(
            path=placement.path,
            name=placement.name,
            package_name=node.name,
            version=node.version,
            resolved=self._resolved(node),
            integrity=node.resolution.integrity,
            dev=dev,
            optional=optional,
            dev_optional=dev_optional,
            peer=peer,
            requires_build=node.requires_build,
            dependencies={
                d.name: self._dependency_spec(d.name, d.key)
                for d in node.dependencies
                if d.kind == KIND_REGULAR
            },
            optional_dependencies={
                d.name: self._dependency_spec(d.name, d.key)
                for d in node.dependencies
                if d.kind == KIND_OPTIONAL
            },
            peer_dependencies=dict(node.peer_dependencies),
            optional_peers=tuple(sorted(node.optional_peers)),
            engines=dict(node.engines),
            os=node.os,
            cpu=node.cpu,
            deprecated=node.deprecated,
        )


def convert(
    graph: LockfileGraph,
    *,
    manifests: Mapping[str, ProjectManifest] | None = None,
    registry: str = DEFAULT_REGISTRY,
    lockfile_version: int = 3,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ConversionResult:
    """Convert a parsed pnpm graph into an npm lockfile document."""
    converter = LockfileConverter(
        graph,
        manifests=manifests,
        registry=registry,
        lockfile_version=lockfile_version,
        max_depth=max_depth,
    )
    return converter.convert()
