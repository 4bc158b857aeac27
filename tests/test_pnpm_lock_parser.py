"""Tests for decoding pnpm lockfiles into the source graph."""

from __future__ import annotations

import pytest

from conftest import PEER_V6, SINGLE_DEP_V9, SINGLE_PROJECT_V5, WORKSPACE_CONFLICT_V9, lockfile
from pnpm_to_npm.errors import MalformedLockfile, MissingResolution
from pnpm_to_npm.models.graph import KIND_OPTIONAL, KIND_PEER, KIND_REGULAR, Specifier
from pnpm_to_npm.parsers.pnpm_lock import parse


def test_parse_v9_single_dependency() -> None:
    graph = parse(SINGLE_DEP_V9)

    assert graph.lockfile_version == "9.0"
    assert [i.path for i in graph.importers] == ["."]
    assert graph.root.dependencies == (Specifier("lib", "^1.0.0", "lib@1.0.0"),)
    node = graph.node("lib@1.0.0")
    assert (node.name, node.version) == ("lib", "1.0.0")
    assert node.resolution.integrity == "sha512-LIBAAAA"
    assert node.dependencies == ()


def test_parse_v9_workspace_keeps_root_first_and_snapshot_edges() -> None:
    graph = parse(WORKSPACE_CONFLICT_V9)

    assert [i.path for i in graph.importers] == [".", "packages/web"]
    assert [w.path for w in graph.workspaces] == ["packages/web"]
    deps = graph.node("a@1.0.0").dependencies
    assert [(d.name, d.key, d.kind) for d in deps] == [("b", "b@2.0.0", KIND_REGULAR)]


def test_root_importer_sorted_first_when_declared_later() -> None:
    text = lockfile(
        """
        lockfileVersion: '9.0'
        importers:
          packages/z: {}
          .:
            dependencies:
              lib: {specifier: 1.0.0, version: 1.0.0}
        packages:
          lib@1.0.0:
            resolution: {integrity: sha512-LIB}
        snapshots:
          lib@1.0.0: {}
        """
    )
    graph = parse(text)
    assert [i.path for i in graph.importers] == [".", "packages/z"]


def test_parse_v6_single_project_with_peer_suffix() -> None:
    graph = parse(PEER_V6)

    root = graph.root
    assert root.path == "."
    assert [s.name for s in root.dependencies] == ["react", "react-dom"]
    assert root.dependencies[1].reference == "/react-dom@18.2.0(react@18.2.0)"
    assert [s.reference for s in root.dev_dependencies] == ["/@types/node@20.1.0"]

    dom = graph.node("/react-dom@18.2.0(react@18.2.0)")
    assert dom.name == "react-dom"
    assert dom.version == "18.2.0"
    kinds = {d.name: d.kind for d in dom.dependencies}
    assert kinds == {"loose-envify": KIND_REGULAR, "react": KIND_PEER}
    assert dom.unresolved_peers == {}

    assert graph.node("/@types/node@20.1.0").name == "@types/node"
    assert dict(graph.node("/react@18.2.0").engines) == {"node": ">=0.10.0"}


def test_parse_v5_single_project() -> None:
    graph = parse(SINGLE_PROJECT_V5)

    assert graph.lockfile_version == "5.4"
    root = graph.root
    assert root.dependencies[0] == Specifier(
        "@scope/pkg", "^2.0.0", "/@scope/pkg/2.0.0_lib@1.0.0"
    )
    assert root.optional_dependencies == (Specifier("fsevents", "^2.3.2", "/fsevents/2.3.2"),)

    scoped = graph.node("/@scope/pkg/2.0.0_lib@1.0.0")
    assert (scoped.name, scoped.version) == ("@scope/pkg", "2.0.0")

    fsevents = graph.node("/fsevents/2.3.2")
    assert fsevents.requires_build is True
    assert fsevents.os == ("darwin",)
    assert graph.node("/lib/1.0.0").resolution.tarball == (
        "https://npm.example.com/lib/-/lib-1.0.0.tgz"
    )


def test_declaration_order_is_preserved() -> None:
    text = lockfile(
        """
        lockfileVersion: '9.0'
        importers:
          .:
            dependencies:
              zeta: {specifier: 1.0.0, version: 1.0.0}
              alpha: {specifier: 1.0.0, version: 1.0.0}
        packages:
          zeta@1.0.0:
            resolution: {integrity: sha512-Z}
          alpha@1.0.0:
            resolution: {integrity: sha512-A}
        snapshots:
          zeta@1.0.0:
            optionalDependencies:
              alpha: 1.0.0
          alpha@1.0.0: {}
        """
    )
    graph = parse(text)
    assert [s.name for s in graph.root.dependencies] == ["zeta", "alpha"]
    assert graph.node("zeta@1.0.0").dependencies[0].kind == KIND_OPTIONAL


def test_v9_alias_keeps_install_name() -> None:
    text = lockfile(
        """
        lockfileVersion: '9.0'
        importers:
          .:
            dependencies:
              string-width-cjs:
                specifier: npm:string-width@^4.2.0
                version: string-width@4.2.3
        packages:
          string-width@4.2.3:
            resolution: {integrity: sha512-SW}
        snapshots:
          string-width@4.2.3: {}
        """
    )
    spec = parse(text).root.dependencies[0]
    assert spec.name == "string-width-cjs"
    assert spec.reference == "string-width@4.2.3"


def test_link_references_are_kept() -> None:
    text = lockfile(
        """
        lockfileVersion: '9.0'
        importers:
          packages/app:
            dependencies:
              '@acme/lib': {specifier: workspace:*, version: link:../lib}
          packages/lib: {}
        """
    )
    graph = parse(text)
    spec = graph.importer("packages/app").dependencies[0]
    assert spec.is_link
    assert spec.reference == "link:../lib"


def test_git_resolution_does_not_need_integrity() -> None:
    text = lockfile(
        """
        lockfileVersion: '6.0'
        dependencies:
          tool:
            specifier: github:acme/tool
            version: github.com/acme/tool/abc123
        packages:
          github.com/acme/tool/abc123:
            resolution: {type: git, repo: https://github.com/acme/tool.git, commit: abc123}
            name: tool
            version: 0.3.0
        """
    )
    node = parse(text).node("github.com/acme/tool/abc123")
    assert (node.name, node.version) == ("tool", "0.3.0")
    assert node.resolution.is_git


@pytest.mark.parametrize(
    "text, message",
    [
        ("lockfileVersion: '9.0'\nimporters: [\n", "Invalid YAML"),
        ("- just\n- a list\n", "must be a YAML mapping"),
        ("importers: {}\n", "missing 'lockfileVersion'"),
        ("lockfileVersion: '4.0'\n", "Unsupported lockfileVersion 4.0"),
        ("lockfileVersion: '7.0'\n", "Unsupported lockfileVersion 7.0"),
        ("lockfileVersion: latest\n", "Unrecognised lockfileVersion"),
        ("lockfileVersion: '9.0'\nimporters: {}\n", "at least one project"),
    ],
)
def test_malformed_documents(text: str, message: str) -> None:
    with pytest.raises(MalformedLockfile, match=message):
        parse(text)


def test_dangling_edge_is_fatal() -> None:
    text = lockfile(
        """
        lockfileVersion: '9.0'
        importers:
          .:
            dependencies:
              a: {specifier: 1.0.0, version: 1.0.0}
        packages:
          a@1.0.0:
            resolution: {integrity: sha512-A}
        snapshots:
          a@1.0.0:
            dependencies:
              ghost: 9.9.9
        """
    )
    with pytest.raises(MalformedLockfile, match="ghost@9.9.9"):
        parse(text)


def test_dangling_importer_edge_is_fatal() -> None:
    text = SINGLE_DEP_V9.replace("version: 1.0.0", "version: 1.0.1")
    with pytest.raises(MalformedLockfile, match="lib@1.0.1"):
        parse(text)


def test_missing_resolution() -> None:
    text = lockfile(
        """
        lockfileVersion: '6.0'
        packages:
          /lib@1.0.0:
            dev: false
        """
    )
    with pytest.raises(MissingResolution, match="no resolution"):
        parse(text)


def test_missing_integrity() -> None:
    text = lockfile(
        """
        lockfileVersion: '6.0'
        packages:
          /lib@1.0.0:
            resolution: {tarball: https://example.com/lib.tgz}
        """
    )
    with pytest.raises(MissingResolution, match="no integrity"):
        parse(text)


def test_missing_version() -> None:
    text = lockfile(
        """
        lockfileVersion: '6.0'
        packages:
          some-odd-key:
            resolution: {integrity: sha512-X}
        """
    )
    with pytest.raises(MissingResolution, match="name and version"):
        parse(text)
