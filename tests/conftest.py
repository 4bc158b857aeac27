"""Shared fixtures: small pnpm lockfiles in each supported dialect."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from pnpm_to_npm import logging_config


def lockfile(text: str) -> str:
    return textwrap.dedent(text).lstrip()


SINGLE_DEP_V9 = lockfile(
    """
    lockfileVersion: '9.0'

    importers:
      .:
        dependencies:
          lib:
            specifier: ^1.0.0
            version: 1.0.0

    packages:
      lib@1.0.0:
        resolution: {integrity: sha512-LIBAAAA}

    snapshots:
      lib@1.0.0: {}
    """
)

WORKSPACE_CONFLICT_V9 = lockfile(
    """
    lockfileVersion: '9.0'

    importers:
      .:
        dependencies:
          a:
            specifier: 1.0.0
            version: 1.0.0
      packages/web:
        dependencies:
          b:
            specifier: ^1.0.0
            version: 1.0.0

    packages:
      a@1.0.0:
        resolution: {integrity: sha512-AAAA}
      b@1.0.0:
        resolution: {integrity: sha512-BONE}
      b@2.0.0:
        resolution: {integrity: sha512-BTWO}

    snapshots:
      a@1.0.0:
        dependencies:
          b: 2.0.0
      b@1.0.0: {}
      b@2.0.0: {}
    """
)

PEER_V6 = lockfile(
    """
    lockfileVersion: '6.0'

    dependencies:
      react:
        specifier: ^18.2.0
        version: 18.2.0
      react-dom:
        specifier: ^18.2.0
        version: 18.2.0(react@18.2.0)

    devDependencies:
      '@types/node':
        specifier: ^20.0.0
        version: 20.1.0

    packages:

      /@types/node@20.1.0:
        resolution: {integrity: sha512-TYPES}
        dev: true

      /loose-envify@1.4.0:
        resolution: {integrity: sha512-LOOSE}
        hasBin: true
        dependencies:
          js-tokens: 4.0.0
        dev: false

      /js-tokens@4.0.0:
        resolution: {integrity: sha512-TOKENS}
        dev: false

      /react-dom@18.2.0(react@18.2.0):
        resolution: {integrity: sha512-DOM}
        peerDependencies:
          react: ^18.2.0
        dependencies:
          loose-envify: 1.4.0
          react: 18.2.0
        dev: false

      /react@18.2.0:
        resolution: {integrity: sha512-REACT}
        engines: {node: '>=0.10.0'}
        dependencies:
          loose-envify: 1.4.0
        dev: false
    """
)

SINGLE_PROJECT_V5 = lockfile(
    """
    lockfileVersion: 5.4

    specifiers:
      '@scope/pkg': ^2.0.0
      lib: ~1.0.0
      fsevents: ^2.3.2

    dependencies:
      '@scope/pkg': 2.0.0_lib@1.0.0
      lib: 1.0.0

    optionalDependencies:
      fsevents: 2.3.2

    packages:

      /@scope/pkg/2.0.0_lib@1.0.0:
        resolution: {integrity: sha512-SCOPED}
        peerDependencies:
          lib: ^1.0.0
        dependencies:
          lib: 1.0.0
        dev: false

      /lib/1.0.0:
        resolution: {integrity: sha512-LIBAAAA, tarball: https://npm.example.com/lib/-/lib-1.0.0.tgz}
        requiresBuild: true
        dev: false

      /fsevents/2.3.2:
        resolution: {integrity: sha512-FSEVENTS}
        engines: {node: '^8.16.0 || ^10.6.0 || >=11.0.0'}
        os: [darwin]
        requiresBuild: true
        dev: false
        optional: true
    """
)


@pytest.fixture(autouse=True)
def _reset_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PNPM_TO_NPM_CONFIG", raising=False)
    monkeypatch.delenv("PNPM_TO_NPM_LOG_LEVEL", raising=False)
    monkeypatch.delenv("PNPM_TO_NPM_LOG_FILE", raising=False)
    logging_config.reset_logging()


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """A repository with a workspace lockfile and package.json manifests."""
    (tmp_path / "pnpm-lock.yaml").write_text(WORKSPACE_CONFLICT_V9, encoding="utf-8")
    (tmp_path / "package.json").write_text(
        '{"name": "monorepo", "version": "1.2.3"}', encoding="utf-8"
    )
    web = tmp_path / "packages" / "web"
    web.mkdir(parents=True)
    (web / "package.json").write_text(
        '{"name": "@acme/web", "version": "0.1.0"}', encoding="utf-8"
    )
    return tmp_path
