"""Tests for the pnpm-to-npm command line."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import SINGLE_DEP_V9
from pnpm_to_npm.cli import main


def test_writes_package_lock(repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--root", str(repo)]) == 0

    data = json.loads((repo / "package-lock.json").read_text(encoding="utf-8"))
    assert data["name"] == "monorepo"
    assert data["lockfileVersion"] == 3
    assert "package-lock.json SUCCESS" in capsys.readouterr().out


def test_stdout_does_not_write(repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--root", str(repo), "--stdout"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["packages"]["node_modules/b"]["version"] == "1.0.0"
    assert not (repo / "package-lock.json").exists()


def test_json_report(repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--root", str(repo), "--json"]) == 0

    report = json.loads(capsys.readouterr().out)
    assert report["output"]["path"] == str((repo / "package-lock.json").resolve())
    assert report["totals"]["links"] == 1


def test_lockfile_version_2_and_output(repo: Path, tmp_path: Path) -> None:
    target = tmp_path / "out" / "lock.json"
    assert main(["--root", str(repo), "--lockfile-version", "2", "--output", str(target)]) == 0

    data = json.loads(target.read_text(encoding="utf-8"))
    assert data["lockfileVersion"] == 2
    assert data["dependencies"]["b"]["version"] == "1.0.0"
    assert data["dependencies"]["a"]["dependencies"]["b"]["version"] == "2.0.0"


def test_config_file(repo: Path, tmp_path: Path) -> None:
    config = tmp_path / "settings.json"
    config.write_text('{"registry": "https://npm.example.com/"}', encoding="utf-8")

    assert main(["--root", str(repo), "--config", str(config)]) == 0

    data = json.loads((repo / "package-lock.json").read_text(encoding="utf-8"))
    assert data["packages"]["node_modules/a"]["resolved"] == (
        "https://npm.example.com/a/-/a-1.0.0.tgz"
    )


def test_explicit_lockfile(tmp_path: Path) -> None:
    lock = tmp_path / "locks" / "pnpm-lock.yaml"
    lock.parent.mkdir()
    lock.write_text(SINGLE_DEP_V9, encoding="utf-8")

    assert main(["--lockfile", str(lock)]) == 0
    assert (lock.parent / "package-lock.json").is_file()


def test_rush_repo(tmp_path: Path) -> None:
    (tmp_path / "rush.json").write_text("{}", encoding="utf-8")
    config = tmp_path / "common" / "config" / "rush"
    config.mkdir(parents=True)
    (config / "pnpm-lock.yaml").write_text(SINGLE_DEP_V9, encoding="utf-8")

    assert main(["--root", str(tmp_path), "--rush"]) == 0
    assert (config / "package-lock.json").is_file()


def test_missing_lockfile(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--root", str(tmp_path)]) == 1
    assert "Cannot find pnpm-lock.yaml" in capsys.readouterr().err


def test_malformed_lockfile(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / "pnpm-lock.yaml").write_text("lockfileVersion: '4.0'\n", encoding="utf-8")

    assert main(["--root", str(tmp_path)]) == 1
    assert "ERROR: MalformedLockfile:" in capsys.readouterr().err
    assert not (tmp_path / "package-lock.json").exists()


def test_invalid_config(repo: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = tmp_path / "settings.json"
    config.write_text('{"maxDepth": 0}', encoding="utf-8")

    assert main(["--root", str(repo), "--config", str(config)]) == 1
    assert "maxDepth" in capsys.readouterr().err
