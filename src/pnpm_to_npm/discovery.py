"""Locate the pnpm lockfile of a repository."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

PNPM_LOCKFILE = "pnpm-lock.yaml"
NPM_LOCKFILE = "package-lock.json"

RUSH_JSON = "rush.json"
RUSH_CONFIG_DIR = Path("common") / "config" / "rush"
RUSH_TEMP_DIR = Path("common") / "temp"


@dataclass(frozen=True)
class LockfileLocation:
    """Where the lockfile lives and the directory its importer paths are relative to."""

    lockfile: Path
    base_dir: Path

    @property
    def output(self) -> Path:
        return self.lockfile.with_name(NPM_LOCKFILE)


def is_rush_repo(root: Path) -> bool:
    return (root / RUSH_JSON).is_file() and (root / RUSH_CONFIG_DIR).is_dir()


def find_lockfile(root: Path, rush: bool = False) -> LockfileLocation:
    """Return the lockfile location for ``root``.

    In Rush mode ``root`` must be a Rush monorepo root; the lockfile is read
    from common/config/rush and its importers resolve against common/temp,
    where Rush runs pnpm.

    Raises ``FileNotFoundError`` with a user-facing message otherwise.
    """
    root = root.resolve()

    if rush:
        if not is_rush_repo(root):
            raise FileNotFoundError("This command must be run in a Rush repo root")
        lockfile = root / RUSH_CONFIG_DIR / PNPM_LOCKFILE
        base_dir = root / RUSH_TEMP_DIR
    else:
        lockfile = root / PNPM_LOCKFILE
        base_dir = root

    if not lockfile.is_file():
        raise FileNotFoundError(
            f"Cannot find {PNPM_LOCKFILE} at {lockfile}. "
            "Please make sure it is available in the root of the repo."
        )
    return LockfileLocation(lockfile=lockfile, base_dir=base_dir)


def location_for(lockfile: Path) -> LockfileLocation:
    """Location for an explicitly given lockfile path."""
    lockfile = lockfile.resolve()
    if not lockfile.is_file():
        raise FileNotFoundError(f"Cannot find {lockfile}")
    return LockfileLocation(lockfile=lockfile, base_dir=lockfile.parent)
