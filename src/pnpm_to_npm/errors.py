"""Error taxonomy for lockfile conversion."""

from __future__ import annotations

from dataclasses import dataclass


class LockfileError(Exception):
    """Base error for failures while parsing or converting a lockfile."""


class MalformedLockfile(LockfileError):
    """Raised when the source document is unparseable or of an unsupported version."""


class MissingResolution(LockfileError):
    """Raised when a package entry lacks the metadata needed to place and verify it."""


class CyclicHardDependency(LockfileError):
    """Raised when regular dependencies nest beyond the depth bound, as a runaway cycle does."""


@dataclass(frozen=True)
class UnresolvedPeerDependency:
    """A peer requirement that no visible package satisfies.

    Recorded on the conversion result; conversion continues.
    """

    dependent: str
    path: str
    name: str
    range: str
    found: str | None = None

    def __str__(self) -> str:
        if self.found is None:
            return f"{self.dependent} ({self.path}) requires peer {self.name}@{self.range}, not found"
        return (
            f"{self.dependent} ({self.path}) requires peer {self.name}@{self.range}, "
            f"found {self.found}"
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "dependent": self.dependent,
            "path": self.path,
            "name": self.name,
            "range": self.range,
            "found": self.found,
        }
