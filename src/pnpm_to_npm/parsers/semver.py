"""npm semver range matching built atop packaging.version.

Supported expressions:
- exact versions (e.g., "1.2.3", "=1.2.3", "v1.2.3")
- caret ranges ^x.y.z → >=x.y.z,<x+1.0.0 (leftmost non-zero component bumps)
- tilde ranges ~x.y.z → >=x.y.z,<x.y+1.0
- x-ranges and wildcards: "*", "", "1.x", "1.2.*", "1"
- hyphen ranges "1.0.0 - 2.3.4"
- comparator sets split by spaces, e.g., ">=1.0.0 <2.0.0"
- alternatives joined by "||"
- pnpm workspace protocol ("workspace:^1.0.0", "workspace:*")

Pre-release tags that PEP 440 cannot express are dropped before comparison.
"""

from __future__ import annotations

import re

from packaging.version import InvalidVersion, Version

_NUMERIC_PREFIX = re.compile(r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?")
_WILDCARDS = {"x", "X", "*"}


def _parse_version(v: str) -> Version:
    v = v.strip().lstrip("v=")
    try:
        return Version(v.split("+", 1)[0])
    except InvalidVersion:
        match = _NUMERIC_PREFIX.match(v)
        if not match:
            raise
        return Version(".".join(part or "0" for part in match.groups()))


def _next_major(v: Version) -> Version:
    return Version(f"{v.major + 1}.0.0")


def _next_minor(v: Version) -> Version:
    return Version(f"{v.major}.{v.minor + 1}.0")


def _next_patch(v: Version) -> Version:
    return Version(f"{v.major}.{v.minor}.{v.micro + 1}")


def _partial(expr: str) -> tuple[Version, int] | None:
    """Return (floor version, number of given components) for partial versions."""
    parts = expr.lstrip("v=").split(".")
    given: list[str] = []
    for part in parts[:3]:
        if part in _WILDCARDS or part == "":
            break
        given.append(part)
    if not given:
        return None
    if len(given) == 3:
        return _parse_version(expr), 3
    floor = ".".join(given + ["0"] * (3 - len(given)))
    return _parse_version(floor), len(given)


def _caret_upper(base: Version, given: int) -> Version:
    if base.major > 0 or given == 1:
        return _next_major(base)
    if base.minor > 0 or given == 2:
        return _next_minor(base)
    return _next_patch(base)


def _satisfies_comparator(v: Version, token: str) -> bool:
    if token in _WILDCARDS or token == "":
        return True

    if token.startswith("^"):
        partial = _partial(token[1:])
        if partial is None:
            return True
        base, given = partial
        return base <= v < _caret_upper(base, given)

    if token.startswith("~"):
        partial = _partial(token[1:].lstrip(">"))
        if partial is None:
            return True
        base, given = partial
        upper = _next_major(base) if given == 1 else _next_minor(base)
        return base <= v < upper

    for op in (">=", "<=", ">", "<"):
        if token.startswith(op):
            bound = _parse_version(token[len(op):])
            if op == ">=":
                return v >= bound
            if op == "<=":
                return v <= bound
            if op == ">":
                return v > bound
            return v < bound

    token = token.lstrip("=")
    partial = _partial(token)
    if partial is None:
        return True
    base, given = partial
    if given == 3:
        return v == base
    upper = _next_major(base) if given == 1 else _next_minor(base)
    return base <= v < upper


def _satisfies_set(v: Version, expr: str) -> bool:
    # hyphen range "a - b"
    if " - " in expr:
        low, high = (part.strip() for part in expr.split(" - ", 1))
        return _satisfies_comparator(v, f">={low}") and _satisfies_comparator(v, f"<={high}")

    # glue "> = 1.0.0" style operator/version gaps back together
    tokens: list[str] = []
    pending = ""
    for t in expr.split():
        if t in {">", "<", ">=", "<=", "=", "^", "~"}:
            pending += t
            continue
        tokens.append(pending + t)
        pending = ""
    return all(_satisfies_comparator(v, t) for t in tokens)


def satisfies(installed: str, expr: str) -> bool:
    """Return True when ``installed`` falls inside the npm range ``expr``."""
    expr = expr.strip()
    if expr.startswith("workspace:"):
        expr = expr[len("workspace:"):]
        if expr in {"^", "~"}:
            return True
    if expr.startswith("npm:"):
        # npm:real-name@range
        _, _, expr = expr[4:].rpartition("@")

    try:
        v = _parse_version(installed)
    except InvalidVersion:
        return False

    try:
        return any(_satisfies_set(v, alt.strip()) for alt in expr.split("||"))
    except InvalidVersion:
        return False
