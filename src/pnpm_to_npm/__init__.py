"""pnpm-to-npm core package.

Converts pnpm-lock.yaml documents into npm package-lock.json documents. The
conversion itself (``parsers.pnpm_lock`` and ``converter``) is pure; ``core``
and ``cli`` add the file handling.
"""

__all__ = [
    "core",
    "converter",
    "errors",
]
