"""Command line entrypoint: convert pnpm-lock.yaml into package-lock.json.

Usage:
  pnpm-to-npm [--root DIR | --lockfile PATH] [--rush] [--output PATH]
              [--config PATH] [--lockfile-version {2,3}] [--no-validate]
              [--stdout] [--json] [-v]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import ConfigError, load_settings
from .core import convert_location, serialize
from .discovery import find_lockfile, location_for
from .errors import LockfileError
from .logging_config import configure_logging
from .report import aggregate
from .summary import render_summary

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pnpm-to-npm",
        description="Convert a pnpm lockfile into an npm package-lock.json.",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--root", type=Path, default=Path("."), help="Repository root")
    source.add_argument("--lockfile", type=Path, default=None, help="Explicit pnpm-lock.yaml")
    parser.add_argument(
        "--rush",
        action="store_true",
        help="Read the lockfile of a Rush monorepo (common/config/rush)",
    )
    parser.add_argument("--output", type=Path, default=None, help="Where to write the result")
    parser.add_argument("--config", type=Path, default=None, help="JSON settings file")
    parser.add_argument(
        "--lockfile-version",
        type=int,
        choices=(2, 3),
        default=None,
        help="npm lockfileVersion to emit (default from settings, 3)",
    )
    parser.add_argument(
        "--no-validate",
        dest="validate",
        action="store_false",
        default=None,
        help="Skip JSON schema validation of the result",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the lockfile instead of writing it",
    )
    parser.add_argument("--json", action="store_true", help="Print a JSON report")
    parser.add_argument("-v", "--verbose", action="count", default=None)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = load_settings(args.config).with_overrides(
            lockfile_version=args.lockfile_version,
            validate_output=args.validate,
        )
        if args.lockfile is not None:
            location = location_for(args.lockfile)
        else:
            location = find_lockfile(args.root, rush=args.rush)
        stats = convert_location(
            location,
            settings=settings,
            output=args.output,
            write=not args.stdout,
        )
    except (ConfigError, FileNotFoundError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except LockfileError as exc:
        logger.debug("Conversion failed", exc_info=True)
        print(f"ERROR: {type(exc).__name__}: {exc}", file=sys.stderr)
        return 1
    except json.JSONDecodeError as exc:
        print(f"ERROR: Failed to read package.json: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"ERROR: Converted lockfile failed validation:{exc}", file=sys.stderr)
        return 1

    if args.stdout:
        sys.stdout.write(serialize(stats.result.document, settings.indent))
        return 0

    report = aggregate(stats)
    if args.json:
        print(json.dumps(report, indent=2))
    else:
        sys.stdout.write(render_summary(report))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
