"""Validate npm lockfile documents against the bundled JSON schema.

Also usable as a CLI to check an existing package-lock.json.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from collections.abc import Iterable
from typing import Any

from jsonschema import Draft202012Validator

DEFAULT_SCHEMA = Path(__file__).resolve().with_name("package-lock.schema.json")


def _load_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _format_errors(errors: Iterable) -> str:
    messages = []
    for error in errors:
        pointer = "/".join(str(p) for p in error.path)
        messages.append(f"- {pointer or '<root>'}: {error.message}")
    return "\n".join(messages)


def validate_document(document: dict[str, Any], schema_path: Path = DEFAULT_SCHEMA) -> None:
    """Raise ``ValueError`` listing every schema violation in ``document``."""
    schema = _load_json(schema_path)
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(document), key=lambda e: list(map(str, e.path)))
    if errors:
        raise ValueError("\n" + _format_errors(errors))


def validate_file(input_path: Path, schema_path: Path = DEFAULT_SCHEMA) -> None:
    validate_document(_load_json(input_path), schema_path)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "input",
        type=Path,
        nargs="?",
        default=Path("package-lock.json"),
        help="Path to the package-lock.json to validate",
    )
    parser.add_argument(
        "--schema",
        type=Path,
        default=DEFAULT_SCHEMA,
        help="Path to the JSON schema used for validation",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        validate_file(args.input, args.schema)
    except FileNotFoundError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except json.JSONDecodeError as exc:
        print(f"ERROR: Failed to read JSON: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"ERROR: Lockfile failed validation:{exc}", file=sys.stderr)
        return 1

    print(f"Lockfile {args.input} is valid against {args.schema}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
