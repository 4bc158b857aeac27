"""Central logging configuration for the command line tools."""

from __future__ import annotations

import logging
import os
from pathlib import Path

LEVEL_ENV_VAR = "PNPM_TO_NPM_LOG_LEVEL"
FILE_ENV_VAR = "PNPM_TO_NPM_LOG_FILE"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_CONFIGURED = False


def configure_logging(verbosity: int | None = None) -> None:
    """Configure global logging from a verbosity or PNPM_TO_NPM_LOG_LEVEL.

    0 keeps warnings only, 1 enables INFO, 2 and above DEBUG. Records go to
    stderr unless PNPM_TO_NPM_LOG_FILE names a file.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    if verbosity is None:
        verbosity = _read_level(os.getenv(LEVEL_ENV_VAR, "0")) or 0

    kwargs: dict[str, object] = {"level": _map_level(verbosity), "format": LOG_FORMAT}
    log_path = os.getenv(FILE_ENV_VAR)
    if log_path:
        log_file = Path(log_path)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        kwargs.update(filename=log_file, filemode="a")

    logging.basicConfig(**kwargs)  # type: ignore[arg-type]
    _CONFIGURED = True


def reset_logging() -> None:
    """Allow ``configure_logging`` to run again (tests)."""
    global _CONFIGURED
    _CONFIGURED = False


def _read_level(raw: str) -> int | None:
    try:
        return int(raw)
    except ValueError:
        return None


def _map_level(level: int) -> int:
    if level >= 2:
        return logging.DEBUG
    if level == 1:
        return logging.INFO
    return logging.WARNING
