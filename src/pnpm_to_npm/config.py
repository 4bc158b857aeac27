"""Configuration loader for lockfile conversion.

Settings come from a JSON file: an explicit path, else the file named by the
``PNPM_TO_NPM_CONFIG`` environment variable. Without either, defaults apply.
Recognised keys are ``registry``, ``lockfileVersion``, ``maxDepth``,
``indent`` and ``validateOutput``; unknown keys are rejected.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from .converter import DEFAULT_MAX_DEPTH, DEFAULT_REGISTRY
from .models.package_lock import SUPPORTED_LOCKFILE_VERSIONS

CONFIG_PATH_ENV_VAR = "PNPM_TO_NPM_CONFIG"

_KEYS = {
    "registry": "registry",
    "lockfileVersion": "lockfile_version",
    "maxDepth": "max_depth",
    "indent": "indent",
    "validateOutput": "validate_output",
}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be loaded or is invalid."""


@dataclass(slots=True, frozen=True)
class Settings:
    """Conversion settings."""

    registry: str = DEFAULT_REGISTRY
    lockfile_version: int = 3
    max_depth: int = DEFAULT_MAX_DEPTH
    indent: int = 2
    validate_output: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.registry, str) or not self.registry.startswith(
            ("http://", "https://")
        ):
            raise ConfigError(f"'registry' must be an http(s) URL, got {self.registry!r}")
        if self.lockfile_version not in SUPPORTED_LOCKFILE_VERSIONS:
            supported = ", ".join(str(v) for v in SUPPORTED_LOCKFILE_VERSIONS)
            raise ConfigError(
                f"'lockfileVersion' must be one of {supported}, got {self.lockfile_version!r}"
            )
        if not _is_int(self.max_depth) or self.max_depth < 1:
            raise ConfigError(f"'maxDepth' must be a positive integer, got {self.max_depth!r}")
        if not _is_int(self.indent) or self.indent < 0:
            raise ConfigError(f"'indent' must be a non-negative integer, got {self.indent!r}")
        if not isinstance(self.validate_output, bool):
            raise ConfigError("'validateOutput' must be a boolean")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        unknown = sorted(set(data) - set(_KEYS))
        if unknown:
            raise ConfigError(f"Unknown configuration key(s): {', '.join(unknown)}")
        return cls(**{_KEYS[key]: value for key, value in data.items()})

    def with_overrides(self, **overrides: Any) -> Settings:
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _resolve_config_path(path: Path | str | None = None) -> Path | None:
    """Resolve the configuration file path.

    Priority:
    1. Explicit path argument
    2. PNPM_TO_NPM_CONFIG environment variable
    3. None (defaults)
    """
    if path is not None:
        return Path(path)

    env_path = os.environ.get(CONFIG_PATH_ENV_VAR)
    if env_path:
        return Path(env_path)

    return None


def load_settings(path: Path | str | None = None) -> Settings:
    """Load and validate settings from a JSON file.

    Raises:
        ConfigError: If the named file cannot be read or contains invalid data.
    """
    config_path = _resolve_config_path(path)
    if config_path is None:
        return Settings()

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        content = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read configuration file: {exc}") from exc

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in configuration file: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object")

    return Settings.from_dict(data)
