"""
Configuration loader — reads shimgen.yml into a ShimGenConfig.

The file is optional. When present it supplies defaults that CLI
options override:

    # shimgen.yml
    namespace: Game.Generated
    source_root: scripts
    search_paths:
      - lib
    regenerate: Player, Enemy

Relative paths are resolved against the config file's directory.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "shimgen.yml"


class ConfigError(Exception):
    """Raised when shimgen configuration is invalid."""


class ShimGenConfig(BaseModel):
    """Validated contents of shimgen.yml."""

    namespace: str | None = None
    source_root: Path | None = None
    search_paths: list[Path] = Field(default_factory=list)
    regenerate: str | None = None

    @field_validator("regenerate", mode="before")
    @classmethod
    def _join_regenerate(cls, value):
        # Accept a YAML list as well as a comma/space-separated string
        if isinstance(value, (list, tuple)):
            return ",".join(str(v) for v in value)
        return value

    @field_validator("namespace")
    @classmethod
    def _check_namespace(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        parts = value.split(".")
        if not value or not all(p.isidentifier() for p in parts):
            raise ValueError(f"'{value}' is not a valid C# namespace")
        return value

    def resolve_paths(self, base: Path) -> ShimGenConfig:
        """Copy with relative paths anchored at ``base``."""
        return self.model_copy(update={
            "source_root": (base / self.source_root) if self.source_root else None,
            "search_paths": [base / p for p in self.search_paths],
        })


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for shimgen.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to shimgen.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path | None = None) -> ShimGenConfig:
    """Load and validate shimgen configuration.

    Args:
        path: Explicit config file. If None, searches upward; a missing
            file then yields the defaults.

    Returns:
        Validated ShimGenConfig with paths resolved.

    Raises:
        ConfigError: An explicit file is missing, or any file is invalid.
    """
    explicit = path is not None
    if path is None:
        path = find_config_file()

    if path is None:
        logger.debug("No %s found — using defaults", CONFIG_FILE)
        return ShimGenConfig()

    if not path.is_file():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        return ShimGenConfig()

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "shimgen" key or be flat
    section = data.get("shimgen", data)
    if not isinstance(section, dict):
        raise ConfigError(f"Expected a mapping under 'shimgen' in {path}")

    try:
        config = ShimGenConfig.model_validate(section)
    except Exception as e:
        raise ConfigError(f"Invalid shimgen configuration: {e}") from e

    logger.info("Loaded config from %s", path)
    return config.resolve_paths(path.parent.resolve())
