"""
Configuration loader — settings for a graph build.

Settings come from three layers, lowest precedence first:

    defaults  <  .modgraph.yml (nearest, walking up)  <  environment

The result is a plain value constructed once at startup and passed to
every component that needs it. Nothing reads the environment later.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from modgraph.core.errors import ModGraphError

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = ".modgraph.yml"

# Environment variable → settings field
_ENV_FIELDS = {
    "MODGRAPH_GO": "go_binary",
    "MODGRAPH_GIT": "git_binary",
    "MODGRAPH_TIMEOUT": "command_timeout",
    "MODGRAPH_WORKERS": "workers",
    "GOMODCACHE": "module_cache_dir",
}


class ConfigError(ModGraphError):
    """Raised when configuration is invalid."""


class Settings(BaseModel):
    """Knobs for module discovery and enrichment."""

    model_config = ConfigDict(extra="forbid")

    go_binary: str = "go"
    git_binary: str = "git"
    module_cache_dir: str | None = None  # None → ask `go env GOMODCACHE`
    command_timeout: float | None = Field(default=None, gt=0)  # None → no deadline
    workers: int = Field(default=4, ge=1)
    private_patterns: list[str] = Field(default_factory=list)  # on top of GOPRIVATE/GONOPROXY


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Nearest .modgraph.yml in ``start_dir`` (default: cwd) or an ancestor."""
    start = (start_dir or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        candidate = directory / CONFIG_FILE
        if candidate.is_file():
            return candidate
    return None


def _read_config_file(path: Path) -> dict:
    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def load_settings(
    project_root: Path | None = None,
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load and validate settings.

    Args:
        project_root: Where to start looking for a config file.
        config_path: Explicit config file; skips the search.
        environ: Environment mapping (default: ``os.environ``).

    Raises:
        ConfigError: If the file or an environment value is invalid.
    """
    env = os.environ if environ is None else environ

    if config_path is None:
        config_path = find_config_file(project_root)
    elif not config_path.is_file():
        raise ConfigError(f"Config file not found: {config_path}")

    data = _read_config_file(config_path) if config_path is not None else {}

    for var, field in _ENV_FIELDS.items():
        value = env.get(var, "").strip()
        if value:
            data[field] = value

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e

    logger.debug("Settings: %s", settings.model_dump())
    return settings
