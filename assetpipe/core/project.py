"""Project config file and package metadata loading."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from .errors import ConfigError, ProjectMetadataError
from .models import ProjectConfig

logger = logging.getLogger(__name__)

PACKAGE_DESCRIPTOR = "package.json"


def load_project_config(root: Path, config_file: Path) -> ProjectConfig:
    """Load the YAML project config, falling back to defaults when absent.

    Args:
        root: Project root directory
        config_file: Config path, relative to root unless absolute

    Returns:
        Validated project configuration
    """
    path = config_file if config_file.is_absolute() else root / config_file
    if not path.exists():
        logger.debug(f"No config file at {path}, using defaults")
        return ProjectConfig()

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")

    try:
        config = ProjectConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {path}: {exc}") from exc

    logger.debug(f"Loaded config from {path}")
    return config


def project_name(root: Path, override: str | None = None) -> str:
    """Resolve the project name used for the archive file name."""
    if override:
        return override

    descriptor = root / PACKAGE_DESCRIPTOR
    if not descriptor.exists():
        raise ProjectMetadataError(
            f"{descriptor} not found; set package_name in the config file"
        )
    try:
        data = json.loads(descriptor.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ProjectMetadataError(f"Invalid JSON in {descriptor}: {exc}") from exc

    name = data.get("name") if isinstance(data, dict) else None
    if not isinstance(name, str) or not name.strip():
        raise ProjectMetadataError(f"{descriptor} has no 'name' field")
    return name.strip()
